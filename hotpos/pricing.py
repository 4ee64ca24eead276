"""Pure total computation for orders.

All functions return exact ``Decimal`` values. Percentages above 100 act as
100 and amounts never push a line or the bill below zero; rounding for
display happens in ``hotpos.rendering``.
"""

from __future__ import annotations

from decimal import Decimal

from hotpos.models import Discount, DiscountKind, Order, OrderLine

_ZERO = Decimal(0)
_HUNDRED = Decimal(100)


def _percent(value: Decimal) -> Decimal:
    return min(value, _HUNDRED) / _HUNDRED


def line_base(line: OrderLine) -> Decimal:
    """Unit price times quantity, before any discount."""
    return line.product.price * line.quantity


def _apply(discount: Discount, base: Decimal) -> Decimal:
    if discount.value <= 0:
        return base
    if discount.kind is DiscountKind.PERCENT:
        return base * (1 - _percent(discount.value))
    return max(_ZERO, base - discount.value)


def line_total(line: OrderLine) -> Decimal:
    return _apply(line.discount, line_base(line))


def line_discount_amount(line: OrderLine) -> Decimal:
    return line_base(line) - line_total(line)


def subtotal(order: Order) -> Decimal:
    """Sum of line totals, i.e. after line discounts but before the bill discount."""
    return sum((line_total(line) for line in order.lines), _ZERO)


def raw_total(order: Order) -> Decimal:
    return sum((line_base(line) for line in order.lines), _ZERO)


def total_line_discounts(order: Order) -> Decimal:
    return sum((line_discount_amount(line) for line in order.lines), _ZERO)


def bill_discount_amount(order: Order) -> Decimal:
    discount = order.bill_discount
    if discount.value <= 0:
        return _ZERO
    base = subtotal(order)
    if discount.kind is DiscountKind.PERCENT:
        return base * _percent(discount.value)
    return min(discount.value, base)


def grand_total(order: Order) -> Decimal:
    return max(_ZERO, subtotal(order) - bill_discount_amount(order))


def item_count(order: Order) -> int:
    return sum(line.quantity for line in order.lines)
