"""Mutations of an in-progress order.

Each operation edits the order in place and then notifies its observers.
Invalid input is clamped rather than rejected: negative quantities and
discount values become zero.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation

from hotpos.models import Discount, DiscountKind, Order, OrderLine, Product, Ref

DiscountValue = Decimal | int | float | str


def to_amount(value: DiscountValue | None) -> Decimal:
    """Parse a user-entered number, treating blanks and garbage as zero."""
    if value is None:
        return Decimal(0)
    if isinstance(value, float):
        value = repr(value)
    try:
        parsed = Decimal(str(value).strip() or "0")
    except InvalidOperation:
        return Decimal(0)
    if not parsed.is_finite():
        return Decimal(0)
    return parsed


def _clamped_discount(kind: DiscountKind | str, value: DiscountValue | None) -> Discount:
    return Discount(kind=DiscountKind(kind), value=max(Decimal(0), to_amount(value)))


def add_product(order: Order, product: Product) -> OrderLine:
    line = order.line_for(product.id)
    if line is None:
        line = OrderLine(product=product)
        order.lines.append(line)
    else:
        line.quantity += 1
    order.notify()
    return line


def set_quantity(order: Order, product_id: int, delta: int) -> None:
    """Shift a line's quantity by ``delta``; the line is dropped at zero."""
    line = order.line_for(product_id)
    if line is None:
        return
    line.quantity = max(0, line.quantity + delta)
    if line.quantity == 0:
        order.lines.remove(line)
    order.notify()


def remove_line(order: Order, product_id: int) -> None:
    order.lines[:] = [line for line in order.lines if line.product.id != product_id]
    order.notify()


def set_line_discount(order: Order, product_id: int, kind: DiscountKind | str, value: DiscountValue | None) -> None:
    # Only the lower bound is enforced here; pricing caps percent and amount.
    line = order.line_for(product_id)
    if line is None:
        return
    line.discount = _clamped_discount(kind, value)
    order.notify()


def set_bill_discount(order: Order, kind: DiscountKind | str, value: DiscountValue | None) -> None:
    order.bill_discount = _clamped_discount(kind, value)
    order.notify()


def set_customer(order: Order, customer: Ref | None) -> None:
    order.customer = customer
    order.notify()


def set_price_list(order: Order, price_list: Ref | None) -> None:
    order.price_list = price_list
    order.notify()


def set_promotion(order: Order, promotion: Ref | None) -> None:
    order.promotion = promotion
    order.notify()


def can_checkout(order: Order) -> bool:
    """An order is payable once it has lines and a customer attached."""
    return not order.is_empty and order.customer is not None


def checkout_blocker(order: Order) -> str | None:
    """Explain why ``can_checkout`` is false, for the status line."""
    if order.is_empty:
        return "Add at least one product before payment"
    if order.customer is None:
        return "Select a customer before payment"
    return None
