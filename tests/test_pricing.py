"""
Tests for hotpos.pricing — exact order totals.
"""

from decimal import Decimal

from hotpos.models import Discount, DiscountKind, Order, OrderLine, Product
from hotpos.pricing import (
    bill_discount_amount,
    grand_total,
    item_count,
    line_base,
    line_discount_amount,
    line_total,
    raw_total,
    subtotal,
    total_line_discounts,
)

PHO = Product(1, "Phở bò", Decimal("45000"))
TEA = Product(2, "Trà đá", Decimal("5000"))


def _line(product=PHO, quantity=1, kind=DiscountKind.PERCENT, value="0") -> OrderLine:
    return OrderLine(product=product, quantity=quantity, discount=Discount(kind, Decimal(value)))


def _order(*lines, bill_kind=DiscountKind.PERCENT, bill_value="0") -> Order:
    return Order(lines=list(lines), bill_discount=Discount(bill_kind, Decimal(bill_value)))


class TestLineTotals:
    def test_percent_line_discount(self):
        line = _line(quantity=2, value="10")
        assert line_base(line) == Decimal("90000")
        assert line_total(line) == Decimal("81000")
        assert line_discount_amount(line) == Decimal("9000")

    def test_amount_line_discount(self):
        line = _line(quantity=2, kind=DiscountKind.AMOUNT, value="15000")
        assert line_total(line) == Decimal("75000")

    def test_percent_above_hundred_acts_as_hundred(self):
        assert line_total(_line(value="150")) == Decimal("0")

    def test_amount_larger_than_line_floors_at_zero(self):
        line = _line(kind=DiscountKind.AMOUNT, value="100000")
        assert line_total(line) == Decimal("0")
        assert line_discount_amount(line) == Decimal("45000")


class TestOrderTotals:
    def test_empty_order(self):
        order = Order()
        assert subtotal(order) == 0
        assert grand_total(order) == 0
        assert item_count(order) == 0

    def test_subtotal_sums_discounted_lines(self):
        order = _order(_line(quantity=2, value="10"), _line(product=TEA, quantity=3))
        assert raw_total(order) == Decimal("105000")
        assert subtotal(order) == Decimal("96000")
        assert total_line_discounts(order) == Decimal("9000")
        assert item_count(order) == 5

    def test_bill_percent_applies_to_subtotal(self):
        order = _order(_line(quantity=2, value="10"), bill_value="10")
        assert bill_discount_amount(order) == Decimal("8100")
        assert grand_total(order) == Decimal("72900")

    def test_bill_amount_capped_at_subtotal(self):
        order = _order(
            _line(product=Product(3, "Lẩu", Decimal("100000"))),
            bill_kind=DiscountKind.AMOUNT,
            bill_value="150000",
        )
        assert bill_discount_amount(order) == Decimal("100000")
        assert grand_total(order) == Decimal("0")

    def test_grand_total_never_exceeds_subtotal(self):
        order = _order(_line(quantity=3), _line(product=TEA), bill_value="5")
        assert Decimal(0) <= grand_total(order) <= subtotal(order)

    def test_fractional_percent_kept_exact(self):
        order = _order(_line(product=TEA), bill_value="33.3")
        assert grand_total(order) == Decimal("3335")
