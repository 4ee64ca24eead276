"""
Tests for hotpos.rendering — money, discount and table card formatting.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

from hotpos.config import CURRENCY_SUFFIX
from hotpos.models import Discount, DiscountKind, TableStatus, TableView
from hotpos.rendering import (
    format_discount,
    format_elapsed,
    format_price,
    format_table_card,
    merge_label,
)

NOW = datetime(2025, 6, 15, 12, 0, 0, tzinfo=timezone.utc)


def _view(**overrides) -> TableView:
    defaults = dict(
        id=1,
        status=TableStatus.OCCUPIED,
        guest_count=1,
        order_time=NOW - timedelta(minutes=5),
        merged_with=None,
        merged_tables=(),
        line_count=0,
    )
    defaults.update(overrides)
    return TableView(**defaults)


class TestFormatPrice:
    def test_groups_thousands_with_dots(self):
        assert format_price(Decimal("81000")) == f"81.000{CURRENCY_SUFFIX}"
        assert format_price(1234567) == f"1.234.567{CURRENCY_SUFFIX}"

    def test_rounds_half_up(self):
        assert format_price(Decimal("999.5")) == f"1.000{CURRENCY_SUFFIX}"
        assert format_price(Decimal("0.4")) == f"0{CURRENCY_SUFFIX}"


class TestFormatDiscount:
    def test_zero_is_blank(self):
        assert format_discount(Discount()) == ""

    def test_percent(self):
        assert format_discount(Discount(DiscountKind.PERCENT, Decimal("10.0"))) == "-10%"

    def test_amount(self):
        assert format_discount(Discount(DiscountKind.AMOUNT, Decimal("50000"))) == f"-50.000{CURRENCY_SUFFIX}"


class TestElapsed:
    def test_minutes_and_hours(self):
        assert format_elapsed(NOW - timedelta(minutes=12), NOW) == "12 min"
        assert format_elapsed(NOW - timedelta(minutes=95), NOW) == "1h 35m"
        assert format_elapsed(None, NOW) == ""


class TestTableCard:
    def test_merge_labels(self):
        assert merge_label(_view(merged_tables=(2, 3))) == "T1 + 2, 3"
        assert merge_label(_view(id=2, status=TableStatus.MERGED, merged_with=1)) == "→ T1"
        assert merge_label(_view()) is None

    def test_occupied_card_shows_time_and_lines(self):
        card = format_table_card(_view(line_count=3), now=NOW).plain
        assert "T1" in card
        assert "In use" in card
        assert "5 min" in card
        assert "3 lines" in card

    def test_free_card(self):
        card = format_table_card(_view(status=TableStatus.AVAILABLE, order_time=None), now=NOW, selected=True).plain
        assert card.startswith("✓")
        assert "Free" in card
