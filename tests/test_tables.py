"""
Tests for hotpos.tables — occupancy, merge and split transitions.
"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from hotpos.models import Product, TableStatus
from hotpos.ordering import add_product
from hotpos.tables import MERGE_MODE, SPLIT_MODE, TableRegistry

NOW = datetime(2025, 6, 15, 12, 0, 0, tzinfo=timezone.utc)
PHO = Product(1, "Phở bò", Decimal("45000"))


def _registry(count=8) -> TableRegistry:
    return TableRegistry(count, clock=lambda: NOW)


def _occupied(registry: TableRegistry, *ids: int) -> TableRegistry:
    for tid in ids:
        registry.open(tid)
    return registry


class TestOpenClose:
    def test_initial_state(self):
        registry = _registry(4)
        assert registry.ids == [1, 2, 3, 4]
        assert registry.count(TableStatus.AVAILABLE) == 4

    def test_needs_at_least_one_table(self):
        with pytest.raises(ValueError):
            TableRegistry(0)

    def test_unknown_table(self):
        with pytest.raises(KeyError):
            _registry().get(42)

    def test_open_sets_occupancy(self):
        registry = _registry()
        assert registry.open(1)
        table = registry.get(1)
        assert table.status is TableStatus.OCCUPIED
        assert table.guest_count == 1
        assert table.order_time == NOW

    def test_open_is_idempotent(self):
        registry = _occupied(_registry(), 1)
        assert not registry.open(1)
        assert registry.get(1).order_time == NOW

    def test_close_resets_order(self):
        registry = _occupied(_registry(), 1)
        add_product(registry.order_for(1), PHO)
        assert registry.close(1) == [1]
        table = registry.get(1)
        assert table.status is TableStatus.AVAILABLE
        assert table.order_time is None
        assert table.order.is_empty

    def test_close_available_is_noop(self):
        assert _registry().close(3) == []


class TestMerge:
    def test_merge_links_secondaries(self):
        registry = _occupied(_registry(), 1, 2, 3)
        assert registry.merge(1, [3, 2])
        assert registry.merged_tables(1) == (2, 3)
        assert registry.merged_with(2) == 1
        assert registry.get(2).status is TableStatus.MERGED
        assert registry.get(1).status is TableStatus.OCCUPIED

    def test_secondary_resolves_to_primary_order(self):
        registry = _occupied(_registry(), 1, 2)
        registry.merge(1, [2])
        assert registry.resolve(2) == 1
        assert registry.order_for(2) is registry.order_for(1)

    def test_rejects_available_secondary(self):
        registry = _occupied(_registry(), 1, 2)
        assert not registry.merge(1, [2, 5])
        assert registry.merged_tables(1) == ()
        assert registry.get(2).status is TableStatus.OCCUPIED

    def test_rejects_available_primary(self):
        registry = _occupied(_registry(), 2)
        assert not registry.merge(1, [2])

    def test_rejects_self_and_empty(self):
        registry = _occupied(_registry(), 1, 2)
        assert not registry.merge(1, [])
        assert not registry.merge(1, [1, 2])

    def test_rejects_nesting_a_primary(self):
        registry = _occupied(_registry(), 1, 2, 3)
        registry.merge(2, [3])
        assert not registry.merge(1, [2])
        assert registry.merged_with(3) == 2

    def test_rejects_already_merged_secondary(self):
        registry = _occupied(_registry(), 1, 2, 3)
        registry.merge(1, [2])
        assert not registry.merge(3, [2])
        assert registry.merged_with(2) == 1

    def test_primary_can_absorb_more_tables(self):
        registry = _occupied(_registry(), 1, 2, 3)
        registry.merge(1, [2])
        assert registry.merge(1, [3])
        assert registry.merged_tables(1) == (2, 3)

    def test_views_expose_links(self):
        registry = _occupied(_registry(), 1, 2)
        registry.merge(1, [2])
        primary, secondary = registry.view(1), registry.view(2)
        assert primary.is_merge_primary and not primary.is_merge_secondary
        assert secondary.is_merge_secondary and secondary.merged_with == 1


class TestCloseMerged:
    def test_closing_primary_releases_group(self):
        registry = _occupied(_registry(), 1, 2, 3, 4)
        for tid in (1, 2, 3):
            add_product(registry.order_for(tid), PHO)
        registry.merge(1, [2, 3])
        assert registry.close(1) == [1, 2, 3]
        assert registry.count(TableStatus.AVAILABLE) == 7
        assert registry.merged_with(2) is None
        assert not registry.is_merge_primary(1)
        for tid in (1, 2, 3):
            table = registry.get(tid)
            assert table.order.is_empty
            assert table.order_time is None
            assert table.guest_count == 0
        assert registry.get(4).status is TableStatus.OCCUPIED

    def test_closing_secondary_releases_only_itself(self):
        registry = _occupied(_registry(), 1, 2, 3)
        registry.merge(1, [2, 3])
        add_product(registry.order_for(1), PHO)
        assert registry.close(2) == [2]
        assert registry.merged_tables(1) == (3,)
        assert not registry.order_for(1).is_empty


class TestSplit:
    def test_merge_then_split_restores_occupancy(self):
        registry = _occupied(_registry(), 1, 2, 3)
        registry.merge(1, [2, 3])
        assert registry.split([1]) == [2, 3]
        for tid in (1, 2, 3):
            assert registry.get(tid).status is TableStatus.OCCUPIED
            assert registry.merged_with(tid) is None
        assert registry.merged_tables(1) == ()

    def test_split_keeps_orders(self):
        registry = _occupied(_registry(), 1, 2)
        add_product(registry.get(2).order, PHO)
        registry.merge(1, [2])
        registry.split([1])
        assert registry.order_for(2).line_for(PHO.id) is not None

    def test_selecting_only_secondaries_is_noop(self):
        registry = _occupied(_registry(), 1, 2)
        registry.merge(1, [2])
        assert registry.split([2]) == []
        assert registry.merged_with(2) == 1


class TestSelectable:
    def test_merge_mode_allows_occupied(self):
        registry = _occupied(_registry(), 1)
        assert registry.selectable(1, MERGE_MODE)
        assert not registry.selectable(2, MERGE_MODE)

    def test_split_mode_allows_group_members(self):
        registry = _occupied(_registry(), 1, 2, 3)
        registry.merge(1, [2])
        assert registry.selectable(1, SPLIT_MODE)
        assert registry.selectable(2, SPLIT_MODE)
        assert not registry.selectable(3, SPLIT_MODE)

    def test_other_modes(self):
        assert not _occupied(_registry(), 1).selectable(1, "normal")


class TestReset:
    def test_reset_clears_everything(self):
        registry = _occupied(_registry(), 1, 2)
        registry.merge(1, [2])
        add_product(registry.order_for(1), PHO)
        registry.reset()
        assert registry.count(TableStatus.AVAILABLE) == len(registry)
        assert registry.merged_tables(1) == ()
        assert registry.order_for(1).is_empty
