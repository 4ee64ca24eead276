"""Table registry: occupancy and merge/split transitions."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Iterable, Iterator

from hotpos.models import Order, Table, TableStatus, TableView

logger = logging.getLogger(__name__)

MERGE_MODE = "merge"
SPLIT_MODE = "split"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TableRegistry:
    """The fixed set of tables and the only writer of their occupancy.

    Merge links are stored once, as ``secondary id -> primary id``. The list
    of secondaries of a primary is always derived from that map.

    Transitions that do not apply to the current state are no-ops and return
    ``False``; they never leave a partial change behind.
    """

    def __init__(self, table_count: int, clock: Callable[[], datetime] = _utc_now) -> None:
        if table_count < 1:
            raise ValueError("table_count must be at least 1")
        self._clock = clock
        self._tables: dict[int, Table] = {tid: Table(id=tid) for tid in range(1, table_count + 1)}
        self._links: dict[int, int] = {}

    def __len__(self) -> int:
        return len(self._tables)

    def __iter__(self) -> Iterator[Table]:
        return iter(self._tables.values())

    def __contains__(self, table_id: object) -> bool:
        return table_id in self._tables

    @property
    def ids(self) -> list[int]:
        return list(self._tables)

    def get(self, table_id: int) -> Table:
        try:
            return self._tables[table_id]
        except KeyError:
            raise KeyError(f"Unknown table {table_id}") from None

    def merged_with(self, table_id: int) -> int | None:
        return self._links.get(table_id)

    def merged_tables(self, table_id: int) -> tuple[int, ...]:
        return tuple(sorted(sid for sid, pid in self._links.items() if pid == table_id))

    def is_merge_primary(self, table_id: int) -> bool:
        return table_id in self._links.values()

    def is_merge_secondary(self, table_id: int) -> bool:
        return table_id in self._links

    def resolve(self, table_id: int) -> int:
        """Return the table whose order serves ``table_id``."""
        return self._links.get(table_id, table_id)

    def order_for(self, table_id: int) -> Order:
        return self.get(self.resolve(table_id)).order

    def view(self, table_id: int) -> TableView:
        table = self.get(table_id)
        return TableView(
            id=table.id,
            status=table.status,
            guest_count=table.guest_count,
            order_time=table.order_time,
            merged_with=self.merged_with(table_id),
            merged_tables=self.merged_tables(table_id),
            line_count=len(table.order.lines),
        )

    def views(self) -> list[TableView]:
        return [self.view(tid) for tid in self._tables]

    def count(self, *statuses: TableStatus) -> int:
        return sum(1 for table in self._tables.values() if table.status in statuses)

    def open(self, table_id: int) -> bool:
        table = self.get(table_id)
        if table.status is not TableStatus.AVAILABLE:
            return False
        table.status = TableStatus.OCCUPIED
        table.guest_count = 1
        table.order_time = self._clock()
        logger.debug("table_open id=%s", table_id)
        return True

    def close(self, table_id: int) -> list[int]:
        """Release a table; a merge primary releases its secondaries too.

        Returns the ids that were reset.
        """
        table = self.get(table_id)
        if table.status is TableStatus.AVAILABLE:
            return []

        released = [table_id]
        if self.is_merge_primary(table_id):
            released.extend(self.merged_tables(table_id))

        for tid in released:
            self._links.pop(tid, None)
            self._reset(self._tables[tid])
        logger.debug("table_close id=%s released=%s", table_id, released)
        return released

    def merge(self, primary_id: int, secondary_ids: Iterable[int]) -> bool:
        secondaries = list(dict.fromkeys(secondary_ids))
        if not secondaries or primary_id in secondaries:
            return False
        primary = self.get(primary_id)
        if primary.status is not TableStatus.OCCUPIED:
            return False
        for sid in secondaries:
            secondary = self.get(sid)
            if secondary.status is not TableStatus.OCCUPIED or self.is_merge_primary(sid):
                logger.debug("merge_rejected primary=%s secondary=%s", primary_id, sid)
                return False

        for sid in secondaries:
            self._links[sid] = primary_id
            self._tables[sid].status = TableStatus.MERGED
        logger.debug("table_merge primary=%s secondaries=%s", primary_id, secondaries)
        return True

    def split(self, table_ids: Iterable[int]) -> list[int]:
        """Undo the merge groups of the selected primaries.

        Selected tables that are not merge primaries are ignored. Orders and
        guest counts of liberated tables are kept. Returns liberated ids.
        """
        primaries = {tid for tid in table_ids if self.is_merge_primary(tid)}
        liberated = sorted(sid for sid, pid in self._links.items() if pid in primaries)
        for sid in liberated:
            del self._links[sid]
            self._tables[sid].status = TableStatus.OCCUPIED
        if liberated:
            logger.debug("table_split primaries=%s liberated=%s", sorted(primaries), liberated)
        return liberated

    def selectable(self, table_id: int, mode: str) -> bool:
        table = self.get(table_id)
        if mode == MERGE_MODE:
            return table.status is TableStatus.OCCUPIED
        if mode == SPLIT_MODE:
            return self.is_merge_primary(table_id) or self.is_merge_secondary(table_id)
        return False

    def reset(self) -> None:
        self._links.clear()
        for table in self._tables.values():
            self._reset(table)

    def _reset(self, table: Table) -> None:
        table.status = TableStatus.AVAILABLE
        table.guest_count = 0
        table.order_time = None
        table.order.clear()
