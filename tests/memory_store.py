"""In-memory SortableStore used by the service tests"""

from collections.abc import Hashable, Mapping
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from uuid import UUID

from sortable.errors import StoreError
from sortable.entities import SortableEntity


class MemoryStore[T: SortableEntity]:
    """Keeps rows in a dict and restores a snapshot when a transaction fails"""

    def __init__(self):
        self.rows: dict[UUID, T] = {}
        self.fail_after: int | None = None
        self.rank_updates: list[dict[UUID, int]] = []
        self.commits = 0
        self.rollbacks = 0

    @asynccontextmanager
    async def transaction(self):
        snapshot = dict(self.rows)
        try:
            yield self
        except BaseException:
            self.rows = snapshot
            self.rollbacks += 1
            raise
        self.commits += 1

    def seed(self, *records: T) -> list[T]:
        """Put records in place without going through a transaction"""
        for record in records:
            self.rows[record.id] = record
        return list(records)

    def rank(self, record: T) -> int:
        return self.rows[record.id].rank

    def ranks(self, partition_key: Hashable = ()) -> dict[str, int]:
        """Active ranks by name, for compact assertions"""
        return {
            row.name: row.rank
            for row in self.rows.values()
            if row.partition_key == partition_key and row.deleted_at is None
        }

    async def load_partition(
        self, partition_key: Hashable, include_deleted: bool
    ) -> list[T]:
        rows = [
            row
            for row in self.rows.values()
            if row.partition_key == partition_key
            and (include_deleted or row.deleted_at is None)
        ]
        return sorted(rows, key=lambda row: (row.rank, str(row.id)))

    async def update_ranks(self, ranks: Mapping[UUID, int]) -> None:
        self.rank_updates.append(dict(ranks))
        for written, (record_id, rank) in enumerate(ranks.items()):
            if self.fail_after is not None and written >= self.fail_after:
                raise StoreError("simulated write failure")
            if record_id not in self.rows:
                raise StoreError(f"unknown record {record_id}")
            self.rows[record_id] = self.rows[record_id].model_copy(update={"rank": rank})

    async def mark_deleted(self, record_id: UUID) -> bool:
        row = self.rows.get(record_id)
        if row is None or row.deleted_at is not None:
            return False
        self.rows[record_id] = row.model_copy(update={"deleted_at": datetime.now(UTC)})
        return True

    async def mark_restored(self, record_id: UUID) -> bool:
        row = self.rows.get(record_id)
        if row is None or row.deleted_at is None:
            return False
        self.rows[record_id] = row.model_copy(update={"deleted_at": None})
        return True

    async def insert(self, record: T) -> T:
        if record.id in self.rows:
            raise StoreError(f"duplicate key {record.id}")
        self.rows[record.id] = record
        return record
