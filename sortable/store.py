"""Persistence contract consumed by SortableService"""

from collections.abc import Hashable, Mapping
from contextlib import AbstractAsyncContextManager
from typing import Any, Protocol

from sortable.entities import Sortable


class SortableStore[T: Sortable](Protocol):
    """
    What the ordering service needs from a backing store.

    All methods are awaited inside the context returned by transaction().
    The store must give serializable (or stronger) isolation to the
    read-modify-write sequence, e.g. by locking the partition's rows.
    Failures are raised as StoreError.
    """

    def transaction(self) -> AbstractAsyncContextManager[Any]:
        """Open a transaction; leaving it with an exception rolls back"""
        ...

    async def load_partition(
        self, partition_key: Hashable, include_deleted: bool
    ) -> list[T]:
        """Return the partition's records ordered by rank"""
        ...

    async def update_ranks(self, ranks: Mapping[Any, int]) -> None:
        """Persist new ranks keyed by record id"""
        ...

    async def mark_deleted(self, record_id: Any) -> bool:
        """Tombstone a record; False when there was nothing to delete"""
        ...

    async def mark_restored(self, record_id: Any) -> bool:
        """Clear a record's tombstone; False when it was not deleted"""
        ...

    async def insert(self, record: T) -> T:
        """Persist a new record as given"""
        ...
