"""SortableService: public ordering operations"""

import logging
from collections.abc import Hashable, Iterable
from typing import Any

from sortable.config import SortableConfig
from sortable.entities import Sortable
from sortable.errors import ConflictError, NotFoundError, OutOfRangeError
from sortable.ordered_set import OrderedSet
from sortable.soft_delete import SoftDeleteFilter
from sortable.store import SortableStore

logger = logging.getLogger(__name__)


class SortableService[T: Sortable]:
    """
    Keeps the ranks of a record type consistent.

    Each mutating call opens one store transaction, loads the affected
    partition, computes the new ranks with an OrderedSet and writes every
    changed rank back before committing. Any exception rolls the whole
    operation back.

    Usage:
        service = SortableService(SortableRepository(Dummy, "dummies"))
        await service.create(Dummy(name="first"))
        await service.move_to_rank(record, 1)
        await service.delete(record)
        await service.restore(record)
    """

    def __init__(
        self,
        store: SortableStore[T],
        config: SortableConfig | None = None,
        soft_delete: SoftDeleteFilter | None = None,
    ):
        self.store = store
        self.config = config or getattr(store, "config", None) or SortableConfig()
        self.soft_delete = soft_delete or SoftDeleteFilter(
            self.config.soft_delete_policy
        )

    async def _load(self, partition_key: Hashable) -> OrderedSet[T]:
        # Tombstoned records are always loaded so their ranks stay visible
        records = await self.store.load_partition(partition_key, include_deleted=True)
        return OrderedSet(
            records,
            self.soft_delete,
            partition_key=partition_key,
            start_order=self.config.start_order,
        )

    async def _save(self, ordered: OrderedSet[T], operation: str) -> dict[Any, int]:
        changes = ordered.changes()
        if changes:
            logger.debug(
                "%s rewrote %d rank(s) in partition %r: %s",
                operation,
                len(changes),
                ordered.partition_key,
                changes,
            )
            await self.store.update_ranks(changes)
        return changes

    async def _load_member(self, record: T) -> OrderedSet[T]:
        ordered = await self._load(record.partition_key)
        if record.id not in ordered:
            raise NotFoundError(record.id, record.partition_key)
        return ordered

    # Creation
    async def append(self, record: T) -> int:
        """Give a stored record the end-of-partition rank"""
        async with self.store.transaction():
            ordered = await self._load(record.partition_key)
            rank = ordered.append(record)
            await self._save(ordered, "append")
            return rank

    async def create(self, record: T) -> T:
        """Insert a record, ranked at the end of its partition when sort_when_creating is on"""
        async with self.store.transaction():
            if self.config.sort_when_creating:
                ordered = await self._load(record.partition_key)
                record = self._with_rank(record, ordered.append(record))
            return await self.store.insert(record)

    @staticmethod
    def _with_rank(record: T, rank: int) -> T:
        model_copy = getattr(record, "model_copy", None)
        if model_copy is not None:
            return model_copy(update={"rank": rank})
        record.rank = rank
        return record

    # Moves
    async def move_to_rank(self, record: T, target_rank: int) -> dict[Any, int]:
        """
        Move a record to a 1-based position among the partition's orderable records.

        Args:
            record: Record to move
            target_rank: Position in [1, number of orderable records]

        Returns:
            Rank changes keyed by record id. The moved record takes the rank of
            the record at target_rank's position, which equals target_rank only
            when the partition is densely numbered: with ranks [1, 5, 9], moving
            the third record to 2 gives it rank 5.

        Records between the old and new position shift by one.
        """
        async with self.store.transaction():
            ordered = await self._load_member(record)
            if not 1 <= target_rank <= len(ordered):
                raise OutOfRangeError(target_rank, 1, len(ordered))
            ordered.move_to_position(record, target_rank)
            return await self._save(ordered, "move_to_rank")

    async def move_before(self, record: T, target: T) -> dict[Any, int]:
        async with self.store.transaction():
            ordered = await self._load_member(record)
            ordered.insert_before(record, target)
            return await self._save(ordered, "move_before")

    async def move_after(self, record: T, target: T) -> dict[Any, int]:
        async with self.store.transaction():
            ordered = await self._load_member(record)
            ordered.insert_after(record, target)
            return await self._save(ordered, "move_after")

    async def move_up(self, record: T) -> dict[Any, int]:
        """Swap with the previous record; nothing happens for the first one"""
        async with self.store.transaction():
            ordered = await self._load_member(record)
            ordered.move_up(record)
            return await self._save(ordered, "move_up")

    async def move_down(self, record: T) -> dict[Any, int]:
        """Swap with the next record; nothing happens for the last one"""
        async with self.store.transaction():
            ordered = await self._load_member(record)
            ordered.move_down(record)
            return await self._save(ordered, "move_down")

    async def move_to_start(self, record: T) -> dict[Any, int]:
        async with self.store.transaction():
            ordered = await self._load_member(record)
            ordered.move_to_start(record)
            return await self._save(ordered, "move_to_start")

    async def move_to_end(self, record: T) -> dict[Any, int]:
        async with self.store.transaction():
            ordered = await self._load_member(record)
            ordered.move_to_end(record)
            return await self._save(ordered, "move_to_end")

    async def swap(self, first: T, second: T) -> dict[Any, int]:
        """Exchange the ranks of two records of the same partition"""
        if first.partition_key != second.partition_key:
            raise ValueError("Cannot swap records of different partitions")
        async with self.store.transaction():
            ordered = await self._load_member(first)
            ordered.swap(first, second)
            return await self._save(ordered, "swap")

    async def set_new_order(
        self,
        ids: Iterable[Any],
        partition_key: Hashable = (),
        start_order: int | None = None,
    ) -> dict[Any, int]:
        """Rank the given ids consecutively, in the given order"""
        async with self.store.transaction():
            ordered = await self._load(partition_key)
            ordered.set_new_order(ids, start_order)
            return await self._save(ordered, "set_new_order")

    async def renumber(self, partition_key: Hashable = ()) -> dict[Any, int]:
        """Compact the partition's ranks to start_order..start_order+n-1"""
        async with self.store.transaction():
            ordered = await self._load(partition_key)
            ordered.renumber()
            changes = await self._save(ordered, "renumber")
            logger.info(
                "Renumbered partition %r: %d record(s), %d rank(s) changed",
                partition_key,
                len(ordered),
                len(changes),
            )
            return changes

    # Soft delete lifecycle
    async def delete(self, record: T) -> None:
        """Tombstone a record; other ranks are left alone"""
        async with self.store.transaction():
            ordered = await self._load(record.partition_key)
            stored = ordered.get(record.id)
            if stored is None:
                raise NotFoundError(record.id, record.partition_key)
            if self.soft_delete.is_deleted(stored):
                raise ConflictError(f"Record '{record.id}' is already deleted")
            if not await self.store.mark_deleted(record.id):
                raise ConflictError(f"Record '{record.id}' was deleted concurrently")
            logger.debug(
                "Deleted %s at rank %d in partition %r",
                record.id,
                stored.rank,
                record.partition_key,
            )

    async def restore(self, record: T) -> int:
        """
        Clear a record's tombstone and return its rank.

        The record keeps its previous rank when it is free. If an orderable
        record took it meanwhile, that record keeps it and the restored one is
        placed right after it, bumping followers until a gap absorbs the shift.
        With restore_conflict="fail" the collision raises ConflictError instead.
        """
        async with self.store.transaction():
            ordered = await self._load(record.partition_key)
            stored = ordered.get(record.id)
            if stored is None:
                raise NotFoundError(record.id, record.partition_key)
            if not self.soft_delete.is_deleted(stored):
                raise ConflictError(f"Record '{record.id}' is not deleted")

            if stored.id in ordered:
                # INCLUDE_DELETED: the record never left the ordering
                rank = ordered.rank_of(stored)
            else:
                holder = ordered.holder_of(stored.rank)
                if holder is None:
                    rank = ordered.add(stored)
                elif self.config.restore_conflict == "fail":
                    raise ConflictError(
                        f"Rank {stored.rank} of '{record.id}' is held by '{holder}'"
                    )
                else:
                    rank = ordered.insert_after(stored, holder)
                    logger.debug(
                        "Restored %s collides with %s at rank %d, moved to %d",
                        record.id,
                        holder,
                        stored.rank,
                        rank,
                    )

            if not await self.store.mark_restored(record.id):
                raise ConflictError(f"Record '{record.id}' was restored concurrently")
            await self._save(ordered, "restore")
            return rank

    # Reads
    async def ordered(self, partition_key: Hashable = ()) -> list[T]:
        """Orderable records of a partition in rank order"""
        async with self.store.transaction():
            ordered = await self._load(partition_key)
            return ordered.members()

    async def is_first(self, record: T) -> bool:
        async with self.store.transaction():
            ordered = await self._load_member(record)
            return ordered.is_first(record)

    async def is_last(self, record: T) -> bool:
        async with self.store.transaction():
            ordered = await self._load_member(record)
            return ordered.is_last(record)

    async def highest_rank(self, partition_key: Hashable = ()) -> int | None:
        """Highest rank among orderable records, None for an empty partition"""
        async with self.store.transaction():
            ordered = await self._load(partition_key)
            return max(ordered.ranks(), default=None)

    async def lowest_rank(self, partition_key: Hashable = ()) -> int | None:
        async with self.store.transaction():
            ordered = await self._load(partition_key)
            return min(ordered.ranks(), default=None)
