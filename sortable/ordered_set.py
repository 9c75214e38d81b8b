"""
In-memory ordering of a single partition.
The goal is to compute rank changes without touching the store.
"""

import bisect
from collections.abc import Hashable, Iterable, Iterator
from typing import Any

from sortable.entities import Sortable
from sortable.errors import ConflictError, NotFoundError, OutOfRangeError
from sortable.order_key import next_after
from sortable.soft_delete import SoftDeleteFilter


class OrderedSet[T: Sortable]:
    """
    Total order of the records sharing one partition key.

    Members are the records the soft delete filter considers orderable, kept in
    rank order. Records handed in are never mutated: the set tracks ranks on
    its own and reports what moved through changes().

    Usage:
        ordered = OrderedSet(records, SoftDeleteFilter())
        ordered.move_to_position(record, 1)
        await store.update_ranks(ordered.changes())
    """

    def __init__(
        self,
        records: Iterable[T],
        soft_delete: SoftDeleteFilter | None = None,
        partition_key: Hashable = (),
        start_order: int = 1,
    ):
        self.soft_delete = soft_delete or SoftDeleteFilter()
        self.partition_key = partition_key
        self.start_order = start_order

        self._records: dict[Any, T] = {}
        self._ranks: dict[Any, int] = {}
        self._loaded: dict[Any, int | None] = {}

        members: list[T] = []
        for record in records:
            self._records[record.id] = record
            self._ranks[record.id] = record.rank
            self._loaded[record.id] = record.rank
            if self.soft_delete.is_orderable(record):
                members.append(record)

        # sort is stable: equal ranks keep load order
        members.sort(key=lambda record: record.rank)
        self._order: list[Any] = [record.id for record in members]

    # Lookups
    @staticmethod
    def _id_of(record: Any) -> Any:
        return getattr(record, "id", record)

    def _index(self, record: Any) -> int:
        record_id = self._id_of(record)
        try:
            return self._order.index(record_id)
        except ValueError:
            raise NotFoundError(record_id, self.partition_key) from None

    def __len__(self) -> int:
        return len(self._order)

    def __contains__(self, record: Any) -> bool:
        return self._id_of(record) in self._order

    def __iter__(self) -> Iterator[T]:
        return iter(self.members())

    def get(self, record_id: Any) -> T | None:
        """Return a loaded record by id, member or not"""
        return self._records.get(record_id)

    def members(self) -> list[T]:
        """Orderable records in rank order"""
        return [self._records[record_id] for record_id in self._order]

    def ids(self) -> list[Any]:
        return list(self._order)

    def ranks(self) -> list[int]:
        """Current ranks of the members in order"""
        return [self._ranks[record_id] for record_id in self._order]

    def rank_of(self, record: Any) -> int:
        record_id = self._id_of(record)
        if record_id not in self._ranks:
            raise NotFoundError(record_id, self.partition_key)
        return self._ranks[record_id]

    def position_of(self, record: Any) -> int:
        """1-based position of a member"""
        return self._index(record) + 1

    def holder_of(self, rank: int) -> Any | None:
        """Id of the member holding the given rank, if any"""
        for record_id in self._order:
            if self._ranks[record_id] == rank:
                return record_id
        return None

    def highest_rank(self) -> int | None:
        """Highest rank in use by any loaded record, tombstoned ones included"""
        return max(self._ranks.values(), default=None)

    def first(self) -> T | None:
        return self._records[self._order[0]] if self._order else None

    def last(self) -> T | None:
        return self._records[self._order[-1]] if self._order else None

    def is_first(self, record: Any) -> bool:
        return self._index(record) == 0

    def is_last(self, record: Any) -> bool:
        return self._index(record) == len(self._order) - 1

    def changes(self) -> dict[Any, int]:
        """Ranks that differ from the loaded state, keyed by record id"""
        return {
            record_id: rank
            for record_id, rank in self._ranks.items()
            if self._loaded.get(record_id) != rank
        }

    # Internal mutations
    def _track(self, record: T) -> Any:
        """Register a record that was not part of the load"""
        record_id = record.id
        if record_id not in self._records:
            self._records[record_id] = record
            self._ranks[record_id] = record.rank
            self._loaded[record_id] = None
        return record_id

    def _cascade(self, start: int) -> None:
        """Bump ranks from start onward until they are strictly increasing again"""
        for index in range(max(start, 1), len(self._order)):
            previous = self._ranks[self._order[index - 1]]
            current_id = self._order[index]
            if self._ranks[current_id] <= previous:
                self._ranks[current_id] = next_after(previous)

    def _move_to_index(self, record_id: Any, new_index: int) -> None:
        """Rotate the window between the old and new index.

        The ranks used by the window stay the same; every other member of the
        window moves one position toward the vacated slot.
        """
        old_index = self._order.index(record_id)
        if old_index == new_index:
            return

        low, high = min(old_index, new_index), max(old_index, new_index)
        slots = sorted(self._ranks[member] for member in self._order[low : high + 1])

        self._order.pop(old_index)
        self._order.insert(new_index, record_id)

        for offset, member in enumerate(self._order[low : high + 1]):
            self._ranks[member] = slots[offset]
        self._cascade(high + 1)

    def _insert_at(self, record_id: Any, index: int) -> None:
        """Insert a non-member at index, taking the nearest free slot"""
        if index > 0:
            rank = next_after(self._ranks[self._order[index - 1]])
        elif self._order:
            rank = max(self._ranks[self._order[0]] - 1, self.start_order)
        else:
            rank = self.start_order

        self._order.insert(index, record_id)
        self._ranks[record_id] = rank
        self._cascade(index + 1)

    # Operations
    def append(self, record: T) -> int:
        """Put the record at the end of the partition and return its rank.

        The new rank is one past the highest rank held by any loaded record,
        so ranks of soft-deleted records are not reused until a renumber.
        """
        record_id = self._track(record)
        if record_id in self._order:
            self._order.remove(record_id)

        highest = max(
            (rank for other, rank in self._ranks.items() if other != record_id),
            default=None,
        )
        rank = self.start_order if highest is None else next_after(highest)
        rank = max(rank, self.start_order)

        self._order.append(record_id)
        self._ranks[record_id] = rank
        return rank

    def insert_before(self, record: T, target: Any) -> int:
        """Place record directly before target and return its rank"""
        return self._insert_relative(record, target, after=False)

    def insert_after(self, record: T, target: Any) -> int:
        """Place record directly after target and return its rank"""
        return self._insert_relative(record, target, after=True)

    def _insert_relative(self, record: T, target: Any, after: bool) -> int:
        target_id = self._id_of(target)
        self._index(target_id)  # target must be a member

        record_id = self._track(record)
        if record_id == target_id:
            return self._ranks[record_id]

        if record_id in self._order:
            others = [member for member in self._order if member != record_id]
            new_index = others.index(target_id) + (1 if after else 0)
            self._move_to_index(record_id, new_index)
        else:
            new_index = self._order.index(target_id) + (1 if after else 0)
            self._insert_at(record_id, new_index)

        return self._ranks[record_id]

    def add(self, record: T) -> int:
        """Make a record a member again at the place its rank dictates.

        No rank changes. Raises ConflictError when another member holds the rank.
        """
        record_id = self._track(record)
        if record_id in self._order:
            return self._ranks[record_id]

        rank = self._ranks[record_id]
        holder = self.holder_of(rank)
        if holder is not None:
            raise ConflictError(
                f"Rank {rank} in partition {self.partition_key!r} is held by '{holder}'"
            )

        index = bisect.bisect_left(self.ranks(), rank)
        self._order.insert(index, record_id)
        return rank

    def remove(self, record: Any) -> None:
        """Drop a member, leaving a gap behind"""
        self._order.pop(self._index(record))

    def _resolve_start(self, start_order: int | None) -> int:
        start = self.start_order if start_order is None else start_order
        if start < 0:
            raise ValueError(f"start_order must be >= 0, got {start}")
        return start

    def renumber(self, start_order: int | None = None) -> dict[Any, int]:
        """Assign dense ranks to the members, preserving their order"""
        start = self._resolve_start(start_order)
        for offset, record_id in enumerate(self._order):
            self._ranks[record_id] = start + offset
        return self.changes()

    def move_to_position(self, record: Any, position: int) -> int:
        """Move a member to a 1-based position and return its rank"""
        if not 1 <= position <= len(self._order):
            raise OutOfRangeError(position, 1, len(self._order))
        record_id = self._id_of(record)
        self._index(record_id)
        self._move_to_index(record_id, position - 1)
        return self._ranks[record_id]

    def move_to_start(self, record: Any) -> int:
        record_id = self._id_of(record)
        self._index(record_id)
        self._move_to_index(record_id, 0)
        return self._ranks[record_id]

    def move_to_end(self, record: Any) -> int:
        record_id = self._id_of(record)
        self._index(record_id)
        self._move_to_index(record_id, len(self._order) - 1)
        return self._ranks[record_id]

    def move_up(self, record: Any) -> int:
        """Swap with the previous member; no-op for the first one"""
        index = self._index(record)
        if index > 0:
            self.swap(self._order[index], self._order[index - 1])
        return self.rank_of(record)

    def move_down(self, record: Any) -> int:
        """Swap with the next member; no-op for the last one"""
        index = self._index(record)
        if index < len(self._order) - 1:
            self.swap(self._order[index], self._order[index + 1])
        return self.rank_of(record)

    def swap(self, first: Any, second: Any) -> None:
        """Exchange the ranks and positions of two members"""
        first_index, second_index = self._index(first), self._index(second)
        first_id, second_id = self._order[first_index], self._order[second_index]

        self._ranks[first_id], self._ranks[second_id] = (
            self._ranks[second_id],
            self._ranks[first_id],
        )
        self._order[first_index], self._order[second_index] = second_id, first_id

    def set_new_order(
        self, ids: Iterable[Any], start_order: int | None = None
    ) -> dict[Any, int]:
        """
        Reorder members explicitly.

        Args:
            ids: Member ids in their new order
            start_order: Rank of the first listed id (defaults to start_order)

        Returns:
            Rank changes keyed by record id

        Members that are not listed follow the listed ones in their current order.
        """
        self._resolve_start(start_order)
        listed = [self._id_of(record_id) for record_id in ids]
        if len(set(listed)) != len(listed):
            raise ValueError("set_new_order() received duplicate ids")
        for record_id in listed:
            self._index(record_id)

        remaining = [record_id for record_id in self._order if record_id not in listed]
        self._order = listed + remaining
        return self.renumber(start_order)

    def __repr__(self) -> str:
        return f"OrderedSet(partition={self.partition_key!r}, members={len(self)})"
