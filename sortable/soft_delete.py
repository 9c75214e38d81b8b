"""Soft delete policy for ordering"""

from enum import Enum
from typing import TYPE_CHECKING, Any

from sortable.entities import Sortable

if TYPE_CHECKING:
    from sortable.query_builder import QueryBuilder


class SoftDeletePolicy(str, Enum):
    EXCLUDE_DELETED = "exclude-deleted"
    INCLUDE_DELETED = "include-deleted"


class SoftDeleteFilter:
    """
    Decides whether tombstoned records count toward ordering.

    With EXCLUDE_DELETED (the default) soft-deleted records are skipped by
    moves and renumbering; they keep their last rank so a restore can put
    them back where they were.

    With INCLUDE_DELETED soft-deleted records stay in the ordering and are
    shifted and renumbered like active ones.

    Usage:
        soft_delete = SoftDeleteFilter(SoftDeletePolicy.INCLUDE_DELETED)
        soft_delete.is_orderable(record)
    """

    def __init__(
        self,
        policy: SoftDeletePolicy = SoftDeletePolicy.EXCLUDE_DELETED,
        deleted_at_column: str = "deleted_at",
    ):
        self.policy = SoftDeletePolicy(policy)
        self.deleted_at_column = deleted_at_column

    @property
    def include_deleted(self) -> bool:
        return self.policy is SoftDeletePolicy.INCLUDE_DELETED

    @staticmethod
    def is_deleted(record: Sortable) -> bool:
        return getattr(record, "deleted_at", None) is not None

    def is_orderable(self, record: Sortable) -> bool:
        """Whether the record takes part in ordering under this policy"""
        if self.include_deleted:
            return True
        return not self.is_deleted(record)

    def before_create(self, data: dict[str, Any]) -> dict[str, Any]:
        """Set deleted_at to None on creation (entity is not deleted)"""
        data[self.deleted_at_column] = None
        return data

    def apply_query_filters(self, builder: "QueryBuilder") -> "QueryBuilder":
        """Restrict a query to orderable rows (WHERE deleted_at IS NULL)"""
        if self.include_deleted:
            return builder
        return builder.where(self.deleted_at_column, None)

    def __repr__(self) -> str:
        return f"SoftDeleteFilter(policy={self.policy.value!r})"
