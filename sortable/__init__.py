"""Ordering maintenance for persisted, soft-deletable records"""

from sortable.config import SortableConfig
from sortable.db_context import DatabaseManager, transactional
from sortable.entities import BaseEntity, Sortable, SortableEntity
from sortable.errors import (
    ConflictError,
    NotFoundError,
    OutOfRangeError,
    SortableError,
    StoreError,
)
from sortable.order_key import Comparison, OrderKey, compare, next_after
from sortable.ordered_set import OrderedSet
from sortable.repository import SortableRepository
from sortable.service import SortableService
from sortable.soft_delete import SoftDeleteFilter, SoftDeletePolicy
from sortable.store import SortableStore

__all__ = [
    "BaseEntity",
    "Comparison",
    "ConflictError",
    "DatabaseManager",
    "NotFoundError",
    "OrderKey",
    "OrderedSet",
    "OutOfRangeError",
    "SoftDeleteFilter",
    "SoftDeletePolicy",
    "Sortable",
    "SortableConfig",
    "SortableEntity",
    "SortableError",
    "SortableRepository",
    "SortableService",
    "SortableStore",
    "StoreError",
    "compare",
    "next_after",
    "transactional",
]
