from collections.abc import Hashable
from datetime import datetime
from typing import Any, ClassVar, Protocol, runtime_checkable
from uuid import UUID, uuid4

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict


@runtime_checkable
class Sortable(Protocol):
    """Capabilities a record needs to take part in ordering.

    Any object exposing these attributes can be ordered, pydantic entity or not.
    """

    id: Any
    rank: int
    deleted_at: datetime | None

    @property
    def partition_key(self) -> Hashable: ...


class BaseEntity(BaseModel):
    """Base entity class for all database models."""

    model_config: ClassVar[ConfigDict] = ConfigDict(use_enum_values=True, extra="allow")
    id: UUID = Field(default_factory=uuid4)


class SortableEntity(BaseEntity):
    """Entity with a rank and a soft delete marker.

    Usage:
        class Dummy(SortableEntity):
            partition_columns = ("group_id",)
            name: str
            group_id: UUID | None = None

    Records with equal values for every partition column are ordered together.
    Without partition columns the whole table is a single partition.
    """

    partition_columns: ClassVar[tuple[str, ...]] = ()

    rank: int = Field(default=0, ge=0)
    deleted_at: datetime | None = None

    @property
    def partition_key(self) -> tuple[Any, ...]:
        return tuple(getattr(self, column) for column in self.partition_columns)

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

