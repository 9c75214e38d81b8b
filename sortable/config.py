"""Configuration for sortable repositories and services"""

from typing import Literal

from pydantic import BaseModel, Field

from sortable.soft_delete import SoftDeletePolicy


class SortableConfig(BaseModel):
    """Configuration options for sortable ordering"""

    model_config = {"arbitrary_types_allowed": True, "frozen": True}

    order_column_name: str = Field(
        default="order_column", description="Column holding the rank"
    )
    sort_when_creating: bool = Field(
        default=True, description="Assign the end-of-partition rank on create"
    )
    start_order: int = Field(default=1, ge=0, description="Rank of the first record")
    soft_delete_policy: SoftDeletePolicy = Field(
        default=SoftDeletePolicy.EXCLUDE_DELETED,
        description="Whether tombstoned records keep taking part in ordering",
    )
    restore_conflict: Literal["reposition", "fail"] = Field(
        default="reposition",
        description="What to do when a restored record's rank is taken",
    )
    isolation: Literal["serializable", "repeatable_read", "read_committed"] = Field(
        default="serializable", description="Transaction isolation level"
    )
    lock_rows: bool = Field(
        default=True, description="Load partitions with SELECT ... FOR UPDATE"
    )
    db_name: str = Field(default="default", description="Database pool name")
    db_schema: str | None = Field(default=None, description="Database schema name")
