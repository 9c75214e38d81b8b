"""PostgreSQL store for sortable entities"""

from collections.abc import Hashable, Mapping
from contextlib import AbstractAsyncContextManager
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from sortable.config import SortableConfig
from sortable.database_operations import DatabaseOperations
from sortable.db_context import DatabaseManager
from sortable.entities import SortableEntity
from sortable.entity_mapper import EntityMapper
from sortable.errors import StoreError
from sortable.query_builder import QueryBuilder
from sortable.soft_delete import SoftDeleteFilter


class SortableRepository[T: SortableEntity]:
    """asyncpg implementation of the SortableStore contract.

    The table needs an ``id UUID`` primary key, an integer order column
    (``config.order_column_name``), a nullable ``deleted_at`` timestamp and
    one column per entry of ``entity_class.partition_columns``.

    Every method must run inside ``transaction()`` (or any enclosing
    ``DatabaseManager.transaction`` on the same pool).
    """

    def __init__(
        self,
        entity_class: type[T],
        table_name: str | None = None,
        config: SortableConfig | None = None,
    ):
        if entity_class is None:
            raise ValueError("entity_class is required")
        if table_name is None:
            raise ValueError("table_name is required")

        self.entity_class = entity_class
        self.table_name = table_name
        self.config = config or SortableConfig()
        self.order_column = self.config.order_column_name
        self.partition_columns = tuple(entity_class.partition_columns)
        self._qualified_table_name = (
            f"{self.config.db_schema}.{table_name}"
            if self.config.db_schema
            else table_name
        )

        # Always excludes tombstones; used for queries that ask for active rows only
        self.soft_delete = SoftDeleteFilter()

        # Composition: Inject dependencies
        self.db_ops = DatabaseOperations()
        self.entity_mapper = EntityMapper(entity_class, self.order_column)

    def transaction(self) -> AbstractAsyncContextManager[Any]:
        """Transaction on the configured pool at the configured isolation level"""
        return DatabaseManager.transaction(
            self.config.db_name, isolation=self.config.isolation
        )

    def _partition_query(self, partition_key: Hashable) -> QueryBuilder:
        values = tuple(partition_key) if isinstance(partition_key, tuple) else (partition_key,)
        if len(values) != len(self.partition_columns):
            raise ValueError(
                f"Partition key {partition_key!r} does not match columns {self.partition_columns}"
            )

        builder = QueryBuilder(self._qualified_table_name)
        for column, value in zip(self.partition_columns, values, strict=True):
            builder = builder.where(column, value)
        return builder

    async def load_partition(
        self, partition_key: Hashable = (), include_deleted: bool = False
    ) -> list[T]:
        """Load a partition ordered by rank, locking its rows when configured"""
        builder = self._partition_query(partition_key)
        if not include_deleted:
            builder = self.soft_delete.apply_query_filters(builder)
        builder = builder.order_by(self.order_column).order_by("id")
        if self.config.lock_rows:
            builder = builder.for_update()

        query, params = builder.build()
        rows = await self.db_ops.fetch_all(query, params)
        return self.entity_mapper.map_rows_to_entities(rows)

    async def find_by_id(self, entity_id: UUID, with_trashed: bool = True) -> T | None:
        builder = QueryBuilder(self._qualified_table_name).where("id", entity_id)
        if not with_trashed:
            builder = self.soft_delete.apply_query_filters(builder)

        query, params = builder.limit(1).build()
        rows = await self.db_ops.fetch_all(query, params)
        return self.entity_mapper.map_row_to_entity(rows[0]) if rows else None

    async def highest_active_rank(self, partition_key: Hashable = ()) -> int | None:
        """Highest rank among the partition's active records"""
        builder = self.soft_delete.apply_query_filters(
            self._partition_query(partition_key)
        ).select(f"MAX({self.order_column})")
        query, params = builder.build()
        return await self.db_ops.fetch_value(query, params)

    async def lowest_active_rank(self, partition_key: Hashable = ()) -> int | None:
        """Lowest rank among the partition's active records"""
        builder = self.soft_delete.apply_query_filters(
            self._partition_query(partition_key)
        ).select(f"MIN({self.order_column})")
        query, params = builder.build()
        return await self.db_ops.fetch_value(query, params)

    async def update_ranks(self, ranks: Mapping[UUID, int]) -> None:
        """Write all ranks in a single statement"""
        if not ranks:
            return

        ids = list(ranks.keys())
        values = [ranks[entity_id] for entity_id in ids]
        status = await self.db_ops.execute_query(
            f"UPDATE {self._qualified_table_name} AS t "
            f"SET {self.order_column} = v.rank "
            f"FROM unnest($1::uuid[], $2::int[]) AS v(id, rank) "
            f"WHERE t.id = v.id",
            [ids, values],
        )

        updated = self.db_ops.affected_rows(status)
        if updated != len(ids):
            raise StoreError(
                f"Expected to update {len(ids)} ranks in {self.table_name}, updated {updated}"
            )

    async def mark_deleted(self, entity_id: UUID) -> bool:
        """Soft delete: set deleted_at to the current timestamp"""
        status = await self.db_ops.execute_query(
            f"UPDATE {self._qualified_table_name} SET deleted_at = $2 "
            f"WHERE id = $1 AND deleted_at IS NULL",
            [entity_id, datetime.now(UTC)],
        )
        return status != "UPDATE 0"

    async def mark_restored(self, entity_id: UUID) -> bool:
        """Restore a soft-deleted entity by setting deleted_at to None"""
        status = await self.db_ops.execute_query(
            f"UPDATE {self._qualified_table_name} SET deleted_at = NULL "
            f"WHERE id = $1 AND deleted_at IS NOT NULL",
            [entity_id],
        )
        return status != "UPDATE 0"

    async def insert(self, entity: T) -> T:
        """Insert an entity exactly as given"""
        fields = self.entity_mapper.map_entity_to_row(entity)
        if entity.deleted_at is None:
            fields = self.soft_delete.before_create(fields)

        columns = ", ".join(fields.keys())
        values = list(fields.values())
        placeholders = ", ".join([f"${i + 1}" for i in range(len(values))])

        await self.db_ops.execute_query(
            f"INSERT INTO {self._qualified_table_name} ({columns}) VALUES ({placeholders})",
            values,
        )
        return entity
