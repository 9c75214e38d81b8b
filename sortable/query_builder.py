"""
Simple QueryBuilder for building SELECT queries over a partition.
The goal is to produce SQL queries without execution.
"""

from typing import Any


class QueryBuilder:
    """
    Simple query builder for SELECT statements.

    Usage:
        builder = QueryBuilder("dummies")
        query, params = (
            builder.where("group_id", group_id)
            .order_by("order_column")
            .for_update()
            .build()
        )
    """

    def __init__(self, table_name: str):
        self.table_name = table_name
        self.select_fields = "*"
        self.where_conditions: list[str] = []
        self.params: list[Any] = []
        self.order_by_parts: list[str] = []
        self.limit_count: int | None = None
        self.lock_rows = False

    def _clone(self) -> "QueryBuilder":
        """Create a copy of the current QueryBuilder instance"""
        new_builder = QueryBuilder(self.table_name)
        new_builder.select_fields = self.select_fields
        new_builder.where_conditions = self.where_conditions.copy()
        new_builder.params = self.params.copy()
        new_builder.order_by_parts = self.order_by_parts.copy()
        new_builder.limit_count = self.limit_count
        new_builder.lock_rows = self.lock_rows
        return new_builder

    def select(self, *fields: str) -> "QueryBuilder":
        """Set the SELECT fields; defaults to * when none is provided"""
        new_builder = self._clone()
        new_builder.select_fields = ", ".join(fields) if fields else "*"
        return new_builder

    def where(self, field: str, value: Any) -> "QueryBuilder":
        """Add an equality condition; None compares with IS NULL"""
        new_builder = self._clone()
        if value is None:
            condition = f"{field} IS NULL"
        else:
            new_builder.params.append(value)
            condition = f"{field} = ${len(new_builder.params)}"
        new_builder.where_conditions.append(condition)
        return new_builder

    def order_by(self, field: str) -> "QueryBuilder":
        """Add ORDER BY ascending for a field (default). Chain to add multiple fields."""
        new_builder = self._clone()
        new_builder.order_by_parts.append(f"{field}")
        return new_builder

    def limit(self, count: int) -> "QueryBuilder":
        new_builder = self._clone()
        new_builder.limit_count = count
        return new_builder

    def for_update(self) -> "QueryBuilder":
        """Lock the selected rows until the transaction ends"""
        new_builder = self._clone()
        new_builder.lock_rows = True
        return new_builder

    def build(self) -> tuple[str, list[Any]]:
        """Build the final SQL query and parameters"""
        query_parts = [f"SELECT {self.select_fields} FROM {self.table_name}"]

        if self.where_conditions:
            query_parts.append(f"WHERE {' AND '.join(self.where_conditions)}")

        if self.order_by_parts:
            query_parts.append(f"ORDER BY {', '.join(self.order_by_parts)}")

        if self.limit_count is not None:
            query_parts.append(f"LIMIT {self.limit_count}")

        if self.lock_rows:
            query_parts.append("FOR UPDATE")

        return " ".join(query_parts), self.params
