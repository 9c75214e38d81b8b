from typing import Any

import asyncpg

from sortable.db_context import DatabaseManager
from sortable.errors import StoreError


class DatabaseOperations:
    """Composition class for database operations"""

    @staticmethod
    def get_connection() -> asyncpg.Connection:
        """Get the current database connection from context"""
        conn = DatabaseManager.get_current_connection()
        if not conn:
            raise ValueError(
                "No active transaction found. Repository methods must be called within a transaction context."
            )
        return conn

    async def fetch_all(self, query: str, params: list[Any]) -> list[Any]:
        conn = self.get_connection()
        DatabaseManager.log_query(query, params)
        try:
            return await conn.fetch(query, *params)
        except asyncpg.PostgresError as exc:
            raise StoreError(f"Query failed: {exc}") from exc

    async def fetch_value(self, query: str, params: list[Any]) -> Any:
        conn = self.get_connection()
        DatabaseManager.log_query(query, params)
        try:
            return await conn.fetchval(query, *params)
        except asyncpg.PostgresError as exc:
            raise StoreError(f"Query failed: {exc}") from exc

    async def execute_query(self, query: str, params: list[Any]) -> str:
        """Execute query and return the status string, e.g. "UPDATE 3" """
        conn = self.get_connection()
        DatabaseManager.log_query(query, params)
        try:
            return await conn.execute(query, *params)
        except asyncpg.PostgresError as exc:
            raise StoreError(f"Query failed: {exc}") from exc

    @staticmethod
    def affected_rows(status: str) -> int:
        """Row count from a command status such as "UPDATE 3" or "INSERT 0 1" """
        try:
            return int(status.split()[-1])
        except (IndexError, ValueError):
            return 0
