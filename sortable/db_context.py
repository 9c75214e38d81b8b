import traceback
from contextlib import asynccontextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from datetime import UTC, datetime
from functools import wraps
from typing import Any

import asyncpg

# Connection bound to the running transaction (only one per context)
_current_connection: ContextVar[asyncpg.Connection | None] = ContextVar(
    "current_connection", default=None
)
_db_pools: dict[str, asyncpg.Pool] = {}


@dataclass
class QueryLog:
    """A query run inside a tracked transaction"""

    query: str
    params: list[Any]
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    stack_trace: str | None = None

    @property
    def is_write(self) -> bool:
        return not self.query.lstrip().upper().startswith("SELECT")

    def __repr__(self) -> str:
        return f"QueryLog(query={self.query!r}, params={self.params!r}, timestamp={self.timestamp})"


class QueryTracker:
    """Collects the queries a transaction runs, e.g. to audit rank rewrites"""

    def __init__(self):
        self.queries: list[QueryLog] = []

    def log_query(self, query: str, params: list[Any], stack_trace: str | None = None):
        self.queries.append(QueryLog(query=query, params=params, stack_trace=stack_trace))

    def get_queries(self) -> list[QueryLog]:
        return self.queries.copy()

    def writes(self) -> list[QueryLog]:
        """Statements that changed rows: rank rewrites, tombstones, inserts"""
        return [log for log in self.queries if log.is_write]

    def count(self) -> int:
        return len(self.queries)


_query_tracker: ContextVar[QueryTracker | None] = ContextVar(
    "query_tracker", default=None
)


class DatabaseManager:
    """Registry of named asyncpg pools and the transaction bound to the current context"""

    @classmethod
    async def add_pool(cls, name: str, pool: asyncpg.Pool):
        _db_pools[name] = pool

    @classmethod
    async def remove_pool(cls, name: str) -> asyncpg.Pool | None:
        """Forget a pool without closing it"""
        return _db_pools.pop(name, None)

    @classmethod
    async def get_pool(cls, name: str = "default") -> asyncpg.Pool:
        if name not in _db_pools:
            raise ValueError(f"Database pool '{name}' not found")
        return _db_pools[name]

    @classmethod
    def get_current_connection(cls) -> asyncpg.Connection | None:
        return _current_connection.get()

    @classmethod
    def get_query_tracker(cls) -> QueryTracker | None:
        return _query_tracker.get()

    @classmethod
    def log_query(cls, query: str, params: list[Any]):
        """Log a query to the current query tracker if available"""
        tracker = _query_tracker.get()
        if tracker:
            # Skip this frame and the DatabaseOperations frame
            stack = traceback.extract_stack()[:-2]
            tracker.log_query(query, params, "".join(traceback.format_list(stack)))

    @classmethod
    @asynccontextmanager
    async def transaction(
        cls,
        db_name: str = "default",
        track_queries: bool = False,
        isolation: str | None = None,
    ):
        """Context manager for database transactions.

        Behavior:
        - Inside an existing transaction the same connection is reused and a
          savepoint is opened; the isolation level of the outer transaction applies.
        - Otherwise a connection is acquired from the named pool and a transaction
          is started with the requested isolation level. The connection goes back
          to the pool when the context exits, normally or through an exception.

        Args:
            db_name: Name of the database pool to use
            track_queries: Whether to enable query tracking for this transaction
            isolation: "serializable", "repeatable_read" or "read_committed"
        """
        current_conn = _current_connection.get()

        if current_conn:
            async with current_conn.transaction():
                yield current_conn
            return

        pool = await cls.get_pool(db_name)
        async with pool.acquire() as conn, conn.transaction(isolation=isolation):
            conn_token = _current_connection.set(conn)

            tracker_token = None
            if track_queries and not _query_tracker.get():
                tracker_token = _query_tracker.set(QueryTracker())

            try:
                yield conn
            finally:
                _current_connection.reset(conn_token)
                if tracker_token:
                    _query_tracker.reset(tracker_token)

    @classmethod
    @asynccontextmanager
    async def track_queries(cls):
        """Context manager for query tracking inside a transaction.

        async with DatabaseManager.transaction():
            async with DatabaseManager.track_queries() as tracker:
                await service.move_to_rank(record, 1)
                rewrites = tracker.writes()
        """
        current_tracker = _query_tracker.get()
        if current_tracker:
            yield current_tracker
            return

        token = _query_tracker.set(QueryTracker())
        try:
            yield _query_tracker.get()
        finally:
            _query_tracker.reset(token)


def transactional(
    db_name: str = "default", query_logs: bool = False, isolation: str | None = None
):
    """Decorator to run a coroutine within a database transaction.

    Example:
        @transactional(query_logs=True)
        async def reorder(ids):
            await service.set_new_order(ids)
            tracker = DatabaseManager.get_query_tracker()
            return tracker.count() if tracker else 0
    """

    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            async with DatabaseManager.transaction(
                db_name, track_queries=query_logs, isolation=isolation
            ):
                return await func(*args, **kwargs)

        return wrapper

    return decorator
