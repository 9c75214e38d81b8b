import asyncpg
import pytest
import pytest_asyncio
from testcontainers.postgres import PostgresContainer

from sortable.db_context import DatabaseManager


@pytest.fixture(scope="session")
def postgres_container():
    """Start a PostgreSQL test container for the session."""
    container = PostgresContainer("postgres:17")
    try:
        container.start()
    except Exception as exc:  # Docker missing or not reachable
        pytest.skip(f"PostgreSQL container unavailable: {exc}")
    yield container
    container.stop()


@pytest_asyncio.fixture
async def test_db_pool(postgres_container):
    """Create a database pool connected to the test container for each test."""
    host = postgres_container.get_container_host_ip()
    port = postgres_container.get_exposed_port(5432)
    dsn = f"postgresql://{postgres_container.username}:{postgres_container.password}@{host}:{port}/{postgres_container.dbname}"

    # A new pool per test avoids event loop issues
    pool = await asyncpg.create_pool(dsn, min_size=1, max_size=5)

    async with pool.acquire() as conn:
        await conn.execute(
            """
            CREATE TABLE IF NOT EXISTS dummies (
                id UUID PRIMARY KEY,
                name VARCHAR(255) NOT NULL,
                group_id UUID,
                order_column INTEGER NOT NULL DEFAULT 0,
                deleted_at TIMESTAMP WITH TIME ZONE
            );
        """
        )
        await conn.execute(
            """
            CREATE SCHEMA IF NOT EXISTS app;
            CREATE TABLE IF NOT EXISTS app.dummies (
                id UUID PRIMARY KEY,
                name VARCHAR(255) NOT NULL,
                position INTEGER NOT NULL DEFAULT 0,
                deleted_at TIMESTAMP WITH TIME ZONE
            );
        """
        )

    await DatabaseManager.add_pool("test_db", pool)

    yield pool

    async with pool.acquire() as conn:
        await conn.execute("TRUNCATE TABLE dummies;")
        await conn.execute("TRUNCATE TABLE app.dummies;")

    await DatabaseManager.remove_pool("test_db")
    await pool.close()
