import pytest

from sortable.database_operations import DatabaseOperations
from sortable.db_context import DatabaseManager, transactional


class TestDatabaseManager:
    @pytest.mark.asyncio
    async def test_get_pool_not_found(self):
        with pytest.raises(ValueError, match="Database pool 'nonexistent' not found"):
            await DatabaseManager.get_pool("nonexistent")

    @pytest.mark.asyncio
    async def test_get_current_connection_no_context(self):
        assert DatabaseManager.get_current_connection() is None

    @pytest.mark.asyncio
    async def test_transactional_without_pool(self):
        @transactional(db_name="nonexistent")
        async def reorder():
            return True

        with pytest.raises(ValueError, match="not found"):
            await reorder()

    @pytest.mark.asyncio
    async def test_track_queries_collects_logs(self):
        async with DatabaseManager.track_queries() as tracker:
            DatabaseManager.log_query("UPDATE dummies SET order_column = $1", [1])
            DatabaseManager.log_query("SELECT * FROM dummies", [])

            assert DatabaseManager.get_query_tracker() is tracker
            assert tracker.count() == 2
            logged = tracker.get_queries()
            assert logged[0].query.startswith("UPDATE dummies")
            assert logged[0].params == [1]
            assert logged[0].stack_trace

        assert DatabaseManager.get_query_tracker() is None

    @pytest.mark.asyncio
    async def test_writes_skip_selects(self):
        async with DatabaseManager.track_queries() as tracker:
            DatabaseManager.log_query("SELECT * FROM dummies FOR UPDATE", [])
            DatabaseManager.log_query(
                "UPDATE dummies AS t SET order_column = v.rank FROM unnest($1::uuid[], $2::int[])",
                [[], []],
            )

            assert [log.query.split()[0] for log in tracker.writes()] == ["UPDATE"]

    @pytest.mark.asyncio
    async def test_nested_tracking_reuses_tracker(self):
        async with DatabaseManager.track_queries() as outer:
            async with DatabaseManager.track_queries() as inner:
                DatabaseManager.log_query("SELECT 1", [])

            assert inner is outer
            assert outer.count() == 1

        assert DatabaseManager.get_query_tracker() is None

    @pytest.mark.asyncio
    async def test_queries_outside_tracking_are_ignored(self):
        DatabaseManager.log_query("SELECT 1", [])
        assert DatabaseManager.get_query_tracker() is None


class TestDatabaseOperations:
    def test_requires_transaction(self):
        with pytest.raises(ValueError, match="No active transaction"):
            DatabaseOperations.get_connection()

    @pytest.mark.parametrize(
        "status, expected",
        [("UPDATE 3", 3), ("INSERT 0 1", 1), ("DELETE 0", 0), ("", 0)],
    )
    def test_affected_rows(self, status, expected):
        assert DatabaseOperations.affected_rows(status) == expected
