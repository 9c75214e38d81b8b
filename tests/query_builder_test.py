"""
Tests for the QueryBuilder class.
"""

from uuid import uuid4

from sortable.query_builder import QueryBuilder


class TestQueryBuilder:
    def test_basic_select_all(self):
        query, params = QueryBuilder("dummies").build()

        assert query == "SELECT * FROM dummies"
        assert params == []

    def test_select_aggregate(self):
        query, _ = QueryBuilder("dummies").select("MAX(order_column)").build()
        assert query == "SELECT MAX(order_column) FROM dummies"

    def test_partition_conditions(self):
        group_id = uuid4()
        query, params = (
            QueryBuilder("dummies").where("group_id", group_id).where("deleted_at", None)
        ).build()

        assert query == "SELECT * FROM dummies WHERE group_id = $1 AND deleted_at IS NULL"
        assert params == [group_id]

    def test_placeholders_follow_params(self):
        first, second = uuid4(), uuid4()
        query, params = (
            QueryBuilder("dummies")
            .where("deleted_at", None)
            .where("group_id", first)
            .where("id", second)
        ).build()

        assert query == (
            "SELECT * FROM dummies WHERE deleted_at IS NULL AND group_id = $1 AND id = $2"
        )
        assert params == [first, second]

    def test_order_limit_and_lock(self):
        query, _ = (
            QueryBuilder("app.dummies")
            .order_by("order_column")
            .order_by("id")
            .limit(1)
            .for_update()
            .build()
        )

        assert (
            query == "SELECT * FROM app.dummies ORDER BY order_column, id LIMIT 1 FOR UPDATE"
        )

    def test_builders_are_immutable(self):
        base = QueryBuilder("dummies")
        filtered = base.where("name", "a").for_update()

        assert base.build() == ("SELECT * FROM dummies", [])
        assert filtered.build() == (
            "SELECT * FROM dummies WHERE name = $1 FOR UPDATE",
            ["a"],
        )
