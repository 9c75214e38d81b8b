from uuid import uuid4

from sortable.entity_mapper import EntityMapper
from tests.dummy_entities import Dummy, GroupedDummy


class TestEntityMapper:
    def test_order_column_becomes_rank(self):
        mapper = EntityMapper(Dummy, "order_column")
        row = {"id": uuid4(), "name": "a", "order_column": 3, "deleted_at": None}

        dummy = mapper.map_row_to_entity(row)

        assert dummy.rank == 3
        assert dummy.name == "a"
        assert dummy.partition_key == ()

    def test_rank_becomes_order_column(self):
        mapper = EntityMapper(Dummy, "position")

        row = mapper.map_entity_to_row(Dummy(name="a", rank=7))

        assert row["position"] == 7
        assert "rank" not in row

    def test_partition_key_from_columns(self):
        group_id = uuid4()
        mapper = EntityMapper(GroupedDummy, "order_column")

        dummies = mapper.map_rows_to_entities(
            [{"id": uuid4(), "name": "a", "group_id": group_id, "order_column": 1}]
        )

        assert dummies[0].partition_key == (group_id,)
