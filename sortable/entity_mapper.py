from typing import Any

from pydantic import BaseModel


class EntityMapper[T: BaseModel]:
    """Maps database rows to entities, renaming the order column to rank"""

    def __init__(self, entity_class: type[T], order_column_name: str = "rank"):
        self.entity_class = entity_class
        self.order_column_name = order_column_name

    def map_row_to_entity(self, row: Any) -> T:
        data = dict(row)
        if self.order_column_name != "rank" and self.order_column_name in data:
            data["rank"] = data.pop(self.order_column_name)
        return self.entity_class(**data)

    def map_rows_to_entities(self, rows: list[Any]) -> list[T]:
        return [self.map_row_to_entity(row) for row in rows]

    def map_entity_to_row(self, entity: T) -> dict[str, Any]:
        """Column/value pairs for an entity, rank stored under the order column"""
        data = entity.model_dump()
        if self.order_column_name != "rank":
            data[self.order_column_name] = data.pop("rank")
        return data
