"""Pydantic models describing the tables a row source exposes."""

from pydantic import BaseModel, Field


class ColumnInfo(BaseModel):
    name: str
    data_type: str
    is_nullable: bool = True


class TableSchema(BaseModel):
    """Columns of one table, in ordinal order."""

    table_name: str
    columns: list[ColumnInfo] = Field(default_factory=list)

    def column_names(self) -> list[str]:
        return [col.name for col in self.columns]
