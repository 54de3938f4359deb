"""Pydantic models for queries moving through the shim and their results.

query text itself stays a plain str - these models only describe the bits
we pull out of it and what we hand back.
"""

from typing import Any, Literal

from pydantic import BaseModel, Field

ExecutionMethod = Literal["converted_postgresql", "raw_sql", "query_builder"]


class FunctionCall(BaseModel):
    """A DATE_TRUNC / DATE_PART occurrence found by pattern matching.

    not a parse tree node - just the three strings the regex captured plus
    whatever alias followed the call.
    """

    function: Literal["date_trunc", "date_part"]
    argument: str  # precision for date_trunc, field for date_part
    column: str
    alias: str | None = None


class StructuredQuery(BaseModel):
    """A simple SELECT decomposed into the parameters a row source can apply.

    only one equality and one LIKE filter are picked up from the WHERE
    clause - that's all the query builder path ever supported.
    """

    table: str
    columns: list[str] = Field(default_factory=lambda: ["*"])
    equals: tuple[str, str] | None = None  # (column, value)
    like: tuple[str, str] | None = None  # (column, pattern)
    order_by: str | None = None
    ascending: bool = True
    limit: int | None = None


class QueryResult(BaseModel):
    """Result of running a query through the service.

    the original sql and the converted sql are both kept so the dashboard
    can show what actually ran.
    """

    sql: str
    converted_sql: str | None = None
    execution_method: ExecutionMethod
    parsed_table: str | None = None
    columns: list[str]
    data: list[dict[str, Any]]
    row_count: int
    execution_time_ms: float
    note: str | None = None
