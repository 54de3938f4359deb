"""What the engine and the service need from a row source.

the engine only ever calls fetch_rows. the service also uses the structured
select for simple queries and, when the source offers it, raw sql as a last
resort for queries the aggregator can't handle.
"""

from typing import Any, Protocol, runtime_checkable

from pgshim.models.query import StructuredQuery
from pgshim.models.schema import TableSchema


@runtime_checkable
class RowSource(Protocol):
    """Fetches rows from a single table. errors surface as RowSourceError."""

    def fetch_rows(self, table_name: str, max_rows: int) -> list[dict[str, Any]]: ...

    def select(self, query: StructuredQuery) -> list[dict[str, Any]]: ...


@runtime_checkable
class RawSqlCapable(Protocol):
    def execute_raw_sql(self, sql: str) -> list[dict[str, Any]]: ...


@runtime_checkable
class SchemaAware(Protocol):
    def list_tables(self) -> list[str]: ...

    def describe_table(self, table_name: str) -> TableSchema: ...
