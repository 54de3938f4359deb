"""DuckDB-backed row source.

stands in for the hosted database proxy: it can hand back raw rows from a
table, run a decomposed simple query, and (unlike the proxy) run raw sql.
in-memory mode is what the tests and the cli use unless a file is given.

every duckdb error is re-raised as RowSourceError so the engine never has to
know which backend it's talking to.
"""

import logging
from pathlib import Path
from typing import Any

import duckdb

from pgshim.compiler.fetch_builder import build_fetch_sql, build_select_sql, format_sql
from pgshim.errors import RowSourceError
from pgshim.models.query import StructuredQuery
from pgshim.models.schema import ColumnInfo, TableSchema

logger = logging.getLogger(__name__)


class DuckDBRowSource:
    """Row source over a DuckDB database.

    thin wrapper that handles connection management and turns result sets
    into lists of dicts, which is what the aggregator wants.
    """

    def __init__(self, database_path: str | None = None) -> None:
        """Initialize the row source.

        Args:
            database_path: Path to DuckDB file, or None for in-memory.
        """
        self.database_path = database_path
        self._conn: duckdb.DuckDBPyConnection | None = None  # lazy init

    @property
    def conn(self) -> duckdb.DuckDBPyConnection:
        """Get or create the DuckDB connection."""
        if self._conn is None:
            self._conn = duckdb.connect(self.database_path or ":memory:")
        return self._conn

    def _query(self, sql: str, params: list[Any] | None = None) -> list[dict[str, Any]]:
        try:
            result = self.conn.execute(sql, params) if params else self.conn.execute(sql)
            if result.description is None:
                return []
            columns = [desc[0] for desc in result.description]
            rows = result.fetchall()
        except duckdb.Error as e:
            raise RowSourceError(str(e)) from e
        return [dict(zip(columns, row)) for row in rows]

    def fetch_rows(self, table_name: str, max_rows: int) -> list[dict[str, Any]]:
        """Every column of up to max_rows rows from one table."""
        rows = self._query(build_fetch_sql(table_name, max_rows))
        logger.debug("Fetched %d rows from %s", len(rows), table_name)
        return rows

    def select(self, query: StructuredQuery) -> list[dict[str, Any]]:
        sql = build_select_sql(query)
        logger.debug("Structured fetch:\n%s", format_sql(sql, dialect="duckdb"))
        return self._query(sql)

    def execute_raw_sql(self, sql: str) -> list[dict[str, Any]]:
        """Run sql as-is. duckdb speaks enough postgres for most dashboard queries."""
        return self._query(sql)

    def load_parquet(self, table_name: str, path: str | Path) -> None:
        """Load a Parquet file as a table (replacing any existing one)."""
        path = Path(path)
        self._query(f"CREATE OR REPLACE TABLE {table_name} AS SELECT * FROM read_parquet('{path}')")

    def load_csv(self, table_name: str, path: str | Path) -> None:
        """Load a CSV file as a table, letting duckdb sniff the types."""
        path = Path(path)
        self._query(f"CREATE OR REPLACE TABLE {table_name} AS SELECT * FROM read_csv_auto('{path}')")

    def load_file(self, table_name: str, path: str | Path) -> None:
        """Load a CSV or Parquet file, picked by extension."""
        path = Path(path)
        if path.suffix.lower() == ".parquet":
            self.load_parquet(table_name, path)
        else:
            self.load_csv(table_name, path)

    def create_table_from_data(
        self, table_name: str, columns: list[str], data: list[tuple[Any, ...]]
    ) -> None:
        """Create a table from in-memory tuples.

        columns are column definitions, e.g. ["user_id INTEGER", "signup_date DATE"].
        handy for tests and small lookups - use parquet for anything big.
        """
        if not data:
            raise ValueError("Cannot create table from empty data")

        placeholders = ", ".join(["?"] * len(columns))
        col_defs = ", ".join(columns)

        try:
            self.conn.execute(f"CREATE OR REPLACE TABLE {table_name} ({col_defs})")
            self.conn.executemany(f"INSERT INTO {table_name} VALUES ({placeholders})", data)
        except duckdb.Error as e:
            raise RowSourceError(str(e)) from e

    def table_exists(self, table_name: str) -> bool:
        rows = self._query(
            "SELECT COUNT(*) AS n FROM information_schema.tables WHERE table_name = ?",
            [table_name],
        )
        return rows[0]["n"] > 0

    def list_tables(self) -> list[str]:
        rows = self._query("SELECT table_name FROM information_schema.tables ORDER BY table_name")
        return [row["table_name"] for row in rows]

    def describe_table(self, table_name: str) -> TableSchema:
        """Column names, types and nullability in ordinal order."""
        rows = self._query(
            """
            SELECT column_name, data_type, is_nullable
            FROM information_schema.columns
            WHERE table_name = ?
            ORDER BY ordinal_position
            """,
            [table_name],
        )
        if not rows:
            raise RowSourceError(f'relation "{table_name}" does not exist')
        return TableSchema(
            table_name=table_name,
            columns=[
                ColumnInfo(
                    name=row["column_name"],
                    data_type=row["data_type"],
                    is_nullable=row["is_nullable"] == "YES",
                )
                for row in rows
            ],
        )

    def close(self) -> None:
        """Close the database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> "DuckDBRowSource":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
