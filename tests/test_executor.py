"""Tests for the DuckDB row source."""

from pathlib import Path

import pytest

from pgshim.errors import RowSourceError
from pgshim.executor.base import RawSqlCapable, RowSource, SchemaAware
from pgshim.executor.duckdb_executor import DuckDBRowSource
from pgshim.models.query import StructuredQuery


class TestDuckDBRowSource:
    def test_create_in_memory(self):
        """Can create in-memory row source."""
        source = DuckDBRowSource()
        assert source.database_path is None
        assert source.execute_raw_sql("SELECT 1 AS value") == [{"value": 1}]
        source.close()

    def test_create_with_file(self, tmp_path: Path):
        """Tables survive reopening a file database."""
        db_path = str(tmp_path / "test.duckdb")
        source = DuckDBRowSource(db_path)
        source.execute_raw_sql("CREATE TABLE test (id INTEGER)")
        source.close()

        with DuckDBRowSource(db_path) as reopened:
            assert reopened.table_exists("test")

    def test_satisfies_protocols(self):
        source = DuckDBRowSource()
        assert isinstance(source, RowSource)
        assert isinstance(source, RawSqlCapable)
        assert isinstance(source, SchemaAware)

    def test_fetch_rows_respects_cap(self, db_with_users: DuckDBRowSource):
        rows = db_with_users.fetch_rows("users", 4)
        assert len(rows) == 4
        assert set(rows[0]) == {"user_id", "signup_date", "created_at", "country", "user_segment"}

    def test_fetch_missing_table(self, db_with_users: DuckDBRowSource):
        with pytest.raises(RowSourceError):
            db_with_users.fetch_rows("nope", 10)

    def test_select_structured(self, db_with_users: DuckDBRowSource):
        query = StructuredQuery(
            table="users",
            columns=["user_id"],
            equals=("country", "US"),
            order_by="user_id",
            ascending=False,
            limit=2,
        )
        assert db_with_users.select(query) == [{"user_id": 6}, {"user_id": 2}]

    def test_select_quotes_values(self, db_with_users: DuckDBRowSource):
        """Filter values are literals, not sql."""
        query = StructuredQuery(table="users", equals=("country", "x' OR '1'='1"), limit=10)
        assert db_with_users.select(query) == []

    def test_load_csv(self, tmp_path: Path):
        """Can load a CSV file as a table."""
        csv_path = tmp_path / "signups.csv"
        csv_path.write_text("user_id,country\n1,US\n2,CA\n")

        with DuckDBRowSource() as source:
            source.load_file("signups", csv_path)
            rows = source.execute_raw_sql("SELECT * FROM signups ORDER BY user_id")

        assert rows == [{"user_id": 1, "country": "US"}, {"user_id": 2, "country": "CA"}]

    def test_load_parquet(self, tmp_path: Path):
        parquet_path = tmp_path / "signups.parquet"
        with DuckDBRowSource() as source:
            source.execute_raw_sql(
                f"COPY (SELECT 1 AS user_id, 'US' AS country) TO '{parquet_path}' (FORMAT PARQUET)"
            )
            source.load_file("signups", parquet_path)
            assert source.execute_raw_sql("SELECT country FROM signups") == [{"country": "US"}]

    def test_create_table_from_empty_data(self):
        with DuckDBRowSource() as source:
            with pytest.raises(ValueError, match="empty data"):
                source.create_table_from_data("t", ["id INTEGER"], [])

    def test_list_tables(self, db_with_users: DuckDBRowSource):
        assert db_with_users.list_tables() == ["users"]
        assert db_with_users.table_exists("users")
        assert not db_with_users.table_exists("nope")

    def test_describe_table(self, db_with_users: DuckDBRowSource):
        schema = db_with_users.describe_table("users")
        assert schema.table_name == "users"
        assert schema.columns[0].name == "user_id"
        assert schema.columns[0].data_type == "INTEGER"
        assert schema.columns[0].is_nullable

    def test_describe_missing_table(self, db_with_users: DuckDBRowSource):
        with pytest.raises(RowSourceError, match="does not exist"):
            db_with_users.describe_table("nope")

    def test_invalid_sql_raises_row_source_error(self):
        with DuckDBRowSource() as source:
            with pytest.raises(RowSourceError):
                source.execute_raw_sql("SELEC nonsense")

    def test_close_is_idempotent(self):
        source = DuckDBRowSource()
        source.execute_raw_sql("SELECT 1")
        source.close()
        source.close()
        assert source._conn is None
