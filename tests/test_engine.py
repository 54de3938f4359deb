"""Tests for the compatibility engine pipeline."""

from typing import Any

import pytest

from pgshim.config import EngineSettings
from pgshim.engine.compat import CompatibilityEngine
from pgshim.errors import FetchError, RowSourceError, TableNameError, UnsupportedQueryError
from pgshim.models.query import StructuredQuery


class StubRowSource:
    """Row source that records fetches and serves canned rows."""

    def __init__(self, rows: list[dict[str, Any]] | None = None, error: str | None = None):
        self.rows = rows or []
        self.error = error
        self.fetches: list[tuple[str, int]] = []

    def fetch_rows(self, table_name: str, max_rows: int) -> list[dict[str, Any]]:
        self.fetches.append((table_name, max_rows))
        if self.error:
            raise RowSourceError(self.error)
        return self.rows[:max_rows]

    def select(self, query: StructuredQuery) -> list[dict[str, Any]]:
        raise AssertionError("engine must not use the structured select")


class TestCompatibilityEngine:
    def test_weekly_scenario(self, weekly_rows, weekly_query):
        """Fetches the referenced table and aggregates it."""
        source = StubRowSource(weekly_rows)
        result = CompatibilityEngine(source).execute(weekly_query)

        assert source.fetches == [("users", 10_000)]
        assert result == [
            {"week": "2024-01-01", "user_count": 2, "country_count": 1},
            {"week": "2024-01-08", "user_count": 1, "country_count": 1},
        ]

    def test_extract_query_is_normalized_first(self):
        rows = [{"created_at": "2024-01-01T09:00:00"}, {"created_at": "2024-01-01T10:00:00"}]
        sql = (
            "SELECT EXTRACT(HOUR FROM created_at::timestamp) AS signup_hour, COUNT(*) "
            "FROM users GROUP BY signup_hour"
        )
        result = CompatibilityEngine(StubRowSource(rows)).execute(sql)
        assert sorted(row["signup_hour"] for row in result) == [9, 10]

    def test_fetch_cap_comes_from_settings(self, weekly_rows, weekly_query):
        """Rows past the fetch cap are left out of the aggregation."""
        source = StubRowSource(weekly_rows)
        engine = CompatibilityEngine(source, EngineSettings(max_fetch_rows=2))
        result = engine.execute(weekly_query)

        assert source.fetches == [("users", 2)]
        assert result == [{"week": "2024-01-01", "user_count": 2, "country_count": 1}]

    def test_missing_from_fails(self):
        """No FROM clause is a hard failure, never an empty success."""
        source = StubRowSource()
        with pytest.raises(TableNameError, match="Cannot parse table name"):
            CompatibilityEngine(source).execute_normalized(
                "SELECT DATE_TRUNC('week', now()) AS week GROUP BY week -- from"
            )
        assert source.fetches == []

    def test_unprocessable_query_is_rejected(self):
        source = StubRowSource()
        with pytest.raises(UnsupportedQueryError, match="not supported"):
            CompatibilityEngine(source).execute(
                "WITH recent AS (SELECT * FROM users) SELECT COUNT(*) FROM recent"
            )
        assert source.fetches == []

    def test_fetch_error_keeps_message(self, weekly_query):
        """The row source's message survives, with the failing stage."""
        source = StubRowSource(error='relation "users" does not exist')
        with pytest.raises(FetchError) as exc_info:
            CompatibilityEngine(source).execute(weekly_query)

        assert exc_info.value.message == 'relation "users" does not exist'
        assert exc_info.value.stage == "fetch"
        assert exc_info.value.table == "users"
        assert 'relation "users" does not exist' in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, RowSourceError)

    def test_unparseable_grouping_is_empty(self):
        sql = "SELECT DATE_TRUNC(grain, ts) AS bucket, COUNT(*) FROM t GROUP BY bucket"
        assert CompatibilityEngine(StubRowSource([{"ts": "2024-01-01"}])).execute(sql) == []


class TestEngineWithDuckDB:
    def test_weekly_counts_from_table(self, db_with_users):
        sql = (
            "SELECT DATE_TRUNC('week', signup_date::date) AS week, COUNT(user_id) AS user_count, "
            "COUNT(DISTINCT country) AS country_count, "
            "COUNT(DISTINCT user_segment) AS segment_count "
            "FROM users GROUP BY week ORDER BY week LIMIT 100"
        )
        result = CompatibilityEngine(db_with_users).execute(sql)
        assert result == [
            {"week": "2024-01-01", "user_count": 3, "country_count": 2, "segment_count": 2},
            {"week": "2024-01-08", "user_count": 2, "country_count": 2, "segment_count": 1},
            {"week": "2024-01-15", "user_count": 1, "country_count": 1, "segment_count": 1},
        ]

    def test_hour_and_dow_from_table(self, db_with_users):
        sql = (
            "SELECT EXTRACT(HOUR FROM created_at) AS signup_hour, "
            "EXTRACT(DOW FROM created_at) AS signup_day_of_week, COUNT(*) AS user_count "
            "FROM users GROUP BY signup_hour, signup_day_of_week"
        )
        result = CompatibilityEngine(db_with_users).execute(sql)

        assert result[0] == {"signup_hour": 9, "signup_day_of_week": 1, "user_count": 3}
        assert sum(row["user_count"] for row in result) == 7
        assert {"signup_hour": None, "signup_day_of_week": None, "user_count": 1} in result

    def test_missing_table(self, db_with_users):
        sql = "SELECT DATE_TRUNC('week', ts) AS week, COUNT(*) FROM nope GROUP BY week"
        with pytest.raises(FetchError) as exc_info:
            CompatibilityEngine(db_with_users).execute(sql)
        assert exc_info.value.table == "nope"
