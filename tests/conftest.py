"""Pytest fixtures for pgshim tests."""

from collections.abc import Generator
from datetime import datetime
from typing import Any

import pytest

from pgshim.executor.duckdb_executor import DuckDBRowSource
from pgshim.service import QueryService

USERS_COLUMNS = [
    "user_id INTEGER",
    "signup_date DATE",
    "created_at TIMESTAMP",
    "country VARCHAR",
    "user_segment VARCHAR",
]


@pytest.fixture
def weekly_rows() -> list[dict[str, Any]]:
    """Three signups over two ISO weeks (2024-01-01 is a monday)."""
    return [
        {"signup_date": "2024-01-01", "country": "US"},
        {"signup_date": "2024-01-03", "country": "US"},
        {"signup_date": "2024-01-08", "country": "CA"},
    ]


@pytest.fixture
def weekly_query() -> str:
    return (
        "SELECT DATE_TRUNC('week', signup_date) AS week, COUNT(user_id) AS user_count, "
        "COUNT(DISTINCT country) AS country_count FROM users "
        "GROUP BY week ORDER BY week LIMIT 100"
    )


@pytest.fixture
def sample_users_data() -> list[tuple]:
    """Sample users table rows.

    created_at (hour, dow) pairs: (9, mon) x3, (14, tue) x2, (20, sat) x1,
    plus one row with no created_at.
    """
    return [
        (1, "2024-01-01", datetime(2024, 1, 1, 9, 15), "US", "free"),
        (2, "2024-01-01", datetime(2024, 1, 1, 9, 45), "US", "pro"),
        (3, "2024-01-03", datetime(2024, 1, 8, 9, 5), "CA", "free"),
        (4, "2024-01-08", datetime(2024, 1, 2, 14, 30), "CA", "pro"),
        (5, "2024-01-09", datetime(2024, 1, 9, 14, 0), "DE", None),
        (6, "2024-01-15", datetime(2024, 1, 6, 20, 10), "US", "enterprise"),
        (7, None, None, "FR", "free"),
    ]


@pytest.fixture
def db_with_users(sample_users_data: list[tuple]) -> Generator[DuckDBRowSource, None, None]:
    """DuckDB row source with a loaded users table."""
    source = DuckDBRowSource()
    source.create_table_from_data("users", USERS_COLUMNS, sample_users_data)
    yield source
    source.close()


@pytest.fixture
def service(db_with_users: DuckDBRowSource) -> QueryService:
    return QueryService(db_with_users)
