"""Tests for the syntax normalizer."""

import pytest

from pgshim.compiler.normalizer import normalize


class TestExtractRewrite:
    def test_extract_becomes_date_part(self):
        """EXTRACT(field FROM expr) is rewritten to DATE_PART('field', expr)."""
        result = normalize("SELECT EXTRACT(HOUR FROM ts) AS h FROM events GROUP BY h")
        assert "DATE_PART('HOUR', ts)" in result
        assert "EXTRACT(" not in result.upper()

    def test_extract_is_case_insensitive(self):
        """Lowercase extract is rewritten too, keeping the field's case."""
        result = normalize("select extract(dow from created_at) from users")
        assert "DATE_PART('dow', created_at)" in result

    def test_every_extract_is_rewritten(self):
        """All occurrences are rewritten, not just the first."""
        sql = (
            "SELECT EXTRACT(HOUR FROM created_at) AS signup_hour, "
            "EXTRACT(DOW FROM created_at) AS signup_day_of_week FROM users"
        )
        result = normalize(sql)
        assert "DATE_PART('HOUR', created_at) AS signup_hour" in result
        assert "DATE_PART('DOW', created_at) AS signup_day_of_week" in result

    def test_extract_with_cast_inside(self):
        """A cast inside EXTRACT is stripped after the rewrite."""
        result = normalize("SELECT EXTRACT(HOUR FROM created_at::timestamp) FROM users")
        assert "DATE_PART('HOUR', created_at)" in result
        assert "::" not in result


class TestCastStripping:
    def test_strips_simple_cast(self):
        """signup_date::date becomes signup_date."""
        result = normalize("SELECT DATE_TRUNC('week', signup_date::date) AS week FROM users")
        assert "DATE_TRUNC('week', signup_date)" in result
        assert "::" not in result

    def test_strips_array_cast(self):
        """Array type casts are stripped too."""
        assert normalize("SELECT tags::text[] FROM posts") == "SELECT tags FROM posts"

    def test_strips_chained_casts(self):
        """Chained casts collapse to the bare identifier."""
        assert normalize("SELECT amount::numeric::text FROM orders") == "SELECT amount FROM orders"


class TestNormalizeGeneral:
    def test_unmatched_text_passes_through(self):
        """Queries with nothing to rewrite come back unchanged."""
        sql = "SELECT * FROM users WHERE country = 'US' LIMIT 10"
        assert normalize(sql) == sql

    def test_date_trunc_left_alone(self):
        """DATE_TRUNC is not rewritten."""
        sql = "SELECT DATE_TRUNC('month', signup_date) AS month FROM users GROUP BY month"
        assert normalize(sql) == sql

    @pytest.mark.parametrize(
        "sql",
        [
            "SELECT DATE_TRUNC('week', signup_date::date) AS week, COUNT(*) FROM users GROUP BY week",
            "SELECT EXTRACT(HOUR FROM created_at) AS h, COUNT(*) FROM users GROUP BY h",
            "SELECT EXTRACT(YEAR FROM EXTRACT(MONTH FROM ts)) FROM t",
            "SELECT a::int::text, b::varchar[] FROM t",
            "SELECT * FROM users",
            "",
        ],
    )
    def test_idempotent(self, sql: str):
        """Normalizing twice is the same as normalizing once."""
        once = normalize(sql)
        assert normalize(once) == once
