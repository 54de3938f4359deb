"""Main QueryService interface for pgshim.

this is the caller side of the engine - what the dashboard's execute-sql
endpoint does with a query string:

  1. clean it up and make sure it's a read-only SELECT
  2. queries using postgres-only syntax go through the compatibility engine,
     with raw sql as a last resort when the engine can't handle the shape
  3. everything else is decomposed into filter/sort/limit parameters and
     handed to the row source's structured select
"""

import logging
import time
from typing import Any

import sqlglot

from pgshim.compiler.classifier import needs_fallback
from pgshim.compiler.fetch_builder import statement_count
from pgshim.compiler.normalizer import normalize
from pgshim.config import EngineSettings
from pgshim.diagnostics import analyze_query_error
from pgshim.engine.compat import CompatibilityEngine
from pgshim.errors import (
    QueryExecutionError,
    QueryValidationError,
    RowSourceError,
    UnsupportedQueryError,
)
from pgshim.executor.base import RawSqlCapable, RowSource, SchemaAware
from pgshim.models.query import ExecutionMethod, QueryResult
from pgshim.models.schema import TableSchema
from pgshim.parser.fragments import clean_query, decompose, extract_table_name

logger = logging.getLogger(__name__)


class QueryService:
    """Runs dashboard SQL against a row source that can't run it natively."""

    def __init__(self, row_source: RowSource, settings: EngineSettings | None = None) -> None:
        """Initialize the service.

        Args:
            row_source: Where rows come from (DuckDBRowSource or anything with the same methods).
            settings: Caps and switches, defaults if None.
        """
        self.row_source = row_source
        self.settings = settings or EngineSettings()
        self.engine = CompatibilityEngine(row_source, self.settings)

    def execute(self, sql: str) -> QueryResult:
        """Execute a read-only query and return rows plus how they were produced.

        Raises:
            QueryValidationError: empty or non-SELECT query.
            UnsupportedQueryError: fallback needed, but neither the engine nor raw sql could run it.
            TableNameError: no table to read from.
            FetchError: the engine's bulk fetch failed.
            QueryExecutionError: the structured fetch failed.
        """
        start = time.perf_counter()
        cleaned = self.validate(sql)

        if needs_fallback(cleaned):
            return self._execute_fallback(cleaned, start)
        return self._execute_structured(cleaned, start)

    def validate(self, sql: str) -> str:
        """Return the cleaned query, or raise if it isn't a usable SELECT."""
        if not isinstance(sql, str) or not sql.strip():
            raise QueryValidationError("Valid SQL query is required")

        cleaned = clean_query(sql)
        if not cleaned.lower().startswith("select"):
            raise QueryValidationError("Only SELECT statements are allowed")

        # raw sql runs the whole text, so a second statement would run too
        try:
            statements = statement_count(cleaned)
        except sqlglot.errors.TokenError as e:
            raise QueryValidationError(f"Could not read query: {e}") from e
        if statements > 1:
            raise QueryValidationError("Only a single SELECT statement is allowed")
        return cleaned

    def _execute_fallback(self, cleaned: str, start: float) -> QueryResult:
        converted = normalize(cleaned)
        logger.info("Complex query detected, processing converted query in memory")

        try:
            data = self.engine.execute_normalized(converted)
        except UnsupportedQueryError:
            if not (self.settings.allow_raw_sql and isinstance(self.row_source, RawSqlCapable)):
                raise
            logger.info("Conversion not supported, trying raw SQL")
            return self._execute_raw(cleaned, start)

        return self._build_result(
            sql=cleaned,
            data=data,
            start=start,
            execution_method="converted_postgresql",
            converted_sql=converted,
            parsed_table=extract_table_name(converted),
            note="Query was automatically converted from PostgreSQL syntax",
        )

    def _execute_raw(self, cleaned: str, start: float) -> QueryResult:
        try:
            data = self.row_source.execute_raw_sql(cleaned)  # type: ignore[attr-defined]
        except RowSourceError as e:
            logger.warning("Raw SQL execution failed: %s", e)
            raise UnsupportedQueryError(
                f"Query conversion not supported and raw SQL execution failed: {e}"
            ) from e

        return self._build_result(
            sql=cleaned,
            data=data,
            start=start,
            execution_method="raw_sql",
            parsed_table=extract_table_name(cleaned),
        )

    def _execute_structured(self, cleaned: str, start: float) -> QueryResult:
        structured = decompose(cleaned, self.settings.default_select_limit)

        try:
            data = self.row_source.select(structured)
        except RowSourceError as e:
            analysis = analyze_query_error(str(e), cleaned, self._available_tables())
            raise QueryExecutionError(
                f"Database query failed: {e}",
                error_type=analysis.error_type,
                suggestions=analysis.suggestions,
            ) from e

        return self._build_result(
            sql=cleaned,
            data=data,
            start=start,
            execution_method="query_builder",
            parsed_table=structured.table,
        )

    def _available_tables(self) -> list[str] | None:
        if not isinstance(self.row_source, SchemaAware):
            return None
        try:
            return self.row_source.list_tables()
        except RowSourceError:
            return None

    def _build_result(
        self,
        sql: str,
        data: list[dict[str, Any]],
        start: float,
        execution_method: ExecutionMethod,
        converted_sql: str | None = None,
        parsed_table: str | None = None,
        note: str | None = None,
    ) -> QueryResult:
        elapsed_ms = (time.perf_counter() - start) * 1000
        columns = list(data[0].keys()) if data else []
        return QueryResult(
            sql=sql,
            converted_sql=converted_sql,
            execution_method=execution_method,
            parsed_table=parsed_table,
            columns=columns,
            data=data,
            row_count=len(data),
            execution_time_ms=round(elapsed_ms, 2),
            note=note,
        )

    def describe_schema(self) -> list[TableSchema]:
        """Tables and columns the row source exposes."""
        if not isinstance(self.row_source, SchemaAware):
            raise TypeError(f"{type(self.row_source).__name__} can't describe its schema")

        return [self.row_source.describe_table(name) for name in self.row_source.list_tables()]
