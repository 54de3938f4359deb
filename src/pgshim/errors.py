"""Exception types for pgshim.

everything pgshim raises derives from PgShimError so callers (the cli,
a web handler) can catch one thing. the ValueError mixins keep the
"bad input" errors catchable the way the rest of the python world expects.
"""


class PgShimError(Exception):
    """Base class for all pgshim errors."""


class QueryValidationError(PgShimError, ValueError):
    """The query is empty or not a read-only SELECT."""


class TableNameError(PgShimError, ValueError):
    """No `FROM <identifier>` could be found in the query."""


class UnsupportedQueryError(PgShimError):
    """The query needs the fallback path but the aggregator can't handle it."""


class RowSourceError(PgShimError):
    """Raised by row sources when a table is inaccessible or the store errors."""


class FetchError(PgShimError):
    """The bulk row fetch failed after normalization succeeded.

    keeps the row source's message untouched so it can be shown as-is.
    """

    def __init__(self, message: str, stage: str = "fetch", table: str | None = None) -> None:
        super().__init__(f"Query execution failed during {stage}: {message}")
        self.message = message
        self.stage = stage
        self.table = table


class QueryExecutionError(PgShimError):
    """A structured (query builder) fetch failed.

    carries the error analysis so the caller can show suggestions next to
    the raw database message.
    """

    def __init__(
        self,
        message: str,
        error_type: str = "unknown",
        suggestions: list[str] | None = None,
        execution_method: str = "query_builder",
    ) -> None:
        super().__init__(message)
        self.error_type = error_type
        self.suggestions = suggestions or []
        self.execution_method = execution_method
