"""Turns database error messages into something a dashboard user can act on.

pure string matching against the messages postgres (and duckdb, which
borrows a lot of postgres wording) produce. later rules override the type
picked by earlier ones, suggestions accumulate.
"""

from pydantic import BaseModel, Field


class ErrorAnalysis(BaseModel):
    error_type: str = "unknown"
    suggestions: list[str] = Field(default_factory=list)


def analyze_query_error(
    message: str, query: str, available_tables: list[str] | None = None
) -> ErrorAnalysis:
    """Classify a failed query's error message and suggest fixes."""
    msg = message.lower()
    lowered_query = query.lower()
    analysis = ErrorAnalysis()

    if "failed to parse select parameter" in msg:
        analysis.error_type = "syntax_error"
        analysis.suggestions.append("Check your SELECT clause syntax")
        if "extract(" in lowered_query:
            analysis.suggestions.append(
                "EXTRACT() functions are converted automatically when grouped by"
            )
        if "date_trunc(" in lowered_query:
            analysis.suggestions.append(
                "PostgreSQL date_trunc() syntax: date_trunc('day', created_at)"
            )

    if "could not find the function" in msg:
        analysis.error_type = "function_not_found"
        analysis.suggestions.append(
            "EXTRACT(), DATE_PART() and DATE_TRUNC() with GROUP BY are processed in memory"
        )

    if "column" in msg and "does not exist" in msg and "::" in query:
        analysis.error_type = "type_casting_error"
        analysis.suggestions.append(
            "PostgreSQL type casts (::) are removed during conversion, "
            "e.g. signup_date::date becomes signup_date"
        )

    if ("relation" in msg or "table" in msg) and ("does not exist" in msg or "not found" in msg):
        analysis.error_type = "table_not_found"
        analysis.suggestions.append("Check that the table name is spelled correctly")
        if available_tables:
            analysis.suggestions.append(f"Available tables: {', '.join(available_tables)}")

    if "column" in msg and ("does not exist" in msg or "not found" in msg):
        analysis.error_type = "column_not_found"
        if "date_trunc" in lowered_query or "extract" in lowered_query or " as " in lowered_query:
            analysis.suggestions.append(
                "This looks like a function alias issue - grouped time functions "
                "are handled by the in-memory aggregation"
            )
        else:
            analysis.suggestions.append("Check that the column exists in the table")
            analysis.suggestions.append("Use the schema command to see available columns")

    if "syntax error" in msg or "invalid" in msg:
        analysis.error_type = "syntax_error"
        analysis.suggestions.append("Check your SQL syntax")

    if "permission denied" in msg:
        analysis.error_type = "permission_error"
        analysis.suggestions.append("You may not have permission to access this table")

    if not analysis.suggestions:
        analysis.suggestions.append("Try simplifying your query to identify the issue")

    return analysis
