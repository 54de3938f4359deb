"""Builds the SQL the row source runs, pretty-prints SQL for display, and
counts statements in incoming SQL.

sqlglot's expression builder does the quoting for us - filter values go in
as string literals, never spliced into the text by hand.
"""

import sqlglot
from sqlglot import exp
from sqlglot.tokens import TokenType

from pgshim.models.query import StructuredQuery


def build_fetch_sql(table_name: str, max_rows: int, dialect: str = "duckdb") -> str:
    """Bulk fetch used by the aggregation path: every column, capped row count."""
    return sqlglot.select("*").from_(exp.to_table(table_name)).limit(max_rows).sql(dialect=dialect)


def build_select_sql(query: StructuredQuery, dialect: str = "duckdb") -> str:
    """Render a decomposed simple query back into a single SELECT."""
    if query.columns == ["*"]:
        columns: list[exp.Expression] = [exp.Star()]
    else:
        columns = [exp.to_column(col) for col in query.columns]

    stmt = sqlglot.select(*columns).from_(exp.to_table(query.table))

    if query.equals is not None:
        column, value = query.equals
        stmt = stmt.where(exp.to_column(column).eq(exp.Literal.string(value)))

    if query.like is not None:
        column, pattern = query.like
        stmt = stmt.where(exp.Like(this=exp.to_column(column), expression=exp.Literal.string(pattern)))

    if query.order_by:
        stmt = stmt.order_by(exp.Ordered(this=exp.to_column(query.order_by), desc=not query.ascending))

    if query.limit is not None:
        stmt = stmt.limit(query.limit)

    return stmt.sql(dialect=dialect)


def format_sql(sql: str, dialect: str = "postgres") -> str:
    """Pretty-print SQL with sqlglot, or hand it back untouched if it won't parse.

    normalized queries can still contain things sqlglot rejects (the text is
    only regex-rewritten), and showing the raw text beats failing.
    """
    try:
        parsed = sqlglot.parse_one(sql, dialect=dialect)
        return parsed.sql(dialect=dialect, pretty=True)
    except (sqlglot.errors.ParseError, sqlglot.errors.TokenError):
        return sql


def statement_count(sql: str, dialect: str = "postgres") -> int:
    """Number of statements in sql, split on semicolons outside literals and comments.

    a trailing semicolon doesn't start a new statement. raises
    sqlglot.errors.TokenError if the text can't be tokenized (unterminated
    string, say).
    """
    count = 0
    in_statement = False
    for token in sqlglot.tokenize(sql, read=dialect):
        if token.token_type == TokenType.SEMICOLON:
            in_statement = False
        elif not in_statement:
            in_statement = True
            count += 1
    return count
