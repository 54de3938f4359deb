"""Regex helpers that pull query fragments out of raw SQL text.

there is no grammar here. the fallback path only ever claims two
query shapes (date_trunc grouping and date_part grouping), and everything
else gets rejected upstream, so a few anchored patterns are enough. nested
parentheses or multiple GROUP BYs will confuse these - that's accepted.

only the first match of each kind is honored unless a helper says otherwise.
"""

import re

from pgshim.errors import TableNameError, UnsupportedQueryError
from pgshim.models.query import FunctionCall, StructuredQuery

TABLE_NAME_RE = re.compile(r"\bfrom\s+([a-z0-9_]+)", re.IGNORECASE)

DATE_TRUNC_RE = re.compile(
    r"DATE_TRUNC\s*\(\s*'(\w+)'\s*,\s*([^:)]+?)(?:::[\w\[\]]+)?\s*\)",
    re.IGNORECASE,
)
DATE_PART_RE = re.compile(r"DATE_PART\s*\(\s*'(\w+)'\s*,\s*(\w+)\s*\)", re.IGNORECASE)

# alias must follow the closing paren directly (whitespace only)
ALIAS_RE = re.compile(r"\s+AS\s+(\w+)", re.IGNORECASE)
TRAILING_CAST_RE = re.compile(r"::[\w\[\]]+$")

ORDER_BY_RE = re.compile(r"ORDER\s+BY\s+(\w+)(?:\s+(ASC|DESC))?", re.IGNORECASE)
LIMIT_RE = re.compile(r"LIMIT\s+(\d+)", re.IGNORECASE)

# simple-path decomposition
SELECT_LIST_RE = re.compile(r"select\s+(.*?)\s+from\b", re.IGNORECASE | re.DOTALL)
WHERE_RE = re.compile(
    r"\bwhere\s+(.*?)(?:\s+order\s+by|\s+group\s+by|\s+limit|$)",
    re.IGNORECASE | re.DOTALL,
)
EQUALS_RE = re.compile(r"(\w+)\s*=\s*'([^']+)'")
LIKE_RE = re.compile(r"(\w+)\s+like\s+'([^']+)'", re.IGNORECASE)
SIMPLE_ORDER_BY_RE = re.compile(r"order\s+by\s+([\w.]+)(?:\s+(asc|desc))?", re.IGNORECASE)
IDENTIFIER_RE = re.compile(r"^\w+$")


def clean_query(query: str) -> str:
    """Strip surrounding whitespace and a single trailing semicolon."""
    cleaned = query.strip()
    if cleaned.endswith(";"):
        cleaned = cleaned[:-1].rstrip()
    return cleaned


def extract_table_name(query: str) -> str | None:
    """Table name from the first `FROM <identifier>`, lowercased.

    postgres folds unquoted identifiers to lowercase so we do too.
    """
    match = TABLE_NAME_RE.search(query)
    if not match:
        return None
    return match.group(1).lower()


def require_table_name(query: str, context: str = "query") -> str:
    table = extract_table_name(query)
    if table is None:
        raise TableNameError(f"Cannot parse table name from {context}")
    return table


def parse_date_trunc(query: str) -> FunctionCall | None:
    """First DATE_TRUNC call with its trailing alias, or None if it won't parse."""
    match = DATE_TRUNC_RE.search(query)
    if not match:
        return None

    precision, column_expr = match.groups()
    column = TRAILING_CAST_RE.sub("", column_expr.strip())
    alias_match = ALIAS_RE.match(query, match.end())

    return FunctionCall(
        function="date_trunc",
        argument=precision,
        column=column,
        alias=alias_match.group(1) if alias_match else None,
    )


def parse_date_parts(query: str) -> list[FunctionCall]:
    """Every DATE_PART call in query order, each with its own alias if any."""
    calls = []
    for match in DATE_PART_RE.finditer(query):
        field, column = match.groups()
        alias_match = ALIAS_RE.match(query, match.end())
        calls.append(
            FunctionCall(
                function="date_part",
                argument=field,
                column=column,
                alias=alias_match.group(1) if alias_match else None,
            )
        )
    return calls


def parse_order_by(query: str) -> tuple[str, bool] | None:
    """(column, ascending) from the first ORDER BY, ascending by default."""
    match = ORDER_BY_RE.search(query)
    if not match:
        return None
    column, direction = match.groups()
    return column, direction is None or direction.upper() == "ASC"


def parse_limit(query: str) -> int | None:
    match = LIMIT_RE.search(query)
    return int(match.group(1)) if match else None


def decompose(query: str, default_limit: int) -> StructuredQuery:
    """Break a simple SELECT into table / columns / filter / sort / limit.

    mirrors what the hosted query builder can express: a plain column list,
    one equality filter and one LIKE filter, one sort column, a limit.
    anything fancier in the select list is rejected rather than guessed at.
    """
    table = require_table_name(query)

    columns = ["*"]
    select_match = SELECT_LIST_RE.search(query)
    if select_match and select_match.group(1).strip() != "*":
        columns = [col.strip() for col in select_match.group(1).split(",")]
        bad = [col for col in columns if not IDENTIFIER_RE.match(col)]
        if bad:
            raise UnsupportedQueryError(
                f"Query builder only supports plain column lists, got: {', '.join(bad)}"
            )

    equals = like = None
    where_match = WHERE_RE.search(query)
    if where_match:
        where_clause = where_match.group(1).strip()
        eq_match = EQUALS_RE.search(where_clause)
        if eq_match:
            equals = (eq_match.group(1), eq_match.group(2))
        like_match = LIKE_RE.search(where_clause)
        if like_match:
            like = (like_match.group(1), like_match.group(2))

    order_by = None
    ascending = True
    order_match = SIMPLE_ORDER_BY_RE.search(query)
    if order_match:
        order_by = order_match.group(1)
        ascending = order_match.group(2) is None or order_match.group(2).lower() == "asc"

    limit = parse_limit(query)

    return StructuredQuery(
        table=table,
        columns=columns,
        equals=equals,
        like=like,
        order_by=order_by,
        ascending=ascending,
        limit=limit if limit is not None else default_limit,
    )
