"""Decides whether a query needs the in-memory fallback path.

two independent questions:
  - needs_fallback: does the raw text use anything the hosted query builder
    can't express? (fixed probe list, order matters only for reporting)
  - can_process: is the normalized text one of the shapes the aggregator
    actually handles? (a time function + GROUP BY over a FROM)

a query can need fallback and still be unprocessable (a CTE, say). callers
must surface that as an explicit error instead of guessing.
"""

import logging
import re

logger = logging.getLogger(__name__)

FALLBACK_PROBES: list[tuple[str, re.Pattern[str]]] = [
    ("extract", re.compile(r"extract\s*\(", re.IGNORECASE)),
    ("date_trunc", re.compile(r"date_trunc\s*\(", re.IGNORECASE)),
    ("case_when", re.compile(r"case\s+when", re.IGNORECASE)),
    ("cte", re.compile(r"with\s+\w+\s+as", re.IGNORECASE)),
    ("window_functions", re.compile(r"window\s+functions", re.IGNORECASE)),
    ("type_cast", re.compile(r"::[\w\[\]]+", re.IGNORECASE)),
    ("interval", re.compile(r"interval\s+'", re.IGNORECASE)),
    ("generate_series", re.compile(r"generate_series\s*\(", re.IGNORECASE)),
    ("array_agg", re.compile(r"array_agg\s*\(", re.IGNORECASE)),
    ("string_agg", re.compile(r"string_agg\s*\(", re.IGNORECASE)),
    ("coalesce", re.compile(r"coalesce\s*\(", re.IGNORECASE)),
    ("nullif", re.compile(r"nullif\s*\(", re.IGNORECASE)),
    ("greatest", re.compile(r"greatest\s*\(", re.IGNORECASE)),
    ("least", re.compile(r"least\s*\(", re.IGNORECASE)),
    ("count_distinct", re.compile(r"count\s*\(\s*distinct", re.IGNORECASE)),
]

TIME_FUNCTION_MARKERS = ("date_part", "date_trunc", "extract")


def matched_probes(query: str) -> list[str]:
    """Names of every probe that hits the query, in probe order."""
    return [name for name, pattern in FALLBACK_PROBES if pattern.search(query)]


def needs_fallback(query: str) -> bool:
    hit = any(pattern.search(query) for _, pattern in FALLBACK_PROBES)
    if hit:
        logger.debug("Query needs fallback processing (probes: %s)", matched_probes(query))
    return hit


def can_process(normalized_query: str) -> bool:
    """True only for a GROUP BY over a recognized time function."""
    lowered = normalized_query.lower()
    has_time_function = any(marker in lowered for marker in TIME_FUNCTION_MARKERS)
    return has_time_function and "group by" in lowered and "from" in lowered
