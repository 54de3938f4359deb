"""Rewrites postgres-only syntax into the normalized form the aggregator reads.

textual substitution only. each rule is a (pattern, replacement) pair applied
globally and case-insensitively, in order. the EXTRACT rewrite never produces
a `::`, so the rule order is fixed but not load-bearing.

normalize() is idempotent - running it on its own output changes nothing.
nested EXTRACTs and chained casts need more than one sweep, so the rules are
reapplied until the text stops changing. every rewrite removes one EXTRACT or
one `::`, which bounds the loop.
"""

import logging
import re

logger = logging.getLogger(__name__)

NORMALIZATION_RULES: list[tuple[re.Pattern[str], str]] = [
    # EXTRACT(HOUR FROM created_at) -> DATE_PART('HOUR', created_at)
    (
        re.compile(r"EXTRACT\s*\(\s*(\w+)\s+FROM\s+([^)]+)\)", re.IGNORECASE),
        r"DATE_PART('\1', \2)",
    ),
    # signup_date::date -> signup_date, tags::text[] -> tags
    (
        re.compile(r"(\w+)(?:::[\w\[\]]+)+", re.IGNORECASE),
        r"\1",
    ),
]


def _apply_rules(query: str) -> str:
    result = query
    for pattern, replacement in NORMALIZATION_RULES:
        result = pattern.sub(replacement, result)
    return result


def normalize(query: str) -> str:
    """Return a new query string with the normalization rules applied."""
    result = query
    while True:
        rewritten = _apply_rules(result)
        if rewritten == result:
            break
        result = rewritten

    if result != query:
        logger.debug("Normalized query: %s", result)
    return result
