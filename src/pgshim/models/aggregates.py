"""Time functions and aggregate expressions the fallback path understands.

the aggregator doesn't resolve column references - it sniffs the query text
for a handful of literal aggregate expressions. keeping that closed set in
one table here means adding a new counter is a one-line change instead of
another string check buried in the aggregation loop.
"""

from enum import Enum

from pydantic import BaseModel


class TimePrecision(str, Enum):
    """DATE_TRUNC precisions with their own truncation rule.

    anything else falls back to day truncation, same as postgres users
    usually expect from a dashboard.
    """

    HOUR = "hour"
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


class DatePartField(str, Enum):
    """DATE_PART / EXTRACT fields. unknown fields evaluate to 0."""

    HOUR = "hour"
    MINUTE = "minute"
    DOW = "dow"  # 0 = sunday, postgres convention
    DAY = "day"
    MONTH = "month"
    YEAR = "year"


class AggregateKind(str, Enum):
    ROW_COUNT = "row_count"
    DISTINCT_COUNT = "distinct_count"


class AggregateSpec(BaseModel):
    """One supported aggregate expression.

    triggers are matched as plain substrings (case-insensitive) against the
    query text. source_column only matters for distinct counts.
    """

    triggers: tuple[str, ...]
    output_field: str
    kind: AggregateKind
    source_column: str | None = None

    def matches(self, query: str) -> bool:
        lowered = query.lower()
        return any(trigger.lower() in lowered for trigger in self.triggers)


AGGREGATE_SPECS: tuple[AggregateSpec, ...] = (
    AggregateSpec(
        triggers=("COUNT(user_id)", "COUNT(*)"),
        output_field="user_count",
        kind=AggregateKind.ROW_COUNT,
    ),
    AggregateSpec(
        triggers=("COUNT(DISTINCT country)",),
        output_field="country_count",
        kind=AggregateKind.DISTINCT_COUNT,
        source_column="country",
    ),
    AggregateSpec(
        triggers=("COUNT(DISTINCT user_segment)",),
        output_field="segment_count",
        kind=AggregateKind.DISTINCT_COUNT,
        source_column="user_segment",
    ),
)


def active_aggregates(query: str) -> list[AggregateSpec]:
    """Aggregates mentioned in the query, in table order."""
    return [spec for spec in AGGREGATE_SPECS if spec.matches(query)]
