"""In-memory GROUP BY for the two query shapes the fallback path claims.

the hosted database proxy can't run DATE_TRUNC / DATE_PART grouping, so we
pull raw rows and redo the aggregation here:

  path A (date_trunc): bucket rows by a truncated timestamp, count rows and
    distinct values per bucket, then ORDER BY / LIMIT from the query
  path B (date_part): bucket rows by a tuple of extracted date parts, count
    rows, sort by count descending, cap the output

bucket keys come from explicit calendar arithmetic on python datetimes, not
from the database. timezone-aware values are converted to local time first
so week/day boundaries fall at local midnight.

if the grouping pattern can't be parsed we return an empty list instead of
raising - the dashboard treats that as "nothing to aggregate".
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any

from pgshim.config import DATE_PART_RESULT_CAP
from pgshim.models.aggregates import (
    AggregateKind,
    AggregateSpec,
    DatePartField,
    TimePrecision,
    active_aggregates,
)
from pgshim.models.query import FunctionCall
from pgshim.parser.fragments import (
    parse_date_parts,
    parse_date_trunc,
    parse_limit,
    parse_order_by,
)

logger = logging.getLogger(__name__)

Row = dict[str, Any]

DEFAULT_BUCKET_ALIAS = "week"
DATE_PART_COUNT_FIELD = "user_count"

# date_part aliases recognized by name when a call carries no AS clause.
# maps alias -> position in the bucket key tuple
KNOWN_DATE_PART_ALIASES: dict[str, int] = {
    "signup_hour": 0,
    "signup_day_of_week": 1,
}


def coerce_timestamp(value: Any) -> datetime | None:
    """Turn a raw cell into a naive local datetime, or None if it isn't one.

    accepts datetimes, dates, ISO-8601 strings and epoch milliseconds (what a
    json row source hands back for timestamps). empty strings count as absent.
    """
    if value is None or value == "" or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    elif isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000)
        except (ValueError, OverflowError, OSError):
            logger.debug("Skipping out-of-range epoch value %r", value)
            return None
    elif isinstance(value, str):
        try:
            dt = datetime.fromisoformat(value.strip())
        except ValueError:
            logger.debug("Skipping unparseable timestamp %r", value)
            return None
    else:
        return None

    if dt.tzinfo is not None:
        dt = dt.astimezone().replace(tzinfo=None)
    return dt


def truncate_timestamp(dt: datetime, precision: str) -> str:
    """Bucket label for DATE_TRUNC(precision, dt).

    date precisions give YYYY-MM-DD, hour gives a full ISO timestamp.
    unknown precisions behave like day.
    """
    try:
        grain = TimePrecision(precision.lower())
    except ValueError:
        grain = TimePrecision.DAY

    if grain is TimePrecision.WEEK:
        # monday of the ISO week. python's weekday() is already monday=0, which is
        # the same offset as (sunday-based day + 6) % 7
        monday = dt.date() - timedelta(days=dt.weekday())
        return monday.isoformat()
    if grain is TimePrecision.MONTH:
        return date(dt.year, dt.month, 1).isoformat()
    if grain is TimePrecision.YEAR:
        return date(dt.year, 1, 1).isoformat()
    if grain is TimePrecision.HOUR:
        return dt.replace(minute=0, second=0, microsecond=0).isoformat()
    return dt.date().isoformat()


def extract_date_part(dt: datetime, part: str) -> int:
    """DATE_PART(part, dt). unknown parts are 0."""
    try:
        field_ = DatePartField(part.lower())
    except ValueError:
        return 0

    if field_ is DatePartField.HOUR:
        return dt.hour
    if field_ is DatePartField.MINUTE:
        return dt.minute
    if field_ is DatePartField.DOW:
        return dt.isoweekday() % 7  # sunday = 0
    if field_ is DatePartField.DAY:
        return dt.day
    if field_ is DatePartField.MONTH:
        return dt.month
    return dt.year


@dataclass
class BucketAccumulator:
    """Running counters for one bucket. thrown away once finalized."""

    row_count: int = 0
    distinct_values: dict[str, set[Any]] = field(default_factory=dict)

    def add(self, row: Row, aggregates: list[AggregateSpec]) -> None:
        self.row_count += 1
        for spec in aggregates:
            if spec.kind is not AggregateKind.DISTINCT_COUNT:
                continue
            value = row.get(spec.source_column)
            if value is None or value == "":
                continue
            self.distinct_values.setdefault(spec.output_field, set()).add(value)

    def finalize(self, aggregates: list[AggregateSpec]) -> dict[str, int]:
        counters = {}
        for spec in aggregates:
            if spec.kind is AggregateKind.ROW_COUNT:
                counters[spec.output_field] = self.row_count
            else:
                counters[spec.output_field] = len(self.distinct_values.get(spec.output_field, ()))
        return counters


def _sort_rows(rows: list[Row], column: str, ascending: bool) -> list[Row]:
    """Generic ordering over whatever type sits in the column.

    a column the rows don't carry leaves the order alone, and missing values
    go last either way.
    """
    if not rows or column not in rows[0]:
        return rows

    present = [row for row in rows if row.get(column) is not None]
    missing = [row for row in rows if row.get(column) is None]
    present.sort(key=lambda row: row[column], reverse=not ascending)
    return present + missing


def resolve_date_part_names(calls: list[FunctionCall], query: str) -> list[str]:
    """Output column name for each slot of the date_part key tuple.

    an explicit `AS alias` after the call wins. otherwise a known alias that
    appears in the query text claims its slot, and anything left over is
    named after its field (hour, dow, ...). a name that is already taken, or
    that would shadow the count column, gets a numeric suffix until it is unique.
    """
    names: list[str | None] = [call.alias for call in calls]

    for alias, position in KNOWN_DATE_PART_ALIASES.items():
        if position >= len(names) or names[position] is not None:
            continue
        if alias in query and alias not in names:
            names[position] = alias

    resolved: list[str] = []
    for call, name in zip(calls, names):
        base = name or call.argument.lower()
        candidate = base
        suffix = len(resolved) + 1
        while candidate in resolved or candidate == DATE_PART_COUNT_FIELD:
            candidate = f"{base}_{suffix}"
            suffix += 1
        resolved.append(candidate)
    return resolved


class InMemoryAggregator:
    """Reproduces DATE_TRUNC / DATE_PART grouping over fetched rows.

    stateless apart from the output cap - every call builds its own bucket map.
    """

    def __init__(self, date_part_result_cap: int = DATE_PART_RESULT_CAP) -> None:
        self.date_part_result_cap = date_part_result_cap

    def aggregate(self, rows: list[Row], query: str) -> list[Row]:
        """Pick the path from the normalized query text and run it."""
        lowered = query.lower()
        if "date_trunc" in lowered:
            return self.aggregate_date_trunc(rows, query)
        if "date_part" in lowered or "extract" in lowered:
            return self.aggregate_date_part(rows, query)

        logger.warning("No time function to group by in query, nothing to aggregate")
        return []

    def aggregate_date_trunc(self, rows: list[Row], query: str) -> list[Row]:
        """Path A: bucket by truncated timestamp, then ORDER BY and LIMIT."""
        if not rows:
            return []

        call = parse_date_trunc(query)
        if call is None:
            logger.warning("Could not parse DATE_TRUNC call, returning no rows")
            return []

        label_field = call.alias or DEFAULT_BUCKET_ALIAS
        aggregates = active_aggregates(query)
        logger.debug(
            "DATE_TRUNC('%s', %s) AS %s with %s",
            call.argument,
            call.column,
            label_field,
            [spec.output_field for spec in aggregates],
        )

        # dict keeps first-seen order, which is the output order without ORDER BY
        buckets: dict[str, BucketAccumulator] = {}
        for row in rows:
            dt = coerce_timestamp(row.get(call.column))
            if dt is None:
                continue
            label = truncate_timestamp(dt, call.argument)
            buckets.setdefault(label, BucketAccumulator()).add(row, aggregates)

        result = [
            {label_field: label, **acc.finalize(aggregates)} for label, acc in buckets.items()
        ]

        order = parse_order_by(query)
        if order is not None:
            result = _sort_rows(result, *order)

        limit = parse_limit(query)
        if limit is not None:
            result = result[:limit]

        logger.debug("DATE_TRUNC aggregation produced %d rows", len(result))
        return result

    def aggregate_date_part(self, rows: list[Row], query: str) -> list[Row]:
        """Path B: bucket by a tuple of date parts, most populated buckets first.

        the query's own LIMIT is not consulted, the output is always capped at
        date_part_result_cap.
        """
        calls = parse_date_parts(query)
        if not calls or not rows:
            if not calls:
                logger.warning("Could not parse any DATE_PART call, returning no rows")
            return []

        names = resolve_date_part_names(calls, query)

        buckets: dict[tuple[int | None, ...], int] = {}
        for row in rows:
            key = []
            for call in calls:
                dt = coerce_timestamp(row.get(call.column))
                key.append(extract_date_part(dt, call.argument) if dt is not None else None)
            bucket_key = tuple(key)
            buckets[bucket_key] = buckets.get(bucket_key, 0) + 1

        result = [
            {**dict(zip(names, key)), DATE_PART_COUNT_FIELD: count}
            for key, count in buckets.items()
        ]
        # sort is stable so ties keep first-seen order
        result.sort(key=lambda row: row[DATE_PART_COUNT_FIELD], reverse=True)

        logger.debug("DATE_PART aggregation produced %d buckets", len(result))
        return result[: self.date_part_result_cap]
