"""Pydantic models for pgshim."""

from pgshim.models.aggregates import (
    AGGREGATE_SPECS,
    AggregateKind,
    AggregateSpec,
    DatePartField,
    TimePrecision,
    active_aggregates,
)
from pgshim.models.query import FunctionCall, QueryResult, StructuredQuery
from pgshim.models.schema import ColumnInfo, TableSchema

__all__ = [
    "AGGREGATE_SPECS",
    "AggregateKind",
    "AggregateSpec",
    "ColumnInfo",
    "DatePartField",
    "FunctionCall",
    "QueryResult",
    "StructuredQuery",
    "TableSchema",
    "TimePrecision",
    "active_aggregates",
]
