"""pgshim - run postgres-flavoured dashboard SQL against a limited row source."""

from pgshim.compiler.classifier import can_process, needs_fallback
from pgshim.compiler.normalizer import normalize
from pgshim.config import EngineSettings, load_settings
from pgshim.engine.aggregator import InMemoryAggregator
from pgshim.engine.compat import CompatibilityEngine
from pgshim.executor.duckdb_executor import DuckDBRowSource
from pgshim.service import QueryService

__all__ = [
    "CompatibilityEngine",
    "DuckDBRowSource",
    "EngineSettings",
    "InMemoryAggregator",
    "QueryService",
    "can_process",
    "load_settings",
    "needs_fallback",
    "normalize",
]
