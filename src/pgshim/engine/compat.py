"""The fallback pipeline: normalize, check, fetch, aggregate.

one invocation = one bulk fetch plus pure computation over the fetched rows.
nothing is kept between calls, so one engine can serve concurrent requests.

deciding *whether* a query should come here (needs_fallback) is the
caller's job - see QueryService.
"""

import logging
from typing import Any

from pgshim.compiler.classifier import can_process
from pgshim.compiler.normalizer import normalize
from pgshim.config import EngineSettings
from pgshim.engine.aggregator import InMemoryAggregator
from pgshim.errors import FetchError, RowSourceError, UnsupportedQueryError
from pgshim.executor.base import RowSource
from pgshim.parser.fragments import require_table_name

logger = logging.getLogger(__name__)


class CompatibilityEngine:
    """Runs a postgres-flavoured GROUP BY query without the database's help."""

    def __init__(self, row_source: RowSource, settings: EngineSettings | None = None) -> None:
        self.row_source = row_source
        self.settings = settings or EngineSettings()
        self.aggregator = InMemoryAggregator(self.settings.date_part_result_cap)

    def execute(self, query: str) -> list[dict[str, Any]]:
        """Aggregate the query in memory and return the result rows.

        Raises:
            UnsupportedQueryError: the normalized query isn't a time-function GROUP BY.
            TableNameError: no FROM clause to fetch from.
            FetchError: the row source failed; carries its message unchanged.
        """
        normalized = normalize(query)
        return self.execute_normalized(normalized)

    def execute_normalized(self, normalized: str) -> list[dict[str, Any]]:
        if not can_process(normalized):
            raise UnsupportedQueryError("Query conversion not supported for this type of query")

        table = require_table_name(normalized, context="converted query")

        # rows past max_fetch_rows never make it into the aggregation
        try:
            rows = self.row_source.fetch_rows(table, self.settings.max_fetch_rows)
        except RowSourceError as e:
            raise FetchError(str(e), stage="fetch", table=table) from e

        logger.debug("Processing %d rows from %s in memory", len(rows), table)
        return self.aggregator.aggregate(rows, normalized)
