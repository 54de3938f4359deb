"""Engine settings and the caps baked into the fallback path.

the caps match the values the dashboard shipped with, downstream charts
were built against them. settings can override them.
"""

from pathlib import Path

import yaml
from pydantic import BaseModel, Field

# bulk fetch cap for the aggregation path. rows past this are silently dropped
MAX_FETCH_ROWS = 10_000

# date_part results are cut here regardless of the query's own LIMIT
DATE_PART_RESULT_CAP = 100

# LIMIT used by the structured fetch when the query has none
DEFAULT_SELECT_LIMIT = 1000


class EngineSettings(BaseModel):
    """Tunables for the engine and the query service."""

    max_fetch_rows: int = Field(default=MAX_FETCH_ROWS, gt=0)
    date_part_result_cap: int = Field(default=DATE_PART_RESULT_CAP, gt=0)
    default_select_limit: int = Field(default=DEFAULT_SELECT_LIMIT, gt=0)
    allow_raw_sql: bool = True  # try the row source's raw sql when conversion can't help


def load_settings(path: str | Path | None = None) -> EngineSettings:
    """Load settings from a YAML file, or return defaults when no path is given.

    an empty file is fine and just means "use the defaults".
    """
    if path is None:
        return EngineSettings()

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Settings file not found: {path}")

    with open(path) as f:
        data = yaml.safe_load(f)

    if data is None:
        return EngineSettings()
    if not isinstance(data, dict):
        raise ValueError(f"Settings file must contain a mapping: {path}")

    # allow nesting under a top-level "pgshim" key so the file can be shared
    return EngineSettings.model_validate(data.get("pgshim", data))
