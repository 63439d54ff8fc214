"""Configuration constants and analysis thresholds."""

from __future__ import annotations

import os

# Environment variable names
ENV_DEBUG = "DDRSCOPE_DEBUG"
ENV_WORKERS = "DDRSCOPE_WORKERS"
ENV_DATA_DIR = "DDRSCOPE_DATA_DIR"


def default_workers() -> int | None:
    """Mapping concurrency from DDRSCOPE_WORKERS (None = sequential)."""
    raw = os.environ.get(ENV_WORKERS, "").strip()
    if not raw:
        return None
    try:
        workers = int(raw)
    except ValueError:
        return None
    return workers if workers > 1 else None


# DDR file extensions stripped from File/@name
DDR_FILE_EXTENSIONS = (".fmp12", ".fp7")

# ---------------------------------------------------------------------------
# Orphan / usage heuristics
# ---------------------------------------------------------------------------

# key and audit fields are legitimately unreferenced; matched as
# lowercase substrings of the field name
SYSTEM_FIELD_NAMES = (
    "id",
    "uuid",
    "created",
    "modified",
    "createdby",
    "modifiedby",
)

# layouts whose name starts with this prefix are separators/utility
RESERVED_LAYOUT_PREFIX = "-"

RARELY_USED_MAX_REFS = 1
MODERATELY_USED_MAX_REFS = 5

# ---------------------------------------------------------------------------
# Performance heuristics
# ---------------------------------------------------------------------------

WIDE_TABLE_FIELDS = 50
WIDE_TABLE_HIGH_FIELDS = 100
LARGE_SCRIPT_STEPS = 100
LARGE_SCRIPT_HIGH_STEPS = 200
HEAVY_TO_RELATIONSHIPS = 10
HEAVY_TO_HIGH_RELATIONSHIPS = 20

AGGREGATE_CALLS = ("list(", "sum(", "count(")

# ---------------------------------------------------------------------------
# Complexity scoring
# ---------------------------------------------------------------------------

# factor -> (cap, weight, notable threshold)
COMPLEXITY_FACTORS: dict[str, tuple[float, float, float]] = {
    "tables": (50, 15, 30),
    "fields": (500, 15, 300),
    "scripts": (200, 20, 100),
    "avg_steps": (50, 15, 30),
    "relationships": (100, 10, 50),
    "table_occurrences": (100, 10, 50),
    "calc_ratio": (0.5, 10, 0.3),
}

MULTI_FILE_BONUS_CAP = 5

# (upper bound exclusive, level)
COMPLEXITY_LEVELS: list[tuple[float, str]] = [
    (25, "Simple"),
    (50, "Moderate"),
    (75, "Complex"),
]
COMPLEXITY_TOP_LEVEL = "Very Complex"

# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------

SEARCH_MIN_QUERY_LENGTH = 2
SEARCH_HISTORY_MAX_ITEMS = 10
SEARCH_HISTORY_KEY = "ddr-search-history"
