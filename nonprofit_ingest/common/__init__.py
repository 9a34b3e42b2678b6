# Nonprofit Ingest - Common Helpers
"""
Helpers shared across the ingest pipeline.
"""

from .utils import (
    normalize_name,
    clamp,
    safe_ratio,
    uniq,
    take,
    split_sql_list_top_level,
)

__all__ = [
    "normalize_name",
    "clamp",
    "safe_ratio",
    "uniq",
    "take",
    "split_sql_list_top_level",
]
