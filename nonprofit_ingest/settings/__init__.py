# Nonprofit Ingest Settings Module
"""
Options records and environment-driven defaults for parsing and matching.
"""

from .schemas import IngestOptions, MatchOptions, IngestLimits, IngestSettings


def get_settings() -> IngestSettings:
    """Fresh settings read from the environment on every call."""
    return IngestSettings.from_env()


__all__ = [
    "IngestOptions",
    "MatchOptions",
    "IngestLimits",
    "IngestSettings",
    "get_settings",
]
