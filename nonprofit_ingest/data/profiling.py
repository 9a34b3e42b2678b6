# Nonprofit Ingest - Column Profiling
# ===================================
# Per-column statistics shared by the CSV, Excel and SQL parsers
"""
Column profiling and header detection.

Every parser funnels its rows through build_column_profiles so that a column
looks the same no matter which format it came from.
"""

import logging
import re
from typing import Any, List, Optional, Sequence

from ..common.utils import normalize_name, safe_ratio, take, uniq
from ..inference.type_inference import infer_column
from ..settings import defaults
from .models import ColumnProfile, Row

logger = logging.getLogger(__name__)

SAMPLE_SIZE = defaults.SAMPLE_SIZE
MAX_HEADER_CELL_LENGTH = 80

COLLISION_WARNING = "Some column names normalize to the same value; collisions may occur."

_NUMERICISH = re.compile(r"-?[0-9]+(?:\.[0-9]+)?")


def _numericish_count(cells: Sequence[str]) -> int:
    return sum(1 for c in cells if _NUMERICISH.fullmatch(c))


def cell_to_text(value: Any) -> str:
    """Trimmed text form of a raw cell, '' for None."""
    if value is None:
        return ""
    return str(value).strip()


def looks_like_header(first: Sequence[Any], second: Optional[Sequence[Any]] = None) -> bool:
    """
    Decide whether the first row is a header row.

    A header is rejected when cells repeat (case-insensitively), when fewer
    than 60% are filled, when more than 20% look numeric, or when any cell is
    longer than 80 characters.

    Args:
        first: First non-blank row
        second: Second non-blank row, if any

    Returns:
        True if the first row should be used as column names
    """
    a = [cell_to_text(v) for v in first]
    if not a:
        return False

    unique = len({v.lower() for v in a}) == len(a)
    non_empty = sum(1 for v in a if v)
    numericish = _numericish_count(a)
    too_long = sum(1 for v in a if len(v) > MAX_HEADER_CELL_LENGTH)

    if not unique:
        return False
    if non_empty / len(a) < 0.6:
        return False
    if numericish / len(a) > 0.2:
        return False
    if too_long > 0:
        return False

    if second:
        b = [cell_to_text(v) for v in second]
        if _numericish_count(b) / max(1, len(b)) > numericish / max(1, len(a)):
            logger.debug("Second row is more numeric than the first; treating first row as header")
            return True

    return True


def header_names(first: Sequence[Any], has_header: bool) -> List[str]:
    """Column names from the first row, or column_N placeholders."""
    if not has_header:
        return [f"column_{i + 1}" for i in range(len(first))]
    names = []
    for i, cell in enumerate(first):
        text = cell_to_text(cell)
        names.append(text if text else f"column_{i + 1}")
    return names


def to_row_object(headers: Sequence[str], values: Sequence[Any]) -> Row:
    """Map header -> trimmed value, None for missing or blank cells."""
    row: Row = {}
    for i, header in enumerate(headers):
        text = cell_to_text(values[i]) if i < len(values) else ""
        row[header] = text if text else None
    return row


def to_row_values(width: int, values: Sequence[Any]) -> List[Optional[str]]:
    """Positional form of to_row_object."""
    out: List[Optional[str]] = []
    for i in range(width):
        text = cell_to_text(values[i]) if i < len(values) else ""
        out.append(text if text else None)
    return out


def normalized_headers(headers: Sequence[str]) -> List[str]:
    return [normalize_name(h) or h for h in headers]


def collision_warnings(normalized: Sequence[str]) -> List[str]:
    """Warn when two headers normalize to the same name."""
    if len(uniq(normalized)) != len(normalized):
        logger.warning(f"Column name collision after normalization: {list(normalized)}")
        return [COLLISION_WARNING]
    return []


def build_column_profiles(
    headers: Sequence[str],
    column_values: Sequence[Sequence[Optional[str]]],
    blank_is_empty: bool = False,
    sample_size: int = SAMPLE_SIZE,
) -> List[ColumnProfile]:
    """
    Profile each column and infer its type.

    Args:
        headers: Column names, in order
        column_values: One value list per header (None for nullish cells)
        blank_is_empty: Also treat whitespace-only strings as empty when counting
        sample_size: Number of non-null values kept as samples

    Returns:
        One ColumnProfile per header
    """
    normalized = normalized_headers(headers)
    profiles = []

    for idx, name in enumerate(headers):
        values = list(column_values[idx]) if idx < len(column_values) else []
        present = [v for v in values if v is not None]
        if blank_is_empty:
            non_empty_count = sum(1 for v in present if str(v).strip() != "")
        else:
            non_empty_count = len(present)
        unique_count = len(set(present))
        samples = take(present, sample_size)

        lengths = [len(s) for s in samples]
        inferred = infer_column(values)

        profiles.append(ColumnProfile(
            name=name,
            normalized_name=normalized[idx],
            inferred_type=inferred.inferred_type,
            inferred_type_confidence=inferred.confidence,
            inference_stats=inferred.stats,
            detected_patterns=inferred.patterns,
            non_empty_count=non_empty_count,
            unique_count=unique_count,
            nullish_count=len(values) - non_empty_count,
            non_empty_ratio=safe_ratio(non_empty_count, len(values)),
            unique_ratio=safe_ratio(unique_count, max(1, non_empty_count)),
            min_length=min(lengths) if lengths else 0,
            max_length=max(lengths) if lengths else 0,
            avg_length=(sum(lengths) / len(lengths)) if lengths else 0.0,
            samples=samples,
        ))

    return profiles


def columns_from_rows(width: int, rows: Sequence[Sequence[Optional[str]]]) -> List[List[Optional[str]]]:
    """Transpose positional rows into per-column value lists."""
    return [[row[i] if i < len(row) else None for row in rows] for i in range(width)]
