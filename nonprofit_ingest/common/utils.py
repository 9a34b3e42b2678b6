# Nonprofit Ingest - Shared Utilities
# ===================================
# Small helpers shared by the parsers, type inference and schema matching
"""
Shared helpers:
- normalize_name: canonical snake_case form of a column/field name
- clamp / safe_ratio: bounded arithmetic used by every score
- uniq / take: order-preserving list helpers
- split_sql_list_top_level: comma splitter that respects parens and quotes
"""

import math
import re
from typing import Iterable, List, TypeVar

T = TypeVar("T")

_QUOTE_CHARS = re.compile(r"[\"'`]")
_NON_ALNUM_RUN = re.compile(r"[^a-z0-9]+")


def normalize_name(name: str) -> str:
    """
    Normalize a column or field name for comparison.

    Trims, lowercases, drops a leading BOM and quote characters, collapses
    every run of non-alphanumerics into one underscore and trims underscores.

    Example:
        normalize_name(' "First Name" ')  # -> 'first_name'
    """
    if name is None:
        return ""
    s = str(name).strip().lower()
    if s.startswith("\ufeff"):
        s = s[1:]
    s = _QUOTE_CHARS.sub("", s)
    s = _NON_ALNUM_RUN.sub("_", s)
    return s.strip("_")


def clamp(value: float, low: float, high: float) -> float:
    """Clamp value into [low, high]."""
    return max(low, min(high, value))


def safe_ratio(numerator: float, denominator: float) -> float:
    """Divide, returning 0 for non-finite or non-positive denominators."""
    if denominator is None or not math.isfinite(denominator) or denominator <= 0:
        return 0.0
    if numerator is None or not math.isfinite(numerator):
        return 0.0
    return numerator / denominator


def uniq(items: Iterable[T]) -> List[T]:
    """Remove duplicates, keeping first occurrence order."""
    seen = set()
    out: List[T] = []
    for item in items:
        if item in seen:
            continue
        seen.add(item)
        out.append(item)
    return out


def take(items: Iterable[T], n: int) -> List[T]:
    """Return at most the first n items."""
    out: List[T] = []
    if n <= 0:
        return out
    for item in items:
        out.append(item)
        if len(out) >= n:
            break
    return out


def split_sql_list_top_level(text: str) -> List[str]:
    """
    Split a comma separated list at top level only.

    Commas nested in parentheses or inside single, double or backtick
    quoted spans are not split points. Items are trimmed; empty items
    are dropped.

    Example:
        split_sql_list_top_level("a, b(c,d), 'e,f'")
        # -> ['a', 'b(c,d)', "'e,f'"]
    """
    items: List[str] = []
    current: List[str] = []
    depth = 0
    quote = None

    for ch in text or "":
        if quote:
            current.append(ch)
            if ch == quote:
                quote = None
            continue

        if ch in ("'", '"', "`"):
            quote = ch
            current.append(ch)
            continue

        if ch == "(":
            depth += 1
        elif ch == ")" and depth > 0:
            depth -= 1
        elif ch == "," and depth == 0:
            items.append("".join(current).strip())
            current = []
            continue

        current.append(ch)

    items.append("".join(current).strip())
    return [item for item in items if item]
