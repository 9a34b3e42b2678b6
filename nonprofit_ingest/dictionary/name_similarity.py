# Nonprofit Ingest - Name Similarity
# ==================================
"""
String similarity between source column names and schema field names.

name_similarity blends a bigram Dice coefficient over the normalized names,
a token Jaccard over their underscore tokens, and a small substring bonus.
"""

from collections import Counter
from typing import Iterable, List

from ..common.utils import clamp, normalize_name


def tokenize(name: str) -> List[str]:
    """Normalized name split on underscores, empties dropped."""
    return [t.strip() for t in normalize_name(name).split("_") if t.strip()]


def bigrams(s: str) -> List[str]:
    """Overlapping two-character windows; underscores count as spaces."""
    v = s.replace("_", " ").strip()
    if len(v) < 2:
        return [v] if v else []
    return [v[i:i + 2] for i in range(len(v) - 1)]


def dice_coefficient(a: str, b: str) -> float:
    """Bigram Dice coefficient with multiset overlap."""
    left = bigrams(a)
    right = bigrams(b)
    if not left or not right:
        return 0.0
    counts = Counter(left)
    matches = 0
    for gram in right:
        if counts[gram] > 0:
            matches += 1
            counts[gram] -= 1
    return (2 * matches) / (len(left) + len(right))


def jaccard(a: Iterable[str], b: Iterable[str]) -> float:
    """Set intersection over union, 0 when both are empty."""
    left = set(a)
    right = set(b)
    union = left | right
    if not union:
        return 0.0
    return len(left & right) / len(union)


def name_similarity(source: str, target: str) -> float:
    """
    Similarity of two names in [0, 1].

    1.0 for identical normalized names, otherwise
    0.5 * dice + 0.4 * token jaccard + 0.1 * (0.8 if one contains the other).

    Example:
        name_similarity("Email", "email_address")  # 0.53
    """
    s = normalize_name(source)
    t = normalize_name(target)
    if not s or not t:
        return 0.0
    if s == t:
        return 1.0
    token_score = jaccard(tokenize(s), tokenize(t))
    dice = dice_coefficient(s, t)
    substring = 0.8 if (s in t or t in s) else 0.0
    return clamp(0.5 * dice + 0.4 * token_score + 0.1 * substring, 0.0, 1.0)
