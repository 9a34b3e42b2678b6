# Nonprofit Ingest - Type Inference Engine
# ========================================
# Classifies a column's sample values into a semantic type
"""
Statistical column-type inference.

Each non-null sample is run through an ordered list of detectors; the first
detector that recognises the value records a hit for its type. The type with
the most hits wins (ties go to the earlier detector), and confidence is the
winner's share of the non-empty samples.

Supported semantic types:
- uuid, email, datetime, date, currency, boolean, number, phone
- string (fallback, always matches)
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from ..common.utils import safe_ratio

logger = logging.getLogger(__name__)


class InferredType(str, Enum):
    """Semantic column types produced by inference."""
    UUID = "uuid"
    EMAIL = "email"
    DATETIME = "datetime"
    DATE = "date"
    CURRENCY = "currency"
    BOOLEAN = "boolean"
    NUMBER = "number"
    PHONE = "phone"
    STRING = "string"


@dataclass
class InferenceResult:
    """Outcome of inferring one column."""
    inferred_type: str
    confidence: float
    stats: Dict[str, Any] = field(default_factory=dict)
    patterns: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "inferredType": self.inferred_type,
            "confidence": self.confidence,
            "stats": self.stats,
            "patterns": self.patterns,
        }


# =============================================================================
# PATTERNS
# =============================================================================

UUID_PATTERN = re.compile(
    r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}", re.IGNORECASE
)

EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")

_MONTHS = r"(?:jan|feb|mar|apr|may|jun|jul|aug|sep|sept|oct|nov|dec)[a-z]*\.?"

DATETIME_PATTERNS: List[Tuple[str, re.Pattern]] = [
    ("iso_datetime", re.compile(
        r"[0-9]{4}-[0-9]{2}-[0-9]{2}[T ][0-9]{1,2}:[0-9]{2}(?::[0-9]{2}(?:\.[0-9]+)?)?"
        r"\s?(?:Z|[+-][0-9]{2}:?[0-9]{2})?",
        re.IGNORECASE,
    )),
    ("us_datetime", re.compile(
        r"[0-9]{1,2}/[0-9]{1,2}/[0-9]{2,4},?\s+[0-9]{1,2}:[0-9]{2}(?::[0-9]{2})?\s?(?:am|pm)?",
        re.IGNORECASE,
    )),
]

DATE_PATTERNS: List[Tuple[str, re.Pattern]] = [
    ("iso_date", re.compile(r"[0-9]{4}-[0-9]{1,2}-[0-9]{1,2}")),
    ("slash_ymd_date", re.compile(r"[0-9]{4}/[0-9]{1,2}/[0-9]{1,2}")),
    ("slash_date", re.compile(r"[0-9]{1,2}/[0-9]{1,2}/(?:[0-9]{4}|[0-9]{2})")),
    ("dash_dmy_date", re.compile(r"[0-9]{1,2}-[0-9]{1,2}-[0-9]{4}")),
    ("dotted_date", re.compile(r"[0-9]{1,2}\.[0-9]{1,2}\.[0-9]{4}")),
    ("month_name_date", re.compile(
        _MONTHS + r"\s+[0-9]{1,2}(?:st|nd|rd|th)?,?\s+[0-9]{4}", re.IGNORECASE
    )),
    ("day_month_name_date", re.compile(
        r"[0-9]{1,2}(?:st|nd|rd|th)?\s+" + _MONTHS + r",?\s+[0-9]{4}", re.IGNORECASE
    )),
]

CURRENCY_PATTERNS: List[Tuple[str, re.Pattern]] = [
    ("currency_symbol", re.compile(
        r"\(?[-+]?\s?[$€£¥]\s?[-+]?(?:[0-9]{1,3}(?:,[0-9]{3})+|[0-9]+)(?:\.[0-9]{1,2})?\)?"
    )),
    ("currency_code", re.compile(
        r"[-+]?(?:[0-9]{1,3}(?:,[0-9]{3})+|[0-9]+)(?:\.[0-9]{1,2})?\s?(?:usd|eur|gbp|cad|aud)",
        re.IGNORECASE,
    )),
]

NUMBER_PATTERNS: List[Tuple[str, re.Pattern]] = [
    ("integer", re.compile(r"[-+]?[0-9]+")),
    ("decimal", re.compile(r"[-+]?(?:[0-9]+\.[0-9]*|\.[0-9]+)")),
    ("grouped_number", re.compile(r"[-+]?[0-9]{1,3}(?:,[0-9]{3})+(?:\.[0-9]+)?")),
    ("scientific", re.compile(r"[-+]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)e[-+]?[0-9]+", re.IGNORECASE)),
]

PHONE_PATTERN = re.compile(r"\+?[0-9\s().-]{7,24}(?:\s?(?:x|ext\.?)\s?[0-9]{1,6})?", re.IGNORECASE)

BOOLEAN_VALUES = {"true", "false", "yes", "no", "y", "n", "t", "f"}

BINARY_NUMERIC_VALUES = {"0", "1"}


# =============================================================================
# DETECTORS
# =============================================================================

def _valid_month_day(month: int, day: int) -> bool:
    return 1 <= month <= 12 and 1 <= day <= 31


def detect_uuid(value: str) -> Optional[str]:
    return "uuid" if UUID_PATTERN.fullmatch(value) else None


def detect_email(value: str) -> Optional[str]:
    return "email" if EMAIL_PATTERN.fullmatch(value) else None


def detect_datetime(value: str) -> Optional[str]:
    for name, pattern in DATETIME_PATTERNS:
        if pattern.fullmatch(value):
            return name
    return None


def detect_date(value: str) -> Optional[str]:
    """Match common date layouts, rejecting impossible month/day numbers."""
    for name, pattern in DATE_PATTERNS:
        if not pattern.fullmatch(value):
            continue
        parts = re.split(r"[-/.]", value)
        if name in ("iso_date", "slash_ymd_date"):
            if not _valid_month_day(int(parts[1]), int(parts[2])):
                return None
        elif name in ("slash_date", "dash_dmy_date", "dotted_date"):
            first, second = int(parts[0]), int(parts[1])
            # Either MM/DD or DD/MM has to be plausible.
            if not (_valid_month_day(first, second) or _valid_month_day(second, first)):
                return None
        return name
    return None


def detect_currency(value: str) -> Optional[str]:
    for name, pattern in CURRENCY_PATTERNS:
        if pattern.fullmatch(value):
            return name
    return None


def detect_boolean(value: str) -> Optional[str]:
    return "boolean_word" if value.lower() in BOOLEAN_VALUES else None


def detect_number(value: str) -> Optional[str]:
    for name, pattern in NUMBER_PATTERNS:
        if pattern.fullmatch(value):
            return name
    return None


def detect_phone(value: str) -> Optional[str]:
    if not PHONE_PATTERN.fullmatch(value):
        return None
    digits = sum(1 for ch in value if ch.isdigit())
    if 7 <= digits <= 15:
        return "phone"
    return None


def detect_string(value: str) -> Optional[str]:
    return "text"


# Order matters: a value is credited to the first detector that accepts it.
DETECTORS: List[Tuple[InferredType, Callable[[str], Optional[str]]]] = [
    (InferredType.UUID, detect_uuid),
    (InferredType.EMAIL, detect_email),
    (InferredType.DATETIME, detect_datetime),
    (InferredType.DATE, detect_date),
    (InferredType.CURRENCY, detect_currency),
    (InferredType.BOOLEAN, detect_boolean),
    (InferredType.NUMBER, detect_number),
    (InferredType.PHONE, detect_phone),
    (InferredType.STRING, detect_string),
]


def _is_nullish(value: Any) -> bool:
    return value is None or str(value).strip() == ""


def classify_value(value: str) -> Tuple[InferredType, str]:
    """Return the (type, pattern name) of the first detector accepting value."""
    for inferred_type, detector in DETECTORS:
        pattern = detector(value)
        if pattern:
            return inferred_type, pattern
    return InferredType.STRING, "text"


def infer_column(values: Sequence[Any]) -> InferenceResult:
    """
    Infer the semantic type of a column from its sample values.

    Args:
        values: Raw cell values; None and blank strings count as nullish

    Returns:
        InferenceResult with the winning type, its confidence, the hit
        counts behind the decision and the detector patterns that fired
    """
    hits: Dict[str, int] = {t.value: 0 for t, _ in DETECTORS}
    pattern_hits: Dict[str, int] = {}
    non_empty = 0
    nullish = 0
    number_values = set()

    for raw in values:
        if _is_nullish(raw):
            nullish += 1
            continue
        value = str(raw).strip()
        non_empty += 1
        inferred_type, pattern = classify_value(value)
        hits[inferred_type.value] += 1
        pattern_hits[pattern] = pattern_hits.get(pattern, 0) + 1
        if inferred_type == InferredType.NUMBER:
            number_values.add(value)

    stats: Dict[str, Any] = {
        "sampleCount": len(values),
        "nonEmptyCount": non_empty,
        "nullishCount": nullish,
        "hits": hits,
    }

    if non_empty == 0:
        return InferenceResult(
            inferred_type=InferredType.STRING.value,
            confidence=0.0,
            stats=stats,
            patterns=[],
        )

    # max() keeps the first maximal entry, so ties resolve by detector order.
    winner = max((t for t, _ in DETECTORS), key=lambda t: hits[t.value])
    winner_hits = hits[winner.value]

    # Columns holding only 0/1 are flags exported as numbers.
    binary_numeric = (
        winner == InferredType.NUMBER
        and winner_hits == non_empty
        and non_empty >= 2
        and number_values <= BINARY_NUMERIC_VALUES
    )
    stats["binaryNumeric"] = binary_numeric
    if binary_numeric:
        winner = InferredType.BOOLEAN

    stats["winnerHits"] = winner_hits

    return InferenceResult(
        inferred_type=winner.value,
        confidence=safe_ratio(winner_hits, non_empty),
        stats=stats,
        patterns=list(pattern_hits.keys()),
    )


# =============================================================================
# TYPE COMPATIBILITY
# =============================================================================

# Schema field type spellings folded onto the inferred type vocabulary.
FIELD_TYPE_FAMILIES: Dict[str, str] = {
    "string": "string", "text": "string", "varchar": "string", "char": "string",
    "enum": "string", "json": "string", "array": "string",
    "email": "email",
    "phone": "phone", "tel": "phone",
    "uuid": "uuid", "id": "uuid", "guid": "uuid",
    "number": "number", "numeric": "number", "integer": "number", "int": "number",
    "decimal": "number", "float": "number", "double": "number",
    "currency": "currency", "money": "currency",
    "date": "date",
    "datetime": "datetime", "timestamp": "datetime", "timestamptz": "datetime", "time": "datetime",
    "boolean": "boolean", "bool": "boolean",
}

# (inferred type, field family) -> score; identical families score 1.0.
TYPE_COMPATIBILITY: Dict[Tuple[str, str], float] = {
    # Anything can be stored as text, specific shapes fit better.
    ("email", "string"): 0.75,
    ("phone", "string"): 0.75,
    ("uuid", "string"): 0.7,
    ("date", "string"): 0.5,
    ("datetime", "string"): 0.5,
    ("number", "string"): 0.5,
    ("boolean", "string"): 0.5,
    ("currency", "string"): 0.45,
    # Free text rarely fits a typed field.
    ("string", "email"): 0.35,
    ("string", "phone"): 0.35,
    ("string", "uuid"): 0.4,
    ("string", "date"): 0.2,
    ("string", "datetime"): 0.2,
    ("string", "boolean"): 0.2,
    ("string", "number"): 0.15,
    ("string", "currency"): 0.15,
    # Close relatives.
    ("number", "currency"): 0.9,
    ("currency", "number"): 0.9,
    ("date", "datetime"): 0.85,
    ("datetime", "date"): 0.85,
    ("number", "uuid"): 0.5,
    ("boolean", "number"): 0.4,
    ("number", "boolean"): 0.3,
    ("phone", "number"): 0.3,
    ("number", "phone"): 0.3,
}

DEFAULT_COMPATIBILITY = 0.1
UNKNOWN_TYPE_COMPATIBILITY = 0.5


def type_compatibility_score(inferred_type: Optional[str], field_type: Optional[str]) -> float:
    """
    Score how well an inferred column type fits a schema field type.

    Args:
        inferred_type: Type produced by infer_column
        field_type: Declared schema field type (free-form spelling)

    Returns:
        Compatibility in [0, 1]; 0.5 when either side is unknown
    """
    if not inferred_type or not field_type:
        return UNKNOWN_TYPE_COMPATIBILITY

    source = str(inferred_type).strip().lower()
    family = FIELD_TYPE_FAMILIES.get(str(field_type).strip().lower())
    if family is None or source not in {t.value for t in InferredType}:
        return UNKNOWN_TYPE_COMPATIBILITY

    if source == family:
        return 1.0
    return TYPE_COMPATIBILITY.get((source, family), DEFAULT_COMPATIBILITY)
