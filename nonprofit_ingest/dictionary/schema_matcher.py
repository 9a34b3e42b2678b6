# Nonprofit Ingest - Schema Matcher
# =================================
# Scores source columns against target schema fields and proposes a mapping
"""
Schema matching.

For every target table:
1. Each source column is scored against each field from name similarity
   (field name and aliases), type compatibility and value hints.
2. Columns are walked in descending strength order and greedily claim their
   top candidate (first claim wins, no backtracking).
3. The table is scored from accepted match quality, column coverage and
   required-field coverage, plus a small bonus when the dataset name hints at
   the table.

Tables are returned best first. The greedy assignment is deliberately a
single pass; it does not search for a globally optimal mapping.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..common.utils import clamp, safe_ratio, uniq
from ..data.models import ColumnProfile, Dataset
from ..inference.type_inference import InferredType, type_compatibility_score
from ..settings.schemas import MatchOptions
from .name_similarity import jaccard, name_similarity, tokenize
from .schema_registry import SchemaField, SchemaTable

logger = logging.getLogger(__name__)

# Column score weights
NAME_WEIGHT = 0.62
TYPE_WEIGHT = 0.28
HINT_WEIGHT = 0.10
NEGATIVE_HINT_WEIGHT = 0.08

# Table score weights
AVG_SCORE_WEIGHT = 0.62
COVERAGE_WEIGHT = 0.22
REQUIRED_COVERAGE_WEIGHT = 0.14
TABLE_NAME_BONUS = 0.02
TABLE_NAME_THRESHOLD = 0.3

HINT_MIN = -0.25
HINT_MAX = 0.5

EMAIL_TOKENS = ["email"]
PHONE_TOKENS = ["phone", "mobile", "cell", "tel"]
NUMERIC_TOKENS = ["amount", "total", "hours", "count"]
DATE_TOKENS = ["date", "time", "at"]


@dataclass
class MatchCandidate:
    """One scored target field for a source column."""
    table: str
    field: str
    score: float
    reasons: List[str] = field(default_factory=list)

    @property
    def key(self) -> str:
        return f"{self.table}.{self.field}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "table": self.table,
            "field": self.field,
            "score": self.score,
            "reasons": self.reasons,
        }


@dataclass
class ColumnSuggestion:
    """Candidates for one source column, best first."""
    source_column: str
    candidates: List[MatchCandidate] = field(default_factory=list)

    @property
    def best(self) -> Optional[MatchCandidate]:
        return self.candidates[0] if self.candidates else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sourceColumn": self.source_column,
            "candidates": [c.to_dict() for c in self.candidates],
        }


@dataclass
class TableSuggestion:
    """Scored proposal for mapping a dataset onto one table."""
    table: str
    score: float
    coverage: float
    suggested_mapping: Dict[str, str] = field(default_factory=dict)
    column_suggestions: List[ColumnSuggestion] = field(default_factory=list)
    reasons: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "table": self.table,
            "score": self.score,
            "coverage": self.coverage,
            "suggestedMapping": self.suggested_mapping,
            "columnSuggestions": [c.to_dict() for c in self.column_suggestions],
            "reasons": self.reasons,
        }


@dataclass
class SchemaMatchSuggestion:
    """All table proposals for a dataset, best first."""
    dataset_name: str
    best_table: Optional[TableSuggestion] = None
    tables: List[TableSuggestion] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "datasetName": self.dataset_name,
            "bestTable": self.best_table.to_dict() if self.best_table else None,
            "tables": [t.to_dict() for t in self.tables],
        }


# =============================================================================
# SCORING
# =============================================================================

def field_name_and_aliases(schema_field: SchemaField) -> List[str]:
    return [n for n in uniq([schema_field.field, *schema_field.aliases]) if n]


def is_id_field(field_name: str) -> bool:
    tokens = tokenize(field_name)
    return len(tokens) > 0 and (tokens[-1] == "id" or field_name == "id")


def _has_any(tokens: Sequence[str], needles: Sequence[str]) -> bool:
    return any(n in tokens for n in needles)


def value_hint_score(
    inferred_type: str,
    source_name: str,
    target_field: str,
    non_empty_ratio: float,
    unique_ratio: float,
) -> Tuple[float, List[str]]:
    """
    Adjust a candidate using what the values look like.

    Args:
        inferred_type: Inferred type of the source column
        source_name: Source column name
        target_field: Target field name
        non_empty_ratio: Share of non-empty values in the column
        unique_ratio: Share of distinct values among non-empty ones

    Returns:
        (score clamped to [-0.25, 0.5], reasons)
    """
    reasons: List[str] = []
    score = 0.0
    src_tokens = tokenize(source_name)
    tgt_tokens = tokenize(target_field)

    if inferred_type == InferredType.EMAIL and _has_any(tgt_tokens, EMAIL_TOKENS):
        score += 0.28
        reasons.append("Value pattern looks like email.")
    if inferred_type == InferredType.PHONE and _has_any(tgt_tokens, PHONE_TOKENS):
        score += 0.28
        reasons.append("Value pattern looks like phone.")
    if inferred_type in (InferredType.CURRENCY, InferredType.NUMBER) and _has_any(tgt_tokens, NUMERIC_TOKENS):
        score += 0.2
        reasons.append("Numeric values fit numeric target field.")
    if inferred_type in (InferredType.DATE, InferredType.DATETIME) and _has_any(tgt_tokens, DATE_TOKENS):
        score += 0.2
        reasons.append("Date/time values fit date/time target field.")

    # Identifier fields hold mostly unique, mostly filled values.
    if is_id_field(target_field):
        if inferred_type == InferredType.UUID and unique_ratio >= 0.9 and non_empty_ratio >= 0.8:
            score += 0.25
            reasons.append("High uniqueness + UUID-like values suggest an identifier field.")
        elif unique_ratio < 0.5 and non_empty_ratio >= 0.5:
            score -= 0.15
            reasons.append("Low uniqueness makes this less likely to be an identifier field.")

    if _has_any(src_tokens, ["first"]) and _has_any(tgt_tokens, ["first"]):
        score += 0.15
        reasons.append("Column name indicates first name.")
    if _has_any(src_tokens, ["last"]) and _has_any(tgt_tokens, ["last"]):
        score += 0.15
        reasons.append("Column name indicates last name.")

    return clamp(score, HINT_MIN, HINT_MAX), reasons


def _column_non_empty_ratio(column: ColumnProfile) -> float:
    if column.non_empty_ratio is not None:
        return column.non_empty_ratio
    total = column.non_empty_count + column.nullish_count
    return safe_ratio(column.non_empty_count, max(1, total))


def _column_unique_ratio(column: ColumnProfile) -> float:
    if column.unique_ratio is not None:
        return column.unique_ratio
    return safe_ratio(column.unique_count, max(1, column.non_empty_count))


def score_candidate(column: ColumnProfile, table: SchemaTable, schema_field: SchemaField) -> MatchCandidate:
    """Score one source column against one target field."""
    names = field_name_and_aliases(schema_field)
    best_name_score = max((name_similarity(column.name, n) for n in names), default=0.0)
    type_score = type_compatibility_score(column.inferred_type, schema_field.type)
    hint, hint_reasons = value_hint_score(
        inferred_type=column.inferred_type,
        source_name=column.name,
        target_field=schema_field.field,
        non_empty_ratio=_column_non_empty_ratio(column),
        unique_ratio=_column_unique_ratio(column),
    )

    score = NAME_WEIGHT * best_name_score + TYPE_WEIGHT * type_score + HINT_WEIGHT * clamp(hint, 0, 1)
    # Negative hints subtract beyond their share of the weight
    if hint < 0:
        score += NEGATIVE_HINT_WEIGHT * hint

    reasons: List[str] = []
    if best_name_score >= 0.85:
        reasons.append("Column name closely matches target field.")
    elif best_name_score >= 0.6:
        reasons.append("Column name is similar to target field.")

    if type_score >= 0.9:
        reasons.append("Inferred type is compatible.")
    elif type_score <= 0.25:
        reasons.append("Inferred type may be incompatible.")

    reasons.extend(hint_reasons)

    return MatchCandidate(
        table=table.table,
        field=schema_field.field,
        score=clamp(score, 0.0, 1.0),
        reasons=reasons,
    )


def suggest_column_candidates(
    column: ColumnProfile,
    table: SchemaTable,
    options: Optional[MatchOptions] = None,
) -> ColumnSuggestion:
    """
    Rank the fields of a table for one source column.

    Candidates below min_candidate_score are dropped; the rest are sorted by
    score (stable for ties) and truncated to per_column_candidates.
    """
    options = options or MatchOptions()
    candidates = []
    for schema_field in table.fields:
        candidate = score_candidate(column, table, schema_field)
        if candidate.score >= options.min_candidate_score:
            candidates.append(candidate)

    candidates.sort(key=lambda c: c.score, reverse=True)
    return ColumnSuggestion(
        source_column=column.name,
        candidates=candidates[:options.per_column_candidates],
    )


def column_strength(column: ColumnProfile) -> float:
    """Fill rate weighted by inference confidence; orders the greedy walk."""
    confidence = column.inferred_type_confidence
    if confidence is None:
        confidence = 0.5
    return _column_non_empty_ratio(column) * (0.6 + 0.4 * confidence)


def greedy_assign(
    columns: Sequence[ColumnProfile],
    suggestions: Sequence[ColumnSuggestion],
    min_accepted_score: float,
) -> Tuple[Dict[str, str], List[float]]:
    """
    One-pass 1:1 assignment of columns to target fields.

    Columns are visited strongest first; each takes its top candidate unless
    it scores below min_accepted_score or its target is already claimed.

    Returns:
        (source column -> 'table.field', accepted scores in claim order)
    """
    by_column = {s.source_column: s for s in suggestions}
    ordered = sorted(columns, key=column_strength, reverse=True)

    used_targets = set()
    mapping: Dict[str, str] = {}
    accepted: List[float] = []

    for column in ordered:
        suggestion = by_column.get(column.name)
        if suggestion is None:
            continue
        best = suggestion.best
        if best is None or best.score < min_accepted_score:
            continue
        if best.key in used_targets:
            continue
        used_targets.add(best.key)
        mapping[suggestion.source_column] = best.key
        accepted.append(best.score)

    return mapping, accepted


def table_name_similarity(dataset_name: str, table: SchemaTable) -> float:
    """Best token Jaccard between the dataset name and the table's names."""
    dataset_tokens = tokenize(dataset_name)
    names = uniq([table.table, table.label, *table.aliases])
    return max((jaccard(dataset_tokens, tokenize(n)) for n in names), default=0.0)


def score_table(dataset: Dataset, table: SchemaTable, options: MatchOptions) -> TableSuggestion:
    """Build the full suggestion for one target table."""
    reasons: List[str] = []
    column_suggestions = [suggest_column_candidates(c, table, options) for c in dataset.columns]

    mapping, accepted = greedy_assign(
        dataset.columns, column_suggestions, options.min_accepted_mapping_score
    )

    total_columns = len(dataset.columns)
    coverage = 0.0 if total_columns == 0 else len(accepted) / max(1, total_columns)
    avg_score = sum(accepted) / len(accepted) if accepted else 0.0

    required = [f"{table.table}.{f.field}" for f in table.required_fields()]
    matched_targets = set(mapping.values())
    required_matched = sum(1 for key in required if key in matched_targets)
    required_coverage = safe_ratio(required_matched, max(1, len(required)))

    if required and required_coverage < 1:
        reasons.append(f"Missing {len(required) - required_matched} required field(s) for {table.table}.")
    elif required:
        reasons.append("All required fields can be mapped at high confidence.")

    name_similarity_score = table_name_similarity(dataset.name, table)
    if name_similarity_score >= TABLE_NAME_THRESHOLD:
        reasons.append("Dataset name suggests this table.")

    score = clamp(
        AVG_SCORE_WEIGHT * avg_score
        + COVERAGE_WEIGHT * coverage
        + REQUIRED_COVERAGE_WEIGHT * required_coverage
        + (TABLE_NAME_BONUS if name_similarity_score >= TABLE_NAME_THRESHOLD else 0.0),
        0.0,
        1.0,
    )

    if accepted:
        reasons.append(f"Mapped {len(accepted)} of {total_columns} columns.")

    return TableSuggestion(
        table=table.table,
        score=score,
        coverage=coverage,
        suggested_mapping=mapping,
        column_suggestions=column_suggestions,
        reasons=reasons,
    )


def suggest_schema_matches(
    dataset: Dataset,
    tables: Sequence[SchemaTable],
    options: Optional[MatchOptions] = None,
) -> SchemaMatchSuggestion:
    """
    Match a dataset against every table of a schema registry.

    Args:
        dataset: Parsed and profiled dataset
        tables: Target schema registry (not modified)
        options: Candidate limits and acceptance thresholds

    Returns:
        SchemaMatchSuggestion with tables sorted best first; best_table is
        the top entry when its score is above zero
    """
    options = options or MatchOptions()
    suggestions = [score_table(dataset, table, options) for table in tables]
    suggestions.sort(key=lambda t: t.score, reverse=True)

    best = suggestions[0] if suggestions and suggestions[0].score > 0 else None
    if best:
        logger.info(f"Best table for {dataset.name}: {best.table} "
                    f"(score={best.score:.3f}, mapped={len(best.suggested_mapping)})")
    else:
        logger.info(f"No table matched {dataset.name}")

    return SchemaMatchSuggestion(
        dataset_name=dataset.name,
        best_table=best,
        tables=suggestions,
    )
