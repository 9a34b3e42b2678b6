# Nonprofit Ingest - Dictionary Module
# ====================================
# Target schema registry and column-to-field matching
"""
Schema dictionary and matching.

This module provides:
- SchemaTable / SchemaField: the canonical target schema
- name_similarity: bigram Dice + token Jaccard name scoring
- suggest_schema_matches: scored, greedy 1:1 column-to-field suggestions
"""

from .name_similarity import tokenize, bigrams, dice_coefficient, jaccard, name_similarity
from .schema_registry import (
    SchemaField,
    SchemaTable,
    DEFAULT_REGISTRY_DATA,
    build_schema_registry,
    load_schema_registry,
    default_schema_registry,
)
from .schema_matcher import (
    MatchCandidate,
    ColumnSuggestion,
    TableSuggestion,
    SchemaMatchSuggestion,
    value_hint_score,
    suggest_column_candidates,
    suggest_schema_matches,
)

__all__ = [
    # Similarity
    'tokenize',
    'bigrams',
    'dice_coefficient',
    'jaccard',
    'name_similarity',
    # Registry
    'SchemaField',
    'SchemaTable',
    'DEFAULT_REGISTRY_DATA',
    'build_schema_registry',
    'load_schema_registry',
    'default_schema_registry',
    # Matching
    'MatchCandidate',
    'ColumnSuggestion',
    'TableSuggestion',
    'SchemaMatchSuggestion',
    'value_hint_score',
    'suggest_column_candidates',
    'suggest_schema_matches',
]
