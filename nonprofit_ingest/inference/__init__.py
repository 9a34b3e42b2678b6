# Nonprofit Ingest - Inference Module
"""
Column type inference.

Components:
- infer_column: classify sample values into a semantic type with confidence
- type_compatibility_score: fit between an inferred type and a schema field type
"""

from .type_inference import (
    InferredType,
    InferenceResult,
    infer_column,
    classify_value,
    type_compatibility_score,
    DETECTORS,
)

__all__ = [
    "InferredType",
    "InferenceResult",
    "infer_column",
    "classify_value",
    "type_compatibility_score",
    "DETECTORS",
]
