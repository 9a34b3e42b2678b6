# Nonprofit Ingest - Dataset Models
# =================================
"""
In-memory results produced by the format parsers.

A Dataset is one parsed sheet, table or SQL statement; each of its columns
carries a ColumnProfile with statistics and the inferred semantic type.
to_dict() emits the camelCase JSON shape served by the preview endpoint.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class SourceType(str, Enum):
    """Supported import formats."""
    CSV = "csv"
    EXCEL = "excel"
    SQL = "sql"


Row = Dict[str, Optional[str]]


@dataclass
class ColumnProfile:
    """Statistics and inferred type for one source column."""
    name: str
    normalized_name: str
    inferred_type: str
    inferred_type_confidence: float
    inference_stats: Dict[str, Any] = field(default_factory=dict)
    detected_patterns: List[str] = field(default_factory=list)
    non_empty_count: int = 0
    unique_count: int = 0
    nullish_count: int = 0
    non_empty_ratio: Optional[float] = None
    unique_ratio: Optional[float] = None
    min_length: int = 0
    max_length: int = 0
    avg_length: float = 0.0
    samples: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "normalizedName": self.normalized_name,
            "inferredType": self.inferred_type,
            "inferredTypeConfidence": self.inferred_type_confidence,
            "inferenceStats": self.inference_stats,
            "detectedPatterns": self.detected_patterns,
            "nonEmptyCount": self.non_empty_count,
            "uniqueCount": self.unique_count,
            "nullishCount": self.nullish_count,
            "nonEmptyRatio": self.non_empty_ratio,
            "uniqueRatio": self.unique_ratio,
            "minLength": self.min_length,
            "maxLength": self.max_length,
            "avgLength": self.avg_length,
            "samples": self.samples,
        }


@dataclass
class Dataset:
    """Normalized tabular result of parsing one sheet, table or statement."""
    source_type: SourceType
    name: str
    column_names: List[str] = field(default_factory=list)
    row_count: int = 0
    sample_rows: List[Row] = field(default_factory=list)
    columns: List[ColumnProfile] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    meta: Dict[str, Any] = field(default_factory=dict)

    def get_column(self, name: str) -> Optional[ColumnProfile]:
        """Look up a column profile by its source name."""
        for column in self.columns:
            if column.name == name:
                return column
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sourceType": self.source_type.value,
            "name": self.name,
            "columnNames": self.column_names,
            "rowCount": self.row_count,
            "sampleRows": self.sample_rows,
            "columns": [c.to_dict() for c in self.columns],
            "warnings": self.warnings,
            "meta": self.meta,
        }
