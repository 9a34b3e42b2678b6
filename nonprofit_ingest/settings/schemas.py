"""
Settings Schemas
================
Pydantic models for per-call options and environment-driven settings.
"""

import logging
import os
from typing import Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, Field, ValidationError, field_validator

from . import defaults

logger = logging.getLogger(__name__)


class IngestOptions(BaseModel):
    """Options for one preview/ingest call."""
    format: Optional[Literal["csv", "excel", "sql"]] = None
    name: Optional[str] = None
    filename: Optional[str] = None
    mime_type: Optional[str] = None
    sheet_name: Optional[str] = None
    has_header: Union[bool, Literal["auto"]] = "auto"
    delimiter: str = "auto"
    max_rows: Optional[int] = Field(default=None, ge=1)
    max_sample_rows: Optional[int] = Field(default=None, ge=1)

    @field_validator("delimiter")
    @classmethod
    def _single_char_delimiter(cls, v: str) -> str:
        if v != "auto" and len(v) != 1:
            raise ValueError("delimiter must be 'auto' or a single character")
        return v


class MatchOptions(BaseModel):
    """Candidate limits and acceptance thresholds for schema matching."""
    per_column_candidates: int = Field(default=defaults.PER_COLUMN_CANDIDATES, ge=1)
    min_candidate_score: float = Field(default=defaults.MIN_CANDIDATE_SCORE, ge=0, le=1)
    min_accepted_mapping_score: float = Field(default=defaults.MIN_ACCEPTED_MAPPING_SCORE, ge=0, le=1)


class IngestLimits(BaseModel):
    """Row caps and sniffing windows."""
    csv_max_rows: int = Field(default=defaults.CSV_MAX_ROWS, ge=1)
    excel_max_rows: int = Field(default=defaults.EXCEL_MAX_ROWS, ge=1)
    sql_max_sample_rows: int = Field(default=defaults.SQL_MAX_SAMPLE_ROWS, ge=1)
    sample_size: int = Field(default=defaults.SAMPLE_SIZE, ge=1)
    content_sniff_chars: int = Field(default=defaults.CONTENT_SNIFF_CHARS, ge=1)
    delimiter_sniff_bytes: int = Field(default=defaults.DELIMITER_SNIFF_BYTES, ge=1)


class IngestSettings(BaseModel):
    """Process-level settings: limits plus match options."""
    limits: IngestLimits = Field(default_factory=IngestLimits)
    match: MatchOptions = Field(default_factory=MatchOptions)

    @classmethod
    def from_env(cls, environ: Optional[Dict[str, str]] = None) -> "IngestSettings":
        """
        Create settings from defaults overlaid with INGEST_* variables.

        Values that do not parse, or that fail validation, are ignored with a
        warning and the default is kept.

        Args:
            environ: Mapping to read instead of os.environ

        Returns:
            A new IngestSettings
        """
        getenv = environ.get if environ is not None else os.getenv
        sections: Dict[str, Dict[str, Any]] = {"limits": {}, "match": {}}

        for env_name, (section, attr, caster) in defaults.ENV_OVERRIDES.items():
            raw = getenv(env_name)
            if raw is None or raw.strip() == "":
                continue
            try:
                sections[section][attr] = caster(raw.strip())
            except ValueError:
                logger.warning(f"Invalid {env_name}='{raw}', using default")

        limits = _validated(IngestLimits, sections["limits"])
        match = _validated(MatchOptions, sections["match"])
        return cls(limits=limits, match=match)


def _validated(model, values: Dict[str, Any]):
    """Build a model field by field so one bad override keeps the others."""
    accepted: Dict[str, Any] = {}
    for key, value in values.items():
        try:
            model(**{**accepted, key: value})
        except ValidationError:
            logger.warning(f"Out-of-range setting {key}={value}, using default")
            continue
        accepted[key] = value
    return model(**accepted)
