# Nonprofit Ingest - Import Preview
# =================================
"""
Import Preview
==============
Single entry point that turns an upload into parsed datasets plus schema
mapping suggestions.

Steps:
1. Format Resolution - explicit > filename > MIME type > content sniff > csv
2. Parsing - CSV/SQL from text, Excel from bytes through a WorkbookReader
3. Matching - every dataset scored against every registry table

Nothing is persisted; the result is a preview an administrator confirms.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from pydantic import ValidationError

from .data.csv_parser import parse_csv_to_dataset
from .data.excel_parser import parse_excel_to_datasets
from .data.format_detector import detect_format
from .data.models import Dataset, SourceType
from .data.sql_parser import parse_sql_to_datasets
from .data.workbook import WorkbookReader
from .dictionary.schema_matcher import SchemaMatchSuggestion, suggest_schema_matches
from .dictionary.schema_registry import (
    SchemaTable,
    build_schema_registry,
    default_schema_registry,
    load_schema_registry,
)
from .exceptions import IngestError, UnsupportedFormatError
from .settings import IngestOptions, IngestSettings, MatchOptions, get_settings

logger = logging.getLogger(__name__)

RegistryInput = Union[Sequence[SchemaTable], Sequence[Dict[str, Any]], str, Path, None]


@dataclass
class PreviewResult:
    """Parsed datasets and one schema suggestion per dataset."""
    datasets: List[Dataset] = field(default_factory=list)
    schema_suggestions: List[SchemaMatchSuggestion] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "datasets": [d.to_dict() for d in self.datasets],
            "schemaSuggestions": [s.to_dict() for s in self.schema_suggestions],
        }


def resolve_options(options: Union[IngestOptions, Dict[str, Any], None]) -> IngestOptions:
    """
    Validate caller options.

    Raises:
        UnsupportedFormatError: if an explicit format is not csv, excel or sql
        pydantic.ValidationError: for any other invalid option
    """
    if options is None:
        return IngestOptions()
    if isinstance(options, IngestOptions):
        return options
    try:
        return IngestOptions.model_validate(options)
    except ValidationError as e:
        if any(err.get("loc", ())[:1] == ("format",) for err in e.errors()):
            raise UnsupportedFormatError(str(options.get("format"))) from e
        raise


def resolve_registry(registry: RegistryInput) -> List[SchemaTable]:
    """Accept SchemaTables, raw dicts, a JSON path, or None for the default."""
    if registry is None:
        return default_schema_registry()
    if isinstance(registry, (str, Path)):
        return load_schema_registry(registry)
    tables = list(registry)
    if all(isinstance(t, SchemaTable) for t in tables):
        return tables
    return build_schema_registry([t.model_dump() if isinstance(t, SchemaTable) else t for t in tables])


def _as_text(content: Union[str, bytes]) -> str:
    if isinstance(content, bytes):
        return content.decode("utf-8", errors="replace")
    return content


def parse_upload(
    content: Union[str, bytes],
    options: IngestOptions,
    settings: IngestSettings,
    workbook_reader: Optional[WorkbookReader] = None,
) -> List[Dataset]:
    """
    Parse an upload into datasets.

    Args:
        content: Raw upload
        options: Validated per-call options
        settings: Sniffing windows and sample size, plus the row caps used
            when options leave a cap unset
        workbook_reader: Codec for Excel uploads

    Returns:
        Parsed datasets, in parser order
    """
    limits = settings.limits
    source_type = detect_format(
        content=content,
        format=options.format,
        filename=options.filename,
        mime_type=options.mime_type,
        sniff_chars=limits.content_sniff_chars,
    )

    if source_type == SourceType.EXCEL:
        if isinstance(content, str):
            raise IngestError("Excel uploads must be passed as bytes")
        return parse_excel_to_datasets(
            content,
            name=options.name,
            sheet_name=options.sheet_name,
            max_rows=options.max_rows or limits.excel_max_rows,
            has_header=options.has_header,
            reader=workbook_reader,
            sample_size=limits.sample_size,
        )

    if source_type == SourceType.SQL:
        return parse_sql_to_datasets(
            _as_text(content),
            name=options.name,
            max_sample_rows=options.max_sample_rows or limits.sql_max_sample_rows,
            sample_size=limits.sample_size,
        )

    return [parse_csv_to_dataset(
        _as_text(content),
        name=options.name,
        max_rows=options.max_rows or limits.csv_max_rows,
        has_header=options.has_header,
        delimiter=options.delimiter,
        sample_size=limits.sample_size,
        sniff_bytes=limits.delimiter_sniff_bytes,
    )]


def preview_import(
    content: Union[str, bytes],
    options: Union[IngestOptions, Dict[str, Any], None] = None,
    registry: RegistryInput = None,
    match_options: Optional[MatchOptions] = None,
    workbook_reader: Optional[WorkbookReader] = None,
    settings: Optional[IngestSettings] = None,
) -> PreviewResult:
    """
    Parse an upload and suggest how its columns map onto the target schema.

    Args:
        content: Upload as text (CSV, SQL) or bytes (any format)
        options: IngestOptions or an equivalent dict
        registry: Target tables; the built-in CRM registry when None
        match_options: Overrides the matching thresholds from settings
        workbook_reader: Codec for Excel uploads (pandas by default)
        settings: Limits and thresholds; read from the environment when None

    Returns:
        PreviewResult

    Raises:
        UnsupportedFormatError: explicit format is not csv, excel or sql
        WorkbookReadError: the workbook binary could not be decoded
        SchemaRegistryError: the registry could not be loaded
    """
    opts = resolve_options(options)
    settings = settings or get_settings()
    match = match_options or settings.match
    tables = resolve_registry(registry)

    datasets = parse_upload(content, opts, settings, workbook_reader)
    suggestions = [suggest_schema_matches(d, tables, match) for d in datasets]

    source_type = datasets[0].source_type if datasets else None
    logger.info(f"Preview built: {len(datasets)} datasets against {len(tables)} tables "
                f"(format={source_type.value if source_type else 'none'})")

    return PreviewResult(datasets=datasets, schema_suggestions=suggestions)
