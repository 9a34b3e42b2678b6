# Nonprofit Ingest
# ================
"""
Ingestion and schema matching for nonprofit data exports.

Parses CSV, Excel and SQL dumps of unknown shape, infers column types from
their values, and suggests how the columns map onto the CRM schema.
"""

from .data import Dataset, ColumnProfile, SourceType
from .dictionary import SchemaField, SchemaTable, suggest_schema_matches
from .exceptions import IngestError, UnsupportedFormatError, WorkbookReadError, SchemaRegistryError
from .preview import PreviewResult, preview_import
from .settings import IngestOptions, MatchOptions, get_settings

__version__ = "1.0.0"

__all__ = [
    # Facade
    'preview_import',
    'PreviewResult',
    # Models
    'Dataset',
    'ColumnProfile',
    'SourceType',
    'SchemaField',
    'SchemaTable',
    'suggest_schema_matches',
    # Options
    'IngestOptions',
    'MatchOptions',
    'get_settings',
    # Errors
    'IngestError',
    'UnsupportedFormatError',
    'WorkbookReadError',
    'SchemaRegistryError',
]
