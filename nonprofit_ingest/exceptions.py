# Nonprofit Ingest - Exceptions
# =============================
"""
Error classes raised at the edges of the ingest engine.

Parsers and the schema matcher never raise on malformed text; they record
warnings on the Dataset instead. These errors cover caller mistakes and the
external workbook codec.
"""

from typing import Optional


class IngestError(Exception):
    """Base exception for ingest errors."""
    pass


class UnsupportedFormatError(IngestError):
    """Raised when an explicit format is not csv, excel or sql."""

    def __init__(self, requested: str):
        self.requested = requested
        super().__init__(
            f"Unsupported import format '{requested}'. "
            "Expected one of: csv, excel, sql."
        )


class WorkbookReadError(IngestError):
    """Raised when a spreadsheet binary cannot be decoded."""

    def __init__(self, reason: Optional[str] = None):
        self.reason = reason
        super().__init__(
            "Could not read the spreadsheet. "
            f"Reason: {reason or 'Unknown'}. "
            "Check that the file is a valid .xlsx or .xls workbook."
        )


class SchemaRegistryError(IngestError):
    """Raised when a schema registry file is malformed."""
    pass
