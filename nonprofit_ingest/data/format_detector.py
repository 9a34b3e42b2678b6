# Nonprofit Ingest - Format Detection
# ===================================
# Picks the parser for an upload from its filename, MIME type or content
"""
Format detection.

Precedence when ingesting an opaque upload:
explicit format > filename extension > MIME type > content sniff > csv
"""

import logging
import re
from pathlib import Path
from typing import Optional, Union

from ..settings import defaults
from .models import SourceType

logger = logging.getLogger(__name__)

# File extension to format mapping
FORMAT_MAP = {
    ".csv": SourceType.CSV,
    ".xlsx": SourceType.EXCEL,
    ".xls": SourceType.EXCEL,
    ".sql": SourceType.SQL,
}

CONTENT_SNIFF_CHARS = defaults.CONTENT_SNIFF_CHARS

CSV_SNIFF_DELIMITERS = [",", "\t", ";", "|"]

SQL_MARKERS = re.compile(r"create\s+table|insert\s+into|select")

# Zip container (.xlsx) and OLE2 compound document (.xls) signatures
WORKBOOK_SIGNATURES = (b"PK\x03\x04", b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1")


def infer_format_from_filename(filename: Optional[str]) -> Optional[SourceType]:
    """
    Detect format from a filename extension.

    Args:
        filename: Uploaded file name (path components are ignored)

    Returns:
        SourceType, or None when the extension is not recognised
    """
    if not filename:
        return None
    return FORMAT_MAP.get(Path(filename).suffix.lower())


def infer_format_from_mime(mime_type: Optional[str]) -> Optional[SourceType]:
    """Detect format from a MIME type by substring."""
    if not mime_type:
        return None
    mime = mime_type.lower()
    if "spreadsheet" in mime or "excel" in mime:
        return SourceType.EXCEL
    if "csv" in mime:
        return SourceType.CSV
    if "sql" in mime:
        return SourceType.SQL
    return None


def infer_format_from_content(
    content: Union[str, bytes, None],
    sniff_chars: int = CONTENT_SNIFF_CHARS,
) -> Optional[SourceType]:
    """
    Sniff the format from the first sniff_chars characters (4096 by default).

    SQL keywords win; otherwise a first line with at least two occurrences of
    one delimiter candidate is treated as CSV. Binary workbook signatures are
    recognised when raw bytes are supplied.

    Returns:
        SourceType, or None when undecided
    """
    if not content:
        return None

    if isinstance(content, bytes):
        if content.startswith(WORKBOOK_SIGNATURES):
            return SourceType.EXCEL
        text = content[:sniff_chars].decode("utf-8", errors="replace")
    else:
        text = content

    sample = text[:sniff_chars].lower()
    if SQL_MARKERS.search(sample):
        return SourceType.SQL

    first_line = sample.split("\n", 1)[0]
    best = max(first_line.count(d) for d in CSV_SNIFF_DELIMITERS)
    if best >= 2:
        return SourceType.CSV
    return None


def detect_format(
    content: Union[str, bytes, None] = None,
    format: Optional[str] = None,
    filename: Optional[str] = None,
    mime_type: Optional[str] = None,
    sniff_chars: int = CONTENT_SNIFF_CHARS,
) -> SourceType:
    """
    Resolve the format of an upload.

    Args:
        content: Raw upload, used for content sniffing
        format: Explicit format ('csv', 'excel', 'sql'), wins when given
        filename: Filename hint
        mime_type: MIME type hint
        sniff_chars: How much of the content to sniff

    Returns:
        Resolved SourceType, csv when nothing else decides
    """
    if format:
        return SourceType(format)

    detected = infer_format_from_filename(filename)
    source = "filename"
    if detected is None:
        detected = infer_format_from_mime(mime_type)
        source = "mime type"
    if detected is None:
        detected = infer_format_from_content(content, sniff_chars)
        source = "content"
    if detected is None:
        detected = SourceType.CSV
        source = "default"

    logger.debug(f"Detected format {detected.value} from {source}")
    return detected
