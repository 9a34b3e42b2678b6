# Nonprofit Ingest - CSV Parser
# =============================
# Quote-aware delimited text parsing with delimiter and header detection
"""
CSV parsing for exports of unknown shape.

- Delimiter detection over the first record of a 16KB sample
- Quote-aware record state machine (doubled quotes are literal quotes)
- Header detection when the caller does not say whether one exists
- Per-column profiling and type inference over at most max_rows data rows
"""

import logging
from typing import List, Optional, Tuple, Union

from ..common.utils import take
from ..settings import defaults
from .models import Dataset, SourceType
from .profiling import (
    SAMPLE_SIZE,
    build_column_profiles,
    cell_to_text,
    collision_warnings,
    columns_from_rows,
    header_names,
    looks_like_header,
    normalized_headers,
    to_row_object,
    to_row_values,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_ROWS = defaults.CSV_MAX_ROWS
DELIMITER_SNIFF_BYTES = defaults.DELIMITER_SNIFF_BYTES

# Candidate order doubles as the tie-break order
CSV_DELIMITERS = [",", "\t", ";", "|"]

NO_ROWS_WARNING = "No rows detected."


def detect_delimiter(text: str, sniff_bytes: int = DELIMITER_SNIFF_BYTES) -> str:
    """
    Detect the delimiter from the first record.

    Counts candidate characters outside quoted spans until the first unquoted
    newline and picks the most frequent; comma wins ties and empty samples.

    Example:
        detect_delimiter("a;b;c\\n1;2;3")  # -> ';'
    """
    counts = {d: 0 for d in CSV_DELIMITERS}
    sample = text[:sniff_bytes]
    in_quotes = False
    i = 0

    while i < len(sample):
        ch = sample[i]
        if ch == '"':
            if in_quotes and i + 1 < len(sample) and sample[i + 1] == '"':
                i += 1
            else:
                in_quotes = not in_quotes
            i += 1
            continue
        if not in_quotes:
            if ch in counts:
                counts[ch] += 1
            elif ch == "\n":
                break
        i += 1

    best = ","
    best_count = -1
    for delim in CSV_DELIMITERS:
        if counts[delim] > best_count:
            best = delim
            best_count = counts[delim]
    return best


def normalize_newlines(text: str) -> str:
    """Strip a leading BOM and fold CRLF/CR line endings into LF."""
    if text.startswith("\ufeff"):
        text = text[1:]
    return text.replace("\r\n", "\n").replace("\r", "\n")


def parse_csv_records(text: str, delimiter: str, max_records: int) -> Tuple[List[List[str]], bool]:
    """
    Split text into records of raw field strings.

    Args:
        text: Raw CSV text
        delimiter: Field separator
        max_records: Stop once this many records have been produced

    Returns:
        (records, truncated) where truncated is True if parsing stopped early
    """
    text = normalize_newlines(text)
    records: List[List[str]] = []
    record: List[str] = []
    field: List[str] = []
    in_quotes = False

    def push_record():
        # A lone blank field is a blank line
        if len(record) == 1 and record[0].strip() == "":
            return
        records.append(list(record))

    i = 0
    n = len(text)
    while i < n:
        ch = text[i]

        if ch == '"':
            if in_quotes and i + 1 < n and text[i + 1] == '"':
                field.append('"')
                i += 2
                continue
            in_quotes = not in_quotes
            i += 1
            continue

        if not in_quotes and ch == delimiter:
            record.append("".join(field))
            field = []
            i += 1
            continue

        if not in_quotes and ch == "\n":
            record.append("".join(field))
            field = []
            push_record()
            record = []
            if len(records) >= max_records:
                return records, True
            i += 1
            continue

        field.append(ch)
        i += 1

    if field or record:
        record.append("".join(field))
        push_record()

    return records, False


def _display_delimiter(delimiter: str) -> str:
    return "\\t" if delimiter == "\t" else delimiter


def parse_csv_to_dataset(
    text: Union[str, bytes],
    name: Optional[str] = None,
    max_rows: int = DEFAULT_MAX_ROWS,
    has_header: Union[bool, str] = "auto",
    delimiter: str = "auto",
    sample_size: int = SAMPLE_SIZE,
    sniff_bytes: int = DELIMITER_SNIFF_BYTES,
) -> Dataset:
    """
    Parse CSV text into a profiled Dataset.

    Args:
        text: CSV content (bytes are decoded as UTF-8)
        name: Dataset name (default 'CSV')
        max_rows: Maximum number of data rows to profile
        has_header: True, False or 'auto' to detect
        delimiter: Field separator or 'auto' to detect
        sample_size: Number of sample rows and per-column samples kept
        sniff_bytes: How much of the text delimiter detection looks at

    Returns:
        Dataset with sourceType csv
    """
    if isinstance(text, bytes):
        text = text.decode("utf-8", errors="replace")
    name = name or "CSV"

    if not delimiter or delimiter == "auto":
        delimiter = detect_delimiter(text, sniff_bytes)
    logger.debug(f"CSV delimiter for {name}: {delimiter!r}")

    records, truncated = parse_csv_records(text, delimiter, max_rows + 1)
    rows = [r for r in records if any(cell_to_text(c) for c in r)]

    if not rows:
        logger.warning(f"No rows detected in {name}")
        return Dataset(
            source_type=SourceType.CSV,
            name=name,
            warnings=[NO_ROWS_WARNING],
            meta={
                "delimiter": _display_delimiter(delimiter),
                "hasHeader": False,
                "truncated": truncated,
            },
        )

    first_row = rows[0]
    second_row = rows[1] if len(rows) > 1 else None
    if has_header == "auto":
        header = looks_like_header(first_row, second_row)
    else:
        header = bool(has_header)

    headers = header_names(first_row, header)
    data_rows = (rows[1:] if header else rows)[:max_rows]

    row_objects = [to_row_object(headers, r) for r in data_rows]
    positional = [to_row_values(len(headers), r) for r in data_rows]

    warnings = collision_warnings(normalized_headers(headers))
    columns = build_column_profiles(
        headers, columns_from_rows(len(headers), positional), sample_size=sample_size
    )

    logger.info(f"Parsed CSV {name}: {len(row_objects)} rows, {len(headers)} columns "
                f"(header={header}, truncated={truncated})")

    return Dataset(
        source_type=SourceType.CSV,
        name=name,
        column_names=headers,
        row_count=len(row_objects),
        sample_rows=take(row_objects, sample_size),
        columns=columns,
        warnings=warnings,
        meta={
            "delimiter": _display_delimiter(delimiter),
            "hasHeader": header,
            "truncated": truncated,
        },
    )
