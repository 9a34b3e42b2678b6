# Nonprofit Ingest - Excel Parser
# ===============================
# Turns each workbook sheet into a profiled Dataset
"""
Excel parsing.

The binary is decoded by a WorkbookReader; this module only applies the
shared header heuristic and column profiling to each sheet. Decoding errors
from the reader propagate to the caller.
"""

import logging
import math
from datetime import date, datetime, time
from typing import Any, List, Optional, Union

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
from .workbook import PandasWorkbookReader, WorkbookReader

logger = logging.getLogger(__name__)

DEFAULT_MAX_ROWS = defaults.EXCEL_MAX_ROWS

NO_ROWS_WARNING = "No rows detected in sheet."


def stringify_cell(value: Any) -> Optional[str]:
    """
    Render a workbook cell as text.

    Integral floats lose their trailing '.0', dates use ISO format and
    booleans render lowercase; blank text becomes None.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return None
        if value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    text = str(value).strip()
    return text if text else None


def parse_excel_to_datasets(
    data: bytes,
    name: Optional[str] = None,
    sheet_name: Optional[str] = None,
    max_rows: int = DEFAULT_MAX_ROWS,
    has_header: Union[bool, str] = "auto",
    reader: Optional[WorkbookReader] = None,
    sample_size: int = SAMPLE_SIZE,
) -> List[Dataset]:
    """
    Parse a workbook into one Dataset per processed sheet.

    Args:
        data: Workbook binary
        name: Base dataset name (default 'Excel'); datasets are named '{name}:{sheet}'
        sheet_name: Only process this sheet when it exists; otherwise all sheets
        max_rows: Maximum number of data rows to profile per sheet
        has_header: True, False or 'auto' to detect
        reader: WorkbookReader to decode with (PandasWorkbookReader by default)
        sample_size: Number of sample rows and per-column samples kept per sheet

    Returns:
        List of Datasets with sourceType excel

    Raises:
        WorkbookReadError: propagated from the reader on a corrupt binary
    """
    reader = reader or PandasWorkbookReader()
    base_name = name or "Excel"
    workbook = reader.read(data)

    available = workbook.sheet_names
    if sheet_name and sheet_name in available:
        sheet_names = [sheet_name]
    else:
        if sheet_name:
            logger.warning(f"Sheet '{sheet_name}' not found; processing all sheets")
        sheet_names = available

    datasets: List[Dataset] = []

    for sheet in sheet_names:
        dataset_name = f"{base_name}:{sheet}"
        rows = [[stringify_cell(v) for v in row] for row in workbook.cells_of(sheet)]
        non_empty_rows = [r for r in rows if any(cell_to_text(v) for v in r)]

        if not non_empty_rows:
            logger.warning(f"No rows detected in sheet {sheet}")
            datasets.append(Dataset(
                source_type=SourceType.EXCEL,
                name=dataset_name,
                warnings=[NO_ROWS_WARNING],
                meta={"sheetName": sheet},
            ))
            continue

        first_row = non_empty_rows[0]
        second_row = non_empty_rows[1] if len(non_empty_rows) > 1 else None
        if has_header == "auto":
            header = looks_like_header(first_row, second_row)
        else:
            header = bool(has_header)

        headers = header_names(first_row, header)
        warnings = collision_warnings(normalized_headers(headers))

        body = non_empty_rows[1:] if header else non_empty_rows
        data_rows = body[:max_rows]
        row_objects = [to_row_object(headers, r) for r in data_rows]
        positional = [to_row_values(len(headers), r) for r in data_rows]
        columns = build_column_profiles(
            headers, columns_from_rows(len(headers), positional), sample_size=sample_size
        )
        truncated = len(body) > max_rows

        logger.info(f"Parsed sheet {dataset_name}: {len(row_objects)} rows, "
                    f"{len(headers)} columns (header={header}, truncated={truncated})")

        datasets.append(Dataset(
            source_type=SourceType.EXCEL,
            name=dataset_name,
            column_names=headers,
            row_count=len(row_objects),
            sample_rows=take(row_objects, sample_size),
            columns=columns,
            warnings=warnings,
            meta={
                "sheetName": sheet,
                "hasHeader": header,
                "truncated": truncated,
            },
        ))

    return datasets
