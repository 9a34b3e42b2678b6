# Nonprofit Ingest - Data Module
# ==============================
# Format detection and parsing of uploaded exports
"""
Parsing of nonprofit data exports into profiled Datasets.

This module provides:
- detect_format and the infer_format_from_* helpers
- parse_csv_to_dataset: quote-aware CSV parsing with delimiter/header detection
- parse_excel_to_datasets: one Dataset per workbook sheet via a WorkbookReader
- parse_sql_to_datasets: CREATE TABLE / INSERT / SELECT pattern scanning
"""

from .models import Dataset, ColumnProfile, SourceType
from .format_detector import (
    detect_format,
    infer_format_from_filename,
    infer_format_from_mime,
    infer_format_from_content,
)
from .csv_parser import parse_csv_to_dataset, parse_csv_records, detect_delimiter
from .workbook import Workbook, WorkbookReader, InMemoryWorkbook, PandasWorkbookReader
from .excel_parser import parse_excel_to_datasets
from .sql_parser import (
    parse_sql_to_datasets,
    parse_values_groups,
    CreateTableStatement,
    InsertStatement,
    SelectStatement,
)
from .profiling import looks_like_header, build_column_profiles

__all__ = [
    # Models
    'Dataset',
    'ColumnProfile',
    'SourceType',
    # Detection
    'detect_format',
    'infer_format_from_filename',
    'infer_format_from_mime',
    'infer_format_from_content',
    # CSV
    'parse_csv_to_dataset',
    'parse_csv_records',
    'detect_delimiter',
    # Excel
    'Workbook',
    'WorkbookReader',
    'InMemoryWorkbook',
    'PandasWorkbookReader',
    'parse_excel_to_datasets',
    # SQL
    'parse_sql_to_datasets',
    'parse_values_groups',
    'CreateTableStatement',
    'InsertStatement',
    'SelectStatement',
    # Profiling
    'looks_like_header',
    'build_column_profiles',
]
