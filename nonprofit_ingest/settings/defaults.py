"""
Settings Defaults
=================
Default limits and thresholds for parsing and schema matching.
"""

from typing import Dict

# Row caps
CSV_MAX_ROWS = 2000
EXCEL_MAX_ROWS = 5000
SQL_MAX_SAMPLE_ROWS = 50

# Sniffing / sampling
SAMPLE_SIZE = 25
CONTENT_SNIFF_CHARS = 4096
DELIMITER_SNIFF_BYTES = 16 * 1024

# Matching
PER_COLUMN_CANDIDATES = 6
MIN_CANDIDATE_SCORE = 0.22
MIN_ACCEPTED_MAPPING_SCORE = 0.55

# Environment variable -> (section, attribute, caster)
ENV_OVERRIDES: Dict[str, tuple] = {
    "INGEST_CSV_MAX_ROWS": ("limits", "csv_max_rows", int),
    "INGEST_EXCEL_MAX_ROWS": ("limits", "excel_max_rows", int),
    "INGEST_SQL_MAX_SAMPLE_ROWS": ("limits", "sql_max_sample_rows", int),
    "INGEST_PER_COLUMN_CANDIDATES": ("match", "per_column_candidates", int),
    "INGEST_MIN_CANDIDATE_SCORE": ("match", "min_candidate_score", float),
    "INGEST_MIN_ACCEPTED_MAPPING_SCORE": ("match", "min_accepted_mapping_score", float),
}
