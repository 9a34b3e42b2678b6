# Nonprofit Ingest - SQL Dump Parser
# ==================================
# Pattern scanners for CREATE TABLE, INSERT and SELECT statements
"""
SQL dump parsing.

This is not a SQL grammar. Three independent scans run over the comment-free
text and each produces tagged statements:
- CreateTable: column names from a table definition (zero-row Dataset)
- Insert: column list plus sampled value tuples
- Select: output column names of a select list (zero-row Dataset)

Column-less INSERTs reuse the columns of a CREATE TABLE for the same table.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union

from ..common.utils import split_sql_list_top_level, uniq
from ..settings import defaults
from .models import Dataset, Row, SourceType
from .profiling import (
    SAMPLE_SIZE,
    build_column_profiles,
    collision_warnings,
    normalized_headers,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_SAMPLE_ROWS = defaults.SQL_MAX_SAMPLE_ROWS

NO_PATTERNS_WARNING = "No CREATE TABLE / INSERT / SELECT patterns detected."
NO_COLUMNS_WARNING = (
    "INSERT statement has no column list and no prior CREATE TABLE columns were found."
)

_IDENT = r"[a-zA-Z0-9_.\"`]+"

LINE_COMMENT = re.compile(r"--.*$", re.MULTILINE)
BLOCK_COMMENT = re.compile(r"/\*[\s\S]*?\*/")

CREATE_TABLE = re.compile(
    r"create\s+table\s+(?:if\s+not\s+exists\s+)?(" + _IDENT + r")\s*\(([\s\S]*?)\)\s*;",
    re.IGNORECASE,
)
CONSTRAINT_ITEM = re.compile(r"(?:constraint|primary\s+key|foreign\s+key|unique|check)\b", re.IGNORECASE)

INSERT_WITH_COLUMNS = re.compile(
    r"insert\s+into\s+(" + _IDENT + r")\s*\(([\s\S]*?)\)\s*values\s*([\s\S]*?);",
    re.IGNORECASE,
)
INSERT_WITHOUT_COLUMNS = re.compile(
    r"insert\s+into\s+(" + _IDENT + r")\s*values\s*([\s\S]*?);",
    re.IGNORECASE,
)

SELECT = re.compile(r"select\s+([\s\S]*?)\s+from\s+(" + _IDENT + r")", re.IGNORECASE)
SELECT_ALIAS = re.compile(r"\s+as\s+(" + _IDENT + r")\s*$", re.IGNORECASE)
PLAIN_IDENT = re.compile(_IDENT)


@dataclass
class CreateTableStatement:
    table: str
    columns: List[str]


@dataclass
class InsertStatement:
    table: str
    columns: List[str]
    rows: List[List[str]] = field(default_factory=list)


@dataclass
class SelectStatement:
    table: str
    columns: List[str]


def strip_sql_comments(sql: str) -> str:
    """Remove -- line comments and /* */ block comments."""
    out = LINE_COMMENT.sub("", sql)
    return BLOCK_COMMENT.sub("", out)


def normalize_sql_ident(ident: str) -> str:
    """Drop any schema qualifier and one surrounding quote character."""
    s = ident.strip().split(".")[-1]
    if s[:1] in ("\"", "'", "`"):
        s = s[1:]
    if s[-1:] in ("\"", "'", "`"):
        s = s[:-1]
    return s


def normalize_sql_value(raw: str) -> Optional[str]:
    """
    Normalize one literal from a VALUES tuple.

    Surrounding single quotes, then surrounding double quotes, are removed
    before the NULL check, so 'NULL' is null too. An empty literal becomes None.
    """
    v = raw.strip()
    m = re.fullmatch(r"'(.*)'", v, re.DOTALL)
    if m:
        v = m.group(1)
    m = re.fullmatch(r"\"(.*)\"", v, re.DOTALL)
    if m:
        v = m.group(1)
    if re.fullmatch(r"null", v, re.IGNORECASE):
        return None
    return v if v != "" else None


def parse_values_groups(values_body: str) -> List[List[str]]:
    """
    Read the tuples of a VALUES clause.

    Tracks paren depth and quote state so commas inside nested calls or
    quoted literals are not treated as separators.

    Example:
        parse_values_groups("(1, 'a,b'), (2, f(3,4))")
        # -> [['1', "'a,b'"], ['2', 'f(3,4)']]
    """
    rows: List[List[str]] = []
    i = 0
    n = len(values_body)

    while i < n:
        while i < n and (values_body[i].isspace() or values_body[i] == ","):
            i += 1
        if i >= n or values_body[i] != "(":
            break
        i += 1

        depth = 1
        current: List[str] = []
        in_single = False
        in_double = False
        row: List[str] = []

        while i < n and depth > 0:
            ch = values_body[i]
            if ch == "'" and not in_double:
                in_single = not in_single
                current.append(ch)
                i += 1
                continue
            if ch == '"' and not in_single:
                in_double = not in_double
                current.append(ch)
                i += 1
                continue
            if not in_single and not in_double:
                if ch == "(":
                    depth += 1
                elif ch == ")":
                    depth -= 1
                elif ch == "," and depth == 1:
                    row.append("".join(current).strip())
                    current = []
                    i += 1
                    continue
            if depth > 0:
                current.append(ch)
            i += 1

        row.append("".join(current).strip())
        rows.append(row)

    return rows


def parse_create_table(sql: str) -> List[CreateTableStatement]:
    """Scan for CREATE TABLE definitions."""
    statements = []
    for m in CREATE_TABLE.finditer(sql):
        table = normalize_sql_ident(m.group(1))
        columns = []
        for item in split_sql_list_top_level(m.group(2)):
            trimmed = item.strip()
            if not trimmed or CONSTRAINT_ITEM.match(trimmed):
                continue
            tokens = trimmed.split()
            if len(tokens) < 2:
                continue
            column = normalize_sql_ident(tokens[0])
            if column:
                columns.append(column)
        if columns:
            statements.append(CreateTableStatement(table=table, columns=uniq(columns)))
    return statements


def parse_insert(sql: str, create_columns: Dict[str, List[str]]) -> List[InsertStatement]:
    """
    Scan for INSERT statements.

    Args:
        sql: Comment-free SQL text
        create_columns: table -> columns from earlier CREATE TABLE scans

    Returns:
        InsertStatements, explicit-column form first
    """
    statements = []

    for m in INSERT_WITH_COLUMNS.finditer(sql):
        table = normalize_sql_ident(m.group(1))
        columns = [normalize_sql_ident(c) for c in split_sql_list_top_level(m.group(2))]
        rows = parse_values_groups(m.group(3).strip())
        statements.append(InsertStatement(table=table, columns=columns, rows=rows))

    for m in INSERT_WITHOUT_COLUMNS.finditer(sql):
        text = m.group(0)
        # Already counted by the explicit-column scan
        if "(" in text and ") values" in text.lower():
            continue
        table = normalize_sql_ident(m.group(1))
        columns = list(create_columns.get(table, []))
        rows = parse_values_groups(m.group(2).strip())
        statements.append(InsertStatement(table=table, columns=columns, rows=rows))

    return statements


def parse_select(sql: str) -> List[SelectStatement]:
    """Scan for SELECT ... FROM table and name the output columns."""
    statements = []
    for m in SELECT.finditer(sql):
        table = normalize_sql_ident(m.group(2))
        columns = []
        for item in split_sql_list_top_level(m.group(1)):
            trimmed = item.strip()
            if not trimmed or trimmed == "*":
                continue

            alias = SELECT_ALIAS.search(trimmed)
            if alias:
                columns.append(normalize_sql_ident(alias.group(1)))
                continue

            tokens = trimmed.split()
            if len(tokens) >= 2:
                last = tokens[-1]
                if PLAIN_IDENT.fullmatch(last) and "(" not in last and ")" not in last:
                    columns.append(normalize_sql_ident(last))
                    continue

            columns.append(normalize_sql_ident(trimmed.split(".")[-1]))

        if columns:
            statements.append(SelectStatement(table=table, columns=uniq(columns)))
    return statements


def build_sql_dataset(
    name: str,
    column_names: List[str],
    rows: List[Row],
    meta: Optional[Dict] = None,
    sample_size: int = SAMPLE_SIZE,
) -> Dataset:
    """Profile SQL rows into a Dataset."""
    warnings = collision_warnings(normalized_headers(column_names))
    column_values = [[r.get(col) for r in rows] for col in column_names]
    columns = build_column_profiles(
        column_names, column_values, blank_is_empty=True, sample_size=sample_size
    )
    return Dataset(
        source_type=SourceType.SQL,
        name=name,
        column_names=list(column_names),
        row_count=len(rows),
        sample_rows=rows[:sample_size],
        columns=columns,
        warnings=warnings,
        meta=meta or {},
    )


def parse_sql_to_datasets(
    sql: Union[str, bytes],
    name: Optional[str] = None,
    max_sample_rows: int = DEFAULT_MAX_SAMPLE_ROWS,
    sample_size: int = SAMPLE_SIZE,
) -> List[Dataset]:
    """
    Parse a SQL dump into Datasets.

    Args:
        sql: SQL text (bytes are decoded as UTF-8)
        name: Base dataset name (default 'SQL')
        max_sample_rows: Maximum value tuples read per INSERT
        sample_size: Number of sample rows and per-column samples kept

    Returns:
        CREATE TABLE datasets, then INSERT datasets, then SELECT datasets; a
        single empty Dataset with a warning when nothing matched
    """
    if isinstance(sql, bytes):
        sql = sql.decode("utf-8", errors="replace")
    base_name = name or "SQL"
    cleaned = strip_sql_comments(sql)
    datasets: List[Dataset] = []

    creates = parse_create_table(cleaned)
    create_columns = {c.table: c.columns for c in creates}
    for create in creates:
        datasets.append(build_sql_dataset(
            f"{base_name}:CREATE_TABLE:{create.table}",
            create.columns,
            [],
            {"table": create.table, "statementType": "create_table"},
        ))

    inserts = parse_insert(cleaned, create_columns)
    for insert in inserts:
        dataset_name = f"{base_name}:INSERT:{insert.table}"
        if not insert.columns:
            logger.warning(f"INSERT into {insert.table} has no usable column list")
            dataset = build_sql_dataset(
                dataset_name, [], [], {"table": insert.table, "statementType": "insert"}
            )
            dataset.warnings.append(NO_COLUMNS_WARNING)
            datasets.append(dataset)
            continue

        rows: List[Row] = []
        for values in insert.rows[:max_sample_rows]:
            row: Row = {}
            for i, column in enumerate(insert.columns):
                row[column] = normalize_sql_value(values[i]) if i < len(values) else None
            rows.append(row)

        datasets.append(build_sql_dataset(
            dataset_name,
            insert.columns,
            rows,
            {"table": insert.table, "statementType": "insert", "sampledRows": len(rows)},
            sample_size=sample_size,
        ))

    for select in parse_select(cleaned):
        datasets.append(build_sql_dataset(
            f"{base_name}:SELECT:{select.table}",
            select.columns,
            [],
            {"statementType": "select"},
        ))

    if not datasets:
        logger.warning(f"No SQL statements recognised in {base_name}")
        dataset = build_sql_dataset(base_name, [], [], {})
        dataset.warnings.append(NO_PATTERNS_WARNING)
        datasets.append(dataset)

    logger.info(f"Parsed SQL {base_name}: {len(creates)} CREATE TABLE, "
                f"{len(inserts)} INSERT, {len(datasets)} datasets")
    return datasets
