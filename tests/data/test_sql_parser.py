# Tests for the SQL dump parser
# =============================

import pytest

from nonprofit_ingest.data.models import SourceType
from nonprofit_ingest.data.sql_parser import (
    NO_COLUMNS_WARNING,
    NO_PATTERNS_WARNING,
    normalize_sql_ident,
    normalize_sql_value,
    parse_create_table,
    parse_select,
    parse_sql_to_datasets,
    parse_values_groups,
    strip_sql_comments,
)


class TestSqlHelpers:
    """Identifier, literal and comment helpers."""

    def test_strip_comments(self):
        """Test removal of line and block comments."""
        sql = "SELECT a -- trailing\nFROM t /* multi\nline */;"
        assert strip_sql_comments(sql) == "SELECT a \nFROM t ;"

    @pytest.mark.parametrize("raw,expected", [
        ("`users`", "users"),
        ('"public"."users"', "users"),
        ("crm.contacts", "contacts"),
        ("  name ", "name"),
    ])
    def test_normalize_ident(self, raw, expected):
        """Test dequoting and dropping schema qualifiers."""
        assert normalize_sql_ident(raw) == expected

    @pytest.mark.parametrize("raw,expected", [
        ("'Ann'", "Ann"),
        ('"Bo"', "Bo"),
        ("42", "42"),
        ("NULL", None),
        ("null", None),
        ("'NULL'", None),
        ("\"null\"", None),
        ("''", None),
        ("'O''Brien'", "O''Brien"),
    ])
    def test_normalize_value(self, raw, expected):
        """Test literal normalization."""
        assert normalize_sql_value(raw) == expected

    def test_values_groups(self):
        """Test tuple scanning with nested calls and quoted commas."""
        groups = parse_values_groups("(1, 'a,b'), (2, f(3,4)),(3, 'x)y')")
        assert groups == [["1", "'a,b'"], ["2", "f(3,4)"], ["3", "'x)y'"]]


class TestCreateTable:
    """CREATE TABLE scanning."""

    def test_constraints_skipped(self):
        """Test that constraint items are not columns."""
        statements = parse_create_table(
            "CREATE TABLE IF NOT EXISTS `donors` (id INT, email VARCHAR(255) NOT NULL, "
            "PRIMARY KEY (id), UNIQUE (email), CONSTRAINT fk FOREIGN KEY (id) REFERENCES x(id));"
        )
        assert len(statements) == 1
        assert statements[0].table == "donors"
        assert statements[0].columns == ["id", "email"]

    def test_single_token_items_skipped(self):
        """Test that items without a type are ignored."""
        statements = parse_create_table("CREATE TABLE t (orphan, name TEXT);")
        assert statements[0].columns == ["name"]


class TestSelect:
    """SELECT scanning."""

    def test_output_names(self):
        """Test alias, trailing identifier and dotted column handling."""
        statements = parse_select(
            "SELECT c.first_name AS fname, c.email, COUNT(*) total, * FROM contacts c;"
        )
        assert statements[0].table == "contacts"
        assert statements[0].columns == ["fname", "email", "total"]


class TestParseSqlToDatasets:
    """parse_sql_to_datasets tests."""

    def test_create_and_insert(self):
        """Test the canonical CREATE TABLE + INSERT example."""
        datasets = parse_sql_to_datasets(
            "CREATE TABLE users (id INT PRIMARY KEY, name TEXT); "
            "INSERT INTO users (id, name) VALUES (1, 'Ann'), (2, 'Bo');"
        )
        assert [d.name for d in datasets] == ["SQL:CREATE_TABLE:users", "SQL:INSERT:users"]

        create, insert = datasets
        assert create.source_type == SourceType.SQL
        assert create.column_names == ["id", "name"]
        assert create.row_count == 0
        assert create.meta == {"table": "users", "statementType": "create_table"}

        assert insert.sample_rows == [{"id": "1", "name": "Ann"}, {"id": "2", "name": "Bo"}]
        assert insert.row_count == 2
        assert insert.meta["statementType"] == "insert"
        assert insert.meta["sampledRows"] == 2

    def test_full_dump(self, sample_sql_text):
        """Test comments, column-less inserts and selects together."""
        datasets = parse_sql_to_datasets(sample_sql_text, name="legacy")
        names = [d.name for d in datasets]
        assert names == [
            "legacy:CREATE_TABLE:gifts",
            "legacy:INSERT:donors",
            "legacy:INSERT:gifts",
            "legacy:SELECT:gifts",
        ]

        gifts_insert = datasets[2]
        assert gifts_insert.column_names == ["id", "amount", "gift_date"]
        assert gifts_insert.sample_rows[1] == {"id": "2", "amount": None, "gift_date": "2024-02-11"}
        assert gifts_insert.get_column("gift_date").inferred_type == "date"

        donors_insert = datasets[1]
        assert donors_insert.get_column("email").inferred_type == "email"

        select = datasets[3]
        assert select.column_names == ["donor_email", "total"]
        assert select.meta == {"statementType": "select"}

    def test_insert_without_columns_or_create(self):
        """Test the warning for an INSERT with nothing to name its columns."""
        datasets = parse_sql_to_datasets("INSERT INTO mystery VALUES (1, 'x');")
        assert len(datasets) == 1
        assert datasets[0].name == "SQL:INSERT:mystery"
        assert datasets[0].column_names == []
        assert datasets[0].warnings == [NO_COLUMNS_WARNING]

    def test_short_tuples_pad_with_null(self):
        """Test that missing trailing values become None."""
        datasets = parse_sql_to_datasets("INSERT INTO t (a, b, c) VALUES (1, 2);")
        assert datasets[0].sample_rows == [{"a": "1", "b": "2", "c": None}]

    def test_quoted_null_and_doubled_quotes(self):
        """Test that a quoted NULL is null and doubled quotes are kept as written."""
        datasets = parse_sql_to_datasets("INSERT INTO t (a, b) VALUES ('NULL', 'O''Brien');")
        assert datasets[0].sample_rows == [{"a": None, "b": "O''Brien"}]

    def test_sample_row_cap(self):
        """Test that value tuples beyond the cap are not read."""
        values = ", ".join(f"({i}, 'n{i}')" for i in range(10))
        datasets = parse_sql_to_datasets(f"INSERT INTO t (id, name) VALUES {values};", max_sample_rows=3)
        assert datasets[0].row_count == 3
        assert datasets[0].meta["sampledRows"] == 3

    def test_blank_values_not_counted(self):
        """Test that whitespace-only literals do not count as non-empty."""
        datasets = parse_sql_to_datasets("INSERT INTO t (a) VALUES ('x'), (' '), (NULL);")
        column = datasets[0].get_column("a")
        assert column.non_empty_count == 1
        assert column.nullish_count == 2

    def test_no_patterns(self):
        """Test the fallback dataset when nothing matches."""
        datasets = parse_sql_to_datasets("DROP TABLE old_stuff;", name="dump")
        assert len(datasets) == 1
        assert datasets[0].name == "dump"
        assert datasets[0].warnings == [NO_PATTERNS_WARNING]
        assert datasets[0].meta == {}

    def test_bytes_input(self):
        """Test UTF-8 bytes input."""
        datasets = parse_sql_to_datasets(b"SELECT name FROM people;")
        assert datasets[0].name == "SQL:SELECT:people"
        assert datasets[0].column_names == ["name"]
