"""
Pytest fixtures for the ingest tests.
"""

import sys
from datetime import datetime
from pathlib import Path

import pytest

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from nonprofit_ingest.data.workbook import InMemoryWorkbook, WorkbookReader
from nonprofit_ingest.dictionary.schema_registry import (
    build_schema_registry,
    default_schema_registry,
)


class FakeWorkbookReader(WorkbookReader):
    """Returns a fixed set of sheets regardless of the bytes passed in."""

    def __init__(self, sheets):
        self.sheets = sheets
        self.calls = 0

    def read(self, data):
        self.calls += 1
        return InMemoryWorkbook(self.sheets)


@pytest.fixture
def sample_csv_text():
    """Donor export with a header row."""
    return (
        "First Name,Last Name,Email,Phone\n"
        "Ann,Lee,ann.lee@example.org,555-123-4567\n"
        "Bo,Kim,bo.kim@example.org,(555) 987-6543\n"
        "Cy,Diaz,cy.diaz@example.org,555.222.3333\n"
    )


@pytest.fixture
def sample_sql_text():
    """SQL dump with every recognised statement kind."""
    return (
        "-- exported from legacy CRM\n"
        "CREATE TABLE gifts (\n"
        "  id INT PRIMARY KEY,\n"
        "  amount DECIMAL(10,2),\n"
        "  gift_date DATE,\n"
        "  CONSTRAINT gifts_pk PRIMARY KEY (id)\n"
        ");\n"
        "/* seed rows */\n"
        "INSERT INTO gifts VALUES (1, 25.00, '2024-01-05'), (2, NULL, '2024-02-11');\n"
        "INSERT INTO donors (id, email) VALUES (10, 'ann@example.org'), (11, 'bo@example.org');\n"
        "SELECT d.email AS donor_email, SUM(g.amount) total FROM gifts g;\n"
    )


@pytest.fixture
def registry():
    """Built-in CRM schema registry."""
    return default_schema_registry()


@pytest.fixture
def small_registry():
    """Two-table registry for focused matching tests."""
    return build_schema_registry([
        {
            "table": "contacts",
            "label": "Contacts",
            "aliases": ["people"],
            "fields": [
                {"field": "id", "type": "uuid"},
                {"field": "first_name", "required": True, "aliases": ["first", "given_name"]},
                {"field": "last_name", "required": True, "aliases": ["last", "surname"]},
                {"field": "email", "type": "email", "aliases": ["email_address"]},
                {"field": "phone", "type": "phone", "aliases": ["phone_number"]},
            ],
        },
        {
            "table": "donations",
            "label": "Donations",
            "aliases": ["gifts"],
            "fields": [
                {"field": "id", "type": "uuid"},
                {"field": "amount", "type": "currency", "required": True, "aliases": ["gift_amount"]},
                {"field": "donation_date", "type": "datetime", "required": True, "aliases": ["gift_date"]},
            ],
        },
    ])


@pytest.fixture
def workbook_sheets():
    """Sheets as a spreadsheet codec would return them."""
    return {
        "Donors": [
            ["Donor Email", "Amount", "Gift Date"],
            ["ann@example.org", 25.0, datetime(2024, 1, 5)],
            [None, None, None],
            ["bo@example.org", 40.5, datetime(2024, 2, 1)],
        ],
        "Empty": [],
    }


@pytest.fixture
def fake_reader(workbook_sheets):
    """In-memory WorkbookReader over workbook_sheets."""
    return FakeWorkbookReader(workbook_sheets)
