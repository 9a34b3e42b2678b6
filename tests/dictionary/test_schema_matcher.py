# Tests for the schema matcher
# ============================

import pytest

from nonprofit_ingest.data.csv_parser import parse_csv_to_dataset
from nonprofit_ingest.data.models import ColumnProfile
from nonprofit_ingest.dictionary.schema_matcher import (
    ColumnSuggestion,
    MatchCandidate,
    column_strength,
    greedy_assign,
    is_id_field,
    suggest_column_candidates,
    suggest_schema_matches,
    value_hint_score,
)
from nonprofit_ingest.settings import MatchOptions


def _table(suggestion, name):
    return next(t for t in suggestion.tables if t.table == name)


def _profile(name, non_empty_ratio, confidence=1.0, **kwargs):
    return ColumnProfile(
        name=name,
        normalized_name=name,
        inferred_type="email",
        inferred_type_confidence=confidence,
        non_empty_ratio=non_empty_ratio,
        **kwargs,
    )


def _suggestion(column, field, score):
    return ColumnSuggestion(
        source_column=column,
        candidates=[MatchCandidate(table="contacts", field=field, score=score)],
    )


class TestValueHints:
    """value_hint_score tests."""

    def test_email(self):
        """Test the email pattern bonus."""
        score, reasons = value_hint_score("email", "mail", "email", 1.0, 1.0)
        assert score == pytest.approx(0.28)
        assert reasons == ["Value pattern looks like email."]

    def test_phone(self):
        """Test the phone keyword bonus."""
        score, reasons = value_hint_score("phone", "cell", "mobile_phone", 1.0, 1.0)
        assert score == pytest.approx(0.28)
        assert reasons == ["Value pattern looks like phone."]

    def test_numeric(self):
        """Test numeric values into an amount field."""
        score, reasons = value_hint_score("number", "amt", "amount", 1.0, 1.0)
        assert score == pytest.approx(0.2)
        assert reasons == ["Numeric values fit numeric target field."]

    def test_date(self):
        """Test date values into a *_at field."""
        score, _ = value_hint_score("date", "created", "created_at", 1.0, 1.0)
        assert score == pytest.approx(0.2)

    def test_uuid_identifier(self):
        """Test unique UUIDs into an identifier field."""
        score, reasons = value_hint_score("uuid", "contact_id", "contact_id", 1.0, 0.95)
        assert score == pytest.approx(0.25)
        assert reasons == ["High uniqueness + UUID-like values suggest an identifier field."]

    def test_low_uniqueness_identifier(self):
        """Test the penalty for repetitive values into an identifier field."""
        score, reasons = value_hint_score("string", "type", "id", 0.9, 0.1)
        assert score == pytest.approx(-0.15)
        assert reasons == ["Low uniqueness makes this less likely to be an identifier field."]

    def test_sparse_identifier_not_penalized(self):
        """Test that a mostly empty column is not penalized."""
        score, reasons = value_hint_score("string", "x", "id", 0.2, 0.1)
        assert score == 0
        assert reasons == []

    def test_clamped(self):
        """Test that stacked bonuses are capped at 0.5."""
        score, reasons = value_hint_score("email", "first_last", "first_last_email", 1.0, 1.0)
        assert score == pytest.approx(0.5)
        assert len(reasons) == 3

    @pytest.mark.parametrize("name,expected", [
        ("id", True),
        ("contact_id", True),
        ("Donor ID", True),
        ("identity", False),
        ("", False),
    ])
    def test_is_id_field(self, name, expected):
        """Test identifier field detection."""
        assert is_id_field(name) is expected


class TestCandidates:
    """Per-column candidate scoring."""

    def test_sorted_and_truncated(self, sample_csv_text, registry):
        """Test candidate ordering and the per-column limit."""
        dataset = parse_csv_to_dataset(sample_csv_text)
        options = MatchOptions(per_column_candidates=2, min_candidate_score=0.0)
        suggestion = suggest_schema_matches(dataset, registry, options)
        for table in suggestion.tables:
            for column in table.column_suggestions:
                scores = [c.score for c in column.candidates]
                assert scores == sorted(scores, reverse=True)
                assert len(scores) <= 2
                assert all(0.0 <= s <= 1.0 for s in scores)

    def test_min_candidate_score(self, sample_csv_text, small_registry):
        """Test that weak candidates are dropped."""
        dataset = parse_csv_to_dataset(sample_csv_text)
        options = MatchOptions(min_candidate_score=0.99)
        column = suggest_column_candidates(dataset.columns[0], small_registry[0], options)
        assert column.candidates == []
        assert column.best is None

    def test_identifier_penalty(self, small_registry):
        """Test the scoring of a repetitive numeric id column."""
        dataset = parse_csv_to_dataset("id\n1\n1\n1\n1\n2")
        column = suggest_column_candidates(dataset.columns[0], small_registry[0])
        best = column.best
        assert best.field == "id"
        # 0.62 * name + 0.28 * type(number->uuid) + 0.08 * hint
        assert best.score == pytest.approx(0.62 + 0.28 * 0.5 - 0.08 * 0.15)
        assert "Low uniqueness makes this less likely to be an identifier field." in best.reasons
        assert "Column name closely matches target field." in best.reasons

    def test_strength(self, sample_csv_text):
        """Test column strength for a full, confident column."""
        dataset = parse_csv_to_dataset(sample_csv_text)
        assert column_strength(dataset.get_column("Email")) == pytest.approx(1.0)

    def test_strength_zero_fill_rate(self):
        """Test that a stored fill rate of zero is used as is."""
        column = _profile("email", 0.0, non_empty_count=4, nullish_count=0)
        assert column_strength(column) == 0.0

    def test_strength_missing_fill_rate(self):
        """Test that a missing fill rate is derived from the counts."""
        column = _profile("email", None, confidence=None, non_empty_count=1, nullish_count=3)
        assert column_strength(column) == pytest.approx(0.25 * (0.6 + 0.4 * 0.5))


class TestGreedyAssign:
    """greedy_assign tests."""

    def test_strongest_column_claims_first(self):
        """Test that a later, fuller column beats an earlier, sparser one to a shared target."""
        columns = [_profile("work_email", 0.3), _profile("email", 1.0)]
        suggestions = [
            _suggestion("work_email", "email", 0.9),
            _suggestion("email", "email", 0.8),
        ]
        mapping, accepted = greedy_assign(columns, suggestions, 0.55)
        assert mapping == {"email": "contacts.email"}
        assert accepted == [pytest.approx(0.8)]

    def test_loser_does_not_fall_back(self):
        """Test that a column whose top target is taken stays unmapped."""
        columns = [_profile("a", 1.0), _profile("b", 0.5)]
        suggestions = [
            _suggestion("a", "email", 0.9),
            ColumnSuggestion(source_column="b", candidates=[
                MatchCandidate(table="contacts", field="email", score=0.9),
                MatchCandidate(table="contacts", field="phone", score=0.8),
            ]),
        ]
        mapping, _ = greedy_assign(columns, suggestions, 0.55)
        assert mapping == {"a": "contacts.email"}

    def test_min_accepted_score(self):
        """Test the acceptance cutoff; a score equal to it is accepted."""
        columns = [_profile("a", 1.0), _profile("b", 0.9), _profile("c", 0.8)]
        suggestions = [
            _suggestion("a", "email", 0.54),
            _suggestion("b", "phone", 0.55),
            _suggestion("c", "first_name", 0.7),
        ]
        mapping, accepted = greedy_assign(columns, suggestions, 0.55)
        assert mapping == {"b": "contacts.phone", "c": "contacts.first_name"}
        assert accepted == [pytest.approx(0.55), pytest.approx(0.7)]

    def test_column_without_candidates(self):
        """Test columns with no suggestion or no candidates."""
        columns = [_profile("a", 1.0), _profile("b", 1.0)]
        mapping, accepted = greedy_assign(columns, [ColumnSuggestion(source_column="a")], 0.0)
        assert mapping == {}
        assert accepted == []


class TestSuggestSchemaMatches:
    """Table-level matching tests."""

    def test_contacts_export(self, sample_csv_text, small_registry):
        """Test that a contact export maps onto contacts."""
        dataset = parse_csv_to_dataset(sample_csv_text, name="donors")
        suggestion = suggest_schema_matches(dataset, small_registry)

        assert suggestion.dataset_name == "donors"
        best = suggestion.best_table
        assert best.table == "contacts"
        assert best.suggested_mapping == {
            "First Name": "contacts.first_name",
            "Last Name": "contacts.last_name",
            "Email": "contacts.email",
            "Phone": "contacts.phone",
        }
        assert best.coverage == 1.0
        assert best.reasons == [
            "All required fields can be mapped at high confidence.",
            "Mapped 4 of 4 columns.",
        ]
        assert [t.table for t in suggestion.tables] == ["contacts", "donations"]

    def test_tables_sorted(self, sample_csv_text, registry):
        """Test that tables come back best first."""
        dataset = parse_csv_to_dataset(sample_csv_text)
        suggestion = suggest_schema_matches(dataset, registry)
        scores = [t.score for t in suggestion.tables]
        assert scores == sorted(scores, reverse=True)
        assert suggestion.best_table is suggestion.tables[0]

    def test_mapping_is_one_to_one(self, small_registry):
        """Test that two columns never claim the same field."""
        dataset = parse_csv_to_dataset(
            "email,email_address\n"
            "a@example.org,a@example.org\n"
            "b@example.org,b@example.org\n"
        )
        suggestion = suggest_schema_matches(dataset, small_registry)
        for table in suggestion.tables:
            targets = list(table.suggested_mapping.values())
            assert len(targets) == len(set(targets))
        assert _table(suggestion, "contacts").suggested_mapping == {"email": "contacts.email"}

    def test_mapping_is_one_to_one_default_registry(self, sample_csv_text, registry):
        """Test one-to-one mapping across every built-in table."""
        dataset = parse_csv_to_dataset(sample_csv_text)
        for table in suggest_schema_matches(dataset, registry).tables:
            targets = list(table.suggested_mapping.values())
            assert len(targets) == len(set(targets))

    def test_missing_required(self, small_registry):
        """Test the reason when required fields are not mapped."""
        dataset = parse_csv_to_dataset("Email\na@example.org\nb@example.org")
        contacts = _table(suggest_schema_matches(dataset, small_registry), "contacts")
        assert contacts.reasons[0] == "Missing 2 required field(s) for contacts."
        assert contacts.suggested_mapping == {"Email": "contacts.email"}

    def test_dataset_name_bonus(self, small_registry):
        """Test that a dataset named after a table alias earns the name reason."""
        dataset = parse_csv_to_dataset(
            "amount,gift_date\n25.00,2024-01-05\n40.00,2024-02-01\n", name="gifts"
        )
        suggestion = suggest_schema_matches(dataset, small_registry)
        best = suggestion.best_table
        assert best.table == "donations"
        assert best.suggested_mapping == {
            "amount": "donations.amount",
            "gift_date": "donations.donation_date",
        }
        assert best.reasons == [
            "All required fields can be mapped at high confidence.",
            "Dataset name suggests this table.",
            "Mapped 2 of 2 columns.",
        ]

    def test_empty_dataset(self, small_registry):
        """Test a dataset with no columns."""
        dataset = parse_csv_to_dataset("")
        suggestion = suggest_schema_matches(dataset, small_registry)
        assert suggestion.best_table is None
        for table in suggestion.tables:
            assert table.coverage == 0
            assert table.score == 0
            assert table.suggested_mapping == {}

    def test_no_tables(self, sample_csv_text):
        """Test matching against an empty registry."""
        suggestion = suggest_schema_matches(parse_csv_to_dataset(sample_csv_text), [])
        assert suggestion.best_table is None
        assert suggestion.tables == []

    def test_deterministic(self, sample_csv_text, registry):
        """Test that the same input gives the same output."""
        dataset = parse_csv_to_dataset(sample_csv_text)
        first = suggest_schema_matches(dataset, registry).to_dict()
        second = suggest_schema_matches(dataset, registry).to_dict()
        assert first == second

    def test_to_dict(self, sample_csv_text, small_registry):
        """Test camelCase serialization."""
        data = suggest_schema_matches(parse_csv_to_dataset(sample_csv_text), small_registry).to_dict()
        assert set(data) == {"datasetName", "bestTable", "tables"}
        table = data["tables"][0]
        assert set(table) == {"table", "score", "coverage", "suggestedMapping", "columnSuggestions", "reasons"}
        column = table["columnSuggestions"][0]
        assert set(column) == {"sourceColumn", "candidates"}
        assert set(column["candidates"][0]) == {"table", "field", "score", "reasons"}
