import logging

import pytest

import statement_import.api as api_mod
from statement_import.api import (
    import_csv_text,
    parsing_confidence,
    process_imported_transactions,
)
from statement_import.duplicates import DUPLICATE_REASON
from statement_import.export import export_canonical_csv
from statement_import.models import ColumnMapping, PersistedTransaction
from statement_import.tabular import decode_csv

BASIC_CSV = "Date,Description,Amount\n2024-01-15,Grocery Store,45.67\n2024-01-16,Gas Station,32.10"
BASIC_MAPPING = ColumnMapping(date="Date", description="Description", amount="Amount")


def test_two_row_statement_yields_two_expenses():
    out = process_imported_transactions(decode_csv(BASIC_CSV), BASIC_MAPPING, [])

    assert len(out) == 2
    assert [t.type for t in out] == ["expense", "expense"]
    assert [t.amount for t in out] == pytest.approx([45.67, 32.10])
    assert [t.date for t in out] == ["2024-01-15", "2024-01-16"]
    assert not any(t.is_duplicate for t in out)
    assert all(t.confidence == pytest.approx(1.0) for t in out)
    assert len({t.id for t in out}) == 2


def test_empty_input_is_not_an_error():
    assert decode_csv("") == []
    assert process_imported_transactions([], BASIC_MAPPING) == []
    result = import_csv_text("")
    assert result.transactions == []
    assert result.groups == []
    assert result.ungrouped == []


def test_negative_amounts_become_expenses_with_positive_magnitude():
    rows = decode_csv("Date,Description,Amount\n2024-01-15,Coffee,-4.50\n2024-01-16,Refund ACME,12.00")
    out = process_imported_transactions(rows, BASIC_MAPPING)
    assert [(t.amount, t.type) for t in out] == [(4.5, "expense"), (12.0, "income")]


def test_debit_credit_columns_set_direction_and_skip_empty_rows():
    rows = decode_csv(
        "Date,Details,Debit,Credit\n"
        "2024-01-15,Coffee Shop,4.50,\n"
        "2024-01-16,Employer Inc,,2500.00\n"
        "2024-01-17,Nothing here,0.00,0.00\n"
    )
    mapping = ColumnMapping(date="Date", description="Details", debit="Debit", credit="Credit")
    out = process_imported_transactions(rows, mapping)

    assert [(t.description, t.amount, t.type) for t in out] == [
        ("Coffee Shop", 4.5, "expense"),
        ("Employer Inc", 2500.0, "income"),
    ]


def test_rows_missing_date_description_or_amount_are_skipped():
    rows = [
        {"Date": "", "Description": "No date", "Amount": "1.00"},
        {"Date": "2024-01-15", "Description": "", "Amount": "1.00"},
        {"Date": "2024-01-15", "Description": "No amount", "Amount": ""},
        {"Date": "2024-01-15", "Description": "Kept", "Amount": "1.00"},
    ]
    out = process_imported_transactions(rows, BASIC_MAPPING)
    assert [t.description for t in out] == ["Kept"]


def test_garbage_values_are_kept_for_review():
    rows = [{"Date": "someday", "Description": "Mystery", "Amount": "n/a"}]
    (t,) = process_imported_transactions(rows, BASIC_MAPPING)
    assert t.date == ""
    assert t.amount == 0.0
    assert t.confidence == pytest.approx(0.2 + 0.4 + 0.2)


def test_explicit_type_and_category_columns_are_honored():
    rows = [{"Date": "2024-01-15", "Memo": "Transfer", "Amount": "10", "Cat": "Debt", "Kind": "Credit"}]
    mapping = ColumnMapping(
        date="Date", description="Memo", amount="Amount", category="Cat", type="Kind"
    )
    (t,) = process_imported_transactions(rows, mapping)
    assert t.type == "income"
    assert t.category == "Debt"


def test_duplicates_are_flagged_against_existing_snapshot():
    existing = [
        PersistedTransaction(
            id="old-1", amount=45.67, description="Grocery Store", date="2024-01-14"
        )
    ]
    out = process_imported_transactions(decode_csv(BASIC_CSV), BASIC_MAPPING, existing)
    assert [t.is_duplicate for t in out] == [True, False]
    assert out[0].duplicate_reason == DUPLICATE_REASON
    assert out[1].duplicate_reason is None


def test_rows_are_not_checked_against_each_other():
    csv_text = "Date,Description,Amount\n2024-01-15,Coffee,3.50\n2024-01-15,Coffee,3.50"
    out = process_imported_transactions(decode_csv(csv_text), BASIC_MAPPING)
    assert [t.is_duplicate for t in out] == [False, False]


def test_unexpected_row_failure_is_logged_and_skipped(monkeypatch, caplog):
    real_parse_date = api_mod.parse_date

    def _flaky(raw):
        if raw == "boom":
            raise RuntimeError("parser exploded")
        return real_parse_date(raw)

    monkeypatch.setattr(api_mod, "parse_date", _flaky)
    rows = [
        {"Date": "boom", "Description": "Bad", "Amount": "1"},
        {"Date": "2024-01-15", "Description": "Good", "Amount": "1"},
    ]
    with caplog.at_level(logging.WARNING, logger="statement_import"):
        out = process_imported_transactions(rows, BASIC_MAPPING)

    assert [t.description for t in out] == ["Good"]
    assert any("could not be parsed" in r.getMessage() for r in caplog.records)


@pytest.mark.parametrize(
    "date_str, description, amount_str, expected",
    [
        ("2024-01-15", "Grocery Store", "45.67", 1.0),
        ("Jan 15", "Grocery Store", "45.67", 0.8),
        ("2024-01-15", "Tea", "45.67", 0.9),
        ("2024-01-15", "Tea", "45.67abc", 0.7),
        ("Jan 15", "abc", "x", 0.3),
        ("", "", "", 0.0),
    ],
)
def test_parsing_confidence(date_str, description, amount_str, expected):
    assert parsing_confidence(date_str, description, amount_str) == pytest.approx(expected)


def test_import_csv_text_groups_similar_rows():
    csv_text = (
        "Date,Description,Amount\n"
        "2024-01-15,Starbucks #123,4.50\n"
        "2024-01-16,Gas Station,32.10\n"
        "2024-01-17,Starbucks #456,5.25\n"
    )
    result = import_csv_text(csv_text)

    assert result.delimiter == ","
    assert result.mapping.amount == "Amount"
    assert [g.description for g in result.groups] == ["starbucks"]
    assert [t.description for t in result.ungrouped] == ["Gas Station"]
    assert result.duplicates == []


def test_canonical_export_round_trips():
    records = [
        PersistedTransaction(
            id="1",
            amount=45.67,
            description="Grocery Store, Main St",
            category="Groceries",
            type="expense",
            date="2024-01-15",
            created_at="2024-01-15T10:00:00.000Z",
        ),
        PersistedTransaction(
            id="2",
            amount=2500,
            description="ACME Corp",
            category="Salary",
            type="income",
            date="2024-01-31",
            created_at="2024-02-01T08:30:00.000Z",
        ),
    ]
    result = import_csv_text(export_canonical_csv(records))

    assert result.mapping.is_canonical
    got = [(t.date, t.description, t.amount, t.type, t.category, t.created_at) for t in result.transactions]
    assert got == [
        ("2024-01-15", "Grocery Store, Main St", 45.67, "expense", "Groceries", "2024-01-15T10:00:00.000Z"),
        ("2024-01-31", "ACME Corp", 2500.0, "income", "Salary", "2024-02-01T08:30:00.000Z"),
    ]
