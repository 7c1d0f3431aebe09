# ruff: noqa: I001
from __future__ import annotations

import pytest

from ledger_db.client import session_scope
from statement_import.api import process_imported_transactions
from statement_import.categories import (
    DEFAULT_CATEGORIES,
    create_category,
    ensure_default_categories,
    load_category_names,
    validate_name,
)
from statement_import.models import ColumnMapping
from statement_import.persistence import (
    iter_persisted,
    load_existing_transactions,
    persist_accepted,
)
from statement_import.tabular import decode_csv

from tests.helpers.db import bootstrap_sqlite_db, seed_transactions


@pytest.fixture
def db_url(tmp_path):
    return bootstrap_sqlite_db(tmp_path / "ledger.sqlite3")


MAPPING = ColumnMapping(date="Date", description="Description", amount="Amount")


def test_default_categories_are_seeded_once(db_url):
    with session_scope(database_url=db_url) as session:
        assert ensure_default_categories(session) == len(DEFAULT_CATEGORIES)
        assert ensure_default_categories(session) == 0
        names = load_category_names(session)
        income = load_category_names(session, type="income")

    assert "Groceries" in names
    assert names == sorted(names)
    assert income == ["Freelance", "Investments", "Salary"]


def test_create_category_is_case_insensitive(db_url):
    with session_scope(database_url=db_url) as session:
        ensure_default_categories(session)
        assert create_category(session, "  pet   supplies ", type="expense") == ("pet supplies", True)
        assert create_category(session, "GROCERIES", type="expense") == ("Groceries", False)
        assert create_category(session, "Pet Supplies", type="expense") == ("pet supplies", False)
        assert "pet supplies" in load_category_names(session, type="expense")


def test_create_category_rejects_invalid_names(db_url):
    assert not validate_name("").ok
    assert not validate_name("x" * 65).ok
    assert not validate_name("Food; DROP").ok
    assert validate_name("Bills & Utilities").ok
    with session_scope(database_url=db_url) as session, pytest.raises(ValueError):
        create_category(session, "Bad<name>", type="expense")


def test_accepted_candidates_are_stored_and_read_back(db_url):
    rows = decode_csv("Date,Description,Amount\n2024-01-16,Gas Station,32.10\n2024-01-15,Grocery Store,-45.675")
    candidates = process_imported_transactions(rows, MAPPING)

    with session_scope(database_url=db_url) as session:
        assert persist_accepted(session, candidates) == 2

    with session_scope(database_url=db_url) as session:
        stored = list(iter_persisted(session))

    assert [(r.date, r.description, r.type) for r in stored] == [
        ("2024-01-15", "Grocery Store", "expense"),
        ("2024-01-16", "Gas Station", "expense"),
    ]
    assert stored[0].amount == pytest.approx(45.68)
    assert stored[1].amount == pytest.approx(32.10)
    assert all(r.category == "Uncategorized" for r in stored)
    assert all(r.created_at for r in stored)


def test_stored_records_flag_reimports_as_duplicates(db_url):
    seed_transactions(
        database_url=db_url,
        rows=[{"id": "seed-1", "amount": 45.67, "description": "Grocery Store", "date": "2024-01-15"}],
    )
    rows = decode_csv("Date,Description,Amount\n2024-01-15,GROCERY STORE,45.67\n2024-01-16,Gas Station,32.10")

    with session_scope(database_url=db_url) as session:
        existing = load_existing_transactions(session)
        out = process_imported_transactions(rows, MAPPING, existing)

    assert [e.id for e in existing] == ["seed-1"]
    assert [t.is_duplicate for t in out] == [True, False]
