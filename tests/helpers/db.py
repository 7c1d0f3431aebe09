"""DB helpers for tests: bootstrap a temporary SQLite ledger and seed it."""

from __future__ import annotations

import os
from collections.abc import Iterable
from pathlib import Path

from ledger_db.client import get_engine, init_schema, session_scope
from ledger_db.models.ledger import LedgerTransaction
from sqlalchemy import event, select


def bootstrap_sqlite_db(db_file: Path, *, set_default_env: bool = False) -> str:
    """Create a SQLite database file, initialize schema, and return the URL.

    Using a file-backed SQLite DB ensures multiple SQLAlchemy connections share
    the same state (in-memory DBs are per-connection by default).
    """

    url = f"sqlite+pysqlite:///{db_file}"
    db_file.parent.mkdir(parents=True, exist_ok=True)
    engine = get_engine(database_url=url)

    # SQLite only honors CHECK constraints; keep FK enforcement on as well
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_conn, _):  # pragma: no cover - tiny bridge
        dbapi_conn.execute("PRAGMA foreign_keys = ON")

    init_schema(database_url=url)

    if set_default_env:
        os.environ.setdefault("DATABASE_URL", url)
    return url


def seed_transactions(*, database_url: str, rows: Iterable[dict]) -> None:
    """Insert raw ledger rows (``id``, ``amount``, ``description``, ... keys)."""

    with session_scope(database_url=database_url) as session:
        for row in rows:
            session.add(
                LedgerTransaction(
                    category=row.get("category", "Uncategorized"),
                    type=row.get("type", "expense"),
                    created_at=row.get("created_at", "2024-01-01T00:00:00.000Z"),
                    **{k: row[k] for k in ("id", "amount", "description", "date")},
                )
            )


def stored_descriptions(*, database_url: str) -> list[str]:
    with session_scope(database_url=database_url) as session:
        stmt = select(LedgerTransaction.description).order_by(
            LedgerTransaction.date, LedgerTransaction.description
        )
        return list(session.execute(stmt).scalars())
