# ruff: noqa: I001
"""Persistence integration for statement_import.

The pipeline itself never touches storage. This module is the storage
collaborator: it reads the snapshot of existing transactions that duplicate
detection runs against, and writes accepted candidates. It relies on the ORM
models in ``ledger_db.models.ledger`` and a session provided by
``ledger_db.client``; callers own commit/rollback.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledger_db.models.ledger import LedgerTransaction
from .logging_setup import get_logger
from .models import CandidateTransaction, PersistedTransaction
from .review import finalize

logger = get_logger(__name__)


def _to_decimal_2(amount: float) -> Decimal:
    return Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def _row_to_record(row: LedgerTransaction) -> PersistedTransaction:
    return PersistedTransaction(
        id=row.id,
        amount=float(row.amount),
        description=row.description,
        category=row.category,
        type=row.type,
        date=row.date,
        created_at=row.created_at,
    )


def iter_persisted(session: Session) -> Iterator[PersistedTransaction]:
    """Yield stored transactions ordered by date, then creation time."""

    stmt = select(LedgerTransaction).order_by(LedgerTransaction.date, LedgerTransaction.created_at)
    for row in session.execute(stmt).scalars():
        yield _row_to_record(row)


def load_existing_transactions(session: Session) -> list[PersistedTransaction]:
    """Read-only snapshot used for duplicate detection; take it once per run."""

    records = list(iter_persisted(session))
    logger.debug("loaded %d existing transaction(s)", len(records))
    return records


def persist_transaction(session: Session, record: PersistedTransaction) -> None:
    session.add(
        LedgerTransaction(
            id=record.id,
            amount=_to_decimal_2(record.amount),
            description=record.description,
            category=record.category,
            type=record.type,
            date=record.date,
            created_at=record.created_at,
        )
    )


def persist_accepted(session: Session, candidates: Iterable[CandidateTransaction]) -> int:
    """Finalize and store ``candidates``; return the number written.

    Flushes but does not commit.
    """

    records = finalize(candidates)
    for record in records:
        persist_transaction(session, record)
    session.flush()
    logger.info("persisted %d transaction(s)", len(records))
    return len(records)


__all__ = [
    "iter_persisted",
    "load_existing_transactions",
    "persist_accepted",
    "persist_transaction",
]
