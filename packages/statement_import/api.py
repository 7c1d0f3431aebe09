"""Public pipeline operations.

``process_imported_transactions`` turns decoded rows plus a column mapping
into :class:`~statement_import.models.CandidateTransaction` objects, scoring
each and flagging likely re-imports against a caller-supplied snapshot of
stored records. ``import_csv_text`` runs the whole chain (decode, infer,
process, group) for callers that do not need to stop between steps.

Nothing here performs I/O. The snapshot of existing records is taken once by
the caller and passed in, so every row of a run sees the same view.
"""

from __future__ import annotations

import re
from collections.abc import Sequence

from .duplicates import DUPLICATE_REASON, check_for_duplicates
from .grouping import group_transactions_by_description, ungrouped_transactions
from .logging_setup import get_logger
from .models import (
    CandidateTransaction,
    ColumnMapping,
    ImportResult,
    PersistedTransaction,
    RawRow,
)
from .normalizers import determine_transaction_type, parse_amount, parse_date
from .schema import AMOUNT_PATTERNS, DATE_PATTERNS, infer_column_mapping, matches_any
from .tabular import decode_csv_with_delimiter

logger = get_logger(__name__)

# Confidence weights: strict shape match / merely present.
_DATE_STRICT, _DATE_PRESENT = 0.4, 0.2
_AMOUNT_STRICT, _AMOUNT_NUMERIC = 0.4, 0.2
_DESC_LONG, _DESC_PRESENT = 0.2, 0.1
_DESC_LONG_MIN = 6

_NUMERIC_PREFIX_RE = re.compile(r"^\s*[+-]?(?:\d+\.?\d*|\.\d+)")


class _SkipRow(Exception):
    """Internal signal: the row carries no usable data and is left out."""


def _is_blank_or_zero(value: str) -> bool:
    if not value:
        return True
    digits = re.sub(r"\D", "", value)
    return bool(digits) and set(digits) == {"0"}


def _amount_text(amount: float) -> str:
    # Integral values render without a fraction, e.g. "45" rather than "45.0".
    if amount.is_integer() and abs(amount) < 1e16:
        return str(int(amount))
    return repr(amount)


def parsing_confidence(date_str: str, description: str, amount_str: str) -> float:
    """Heuristic ``[0, 1]`` score of how well a row's raw fields look the part."""

    score = 0.0

    if matches_any(date_str, DATE_PATTERNS):
        score += _DATE_STRICT
    elif date_str:
        score += _DATE_PRESENT

    if matches_any(amount_str, AMOUNT_PATTERNS):
        score += _AMOUNT_STRICT
    elif _NUMERIC_PREFIX_RE.match(amount_str):
        score += _AMOUNT_NUMERIC

    if len(description) >= _DESC_LONG_MIN:
        score += _DESC_LONG
    elif description:
        score += _DESC_PRESENT

    return min(round(score, 10), 1.0)


def _cell(row: RawRow, column: str) -> str:
    if not column:
        return ""
    value = row.get(column)
    return "" if value is None else str(value)


def _resolve_amount(row: RawRow, mapping: ColumnMapping) -> tuple[float, bool | None]:
    """Return ``(signed_amount, is_debit)`` for the mapping's amount strategy.

    ``is_debit`` is only known under a debit/credit mapping; a single signed
    column leaves it ``None`` so direction falls back to keywords and the
    expense default.
    """

    if mapping.uses_debit_credit:
        debit = _cell(row, mapping.debit).strip()
        credit = _cell(row, mapping.credit).strip()
        if not _is_blank_or_zero(debit):
            return parse_amount(debit), True
        if not _is_blank_or_zero(credit):
            return parse_amount(credit), False
        raise _SkipRow("no amount in either debit or credit column")

    if mapping.amount:
        raw = _cell(row, mapping.amount)
        if not raw:
            raise _SkipRow("amount cell is empty")
        return parse_amount(raw), None

    raise _SkipRow("mapping has no amount column")


def _process_row(
    row: RawRow,
    mapping: ColumnMapping,
    existing: Sequence[PersistedTransaction],
) -> CandidateTransaction:
    amount, is_debit = _resolve_amount(row, mapping)

    date_str = _cell(row, mapping.date)
    description = _cell(row, mapping.description)
    if not date_str or not description:
        raise _SkipRow("date or description is empty")

    type_hint = _cell(row, mapping.type) or None
    candidate = CandidateTransaction(
        date=parse_date(date_str),
        description=description,
        amount=abs(amount),
        category=_cell(row, mapping.category),
        type=determine_transaction_type(description, type_hint, is_debit),
        created_at=_cell(row, mapping.created_at) or None,
        confidence=parsing_confidence(date_str, description, _amount_text(amount)),
        original_row=row,
    )

    if check_for_duplicates(candidate, existing):
        candidate.is_duplicate = True
        candidate.duplicate_reason = DUPLICATE_REASON
    return candidate


def process_imported_transactions(
    rows: Sequence[RawRow],
    mapping: ColumnMapping,
    existing: Sequence[PersistedTransaction] = (),
) -> list[CandidateTransaction]:
    """Convert ``rows`` to candidates, in input order.

    Rows are left out when their date or description cell is empty or their
    amount source is empty (both debit and credit blank/zero, or a blank
    amount cell). A row that fails unexpectedly is logged and skipped; it
    never aborts the batch. Unparseable dates become ``""`` and garbage
    amounts become ``0`` and are kept for review.
    """

    snapshot = list(existing)
    out: list[CandidateTransaction] = []
    skipped = 0
    for idx, row in enumerate(rows):
        try:
            out.append(_process_row(row, mapping, snapshot))
        except _SkipRow as why:
            skipped += 1
            logger.debug("row %d skipped: %s", idx, why)
        except Exception:  # noqa: BLE001 - one bad row must not abort the batch
            skipped += 1
            logger.warning("row %d could not be parsed: %r", idx, row, exc_info=True)

    logger.info(
        "processed %d row(s): %d candidate(s), %d duplicate(s), %d skipped",
        len(rows),
        len(out),
        sum(1 for t in out if t.is_duplicate),
        skipped,
    )
    return out


def import_csv_text(
    text: str,
    existing: Sequence[PersistedTransaction] = (),
    *,
    mapping: ColumnMapping | None = None,
) -> ImportResult:
    """Run decode, mapping inference (unless ``mapping`` is given), processing and grouping."""

    rows, delimiter = decode_csv_with_delimiter(text)
    resolved = mapping if mapping is not None else infer_column_mapping(rows)
    transactions = process_imported_transactions(rows, resolved, existing)
    groups = group_transactions_by_description(transactions)
    return ImportResult(
        delimiter=delimiter,
        mapping=resolved,
        rows=rows,
        transactions=transactions,
        groups=groups,
        ungrouped=ungrouped_transactions(transactions, groups),
    )


__all__ = [
    "import_csv_text",
    "parsing_confidence",
    "process_imported_transactions",
]
