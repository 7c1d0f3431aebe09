"""Column-role inference over decoded rows.

Given rows from :mod:`statement_import.tabular`, guess which header holds the
date, description and amount (or debit/credit pair) plus the optional
category and type columns. Matching is by header name first (case-insensitive
substring against a small vocabulary; the first header in column order wins),
then by sampling cell contents. The application's own export is recognized
up front and wired directly.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence

from .logging_setup import get_logger
from .models import CANONICAL_HEADERS, ColumnMapping, RawRow

logger = get_logger(__name__)

# ---------------------------------------------------------------------------
# Vocabularies and content patterns
# ---------------------------------------------------------------------------

DATE_NAMES: tuple[str, ...] = (
    "date",
    "transaction date",
    "trans date",
    "posted date",
    "effective date",
    "value date",
)
DESCRIPTION_NAMES: tuple[str, ...] = (
    "description",
    "memo",
    "reference",
    "details",
    "transaction details",
    "payee",
    "merchant",
)
AMOUNT_NAMES: tuple[str, ...] = ("amount", "transaction amount", "value", "sum", "total")
DEBIT_NAMES: tuple[str, ...] = ("debit", "debit amount", "withdrawal", "outgoing")
CREDIT_NAMES: tuple[str, ...] = ("credit", "credit amount", "deposit", "incoming")
CATEGORY_NAMES: tuple[str, ...] = ("category", "merchant category", "category code")
TYPE_NAMES: tuple[str, ...] = ("type", "transaction type", "dr/cr", "debit/credit")

DATE_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"^\d{4}-\d{2}-\d{2}$"),  # 2023-12-31
    re.compile(r"^\d{2}/\d{2}/\d{4}$"),  # 12/31/2023
    re.compile(r"^\d{2}/\d{2}/\d{2}$"),  # 12/31/23
    re.compile(r"^\d{2}-\d{2}-\d{4}$"),  # 12-31-2023
    re.compile(r"^\d{1,2}/\d{1,2}/\d{4}$"),  # 1/1/2023
    re.compile(r"^\d{1,2}-\d{1,2}-\d{4}$"),  # 1-1-2023
)
AMOUNT_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"^-?\$?\d+\.?\d*$"),  # $123.45 or -123.45
    re.compile(r"^-?\d{1,3}(,\d{3})*\.?\d*$"),  # 1,234.56
    re.compile(r"^\(\d+\.?\d*\)$"),  # (123.45)
)

_PATTERN_SAMPLE = 5
_LENGTH_SAMPLE = 10


def matches_any(value: str, patterns: Iterable[re.Pattern[str]]) -> bool:
    return any(p.search(value) for p in patterns)


def is_canonical_header(headers: Iterable[str]) -> bool:
    """True when every canonical export header is present (order and extras ignored)."""

    present = set(headers)
    return all(h in present for h in CANONICAL_HEADERS)


def _match_by_name(headers: Sequence[str], vocabulary: Sequence[str]) -> str:
    for header in headers:
        lower = header.lower()
        if any(term in lower for term in vocabulary):
            return header
    return ""


def _match_by_content(
    headers: Sequence[str], rows: Sequence[RawRow], patterns: Sequence[re.Pattern[str]]
) -> str:
    sample = rows[:_PATTERN_SAMPLE]
    needed = min(3, len(sample))
    for header in headers:
        hits = sum(1 for row in sample if matches_any(str(row.get(header, "")), patterns))
        if hits >= needed:
            return header
    return ""


def _longest_text_column(headers: Sequence[str], rows: Sequence[RawRow], exclude: set[str]) -> str:
    sample = rows[:_LENGTH_SAMPLE]
    best = ""
    best_avg = 0.0
    for header in headers:
        if header in exclude:
            continue
        avg = sum(len(str(row.get(header, ""))) for row in sample) / len(sample)
        if avg > best_avg:
            best, best_avg = header, avg
    return best


def infer_column_mapping(rows: Sequence[RawRow]) -> ColumnMapping:
    """Guess the role of each column in ``rows``.

    Unresolved roles are left as ``""``. Never raises for any row content.
    """

    if not rows:
        return ColumnMapping()

    headers = list(rows[0].keys())

    if is_canonical_header(headers):
        logger.debug("canonical export header detected")
        return ColumnMapping(
            date="Date",
            description="Description",
            amount="Amount",
            category="Category",
            type="Type",
            created_at="Created At",
            is_canonical=True,
        )

    date_col = _match_by_name(headers, DATE_NAMES) or _match_by_content(
        headers, rows, DATE_PATTERNS
    )

    amount_col = _match_by_name(headers, AMOUNT_NAMES)
    debit_col = _match_by_name(headers, DEBIT_NAMES)
    credit_col = _match_by_name(headers, CREDIT_NAMES)
    # A complete debit/credit pair rules out guessing an amount column from
    # content; a lone debit or credit column does not.
    if not amount_col and not (debit_col and credit_col):
        amount_col = _match_by_content(headers, rows, AMOUNT_PATTERNS)

    description_col = _match_by_name(headers, DESCRIPTION_NAMES)
    if not description_col:
        description_col = _longest_text_column(headers, rows, exclude={date_col, amount_col})

    # Exactly one amount strategy: a complete pair displaces a named amount column.
    if debit_col and credit_col:
        amount_col = ""

    mapping = ColumnMapping(
        date=date_col,
        description=description_col,
        amount=amount_col,
        debit=debit_col,
        credit=credit_col,
        category=_match_by_name(headers, CATEGORY_NAMES),
        type=_match_by_name(headers, TYPE_NAMES),
    )
    logger.debug("inferred column mapping: %s", mapping)
    return mapping


__all__ = [
    "AMOUNT_PATTERNS",
    "DATE_PATTERNS",
    "infer_column_mapping",
    "is_canonical_header",
    "matches_any",
]
