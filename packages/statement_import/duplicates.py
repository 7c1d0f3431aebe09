"""Fuzzy duplicate detection against already-persisted transactions.

A candidate is a duplicate of a stored record when all three hold:

- the calendar dates are at most :data:`DATE_TOLERANCE_DAYS` apart;
- the amounts differ by less than :data:`AMOUNT_EPSILON`;
- the lower-cased descriptions have similarity above
  :data:`SIMILARITY_THRESHOLD` (normalized Levenshtein).

The first matching record wins; there is no best-match search. The stored
snapshot is only read, so one snapshot can be shared by every row of a run
(and across threads) without locking.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date

from .models import CandidateTransaction, PersistedTransaction

DATE_TOLERANCE_DAYS = 3
AMOUNT_EPSILON = 0.01
SIMILARITY_THRESHOLD = 0.8

DUPLICATE_REASON = "Similar transaction found (date, amount, description)"


def levenshtein(a: str, b: str) -> int:
    """Edit distance with unit insert/delete/substitute costs (full DP matrix)."""

    # Full O(n*m) table, not the two-row variant; must agree with any unit-cost
    # Levenshtein (e.g. rapidfuzz.distance.Levenshtein.distance).
    rows, cols = len(a) + 1, len(b) + 1
    matrix = [[0] * cols for _ in range(rows)]
    for i in range(rows):
        matrix[i][0] = i
    for j in range(cols):
        matrix[0][j] = j

    for i in range(1, rows):
        for j in range(1, cols):
            if a[i - 1] == b[j - 1]:
                matrix[i][j] = matrix[i - 1][j - 1]
            else:
                matrix[i][j] = 1 + min(
                    matrix[i - 1][j - 1],  # substitution
                    matrix[i][j - 1],  # insertion
                    matrix[i - 1][j],  # deletion
                )
    return matrix[-1][-1]


def similarity(a: str, b: str) -> float:
    """Return ``1 - levenshtein(a, b) / max(len(a), len(b))``; two empties are 1.0."""

    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return 1.0 - levenshtein(a, b) / longest


def _local_date(value: str) -> date | None:
    # Calendar dates only; any time suffix is ignored.
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        return None


def find_duplicate(
    candidate: CandidateTransaction,
    existing: Iterable[PersistedTransaction],
) -> PersistedTransaction | None:
    """Return the first stored record matching ``candidate``, else ``None``.

    Records whose date (or the candidate's date) cannot be read as a calendar
    date never match, so unreadable data is re-imported rather than hidden.
    """

    cand_date = _local_date(candidate.date)
    if cand_date is None:
        return None
    cand_amount = abs(candidate.amount)
    cand_desc = candidate.description.lower()

    for record in existing:
        rec_date = _local_date(record.date)
        if rec_date is None:
            continue
        if abs((cand_date - rec_date).days) > DATE_TOLERANCE_DAYS:
            continue
        if abs(record.amount - cand_amount) >= AMOUNT_EPSILON:
            continue
        if similarity(cand_desc, record.description.lower()) > SIMILARITY_THRESHOLD:
            return record
    return None


def check_for_duplicates(
    candidate: CandidateTransaction,
    existing: Iterable[PersistedTransaction],
) -> bool:
    """True when ``candidate`` likely already exists in ``existing``."""

    return find_duplicate(candidate, existing) is not None


__all__ = [
    "AMOUNT_EPSILON",
    "DATE_TOLERANCE_DAYS",
    "DUPLICATE_REASON",
    "SIMILARITY_THRESHOLD",
    "check_for_duplicates",
    "find_duplicate",
    "levenshtein",
    "similarity",
]
