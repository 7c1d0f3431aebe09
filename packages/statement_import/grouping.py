"""Grouping of candidates for bulk review.

Candidates are bucketed by a normalized description (lower-cased, digits and
punctuation removed, whitespace collapsed) so that ``"Starbucks #123"`` and
``"Starbucks #456"`` are reviewed together. The bucket key also carries the
duplicate flag: likely re-imports are never mixed with fresh rows.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from typing import NamedTuple

from .models import UNCATEGORIZED, CandidateTransaction, TransactionGroup, TransactionType

_DIGITS_RE = re.compile(r"\d+")
_PUNCT_RE = re.compile(r"[^\w\s]")
_SPACE_RE = re.compile(r"\s+")

DUPLICATE_GROUP_SUFFIX = " (Duplicates)"


class GroupKey(NamedTuple):
    normalized: str
    is_duplicate: bool


def normalize_description(description: str) -> str:
    s = description.lower()
    s = _DIGITS_RE.sub("", s)
    s = _PUNCT_RE.sub("", s)
    s = _SPACE_RE.sub(" ", s)
    return s.strip()


def majority_type(transactions: Iterable[CandidateTransaction]) -> TransactionType:
    """Most common type among ``transactions``; ties (and untyped rows) count as expense."""

    tally: dict[TransactionType, int] = {"income": 0, "expense": 0}
    for t in transactions:
        tally[t.type or "expense"] += 1
    return "income" if tally["income"] > tally["expense"] else "expense"


def most_common_category(transactions: Iterable[CandidateTransaction]) -> str:
    """Most frequent real category among members; ``""`` when none carry one.

    Blank and ``Uncategorized`` values are ignored; the first category seen
    wins ties.
    """

    tally: dict[str, int] = {}
    for t in transactions:
        cat = (t.category or "").strip()
        if cat and cat != UNCATEGORIZED:
            tally[cat] = tally.get(cat, 0) + 1

    best, best_count = "", 0
    for cat, count in tally.items():
        if count > best_count:
            best, best_count = cat, count
    return best


def group_transactions_by_description(
    transactions: Sequence[CandidateTransaction],
) -> list[TransactionGroup]:
    """Return groups with at least two members, largest first.

    Singletons are omitted; see :func:`ungrouped_transactions`. Groups made of
    duplicate-flagged candidates get :data:`DUPLICATE_GROUP_SUFFIX` on their
    display description and start excluded from the import.
    """

    buckets: dict[GroupKey, list[CandidateTransaction]] = {}
    for t in transactions:
        key = GroupKey(normalize_description(t.description), t.is_duplicate)
        buckets.setdefault(key, []).append(t)

    groups: list[TransactionGroup] = []
    for key, members in buckets.items():
        if len(members) < 2:
            continue
        all_duplicates = all(m.is_duplicate for m in members)
        groups.append(
            TransactionGroup(
                description=key.normalized + (DUPLICATE_GROUP_SUFFIX if key.is_duplicate else ""),
                transactions=members,
                suggested_type=majority_type(members),
                suggested_category=most_common_category(members),
                include_in_import=not all_duplicates,
                is_duplicate_group=key.is_duplicate,
            )
        )

    # Stable sort keeps first-seen order among equal sizes.
    groups.sort(key=lambda g: len(g.transactions), reverse=True)
    return groups


def ungrouped_transactions(
    transactions: Iterable[CandidateTransaction],
    groups: Iterable[TransactionGroup],
) -> list[CandidateTransaction]:
    """Candidates that did not land in any emitted group, input order preserved."""

    grouped_ids = {t.id for g in groups for t in g.transactions}
    return [t for t in transactions if t.id not in grouped_ids]


__all__ = [
    "DUPLICATE_GROUP_SUFFIX",
    "GroupKey",
    "group_transactions_by_description",
    "majority_type",
    "most_common_category",
    "normalize_description",
    "ungrouped_transactions",
]
