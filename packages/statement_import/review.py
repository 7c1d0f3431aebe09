"""Review-session helpers between the pipeline and persistence.

The review layer receives grouped and ungrouped candidates, lets a person
pick a category/type per group (or per singleton) and decide what to keep,
then converts the accepted candidates into stored records.

Defaults mirror what a reviewer sees on first load:

- groups made only of likely duplicates start excluded;
- every non-duplicate singleton starts selected.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime

from .grouping import group_transactions_by_description, ungrouped_transactions
from .models import (
    UNCATEGORIZED,
    CandidateTransaction,
    PersistedTransaction,
    TransactionGroup,
    TransactionType,
)

_ALLOWED_TYPES: set[str] = {"income", "expense"}


@dataclass(slots=True)
class ImportReview:
    groups: list[TransactionGroup]
    ungrouped: list[CandidateTransaction]
    selected_ids: set[str] = field(default_factory=set)


def build_review(candidates: Sequence[CandidateTransaction]) -> ImportReview:
    """Group ``candidates`` and compute the default selection."""

    groups = group_transactions_by_description(candidates)
    ungrouped = ungrouped_transactions(candidates, groups)
    return ImportReview(
        groups=groups,
        ungrouped=ungrouped,
        selected_ids={t.id for t in ungrouped if not t.is_duplicate},
    )


def update_group(
    group: TransactionGroup,
    *,
    category: str | None = None,
    type: TransactionType | None = None,
    include: bool | None = None,
) -> None:
    """Apply a reviewer decision to ``group`` and push it down to every member."""

    if type is not None and type not in _ALLOWED_TYPES:
        raise ValueError(f"Unsupported transaction type: {type!r}")

    if category is not None:
        group.suggested_category = category
        for t in group.transactions:
            t.category = category
    if type is not None:
        group.suggested_type = type
        for t in group.transactions:
            t.type = type
    if include is not None:
        group.include_in_import = include


def accepted_transactions(review: ImportReview) -> Iterator[CandidateTransaction]:
    """Yield members of included groups, then selected singletons."""

    for group in review.groups:
        if group.include_in_import:
            yield from group.transactions
    for t in review.ungrouped:
        if t.id in review.selected_ids:
            yield t


def _utc_now_iso() -> str:
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def to_persisted(candidate: CandidateTransaction, *, now: str | None = None) -> PersistedTransaction:
    """Convert an accepted candidate into a new stored record.

    A fresh id is always assigned. ``created_at`` is kept when the candidate
    came from the canonical export (restoring a backup), otherwise it is the
    current UTC time.
    """

    return PersistedTransaction(
        id=str(uuid.uuid4()),
        amount=candidate.amount,
        description=candidate.description,
        category=candidate.category or UNCATEGORIZED,
        type=candidate.type or "expense",
        date=candidate.date,
        created_at=candidate.created_at or now or _utc_now_iso(),
    )


def finalize(candidates: Iterable[CandidateTransaction]) -> list[PersistedTransaction]:
    now = _utc_now_iso()
    return [to_persisted(c, now=now) for c in candidates]


__all__ = [
    "ImportReview",
    "accepted_transactions",
    "build_review",
    "finalize",
    "to_persisted",
    "update_group",
]
