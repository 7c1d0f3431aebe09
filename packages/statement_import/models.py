"""Data models and type aliases for ``statement_import``.

The pipeline works on three shapes:

- :data:`RawRow`: one decoded CSV line keyed by its header, values as text.
- :class:`ColumnMapping`: which header plays which semantic role.
- :class:`CandidateTransaction`: one parsed row awaiting human review.

Records owned by the storage collaborator are read as
:class:`PersistedTransaction` (validated with pydantic on load); review
artifacts are :class:`TransactionGroup` instances built fresh per import run.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Literal, TypeAlias

from pydantic import BaseModel, ConfigDict, field_validator

# ---------------------------------------------------------------------------
# Core record aliases
# ---------------------------------------------------------------------------

TransactionType: TypeAlias = Literal["income", "expense"]

RawRow: TypeAlias = dict[str, str]
"""A decoded CSV data line keyed by header (verbatim, order preserved)."""

# Header set of the application's own CSV export. All six must be present for
# the canonical fast path.
CANONICAL_HEADERS: tuple[str, ...] = (
    "Date",
    "Description",
    "Category",
    "Type",
    "Amount",
    "Created At",
)

UNCATEGORIZED = "Uncategorized"


# ---------------------------------------------------------------------------
# Column mapping
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ColumnMapping:
    """Assignment of semantic roles to input headers.

    Unassigned roles hold the empty string. A mapping is either a single
    ``amount`` column or a ``(debit, credit)`` pair; when both debit and
    credit are set the pair takes precedence during processing.
    """

    date: str = ""
    description: str = ""
    amount: str = ""
    debit: str = ""
    credit: str = ""
    category: str = ""
    type: str = ""
    created_at: str = ""
    is_canonical: bool = False

    @property
    def uses_debit_credit(self) -> bool:
        return bool(self.debit and self.credit)

    @property
    def has_amount_data(self) -> bool:
        return bool(self.amount) or self.uses_debit_credit

    def missing_roles(self) -> list[str]:
        """Return the required roles a reviewer still has to assign."""

        missing: list[str] = []
        if not self.date:
            missing.append("date")
        if not self.description:
            missing.append("description")
        if not self.has_amount_data:
            missing.append("amount or debit/credit")
        return missing


# ---------------------------------------------------------------------------
# Candidate transactions (pipeline output)
# ---------------------------------------------------------------------------


def _new_id() -> str:
    return str(uuid.uuid4())


@dataclass(slots=True)
class CandidateTransaction:
    """A parsed row awaiting review.

    ``amount`` is always the non-negative magnitude; direction lives in
    ``type``. ``date`` is the canonical ``YYYY-MM-DD`` string or ``""`` when the
    source could not be parsed. Reviewers mutate ``category`` and ``type``.
    """

    date: str
    description: str
    amount: float
    confidence: float
    original_row: RawRow
    category: str = ""
    type: TransactionType | None = None
    created_at: str | None = None
    is_duplicate: bool = False
    duplicate_reason: str | None = None
    id: str = field(default_factory=_new_id)

    def __post_init__(self) -> None:
        if self.amount < 0:
            raise ValueError("CandidateTransaction.amount must be non-negative")


# ---------------------------------------------------------------------------
# Persisted transactions (storage collaborator records)
# ---------------------------------------------------------------------------


class PersistedTransaction(BaseModel):
    """A transaction as stored by the ledger.

    The importer only reads these to detect duplicates; accepted candidates
    are converted into new instances by :func:`statement_import.review.to_persisted`.
    """

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True, frozen=True)

    id: str
    amount: float
    description: str
    category: str = UNCATEGORIZED
    type: Literal["income", "expense"] = "expense"
    date: str
    created_at: str = ""

    @field_validator("amount")
    @classmethod
    def _amount_non_negative(cls, v: float) -> float:
        fv = float(v)
        if fv < 0:
            raise ValueError("amount must be non-negative; direction is carried by type")
        return fv

    @field_validator("category")
    @classmethod
    def _category_default(cls, v: str) -> str:
        return v or UNCATEGORIZED


# ---------------------------------------------------------------------------
# Review artifacts
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class TransactionGroup:
    """Candidates sharing a normalized description, reviewed in bulk.

    Duplicate-flagged and fresh candidates never share a group;
    ``is_duplicate_group`` tells them apart.
    """

    description: str
    transactions: list[CandidateTransaction]
    suggested_type: TransactionType
    suggested_category: str = ""
    include_in_import: bool = True
    is_duplicate_group: bool = False


@dataclass(slots=True)
class ImportResult:
    """Everything one import run hands to the review layer."""

    delimiter: str
    mapping: ColumnMapping
    rows: list[RawRow]
    transactions: list[CandidateTransaction]
    groups: list[TransactionGroup]
    ungrouped: list[CandidateTransaction]

    @property
    def duplicates(self) -> list[CandidateTransaction]:
        return [t for t in self.transactions if t.is_duplicate]


__all__ = [
    "CANONICAL_HEADERS",
    "UNCATEGORIZED",
    "CandidateTransaction",
    "ColumnMapping",
    "ImportResult",
    "PersistedTransaction",
    "RawRow",
    "TransactionGroup",
    "TransactionType",
]
