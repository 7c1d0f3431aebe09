"""Category catalogue helpers.

The ledger ships with a default catalogue; reviewers may add categories while
categorizing an import. Validation is duplicated lightly in the terminal UI
for early feedback but enforced here.

Exports
-------
- ``DEFAULT_CATEGORIES``: the starter catalogue.
- ``normalize_name(...)`` / ``validate_name(...)``: name hygiene.
- ``ensure_default_categories(...)``, ``load_category_names(...)`` and
  ``create_category(...)``: storage operations (the caller owns the
  transaction scope).
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from ledger_db.models.ledger import LedgerCategory
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from .models import TransactionType


@dataclass(frozen=True, slots=True)
class CategorySpec:
    name: str
    type: TransactionType
    color: str


DEFAULT_CATEGORIES: tuple[CategorySpec, ...] = (
    CategorySpec("Food & Dining", "expense", "#FF6B6B"),
    CategorySpec("Transportation", "expense", "#4ECDC4"),
    CategorySpec("Shopping", "expense", "#45B7D1"),
    CategorySpec("Entertainment", "expense", "#96CEB4"),
    CategorySpec("Bills & Utilities", "expense", "#FECA57"),
    CategorySpec("Healthcare", "expense", "#FF9FF3"),
    CategorySpec("Education", "expense", "#54A0FF"),
    CategorySpec("Groceries", "expense", "#54F0AF"),
    CategorySpec("Insurance", "expense", "#D4A0FF"),
    CategorySpec("Housing", "expense", "#F4505F"),
    CategorySpec("Debt", "expense", "#D4A0DF"),
    CategorySpec("Personal Care", "expense", "#84F0EF"),
    CategorySpec("Hobbies", "expense", "#84808F"),
    CategorySpec("Salary", "income", "#5F27CD"),
    CategorySpec("Freelance", "income", "#00D2D3"),
    CategorySpec("Investments", "income", "#FF9F43"),
)

# Colors handed to categories created during review, in rotation.
_PALETTE: tuple[str, ...] = tuple(c.color for c in DEFAULT_CATEGORIES)

# ---------------------------
# Name normalization/validation
# ---------------------------

_ALLOWED_RE = re.compile(r"^[\w &\-/']+$")


def normalize_name(name: str) -> str:
    """Trim and collapse internal whitespace; case is preserved."""

    return " ".join(name.strip().split())


@dataclass(frozen=True, slots=True)
class NameValidation:
    ok: bool
    reason: str | None = None


def validate_name(name: str, *, min_len: int = 1, max_len: int = 64) -> NameValidation:
    """Length 1..64 after normalization; letters, digits, spaces and ``& - / '``."""

    n = normalize_name(name)
    if len(n) < min_len:
        return NameValidation(False, "Name cannot be empty")
    if len(n) > max_len:
        return NameValidation(False, f"Name must be at most {max_len} characters")
    if not _ALLOWED_RE.match(n):
        return NameValidation(False, "Only letters, numbers, spaces, and & - / ' are allowed")
    return NameValidation(True, None)


# ---------------------------
# Storage operations
# ---------------------------


def ensure_default_categories(session: Session) -> int:
    """Seed the default catalogue into an empty table; return rows inserted."""

    existing = session.execute(select(func.count()).select_from(LedgerCategory)).scalar_one()
    if existing:
        return 0
    session.add_all(LedgerCategory(name=c.name, type=c.type, color=c.color) for c in DEFAULT_CATEGORIES)
    session.flush()
    return len(DEFAULT_CATEGORIES)


def load_category_names(session: Session, *, type: TransactionType | None = None) -> list[str]:
    stmt = select(LedgerCategory.name).order_by(LedgerCategory.name)
    if type is not None:
        stmt = stmt.where(LedgerCategory.type == type)
    return list(session.execute(stmt).scalars())


def create_category(session: Session, name: str, *, type: TransactionType) -> tuple[str, bool]:
    """Create ``name`` unless it exists case-insensitively.

    Returns ``(stored_name, created)``; an existing row's spelling wins.
    Raises ``ValueError`` for invalid names.
    """

    check = validate_name(name)
    if not check.ok:
        raise ValueError(check.reason)
    n = normalize_name(name)

    found = session.execute(
        select(LedgerCategory.name).where(func.lower(LedgerCategory.name) == n.lower())
    ).scalar_one_or_none()
    if found is not None:
        return found, False

    count = session.execute(select(func.count()).select_from(LedgerCategory)).scalar_one()
    session.add(LedgerCategory(name=n, type=type, color=_PALETTE[count % len(_PALETTE)]))
    session.flush()
    return n, True


__all__ = [
    "DEFAULT_CATEGORIES",
    "CategorySpec",
    "NameValidation",
    "create_category",
    "ensure_default_categories",
    "load_category_names",
    "normalize_name",
    "validate_name",
]
