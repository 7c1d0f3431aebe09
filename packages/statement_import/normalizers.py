"""Field normalizers: dates, amounts and income/expense direction.

All three functions accept arbitrary third-party text and degrade instead of
raising: :func:`parse_date` returns ``""`` and :func:`parse_amount` returns
``0.0`` when nothing usable is found.

Known, intentional limitations
------------------------------
- ``parse_date`` may return calendar-invalid strings such as ``2024-13-05``
  (from ``MM/DD/YYYY`` with a month above 12 that also fails the day/month
  swap rules, or from the day/month swap itself). Rows with a non-empty date
  go on to human review, which is where such dates get corrected.
- ``parse_amount`` treats every comma as a thousands separator, so the
  European ``"45,67"`` reads as ``4567``. There is no locale detection.
- Only the glyphs in :data:`CURRENCY_GLYPHS` are stripped; prefixes like
  ``kr``, ``C$`` or ``A$`` are left in place and usually make the value
  unparseable (``0.0``).
"""

from __future__ import annotations

import math
import re
from collections.abc import Callable

from dateutil import parser as date_parser

from .models import TransactionType

# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------

_ISO_PREFIX_RE = re.compile(r"^(\d{4}-\d{2}-\d{2})")
_SLASH_4Y_RE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})")
_SLASH_2Y_RE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{2})$")


def _ymd(year: str, month: str, day: str) -> str:
    return f"{year}-{month.zfill(2)}-{day.zfill(2)}"


def _iso_prefix(s: str) -> str | None:
    m = _ISO_PREFIX_RE.match(s)
    return m.group(1) if m else None


def _us_four_digit_year(s: str) -> str | None:
    m = _SLASH_4Y_RE.match(s)
    if not m:
        return None
    first, second, year = m.groups()
    if int(first) <= 12 and int(second) <= 31:
        return _ymd(year, first, second)
    return None


def _us_two_digit_year(s: str) -> str | None:
    m = _SLASH_2Y_RE.match(s)
    if not m:
        return None
    month, day, yy = m.groups()
    year = f"19{yy}" if int(yy) > 50 else f"20{yy}"
    return _ymd(year, month, day)


def _day_first_four_digit_year(s: str) -> str | None:
    m = _SLASH_4Y_RE.match(s)
    if not m:
        return None
    first, second, year = m.groups()
    if int(first) > 12 or (int(first) <= 31 and int(second) <= 12):
        return _ymd(year, second, first)
    return None


def _generic(s: str) -> str | None:
    if not s:
        return None
    try:
        parsed = date_parser.parse(s)
    except (ValueError, OverflowError):
        return None
    return parsed.date().isoformat()


# Tried in order; the first non-None result wins. ISO must precede the slash
# forms, and month-first must precede day-first.
DATE_STRATEGIES: tuple[tuple[str, Callable[[str], str | None]], ...] = (
    ("iso", _iso_prefix),
    ("us_mdy", _us_four_digit_year),
    ("us_mdy_short", _us_two_digit_year),
    ("dmy", _day_first_four_digit_year),
    ("generic", _generic),
)


def parse_date(raw: str) -> str:
    """Return ``raw`` as ``YYYY-MM-DD``, or ``""`` when no strategy succeeds."""

    cleaned = str(raw).strip().replace('"', "").replace("'", "")
    for _name, strategy in DATE_STRATEGIES:
        result = strategy(cleaned)
        if result:
            return result
    return ""


# ---------------------------------------------------------------------------
# Amounts
# ---------------------------------------------------------------------------

# Dollar, euro, pound, yen, rupee, won and the full-width yen.
CURRENCY_GLYPHS = "$€£¥₹₩￥"
_STRIP_RE = re.compile(rf"[{re.escape(CURRENCY_GLYPHS)}]|[,\s]")
# Longest leading float literal, the way a lenient prefix parser reads it:
# "12.5.3" -> 12.5, "45.67USD" -> 45.67.
_FLOAT_PREFIX_RE = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def parse_amount(raw: str) -> float:
    """Parse a bank amount into a signed float; ``0.0`` when unparseable.

    Parentheses or a leading minus make the result negative; otherwise it is
    positive. Commas and whitespace are removed unconditionally.
    """

    trimmed = str(raw).strip()
    negative = trimmed.startswith("-")

    s = trimmed
    if len(s) >= 2 and s.startswith("(") and s.endswith(")"):
        negative = True
        s = s[1:-1]

    s = _STRIP_RE.sub("", s)
    m = _FLOAT_PREFIX_RE.match(s)
    if not m:
        return 0.0
    try:
        value = float(m.group(0))
    except ValueError:  # pragma: no cover - regex only admits float literals
        return 0.0
    if not math.isfinite(value):
        return 0.0
    return -abs(value) if negative else abs(value)


# ---------------------------------------------------------------------------
# Transaction direction
# ---------------------------------------------------------------------------

INCOME_HINTS: tuple[str, ...] = ("credit", "deposit", "income")
EXPENSE_HINTS: tuple[str, ...] = ("debit", "withdrawal", "expense")
INCOME_KEYWORDS: tuple[str, ...] = (
    "salary",
    "paycheck",
    "payroll",
    "wage",
    "bonus",
    "refund",
    "deposit",
    "interest",
    "dividend",
    "freelance",
    "transfer in",
)


def determine_transaction_type(
    description: str,
    type_hint: str | None = None,
    is_debit: bool | None = None,
) -> TransactionType:
    """Decide ``"income"`` or ``"expense"`` for one row.

    Priority: explicit ``type_hint`` (exact ``income``/``expense`` first, then
    credit/debit style substrings), income keywords in ``description``, the
    debit/credit polarity, and finally ``"expense"``.
    """

    if type_hint:
        hint = type_hint.strip().lower()
        if hint == "income":
            return "income"
        if hint == "expense":
            return "expense"
        if any(word in hint for word in INCOME_HINTS):
            return "income"
        if any(word in hint for word in EXPENSE_HINTS):
            return "expense"

    desc = (description or "").lower()
    if any(keyword in desc for keyword in INCOME_KEYWORDS):
        return "income"

    if is_debit is not None:
        return "expense" if is_debit else "income"

    return "expense"


__all__ = [
    "CURRENCY_GLYPHS",
    "DATE_STRATEGIES",
    "determine_transaction_type",
    "parse_amount",
    "parse_date",
]
