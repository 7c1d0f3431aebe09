"""Writer for the application's own CSV export.

Layout (bit-exact; :func:`statement_import.schema.infer_column_mapping`
recognizes it and skips heuristics)::

    Date,Description,Category,Type,Amount,Created At

- ``Description`` and ``Category`` are always double-quoted with embedded
  quotes doubled.
- ``Type`` is ``income`` or ``expense``; ``Date`` is ``YYYY-MM-DD``.
- ``Amount`` is non-negative with exactly two fraction digits.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Decimal

from .models import CANONICAL_HEADERS, PersistedTransaction


def _quote(value: str) -> str:
    return '"' + value.replace('"', '""') + '"'


def _fmt_amount(amount: float) -> str:
    q = Decimal(str(abs(amount))).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return f"{q:.2f}"


def export_canonical_csv(records: Iterable[PersistedTransaction]) -> str:
    """Render ``records`` in the canonical export layout (``\\n`` line endings)."""

    lines = [",".join(CANONICAL_HEADERS)]
    for r in records:
        lines.append(
            ",".join(
                [
                    r.date,
                    _quote(r.description),
                    _quote(r.category),
                    r.type,
                    _fmt_amount(r.amount),
                    r.created_at,
                ]
            )
        )
    return "\n".join(lines)


__all__ = ["export_canonical_csv"]
