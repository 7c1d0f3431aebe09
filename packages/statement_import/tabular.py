"""Tabular decoding: raw CSV-ish text to :data:`~statement_import.models.RawRow`.

Bank exports arrive comma, semicolon, tab or pipe separated. The delimiter is
guessed from the header line alone and the same delimiter is applied to every
data line. Quoting support is deliberately simple: a double quote toggles the
"inside quotes" state unless it directly follows a backslash, and a leading or
trailing quote left on a field is stripped. Doubled quotes, embedded newlines
and the rest of RFC 4180 are not handled.
"""

from __future__ import annotations

from .logging_setup import get_logger
from .models import RawRow

logger = get_logger(__name__)

# Order matters: on equal counts the earlier delimiter wins, so semicolon
# exports with commas inside free text are not misread as comma separated.
CANDIDATE_DELIMITERS: tuple[str, ...] = (";", ",", "\t", "|")
DEFAULT_DELIMITER = ","


def detect_delimiter(header_line: str) -> str:
    """Return the candidate delimiter occurring most often in ``header_line``."""

    best = DEFAULT_DELIMITER
    best_count = 0
    for delim in CANDIDATE_DELIMITERS:
        count = header_line.count(delim)
        if count > best_count:
            best, best_count = delim, count
    return best


def _strip_edge_quotes(value: str) -> str:
    if value.startswith('"'):
        value = value[1:]
    if value.endswith('"'):
        value = value[:-1]
    return value


def split_line(line: str, delimiter: str = DEFAULT_DELIMITER) -> list[str]:
    """Split one line on ``delimiter``, honoring simple ``"..."`` spans."""

    fields: list[str] = []
    current: list[str] = []
    in_quotes = False
    prev = ""
    for ch in line:
        if ch == '"' and prev != "\\":
            in_quotes = not in_quotes
        elif ch == delimiter and not in_quotes:
            fields.append(_strip_edge_quotes("".join(current)))
            current = []
        else:
            current.append(ch)
        prev = ch
    fields.append(_strip_edge_quotes("".join(current)))
    return fields


def _non_blank_lines(text: str) -> list[str]:
    # Trailing "\r" from CRLF input is whitespace and disappears with the
    # per-field trim below.
    return [line for line in text.split("\n") if line.strip()]


def decode_csv(text: str) -> list[RawRow]:
    """Decode ``text`` into rows keyed by the (trimmed) header fields.

    Returns ``[]`` when fewer than two non-blank lines exist. Data lines whose
    field count differs from the header's are dropped without error.
    """

    rows, _delimiter = decode_csv_with_delimiter(text)
    return rows


def decode_csv_with_delimiter(text: str) -> tuple[list[RawRow], str]:
    """Same as :func:`decode_csv` but also report the delimiter used."""

    lines = _non_blank_lines(text or "")
    if len(lines) < 2:
        return [], DEFAULT_DELIMITER

    delimiter = detect_delimiter(lines[0])
    headers = [h.strip() for h in split_line(lines[0], delimiter)]

    rows: list[RawRow] = []
    dropped = 0
    for line in lines[1:]:
        values = split_line(line, delimiter)
        if len(values) != len(headers):
            dropped += 1
            continue
        # Duplicate header names collapse onto the last occurrence.
        rows.append({h: (v or "").strip() for h, v in zip(headers, values, strict=True)})

    if dropped:
        logger.debug("dropped %d line(s) with a field count other than %d", dropped, len(headers))
    return rows, delimiter


__all__ = [
    "CANDIDATE_DELIMITERS",
    "decode_csv",
    "decode_csv_with_delimiter",
    "detect_delimiter",
    "split_line",
]
