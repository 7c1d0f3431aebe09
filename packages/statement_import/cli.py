# ruff: noqa: I001
"""CLI for the ``statement_import`` package.

Exposes callable command handlers (``cmd_inspect``, ``cmd_import``,
``cmd_export``) and a Typer-based console interface. Environment variables
(notably ``DATABASE_URL``) are loaded from a local ``.env`` via
``python-dotenv`` before delegating to command logic. Pipeline logic lives in
``statement_import.api`` and related modules.
"""

from __future__ import annotations

import dataclasses
import sys
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from typer.models import OptionInfo

from .logging_setup import configure_logging, get_logger
from .models import ColumnMapping, RawRow, TransactionType

logger = get_logger(__name__)


# ---- Small module-level helpers used by CLI commands -------------------------


def _read_text(csv_path: str) -> str:
    # utf-8-sig drops a BOM that would otherwise stick to the first header.
    with open(csv_path, encoding="utf-8-sig", newline="") as f:
        return f.read()


def _apply_overrides(mapping: ColumnMapping, overrides: dict[str, str | None]) -> ColumnMapping:
    changes = {k: v for k, v in overrides.items() if v is not None}
    if not changes:
        return mapping
    # Exactly one amount strategy: an explicit single column displaces the pair.
    if "amount" in changes and "debit" not in changes and "credit" not in changes:
        changes.update(debit="", credit="")
    # A manual override means the canonical fast path no longer describes the file.
    return dataclasses.replace(mapping, is_canonical=False, **changes)


def _unknown_columns(mapping: ColumnMapping, rows: list[RawRow]) -> list[str]:
    headers = set(rows[0].keys()) if rows else set()
    roles = ("date", "description", "amount", "debit", "credit", "category", "type", "created_at")
    return [
        f"{role}={getattr(mapping, role)!r}"
        for role in roles
        if getattr(mapping, role) and getattr(mapping, role) not in headers
    ]


def _describe_mapping(mapping: ColumnMapping) -> list[str]:
    lines = []
    for f in dataclasses.fields(mapping):
        value = getattr(mapping, f.name)
        if f.name == "is_canonical":
            lines.append(f"  canonical export: {'yes' if value else 'no'}")
        else:
            lines.append(f"  {f.name}: {value or '-'}")
    return lines


_DELIMITER_NAMES = {",": "comma", ";": "semicolon", "\t": "tab", "|": "pipe"}


# ---- Command handlers ---------------------------------------------------------


def cmd_inspect(csv_path: str) -> int:
    """Print the detected delimiter, row count and column mapping for a file."""

    from .schema import infer_column_mapping
    from .tabular import decode_csv_with_delimiter

    try:
        text = _read_text(csv_path)
    except FileNotFoundError:
        print(f"Error: File not found: {csv_path}", file=sys.stderr)
        return 1
    except (OSError, UnicodeDecodeError) as e:
        print(f"Error: Failed to read '{csv_path}': {e}", file=sys.stderr)
        return 1

    rows, delimiter = decode_csv_with_delimiter(text)
    mapping = infer_column_mapping(rows)

    print(f"delimiter: {_DELIMITER_NAMES.get(delimiter, delimiter)}")
    print(f"rows: {len(rows)}")
    print("mapping:")
    for line in _describe_mapping(mapping):
        print(line)
    missing = mapping.missing_roles()
    if missing:
        print(f"unresolved: {', '.join(missing)}")
    return 0


def _review_interactively(review, session) -> None:
    """Walk the reviewer through groups, then singletons.

    Each included group or row gets a type prompt first; the category prompt
    then only offers categories of that type.
    """

    from .categories import create_category, load_category_names
    from .review import update_group
    from .term_ui import CreateCategoryRequest, select_category, select_type

    def _choose(default: str, type_: TransactionType) -> str:
        names = load_category_names(session, type=type_)
        picked = select_category(names, default=default)
        if isinstance(picked, CreateCategoryRequest):
            name, created = create_category(session, picked.name, type=type_)
            if created:
                typer.echo(f"Created category {name!r}")
            return name
        return picked

    for i, group in enumerate(review.groups, start=1):
        sample = group.transactions[0]
        typer.echo(
            f"\n[{i}/{len(review.groups)}] {group.description} "
            f"({len(group.transactions)} transactions, e.g. {sample.date} {sample.description!r} "
            f"{sample.amount:.2f}) suggested type: {group.suggested_type}"
        )
        include = typer.confirm("Include this group?", default=group.include_in_import)
        if not include:
            update_group(group, include=False)
            continue
        type_ = select_type(default=group.suggested_type)
        update_group(group, type=type_)
        category = _choose(group.suggested_category, type_)
        update_group(group, category=category, include=True)

    for t in review.ungrouped:
        flag = " [possible duplicate]" if t.is_duplicate else ""
        typer.echo(f"\n{t.date} {t.description!r} {t.amount:.2f} {t.type}{flag}")
        if not typer.confirm("Include?", default=t.id in review.selected_ids):
            review.selected_ids.discard(t.id)
            continue
        review.selected_ids.add(t.id)
        t.type = select_type(default=t.type or "expense")
        t.category = _choose(t.category, t.type)


def cmd_import(
    csv_path: str,
    *,
    database_url: str | None = None,
    assume_yes: bool = False,
    dry_run: bool = False,
    overrides: dict[str, str | None] | None = None,
) -> int:
    """Import a bank CSV: infer, flag duplicates, review, persist.

    Flow
    ----
    - Decode the file and infer the column mapping; ``overrides`` replace
      individual roles (e.g. ``{"date": "Booking Day"}``).
    - Load one snapshot of stored transactions for duplicate detection.
    - Review groups and singletons interactively unless ``assume_yes``, in
      which case defaults apply (duplicates excluded, suggestions kept).
    - Persist accepted candidates unless ``dry_run``.
    """

    load_dotenv(override=False)

    from ledger_db.client import init_schema, session_scope

    from .api import process_imported_transactions
    from .categories import ensure_default_categories
    from .persistence import load_existing_transactions, persist_accepted
    from .review import accepted_transactions, build_review
    from .schema import infer_column_mapping
    from .tabular import decode_csv_with_delimiter

    try:
        text = _read_text(csv_path)
    except FileNotFoundError:
        print(f"Error: File not found: {csv_path}", file=sys.stderr)
        return 1
    except (OSError, UnicodeDecodeError) as e:
        print(f"Error: Failed to read '{csv_path}': {e}", file=sys.stderr)
        return 1

    rows, _delimiter = decode_csv_with_delimiter(text)
    if not rows:
        print(f"Error: No data rows found in {csv_path}", file=sys.stderr)
        return 1

    mapping = _apply_overrides(infer_column_mapping(rows), overrides or {})
    missing = mapping.missing_roles()
    if missing:
        print(
            "Error: Could not determine column(s): "
            + ", ".join(missing)
            + ". Pass them explicitly (see --help).",
            file=sys.stderr,
        )
        return 1
    unknown = _unknown_columns(mapping, rows)
    if unknown:
        print(f"Error: Unknown column(s) in mapping: {', '.join(unknown)}", file=sys.stderr)
        return 1

    try:
        init_schema(database_url=database_url)
        with session_scope(database_url=database_url) as session:
            ensure_default_categories(session)
            existing = load_existing_transactions(session)
            candidates = process_imported_transactions(rows, mapping, existing)
            review = build_review(candidates)

            n_dupes = sum(1 for t in candidates if t.is_duplicate)
            typer.echo(
                f"Parsed {len(candidates)} of {len(rows)} row(s): "
                f"{len(review.groups)} group(s), {len(review.ungrouped)} ungrouped, "
                f"{n_dupes} possible duplicate(s)."
            )

            if not assume_yes:
                _review_interactively(review, session)

            accepted = list(accepted_transactions(review))
            if dry_run:
                typer.echo(f"Dry run: {len(accepted)} transaction(s) would be imported.")
                session.rollback()
                return 0
            written = persist_accepted(session, accepted)
            typer.echo(f"Imported {written} transaction(s).")
    except Exception as e:
        logger.debug("import failed", exc_info=True)
        print(f"Error: import failed: {e}", file=sys.stderr)
        return 1

    return 0


def cmd_export(output_path: str, *, database_url: str | None = None) -> int:
    """Write every stored transaction in the canonical export layout."""

    load_dotenv(override=False)

    from ledger_db.client import init_schema, session_scope

    from .export import export_canonical_csv
    from .persistence import iter_persisted

    try:
        init_schema(database_url=database_url)
        with session_scope(database_url=database_url) as session:
            records = list(iter_persisted(session))
    except Exception as e:
        print(f"Error: failed to load transactions: {e}", file=sys.stderr)
        return 1

    if not records:
        print("Error: No transactions to export.", file=sys.stderr)
        return 1

    try:
        Path(output_path).write_text(export_canonical_csv(records), encoding="utf-8")
    except OSError as e:
        print(f"Error: Failed to write '{output_path}': {e}", file=sys.stderr)
        return 1

    typer.echo(f"Exported {len(records)} transaction(s) to {output_path}")
    return 0


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Import bank-statement CSVs into the ledger: detects columns, parses dates "
        "and amounts, flags likely duplicates and groups similar transactions for review."
    ),
)

# Module-level option objects to satisfy ruff B008 (no calls in parameter
# defaults).
CSV_PATH_OPTION: OptionInfo = typer.Option(
    ...,
    "--csv-path",
    help="Path to a bank/card export (comma, semicolon, tab or pipe separated)",
    dir_okay=False,
    file_okay=True,
    exists=False,  # the handler reports missing files itself
)


def _exit(code: int) -> None:
    if code:
        raise typer.Exit(code)


@app.command("inspect")
def inspect_cmd(csv_path: Annotated[Path, CSV_PATH_OPTION]) -> None:
    """Show how a file would be read without importing anything."""

    _exit(cmd_inspect(str(csv_path)))


@app.command("import")
def import_cmd(
    csv_path: Annotated[Path, CSV_PATH_OPTION],
    database_url: str | None = typer.Option(
        None, help="Override DATABASE_URL (falls back to env var)."
    ),
    yes: bool = typer.Option(False, "--yes", "-y", help="Accept all defaults without prompting."),
    dry_run: bool = typer.Option(False, help="Run the pipeline but do not persist anything."),
    date_column: str | None = typer.Option(None, help="Column holding the date."),
    description_column: str | None = typer.Option(None, help="Column holding the description."),
    amount_column: str | None = typer.Option(None, help="Single signed amount column."),
    debit_column: str | None = typer.Option(None, help="Debit (money out) column."),
    credit_column: str | None = typer.Option(None, help="Credit (money in) column."),
) -> None:
    """Import a CSV, review groups of similar transactions, and persist them."""

    overrides = {
        "date": date_column,
        "description": description_column,
        "amount": amount_column,
        "debit": debit_column,
        "credit": credit_column,
    }
    _exit(
        cmd_import(
            str(csv_path),
            database_url=database_url,
            assume_yes=yes,
            dry_run=dry_run,
            overrides=overrides,
        )
    )


@app.command("export")
def export_cmd(
    output: Path = typer.Option(..., "--output", "-o", help="Destination CSV path."),
    database_url: str | None = typer.Option(
        None, help="Override DATABASE_URL (falls back to env var)."
    ),
) -> None:
    """Export stored transactions in the canonical CSV layout."""

    _exit(cmd_export(str(output), database_url=database_url))


@app.callback()
def _root(
    log_level: str | None = typer.Option(
        None, help="Log level (falls back to STATEMENT_IMPORT_LOG_LEVEL, then INFO)."
    ),
) -> None:
    """Load ``.env`` from the working directory and configure logging."""

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging(log_level)


def main() -> None:  # pragma: no cover - console script entry
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
