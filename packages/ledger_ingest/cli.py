# ruff: noqa: I001
"""CLI for the ``ledger_ingest`` package.

Command handlers (``cmd_import``, ``cmd_export``, ``cmd_import_receipt``,
``cmd_init_db``) return a process exit code and print errors to stderr; the
Typer commands below are thin wrappers. Environment variables (notably
``DATABASE_URL``) are loaded from a local ``.env`` using ``python-dotenv``
before any command runs, and the resolved settings pick the log level.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from prompt_toolkit import PromptSession
from typer.models import OptionInfo

from .errors import CommitError, IngestError
from .logging_setup import configure_logging
from .persistence import SqlTransactionStore, TransactionStore
from .settings import IngestSettings


def _load_settings() -> IngestSettings | None:
    try:
        return IngestSettings.from_env()
    except ValueError as e:
        print(f"Error: invalid configuration: {e}", file=sys.stderr)
        return None


def cmd_import(
    file_path: str,
    *,
    user_id: str,
    assume_yes: bool = False,
    database_url: str | None = None,
    seed: int | None = None,
    store: TransactionStore | None = None,
    session: PromptSession | None = None,
) -> int:
    """Parse a spreadsheet, show the preview, confirm and commit.

    Returns ``0`` on success or when the user declines, ``1`` on any error.
    """

    from .orchestrator import ImportOrchestrator
    from .term_ui import confirm_import, render_preview, render_summary

    settings = _load_settings()
    if settings is None:
        return 1

    path = Path(file_path)
    try:
        content = path.read_bytes()
    except FileNotFoundError:
        print(f"Error: File not found: {file_path}", file=sys.stderr)
        return 1
    except PermissionError:
        print(f"Error: Permission denied: {file_path}", file=sys.stderr)
        return 1
    except IsADirectoryError:
        print(f"Error: Not a file: {file_path}", file=sys.stderr)
        return 1

    if store is None:
        store = SqlTransactionStore(database_url=database_url or settings.database_url)
    orchestrator = ImportOrchestrator(
        store, user_id, color_picker=settings.color_picker(seed=seed)
    )

    state = orchestrator.load(path.name, content)
    if state is None or state.error is not None:
        reason = state.error if state is not None else "another import is in progress"
        print(f"Error: {reason}", file=sys.stderr)
        return 1

    try:
        preview = orchestrator.preview()
    except Exception as e:
        print(f"Error: failed to load categories: {e}", file=sys.stderr)
        return 1
    print(render_preview(preview))

    if not assume_yes and not confirm_import(len(preview.rows), session=session):
        orchestrator.close()
        print("Import cancelled.")
        return 0

    try:
        summary = orchestrator.commit()
    except CommitError as e:
        print(f"Error: {e}", file=sys.stderr)
        if e.created_categories:
            names = ", ".join(c.name for c in e.created_categories)
            print(f"Note: categories created before the failure remain: {names}", file=sys.stderr)
        return 1
    except IngestError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"Error: import failed: {e}", file=sys.stderr)
        return 1

    if summary is None:
        print("Error: another import is in progress", file=sys.stderr)
        return 1
    print(render_summary(summary))
    return 0


def cmd_export(
    *,
    user_id: str,
    fmt: str = "xlsx",
    output: str | None = None,
    database_url: str | None = None,
    store: TransactionStore | None = None,
) -> int:
    """Write the user's transactions to ``output`` (default: dated file in CWD)."""

    from .exporter import export_transactions

    if fmt not in ("xlsx", "csv"):
        print(f"Error: unsupported format {fmt!r} (expected xlsx or csv)", file=sys.stderr)
        return 1

    settings = _load_settings()
    if settings is None:
        return 1
    if store is None:
        store = SqlTransactionStore(database_url=database_url or settings.database_url)

    try:
        transactions = store.list_transactions(user_id)
        categories = store.list_categories(user_id)
    except Exception as e:
        print(f"Error: failed to load transactions: {e}", file=sys.stderr)
        return 1

    exported = export_transactions(
        transactions,
        categories,
        fmt=fmt,  # type: ignore[arg-type]
        filename=Path(output).name if output else None,
    )
    target = Path(output) if output else Path.cwd() / exported.filename
    try:
        target.write_bytes(exported.content)
    except OSError as e:
        print(f"Error: failed to write {target}: {e}", file=sys.stderr)
        return 1

    print(f"Exported {len(transactions)} transaction(s) to {target}")
    return 0


def cmd_import_receipt(
    file_path: str,
    *,
    user_id: str,
    database_url: str | None = None,
    store: TransactionStore | None = None,
) -> int:
    """Record the items of a receipt-parser JSON file as expenses."""

    from pydantic import ValidationError

    from .api import import_receipt

    settings = _load_settings()
    if settings is None:
        return 1

    try:
        payload = Path(file_path).read_bytes()
    except OSError as e:
        print(f"Error: cannot read {file_path}: {e}", file=sys.stderr)
        return 1

    if store is None:
        store = SqlTransactionStore(database_url=database_url or settings.database_url)
    try:
        created = import_receipt(payload, store=store, user_id=user_id)
    except ValidationError as e:
        print(f"Error: not a receipt: {e.error_count()} validation error(s)", file=sys.stderr)
        for err in e.errors():
            loc = ".".join(str(p) for p in err["loc"])
            print(f"  {loc}: {err['msg']}", file=sys.stderr)
        return 1
    except IngestError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"Error: failed to record receipt: {e}", file=sys.stderr)
        return 1

    print(f"Recorded {len(created)} receipt item(s)")
    return 0


def cmd_init_db(*, database_url: str | None = None) -> int:
    from db.client import create_all

    settings = _load_settings()
    if settings is None:
        return 1
    try:
        create_all(database_url=database_url or settings.database_url)
    except Exception as e:
        print(f"Error: failed to create tables: {e}", file=sys.stderr)
        return 1
    print("Database tables are ready.")
    return 0


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Import transactions from .xlsx/.xls/.csv spreadsheets and export them "
        "back. Loads DATABASE_URL from a local .env before running."
    ),
)

# Module-level option objects to satisfy ruff B008 (no calls in parameter
# defaults).
FILE_OPTION: OptionInfo = typer.Option(
    ...,
    "--file",
    help="File to import: a spreadsheet (.xlsx, .xls, .csv) or, for import-receipt, receipt JSON",
    dir_okay=False,
    file_okay=True,
    exists=False,  # the handler reports missing files itself
)
USER_ID_OPTION: OptionInfo = typer.Option(..., "--user-id", help="Owner of the imported data")


@app.command("import")
def import_cmd(
    file_path: Annotated[Path, FILE_OPTION],
    user_id: Annotated[str, USER_ID_OPTION],
    *,
    yes: bool = typer.Option(False, "--yes", "-y", help="Import without asking for confirmation."),
    database_url: str | None = typer.Option(
        None, "--database-url", help="Override DATABASE_URL (falls back to env var)."
    ),
    seed: int | None = typer.Option(
        None, help="Seed for new-category colours (overrides LEDGER_INGEST_COLOR_SEED)."
    ),
) -> None:
    """Preview and import a spreadsheet of transactions."""

    raise typer.Exit(
        cmd_import(
            str(file_path),
            user_id=user_id,
            assume_yes=yes,
            database_url=database_url,
            seed=seed,
        )
    )


@app.command("export")
def export_cmd(
    user_id: Annotated[str, USER_ID_OPTION],
    *,
    fmt: str = typer.Option("xlsx", "--format", help="Output format: xlsx or csv."),
    output: str | None = typer.Option(None, "--output", "-o", help="Output file path."),
    database_url: str | None = typer.Option(
        None, "--database-url", help="Override DATABASE_URL (falls back to env var)."
    ),
) -> None:
    """Export all of a user's transactions in the import schema."""

    raise typer.Exit(
        cmd_export(user_id=user_id, fmt=fmt, output=output, database_url=database_url)
    )


@app.command("import-receipt")
def import_receipt_cmd(
    file_path: Annotated[Path, FILE_OPTION],
    user_id: Annotated[str, USER_ID_OPTION],
    *,
    database_url: str | None = typer.Option(
        None, "--database-url", help="Override DATABASE_URL (falls back to env var)."
    ),
) -> None:
    """Record a parsed receipt (JSON) as one expense per line item."""

    raise typer.Exit(
        cmd_import_receipt(str(file_path), user_id=user_id, database_url=database_url)
    )


@app.command("init-db")
def init_db_cmd(
    *,
    database_url: str | None = typer.Option(
        None, "--database-url", help="Override DATABASE_URL (falls back to env var)."
    ),
) -> None:
    """Create the ledger tables (development helper; use Alembic elsewhere)."""

    raise typer.Exit(cmd_init_db(database_url=database_url))


@app.callback()
def _root() -> None:
    """Load ``.env`` from the CWD (without overriding set variables) and configure logging."""

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    settings = _load_settings()
    if settings is None:
        raise typer.Exit(1)
    configure_logging(settings.log_level)


def main() -> None:  # pragma: no cover - console entry point
    app()


if __name__ == "__main__":  # pragma: no cover
    # Running as a module: `python -m ledger_ingest.cli`
    main()


__all__ = ["app", "main", "cmd_import", "cmd_export", "cmd_import_receipt", "cmd_init_db"]
