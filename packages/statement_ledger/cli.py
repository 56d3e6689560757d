# ruff: noqa: I001
"""CLI for the ``statement_ledger`` package.

A Typer console interface over :mod:`statement_ledger.api`. The root callback
loads a local ``.env`` with ``python-dotenv`` (so ``DATABASE_URL`` and the
``STATEMENT_LEDGER_*`` settings apply) and configures logging before any
command runs. Without ``DATABASE_URL`` mappings live only for the process.
"""

from __future__ import annotations

import dataclasses
import sys
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from typer.models import ArgumentInfo, OptionInfo

from .errors import NoMatchingTransactions, StatementLedgerError
from .logging_setup import configure_logging, get_logger
from .normalizers import NormalizationResult
from .settings import Settings

_logger = get_logger("statement_ledger.cli")

_TYPE_FILTERS = ("credit", "debit", "both")
_KINDS = ("party", "supplier")


# ---- Small module-level helpers used by CLI commands -------------------------


def _fail(message: str) -> typer.Exit:
    print(f"Error: {message}", file=sys.stderr)
    return typer.Exit(1)


def _check_choice(value: str, allowed: tuple[str, ...], name: str) -> str:
    v = value.strip().lower()
    if v not in allowed:
        raise _fail(f"{name} must be one of {', '.join(allowed)} (got {value!r})")
    return v


def _settings(database_url: str | None) -> Settings:
    settings = Settings.from_env()
    if database_url:
        settings = dataclasses.replace(settings, database_url=database_url)
    return settings


def _load_statement(path: Path, type_filter: str, settings: Settings) -> NormalizationResult:
    """Read and normalize a statement file; exits with a message on failure."""

    from .api import normalize_statement
    from .normalizers import detect_format

    try:
        data = path.read_bytes()
    except FileNotFoundError:
        raise _fail(f"File not found: {path}") from None
    except PermissionError:
        raise _fail(f"Permission denied: {path}") from None
    except OSError as e:
        raise _fail(f"Unexpected failure reading '{path}': {e}") from e

    try:
        return normalize_statement(data, detect_format(path.name), type_filter, settings=settings)  # type: ignore[arg-type]
    except NoMatchingTransactions as e:
        raise _fail(str(e)) from e
    except StatementLedgerError as e:
        raise _fail(f"Failed to normalize '{path}': {e}") from e


# Module-level argument/option objects to satisfy ruff B008 (no calls in
# parameter defaults).
STATEMENT_ARG: ArgumentInfo = typer.Argument(
    help="Path to a bank statement export (.csv or .xlsx)",
    dir_okay=False,
    file_okay=True,
    exists=False,  # the handler reports missing files itself
)
TYPE_OPTION: OptionInfo = typer.Option(
    "--type", "-t", help="Keep only credit, debit or both kinds of rows."
)
KIND_OPTION: OptionInfo = typer.Option(
    "--kind", "-k", help="Mapping table to use: party or supplier."
)
DATABASE_URL_OPTION: OptionInfo = typer.Option(
    "--database-url", help="Override DATABASE_URL (falls back to env var)."
)


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Normalize bank statement exports and resolve party names from narrations. "
        "Loads DATABASE_URL and STATEMENT_LEDGER_* settings from a local .env."
    ),
)


@app.command("normalize")
def normalize_cmd(
    path: Annotated[Path, STATEMENT_ARG],
    *,
    type_filter: Annotated[str, TYPE_OPTION] = "both",
    persist: bool = typer.Option(False, help="Store the transactions in the ledger."),
    database_url: Annotated[str | None, DATABASE_URL_OPTION] = None,
) -> None:
    """Print one tab-separated line per normalized transaction."""

    type_filter = _check_choice(type_filter, _TYPE_FILTERS, "--type")
    settings = _settings(database_url)
    result = _load_statement(path, type_filter, settings)

    for tx in result.transactions:
        print(
            f"{tx.date.isoformat()}\t{tx.type}\t{tx.amount:.2f}\t{tx.category}\t"
            f"{tx.description}\t{tx.reference_number or ''}"
        )
    print(
        f"normalized={len(result.transactions)} skipped={result.skipped} "
        f"errors={result.errors} header_row={result.header_row}",
        file=sys.stderr,
    )

    if persist:
        from .api import open_store
        from .ledger import TransactionLedger

        TransactionLedger(open_store(settings)).import_statement(result)


@app.command("suggest")
def suggest_cmd(
    text: str = typer.Argument(..., help="Raw text or a full narration."),
    *,
    kind: Annotated[str, KIND_OPTION] = "party",
    exact: bool = typer.Option(
        False, help="Look up the text as given; skip narration candidate extraction."
    ),
    database_url: Annotated[str | None, DATABASE_URL_OPTION] = None,
) -> None:
    """Print the learned name for TEXT (exit code 1 when there is none)."""

    from .api import build_engine

    kind = _check_choice(kind, _KINDS, "--kind")
    engine = build_engine(_settings(database_url), kind=kind)  # type: ignore[arg-type]
    try:
        name = engine.suggest(text) if exact else engine.suggest_for_narration(text)
    finally:
        engine.close()
    if name is None:
        print("No suggestion.", file=sys.stderr)
        raise typer.Exit(1)
    print(name)


@app.command("learn")
def learn_cmd(
    original: str = typer.Argument(..., help="Raw text as it appears in statements."),
    corrected: str = typer.Argument(..., help="Canonical party name."),
    *,
    kind: Annotated[str, KIND_OPTION] = "party",
    database_url: Annotated[str | None, DATABASE_URL_OPTION] = None,
) -> None:
    """Teach ORIGINAL → CORRECTED."""

    from .api import build_engine

    kind = _check_choice(kind, _KINDS, "--kind")
    engine = build_engine(_settings(database_url), kind=kind)  # type: ignore[arg-type]
    try:
        mapping = engine.learn(original, corrected)
    finally:
        engine.close()
    if mapping is None:
        print("Nothing learned.", file=sys.stderr)
        return
    print(f"{mapping.original_name}\t{mapping.corrected_name}\t{mapping.confidence}")


@app.command("train")
def train_cmd(
    narration: str = typer.Argument(..., help="Full bank narration."),
    name: str = typer.Argument(..., help="Confirmed party name for the narration."),
    *,
    kind: Annotated[str, KIND_OPTION] = "party",
    database_url: Annotated[str | None, DATABASE_URL_OPTION] = None,
) -> None:
    """Learn every pattern extracted from NARRATION for NAME."""

    from .api import build_engine

    kind = _check_choice(kind, _KINDS, "--kind")
    engine = build_engine(_settings(database_url), kind=kind)  # type: ignore[arg-type]
    try:
        learned = engine.auto_train(narration, name)
    finally:
        engine.close()
    print(f"learned={learned}")


@app.command("mappings")
def mappings_cmd(
    *,
    kind: Annotated[str, KIND_OPTION] = "party",
    sort: str = typer.Option("confidence", help="Order by 'confidence' or 'recent'."),
    delete: str | None = typer.Option(None, help="Delete the mapping with this id."),
    database_url: Annotated[str | None, DATABASE_URL_OPTION] = None,
) -> None:
    """List learned mappings, or delete one."""

    from .api import build_engine

    kind = _check_choice(kind, _KINDS, "--kind")
    sort = _check_choice(sort, ("confidence", "recent"), "--sort")
    engine = build_engine(_settings(database_url), kind=kind)  # type: ignore[arg-type]
    try:
        if delete is not None:
            if not engine.delete_mapping(delete):
                raise _fail(f"No {kind} mapping with id {delete!r}")
            print(f"deleted {delete}")
            return
        rows = engine.mappings_by_confidence() if sort == "confidence" else engine.mappings_by_last_used()
    except StatementLedgerError as e:
        raise _fail(str(e)) from e
    finally:
        engine.close()
    for m in rows:
        print(
            f"{m.id}\t{m.original_name}\t{m.corrected_name}\t{m.confidence}\t"
            f"{m.last_used.isoformat()}"
        )


@app.command("review")
def review_cmd(
    path: Annotated[Path, STATEMENT_ARG],
    *,
    type_filter: Annotated[str, TYPE_OPTION] = "both",
    kind: Annotated[str, KIND_OPTION] = "party",
    persist: bool = typer.Option(False, help="Store reviewed transactions in the ledger."),
    database_url: Annotated[str | None, DATABASE_URL_OPTION] = None,
) -> None:
    """Walk the statement, confirm a party name per row, and learn from it."""

    from .api import build_engine, open_store
    from .ledger import TransactionLedger
    from .term_ui import prompt_party_name

    type_filter = _check_choice(type_filter, _TYPE_FILTERS, "--type")
    kind = _check_choice(kind, _KINDS, "--kind")
    settings = _settings(database_url)
    result = _load_statement(path, type_filter, settings)

    store = open_store(settings)
    engine = build_engine(settings, store=store, kind=kind)  # type: ignore[arg-type]
    ledger = TransactionLedger(store, engine) if persist else None
    suggestions = engine.suggest_many([tx.description for tx in result.transactions])
    try:
        known = {m.corrected_name for m in engine.mappings()}
    except StatementLedgerError as e:
        _logger.warning("review:names_unavailable error=%s", e)
        known = set()
    reviewed = 0
    try:
        for i, (tx, suggested) in enumerate(zip(result.transactions, suggestions, strict=True), 1):
            print(
                f"[{i}/{len(result.transactions)}] {tx.date.isoformat()} {tx.type} "
                f"{tx.amount:.2f}  {tx.description}"
            )
            if reviewed:
                # Earlier answers in this session may resolve later rows.
                suggested = engine.suggest_for_narration(tx.description) or suggested
            answer = prompt_party_name(known, default=suggested)
            if answer is None:
                break
            if not answer:
                continue
            tx.party_name = answer
            known.add(answer)
            reviewed += 1
            if ledger is not None:
                ledger.add(tx)
            else:
                engine.auto_train(tx.description, answer)
    finally:
        engine.close()
    _logger.info("review:done reviewed=%d total=%d", reviewed, len(result.transactions))
    print(f"reviewed={reviewed} total={len(result.transactions)}", file=sys.stderr)


@app.callback(invoke_without_command=True)
def _root(
    ctx: typer.Context,
    *,
    log_level: str | None = typer.Option(
        None, help="Logging level (falls back to STATEMENT_LEDGER_LOG_LEVEL, then INFO)."
    ),
) -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding any
    already-set environment variables) and configures logging.
    """

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)

    configure_logging(log_level)

    if ctx.invoked_subcommand is None:
        typer.echo("No subcommand provided. Use --help to see available commands.")
        raise typer.Exit(1)


if __name__ == "__main__":  # pragma: no cover
    # Running as a module: `python -m statement_ledger.cli`
    app()
