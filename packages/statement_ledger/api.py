"""Public API surface for the ``statement_ledger`` package.

Callers normalize statements with :func:`normalize_statement` and resolve
names through an engine built once with :func:`build_engine`:

    engine = build_engine()
    result = normalize_statement(data, "csv", "both")
    for tx in result.transactions:
        tx.party_name = suggest_name(tx.description, engine=engine) or ""
"""

from __future__ import annotations

from .logging_setup import get_logger
from .mappings import MappingStore
from .models import MappingKind, TypeFilter
from .normalizers import NormalizationResult, StatementNormalizer
from .resolution import NameResolutionEngine
from .settings import Settings
from .store import InMemoryStore, KeyValueStore, SqlStore

_logger = get_logger("statement_ledger.api")


def open_store(settings: Settings | None = None) -> KeyValueStore:
    """Return the configured store: SQL when ``DATABASE_URL`` is set, else memory."""

    settings = settings or Settings.from_env()
    url = settings.database_url
    if url:
        # Local SQLite files are created on demand; other databases are
        # migrated with Alembic (libs/db).
        return SqlStore.from_url(url, create_schema=url.startswith("sqlite"))
    _logger.info("store:in_memory reason=no_database_url")
    return InMemoryStore()


def build_engine(
    settings: Settings | None = None,
    *,
    store: KeyValueStore | None = None,
    kind: MappingKind = "party",
) -> NameResolutionEngine:
    settings = settings or Settings.from_env()
    if store is None:
        store = open_store(settings)
    mappings = MappingStore(
        store,
        kind=kind,
        timeout_seconds=settings.store_timeout_seconds,
        max_attempts=settings.max_attempts,
        backoff_base_seconds=settings.backoff_base_seconds,
    )
    return NameResolutionEngine(
        mappings,
        thresholds=settings.thresholds,
        cache_ttl_seconds=settings.cache_ttl_seconds,
    )


def normalize_statement(
    file_bytes: bytes | str,
    format: str,
    type_filter: TypeFilter = "both",
    *,
    settings: Settings | None = None,
) -> NormalizationResult:
    """Normalize a CSV/Excel statement into canonical transactions.

    Raises
    ------
    MalformedInput
        The file cannot be decoded at all.
    EmptyInput
        No data rows below the header.
    NoMatchingTransactions
        No row survived parsing and ``type_filter``; the error carries the
        detected columns and a sample row.
    """

    max_scan = settings.header_scan_rows if settings is not None else 10
    return StatementNormalizer(max_scan=max_scan).normalize(file_bytes, format, type_filter)


def suggest_name(text: str, *, engine: NameResolutionEngine) -> str | None:
    return engine.suggest(text)


def learn_mapping(original: str, corrected: str, *, engine: NameResolutionEngine) -> None:
    engine.learn(original, corrected)


def auto_train_from_narration(
    narration: str, corrected_name: str | None = None, *, engine: NameResolutionEngine
) -> None:
    engine.auto_train(narration, corrected_name)


__all__ = [
    "auto_train_from_narration",
    "build_engine",
    "learn_mapping",
    "normalize_statement",
    "open_store",
    "suggest_name",
]
