"""DB helpers for tests: bootstrap a temporary SQLite key-value store."""

from __future__ import annotations

from pathlib import Path

from db import KvEntry
from db.client import create_db_engine, make_session_factory
from sqlalchemy import inspect
from statement_ledger.store import SqlStore


def sqlite_url(db_file: Path) -> str:
    return f"sqlite+pysqlite:///{db_file}"


def bootstrap_sqlite_store(db_file: Path) -> SqlStore:
    """Create a SQLite database file with the ``kv_entries`` table.

    A file-backed database lets the store's worker threads share state
    (in-memory SQLite databases are per-connection).
    """

    db_file.parent.mkdir(parents=True, exist_ok=True)
    engine = create_db_engine(sqlite_url(db_file))
    KvEntry.metadata.create_all(bind=engine, tables=[KvEntry.__table__])
    _assert_kv_schema_in_sync(engine)
    return SqlStore(make_session_factory(engine))


def _assert_kv_schema_in_sync(engine) -> None:
    """ORM column set matches the created table (catches model drift)."""

    expected = {c.name for c in KvEntry.__table__.columns}
    got = {c["name"] for c in inspect(engine).get_columns("kv_entries")}
    assert expected == got, f"kv_entries schema drift: missing={expected - got}, extra={got - expected}"
