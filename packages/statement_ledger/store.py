"""Persistence boundary: a tiny key-value document store.

Values are JSON-compatible dicts. Keys are slash-separated paths such as
``mappings/party/<id>`` and ``transactions/<id>``; ``list(prefix)`` returns
the values under a prefix ordered by key.
"""

from __future__ import annotations

import copy
import threading
from collections.abc import Callable
from datetime import datetime
from typing import Any, Protocol, runtime_checkable

from db.client import create_db_engine, make_session_factory, session_scope
from db.models.ledger import Base, KvEntry
from sqlalchemy import select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from .logging_setup import get_logger
from .models import utcnow

type Document = dict[str, Any]

_logger = get_logger("statement_ledger.store")


@runtime_checkable
class KeyValueStore(Protocol):
    def get(self, key: str) -> Document | None: ...

    def put(self, key: str, value: Document) -> None: ...

    def list(self, prefix: str) -> list[Document]: ...

    def delete(self, key: str) -> bool: ...


class InMemoryStore:
    """Process-local store; values are deep-copied on the way in and out."""

    def __init__(self) -> None:
        self._data: dict[str, Document] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Document | None:
        with self._lock:
            value = self._data.get(key)
            return copy.deepcopy(value) if value is not None else None

    def put(self, key: str, value: Document) -> None:
        with self._lock:
            self._data[key] = copy.deepcopy(value)

    def list(self, prefix: str) -> list[Document]:
        with self._lock:
            return [copy.deepcopy(self._data[k]) for k in sorted(self._data) if k.startswith(prefix)]

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._data.pop(key, None) is not None

    def __len__(self) -> int:
        return len(self._data)


class SqlStore:
    """Store backed by the ``kv_entries`` table (see ``db.models.ledger``)."""

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        *,
        now: Callable[[], datetime] = utcnow,
    ) -> None:
        self._factory = session_factory
        self._now = now

    @classmethod
    def from_engine(cls, engine: Engine, *, create_schema: bool = False) -> SqlStore:
        if create_schema:
            # Alembic owns the schema in deployed databases.
            Base.metadata.create_all(bind=engine, tables=[KvEntry.__table__])
        return cls(make_session_factory(engine))

    @classmethod
    def from_url(cls, url: str, *, create_schema: bool = False) -> SqlStore:
        _logger.debug("store:open backend=%s", url.split(":", 1)[0])
        return cls.from_engine(create_db_engine(url), create_schema=create_schema)

    def get(self, key: str) -> Document | None:
        with session_scope(self._factory) as s:
            row = s.get(KvEntry, key)
            return dict(row.value) if row is not None else None

    def put(self, key: str, value: Document) -> None:
        stamp = self._now()
        with session_scope(self._factory) as s:
            row = s.get(KvEntry, key)
            if row is None:
                s.add(KvEntry(key=key, value=value, created_at=stamp, updated_at=stamp))
            else:
                row.value = value
                row.updated_at = stamp

    def list(self, prefix: str) -> list[Document]:
        stmt = (
            select(KvEntry.value)
            .where(KvEntry.key.startswith(prefix, autoescape=True))
            .order_by(KvEntry.key)
        )
        with session_scope(self._factory) as s:
            return [dict(v) for v in s.scalars(stmt)]

    def delete(self, key: str) -> bool:
        with session_scope(self._factory) as s:
            row = s.get(KvEntry, key)
            if row is None:
                return False
            s.delete(row)
            return True


__all__ = [
    "Document",
    "InMemoryStore",
    "KeyValueStore",
    "SqlStore",
]
