"""Mapping table access over a :class:`~statement_ledger.store.KeyValueStore`.

Every store call runs in a worker thread bounded by ``timeout_seconds`` and
is retried on transient failures with exponential backoff and jitter. When
all attempts fail, :class:`~statement_ledger.errors.PersistenceUnavailable`
is raised; callers decide whether that degrades to "no suggestion" or to a
logged, dropped write.
"""

from __future__ import annotations

import random
import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from typing import Any

from pydantic import ValidationError
from sqlalchemy.exc import DBAPIError, OperationalError

from .errors import PersistenceUnavailable
from .logging_setup import get_logger
from .models import MappingKind, NameMapping
from .store import KeyValueStore

_logger = get_logger("statement_ledger.mappings")

_JITTER_PCT = 0.20
_RETRYABLE: tuple[type[BaseException], ...] = (
    TimeoutError,
    FutureTimeout,
    ConnectionError,
    OSError,
    OperationalError,
    DBAPIError,
)


def _is_retryable(exc: BaseException) -> bool:
    """Transport-level failures only; bad data is terminal."""

    return isinstance(exc, _RETRYABLE)


def backoff_delay(attempt_no: int, base: float) -> float:
    """Delay before retry ``attempt_no`` (1-based): ``base * 2**(n-1)`` ± 20%."""

    delay = base * (2 ** (attempt_no - 1))
    jitter = delay * _JITTER_PCT
    return max(0.0, delay + random.uniform(-jitter, jitter))


class MappingStore:
    """Typed CRUD for one mapping kind (``party`` or ``supplier``).

    Documents live under ``mappings/<kind>/<id>``.
    """

    def __init__(
        self,
        store: KeyValueStore,
        *,
        kind: MappingKind = "party",
        timeout_seconds: float = 10.0,
        max_attempts: int = 3,
        backoff_base_seconds: float = 0.5,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._store = store
        self.kind = kind
        self._timeout = timeout_seconds
        self._max_attempts = max(1, max_attempts)
        self._backoff_base = backoff_base_seconds
        self._sleep = sleep
        # Long-lived pool; timed-out calls are abandoned rather than joined.
        self._executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix=f"mappings-{kind}")

    @property
    def prefix(self) -> str:
        return f"mappings/{self.kind}/"

    def key_for(self, mapping_id: str) -> str:
        return f"{self.prefix}{mapping_id}"

    # ---- transport ---------------------------------------------------------

    def _call(self, op: str, fn: Callable[..., Any], *args: Any) -> Any:
        attempt = 1
        while True:
            t0 = time.perf_counter()
            try:
                future = self._executor.submit(fn, *args)
                return future.result(timeout=self._timeout)
            except Exception as e:  # noqa: BLE001
                dt_ms = (time.perf_counter() - t0) * 1000.0
                if attempt >= self._max_attempts or not _is_retryable(e):
                    _logger.error(
                        "mappings:%s_failed_terminal kind=%s attempt=%d latency_ms=%.2f error=%s",
                        op,
                        self.kind,
                        attempt,
                        dt_ms,
                        e.__class__.__name__,
                    )
                    raise PersistenceUnavailable(
                        f"mapping store {op} failed after {attempt} attempt(s): {e!r}"
                    ) from e
                _logger.warning(
                    "mappings:%s_retry kind=%s attempt=%d latency_ms=%.2f error=%s",
                    op,
                    self.kind,
                    attempt,
                    dt_ms,
                    e.__class__.__name__,
                )
            self._sleep(backoff_delay(attempt, self._backoff_base))
            attempt += 1

    # ---- operations --------------------------------------------------------

    def list_all(self) -> list[NameMapping]:
        docs = self._call("list", self._store.list, self.prefix)
        out: list[NameMapping] = []
        for doc in docs:
            try:
                out.append(NameMapping.model_validate(doc))
            except ValidationError as exc:
                _logger.warning(
                    "mappings:invalid_document kind=%s id=%s errors=%d",
                    self.kind,
                    doc.get("id") if isinstance(doc, dict) else None,
                    exc.error_count(),
                )
        return out

    def get(self, mapping_id: str) -> NameMapping | None:
        doc = self._call("get", self._store.get, self.key_for(mapping_id))
        return NameMapping.model_validate(doc) if doc is not None else None

    def save(self, mapping: NameMapping) -> None:
        self._call("put", self._store.put, self.key_for(mapping.id), mapping.model_dump(mode="json"))

    def delete(self, mapping_id: str) -> bool:
        return bool(self._call("delete", self._store.delete, self.key_for(mapping_id)))

    def close(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)


__all__ = ["MappingStore", "backoff_delay"]
