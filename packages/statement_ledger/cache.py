"""Short-lived snapshot cache of the mapping table.

Bulk suggestion passes look up every row against every stored mapping; the
cache bounds those reads to one store listing per TTL window. It is
read-refresh-on-miss: an expired (or invalidated) snapshot is reloaded by the
next reader. Concurrent readers may both reload; the last assignment wins,
which is harmless because both loaded the same table.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from .logging_setup import get_logger
from .models import NameMapping

type Clock = Callable[[], float]
type Loader = Callable[[], Sequence[NameMapping]]

_logger = get_logger("statement_ledger.cache")


@dataclass(frozen=True, slots=True)
class _Snapshot:
    loaded_at: float
    by_key: dict[str, NameMapping]
    mappings: tuple[NameMapping, ...]


class MappingCache:
    """TTL cache over a loader callable.

    ``clock`` returns seconds (``time.monotonic`` by default) and can be
    replaced in tests to control expiry.
    """

    def __init__(self, loader: Loader, *, ttl_seconds: float = 60.0, clock: Clock = time.monotonic) -> None:
        self._loader = loader
        self._ttl = ttl_seconds
        self._clock = clock
        self._snapshot: _Snapshot | None = None

    def _fresh(self) -> _Snapshot:
        snap = self._snapshot
        now = self._clock()
        if snap is not None and now - snap.loaded_at < self._ttl:
            return snap
        mappings = tuple(self._loader())
        by_key: dict[str, NameMapping] = {}
        for m in mappings:
            by_key.setdefault(m.original_name, m)
        snap = _Snapshot(loaded_at=now, by_key=by_key, mappings=mappings)
        self._snapshot = snap
        _logger.debug("cache:refresh size=%d", len(mappings))
        return snap

    def lookup(self, key: str) -> NameMapping | None:
        return self._fresh().by_key.get(key)

    def all(self) -> tuple[NameMapping, ...]:
        return self._fresh().mappings

    def invalidate(self) -> None:
        self._snapshot = None

    @property
    def is_warm(self) -> bool:
        snap = self._snapshot
        return snap is not None and self._clock() - snap.loaded_at < self._ttl


__all__ = ["Clock", "MappingCache"]
