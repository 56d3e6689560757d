"""Self-improving party-name resolution.

The engine suggests a canonical name for raw text (usually a narration or a
fragment of one) and learns from every name the user confirms:

- ``suggest``: exact lookup of the normalized text, then a strict fuzzy
  comparison against every stored key (see :func:`~statement_ledger.matching.fuzzy_match`).
- ``learn``: idempotent upsert; repeated confirmations raise confidence
  (capped at 10).
- ``auto_train``: learn every multi-word phrase the extractor finds in a
  narration (see :func:`~statement_ledger.extraction.extract_training`), so
  later narrations sharing any of those phrases resolve.

Store outages never reach the caller: suggestions fail open (``None``) and
failed writes are logged and dropped. A narration lookup or a training run
stops at the first store failure instead of retrying per candidate.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime

from .cache import Clock, MappingCache
from .errors import PersistenceUnavailable
from .extraction import extract_training, iter_candidates
from .logging_setup import get_logger
from .mappings import MappingStore
from .matching import MatchThresholds, find_matching_parties, fuzzy_match, normalize_key
from .models import MAX_CONFIDENCE, NameMapping, utcnow

_logger = get_logger("statement_ledger.resolution")


def _rank(m: NameMapping) -> tuple[int, datetime]:
    return (m.confidence, m.last_used)


class NameResolutionEngine:
    """Suggest and learn canonical names for one mapping kind.

    Learning is serialized through a lock; lookups read a TTL snapshot of
    the mapping table and may run concurrently.
    """

    def __init__(
        self,
        mappings: MappingStore,
        *,
        thresholds: MatchThresholds | None = None,
        cache_ttl_seconds: float = 60.0,
        clock: Clock = time.monotonic,
        now: Callable[[], datetime] = utcnow,
    ) -> None:
        self._mappings = mappings
        self._thresholds = thresholds or MatchThresholds()
        self._cache = MappingCache(mappings.list_all, ttl_seconds=cache_ttl_seconds, clock=clock)
        self._now = now
        self._write_lock = threading.Lock()

    @property
    def kind(self) -> str:
        return self._mappings.kind

    @property
    def thresholds(self) -> MatchThresholds:
        return self._thresholds

    # ---- lookups -----------------------------------------------------------

    def suggest(self, raw_text: str | None) -> str | None:
        try:
            return self._suggest(raw_text)
        except PersistenceUnavailable as exc:
            _logger.warning("suggest:store_unavailable kind=%s error=%s", self.kind, exc)
            return None

    def _suggest(self, raw_text: str | None) -> str | None:
        key = normalize_key(raw_text)
        if not key:
            return None
        exact = self._cache.lookup(key)
        if exact is not None:
            _logger.debug("suggest:exact kind=%s key=%r", self.kind, key)
            return exact.corrected_name
        hits = [m for m in self._cache.all() if fuzzy_match(key, m.original_name, self._thresholds)]
        if not hits:
            return None
        best = max(hits, key=_rank)
        _logger.debug(
            "suggest:fuzzy kind=%s key=%r matched=%r candidates=%d",
            self.kind,
            key,
            best.original_name,
            len(hits),
        )
        return best.corrected_name

    def suggest_for_narration(self, narration: str | None) -> str | None:
        """Try the whole narration, then extracted candidates in layer order.

        The first store failure ends the search with no suggestion.
        """

        try:
            hit = self._suggest(narration)
            if hit is not None:
                return hit
            for layer in iter_candidates(narration):
                for candidate in layer:
                    hit = self._suggest(candidate)
                    if hit is not None:
                        return hit
        except PersistenceUnavailable as exc:
            _logger.warning(
                "suggest_for_narration:store_unavailable kind=%s error=%s", self.kind, exc
            )
        return None

    def suggest_many(
        self, texts: Sequence[str | None], *, concurrency: int = 8, narration: bool = True
    ) -> list[str | None]:
        """Suggest for many texts in parallel; results follow input order."""

        if not texts:
            return []
        fn = self.suggest_for_narration if narration else self.suggest
        # Warm once so workers share a snapshot instead of all reloading.
        try:
            self._cache.all()
        except PersistenceUnavailable as exc:
            _logger.warning("suggest_many:store_unavailable kind=%s error=%s", self.kind, exc)
            return [None] * len(texts)
        with ThreadPoolExecutor(max_workers=max(1, min(concurrency, len(texts)))) as pool:
            return list(pool.map(fn, texts))

    def apply_mapping(self, name: str) -> str:
        """Return the learned correction for ``name``, or ``name`` unchanged."""

        return self.suggest(name) or name

    def find_parties_in_narration(
        self, narration: str, parties: Iterable[str], max_matches: int = 3
    ) -> list[str]:
        return find_matching_parties(narration, parties, max_matches=max_matches)

    # ---- learning ----------------------------------------------------------

    def learn(self, raw_text: str | None, corrected_name: str | None) -> NameMapping | None:
        """Upsert ``raw_text → corrected_name``; returns the stored mapping.

        Returns ``None`` when there is nothing to learn or the write failed.
        """

        try:
            return self._learn(raw_text, corrected_name)
        except PersistenceUnavailable as exc:
            _logger.error(
                "learn:dropped kind=%s text=%r corrected=%r error=%s",
                self.kind,
                raw_text,
                corrected_name,
                exc,
            )
            return None

    def _learn(self, raw_text: str | None, corrected_name: str | None) -> NameMapping | None:
        key = normalize_key(raw_text)
        corrected = (corrected_name or "").strip()
        if not key or not corrected or key == normalize_key(corrected):
            return None
        with self._write_lock:
            try:
                return self._upsert(key, corrected)
            finally:
                self._cache.invalidate()

    def _upsert(self, key: str, corrected: str) -> NameMapping:
        stamp = self._now()
        existing = next((m for m in self._mappings.list_all() if m.original_name == key), None)
        if existing is None:
            mapping = NameMapping(
                original_name=key,
                corrected_name=corrected,
                confidence=1,
                last_used=stamp,
                created_at=stamp,
            )
            action = "insert"
        else:
            mapping = existing.model_copy(
                update={
                    "corrected_name": corrected,
                    "confidence": min(existing.confidence + 1, MAX_CONFIDENCE),
                    "last_used": stamp,
                }
            )
            action = "update"
        self._mappings.save(mapping)
        _logger.info(
            "learn:%s kind=%s key=%r corrected=%r confidence=%d",
            action,
            self.kind,
            key,
            corrected,
            mapping.confidence,
        )
        return mapping

    def auto_train(self, narration: str | None, corrected_name: str | None = None) -> int:
        """Learn every extracted candidate of ``narration`` for ``corrected_name``.

        Without a confirmed name nothing is persisted. Returns the number of
        mappings written.
        """

        name = (corrected_name or "").strip()
        if not name:
            _logger.debug("auto_train:deferred kind=%s reason=no_name", self.kind)
            return 0
        learned = 0
        candidates = extract_training(narration)
        try:
            for candidate in candidates:
                if self._learn(candidate, name) is not None:
                    learned += 1
        except PersistenceUnavailable as exc:
            _logger.error(
                "auto_train:aborted kind=%s candidates=%d learned=%d error=%s",
                self.kind,
                len(candidates),
                learned,
                exc,
            )
        _logger.info(
            "auto_train:done kind=%s candidates=%d learned=%d name=%r",
            self.kind,
            len(candidates),
            learned,
            name,
        )
        return learned

    # ---- administration ----------------------------------------------------

    def mappings(self) -> list[NameMapping]:
        return self._mappings.list_all()

    def get_mapping(self, original_name: str) -> NameMapping | None:
        key = normalize_key(original_name)
        return next((m for m in self._mappings.list_all() if m.original_name == key), None)

    def mappings_by_confidence(self) -> list[NameMapping]:
        return sorted(self._mappings.list_all(), key=_rank, reverse=True)

    def mappings_by_last_used(self) -> list[NameMapping]:
        return sorted(self._mappings.list_all(), key=lambda m: m.last_used, reverse=True)

    def update_mapping(
        self,
        mapping_id: str,
        *,
        original_name: str | None = None,
        corrected_name: str | None = None,
    ) -> NameMapping | None:
        """Edit a stored mapping in place; ``None`` if it does not exist."""

        with self._write_lock:
            try:
                current = self._mappings.get(mapping_id)
                if current is None:
                    return None
                changes: dict[str, object] = {"last_used": self._now()}
                if original_name is not None and normalize_key(original_name):
                    changes["original_name"] = normalize_key(original_name)
                if corrected_name is not None and corrected_name.strip():
                    changes["corrected_name"] = corrected_name.strip()
                updated = current.model_copy(update=changes)
                self._mappings.save(updated)
                return updated
            finally:
                self._cache.invalidate()

    def delete_mapping(self, mapping_id: str) -> bool:
        with self._write_lock:
            try:
                removed = self._mappings.delete(mapping_id)
            finally:
                self._cache.invalidate()
        _logger.info("mapping:delete kind=%s id=%s removed=%s", self.kind, mapping_id, removed)
        return removed

    def close(self) -> None:
        self._mappings.close()


__all__ = ["NameResolutionEngine"]
