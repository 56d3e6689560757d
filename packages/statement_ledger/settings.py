"""Runtime settings resolved from the environment.

Entrypoints load ``.env`` via ``python-dotenv`` first and then call
:meth:`Settings.from_env`. Library code receives a ``Settings`` instance
explicitly; nothing here is read at import time.

Recognised variables
--------------------
- ``DATABASE_URL``: SQLAlchemy URL for the key-value store. When unset, an
  in-memory store is used.
- ``STATEMENT_LEDGER_CACHE_TTL``: mapping cache lifetime in seconds (60).
- ``STATEMENT_LEDGER_STORE_TIMEOUT``: per-call store timeout in seconds (10).
- ``STATEMENT_LEDGER_MAX_ATTEMPTS``: store call attempts before giving up (3).
- ``STATEMENT_LEDGER_BACKOFF_BASE``: first retry delay in seconds (0.5).
- ``STATEMENT_LEDGER_HEADER_SCAN``: rows scanned for the header (10).
- ``STATEMENT_LEDGER_FUZZY_CONTAINMENT``, ``STATEMENT_LEDGER_FUZZY_OVERLAP``,
  ``STATEMENT_LEDGER_FUZZY_LENGTH_RATIO``, ``STATEMENT_LEDGER_FUZZY_MIN_WORDS``:
  fuzzy-match thresholds (see :class:`~statement_ledger.matching.MatchThresholds`).
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field

from .logging_setup import get_logger
from .matching import MatchThresholds

_logger = get_logger("statement_ledger.settings")


def _env_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        _logger.warning("settings:invalid_value name=%s value=%r using=%s", name, raw, default)
        return default
    if value <= 0:
        _logger.warning("settings:non_positive name=%s value=%r using=%s", name, raw, default)
        return default
    return value


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        _logger.warning("settings:invalid_value name=%s value=%r using=%s", name, raw, default)
        return default
    if value < 1:
        _logger.warning("settings:non_positive name=%s value=%r using=%s", name, raw, default)
        return default
    return value


@dataclass(frozen=True, slots=True)
class Settings:
    database_url: str | None = None
    cache_ttl_seconds: float = 60.0
    store_timeout_seconds: float = 10.0
    max_attempts: int = 3
    backoff_base_seconds: float = 0.5
    header_scan_rows: int = 10
    thresholds: MatchThresholds = field(default_factory=MatchThresholds)

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> Settings:
        """Build settings from ``env`` (defaults to ``os.environ``)."""

        env = os.environ if env is None else env
        defaults = MatchThresholds()
        thresholds = MatchThresholds(
            min_overlap_words=_env_int(
                env, "STATEMENT_LEDGER_FUZZY_MIN_WORDS", defaults.min_overlap_words
            ),
            containment_overlap=_env_float(
                env, "STATEMENT_LEDGER_FUZZY_CONTAINMENT", defaults.containment_overlap
            ),
            overlap_ratio=_env_float(
                env, "STATEMENT_LEDGER_FUZZY_OVERLAP", defaults.overlap_ratio
            ),
            min_length_ratio=_env_float(
                env, "STATEMENT_LEDGER_FUZZY_LENGTH_RATIO", defaults.min_length_ratio
            ),
        )
        url = (env.get("DATABASE_URL") or "").strip() or None
        return cls(
            database_url=url,
            cache_ttl_seconds=_env_float(env, "STATEMENT_LEDGER_CACHE_TTL", 60.0),
            store_timeout_seconds=_env_float(env, "STATEMENT_LEDGER_STORE_TIMEOUT", 10.0),
            max_attempts=_env_int(env, "STATEMENT_LEDGER_MAX_ATTEMPTS", 3),
            backoff_base_seconds=_env_float(env, "STATEMENT_LEDGER_BACKOFF_BASE", 0.5),
            header_scan_rows=_env_int(env, "STATEMENT_LEDGER_HEADER_SCAN", 10),
            thresholds=thresholds,
        )


__all__ = ["Settings"]
