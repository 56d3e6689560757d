"""Pytest configuration and shared fixtures.

The workspace packages (``packages/statement_ledger`` and ``libs/db/src/db``)
are put on ``sys.path`` so the suite runs without an install. Every test gets
a fresh in-memory store, a controllable clock for the mapping cache, and an
engine whose store retries never actually sleep.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

_ROOT = Path(__file__).resolve().parents[1]
_PATHS = [_ROOT / "packages", _ROOT / "libs" / "db" / "src", _ROOT]
sys.path[:0] = [str(p) for p in _PATHS if str(p) not in sys.path]

from statement_ledger.logging_setup import reset_logging  # noqa: E402
from statement_ledger.mappings import MappingStore  # noqa: E402
from statement_ledger.resolution import NameResolutionEngine  # noqa: E402
from statement_ledger.store import InMemoryStore  # noqa: E402


class FakeClock:
    """Monotonic clock the test advances by hand."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep a developer's DATABASE_URL / tuning variables out of the tests."""

    monkeypatch.delenv("DATABASE_URL", raising=False)
    for name in (
        "STATEMENT_LEDGER_CACHE_TTL",
        "STATEMENT_LEDGER_STORE_TIMEOUT",
        "STATEMENT_LEDGER_MAX_ATTEMPTS",
        "STATEMENT_LEDGER_BACKOFF_BASE",
        "STATEMENT_LEDGER_HEADER_SCAN",
        "STATEMENT_LEDGER_FUZZY_MIN_WORDS",
        "STATEMENT_LEDGER_FUZZY_CONTAINMENT",
        "STATEMENT_LEDGER_FUZZY_OVERLAP",
        "STATEMENT_LEDGER_FUZZY_LENGTH_RATIO",
        "STATEMENT_LEDGER_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def _reset_logging():
    """Drop any handler a CLI invocation attached to its captured stderr."""

    yield
    reset_logging()


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def engine(store: InMemoryStore, clock: FakeClock):
    mappings = MappingStore(store, kind="party", timeout_seconds=2.0, sleep=lambda _s: None)
    eng = NameResolutionEngine(mappings, cache_ttl_seconds=60.0, clock=clock)
    yield eng
    eng.close()
