"""Transaction table over the key-value store, with the training hook.

Adding or renaming the party of a transaction teaches the resolution engine
(``auto_train``). A transaction's ``date`` is fixed once stored: an update
that tries to change it keeps the original and emits a
:class:`~statement_ledger.errors.DateMutationAttempted` warning.
"""

from __future__ import annotations

import warnings
from collections.abc import Callable, Iterable
from datetime import datetime
from typing import Any

from pydantic import ValidationError

from .errors import DateMutationAttempted, PersistenceUnavailable
from .logging_setup import get_logger
from .models import Transaction, utcnow
from .normalizers import NormalizationResult
from .parsing import parse_date
from .resolution import NameResolutionEngine
from .store import KeyValueStore

_logger = get_logger("statement_ledger.ledger")

_PREFIX = "transactions/"
_IMMUTABLE_FIELDS = frozenset({"id", "created_at"})


class TransactionLedger:
    def __init__(
        self,
        store: KeyValueStore,
        engine: NameResolutionEngine | None = None,
        *,
        now: Callable[[], datetime] = utcnow,
    ) -> None:
        self._store = store
        self._engine = engine
        self._now = now

    @staticmethod
    def _key(tx_id: str) -> str:
        return f"{_PREFIX}{tx_id}"

    def _train(self, tx: Transaction) -> None:
        if self._engine is None or not tx.party_name.strip():
            return
        try:
            self._engine.auto_train(tx.description, tx.party_name)
        except (PersistenceUnavailable, ValueError) as exc:
            _logger.warning("ledger:train_failed id=%s error=%s", tx.id, exc)

    def add(self, tx: Transaction) -> Transaction:
        self._store.put(self._key(tx.id), tx.model_dump(mode="json"))
        _logger.debug("ledger:add id=%s type=%s amount=%s", tx.id, tx.type, tx.amount)
        self._train(tx)
        return tx

    def add_many(self, txs: Iterable[Transaction]) -> list[Transaction]:
        return [self.add(tx) for tx in txs]

    def import_statement(self, result: NormalizationResult) -> list[Transaction]:
        """Store every normalized transaction, in file order."""

        added = self.add_many(result.transactions)
        _logger.info(
            "ledger:import added=%d skipped=%d errors=%d",
            len(added),
            result.skipped,
            result.errors,
        )
        return added

    def get(self, tx_id: str) -> Transaction | None:
        doc = self._store.get(self._key(tx_id))
        return Transaction.model_validate(doc) if doc is not None else None

    def list(self) -> list[Transaction]:
        out: list[Transaction] = []
        for doc in self._store.list(_PREFIX):
            try:
                out.append(Transaction.model_validate(doc))
            except ValidationError as exc:
                _logger.warning("ledger:invalid_document id=%s errors=%d", doc.get("id"), exc.error_count())
        return out

    def update(self, tx_id: str, **changes: Any) -> Transaction:
        """Apply ``changes`` to a stored transaction and return the result.

        Raises ``KeyError`` for an unknown id and ``ValueError`` for fields
        that do not exist or may never change.
        """

        current = self.get(tx_id)
        if current is None:
            raise KeyError(tx_id)
        unknown = set(changes) - set(Transaction.model_fields)
        if unknown:
            raise ValueError(f"unknown transaction fields: {sorted(unknown)}")
        frozen = set(changes) & _IMMUTABLE_FIELDS
        if frozen:
            raise ValueError(f"fields cannot be updated: {sorted(frozen)}")

        if "date" in changes:
            requested = changes.pop("date")
            # Same calendar date in any accepted form counts as unchanged.
            if parse_date(requested) != current.date:
                msg = (
                    f"transaction {tx_id}: date cannot change after creation "
                    f"(kept {current.date.isoformat()}, ignored {requested!r})"
                )
                _logger.warning("ledger:date_mutation_rejected id=%s kept=%s", tx_id, current.date)
                warnings.warn(msg, DateMutationAttempted, stacklevel=2)

        party_changed = "party_name" in changes and changes["party_name"] != current.party_name
        data = current.model_dump()
        data.update(changes)
        data["updated_at"] = self._now()
        updated = Transaction.model_validate(data)
        self._store.put(self._key(tx_id), updated.model_dump(mode="json"))
        if party_changed:
            self._train(updated)
        return updated


__all__ = ["TransactionLedger"]
