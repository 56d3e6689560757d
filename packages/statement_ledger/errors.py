"""Exception taxonomy for statement normalization and name resolution.

Only two conditions escalate to the caller of :func:`normalize_statement`:
an input that cannot be decoded at all (:class:`MalformedInput` and its
:class:`EmptyInput` refinement) and a file in which no row survives filtering
(:class:`NoMatchingTransactions`). Row-level problems are counted, store
outages degrade silently, and date mutations are reported as warnings.
"""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from typing import Any


class StatementLedgerError(Exception):
    """Base class for all errors raised by ``statement_ledger``."""


class MalformedInput(StatementLedgerError):
    """The statement file could not be opened or decoded."""


class EmptyInput(MalformedInput):
    """The statement decoded fine but holds no data rows below the header."""


class UnresolvableRow(StatementLedgerError):
    """A single row lacks a usable date or amount.

    Raised and caught inside the normalizer; it never reaches callers.
    """

    def __init__(self, index: int, reason: str) -> None:
        super().__init__(f"row {index}: {reason}")
        self.index = index
        self.reason = reason


class NoMatchingTransactions(StatementLedgerError):
    """Every row was filtered out.

    Carries the detected column labels and a sample row so that the user can
    tell a header-matching failure apart from a genuinely empty statement.
    """

    def __init__(
        self,
        *,
        type_filter: str,
        columns: Sequence[str],
        sample_row: Mapping[str, Any] | None,
        header_row: int,
    ) -> None:
        self.type_filter = type_filter
        self.columns = list(columns)
        self.sample_row = dict(sample_row) if sample_row is not None else None
        self.header_row = header_row
        super().__init__(self._message())

    def _message(self) -> str:
        kind = "" if self.type_filter == "both" else f"{self.type_filter} "
        amount_col = {
            "credit": "Deposit",
            "debit": "Withdrawal",
        }.get(self.type_filter, "Deposit or Withdrawal")
        sample = (
            json.dumps(self.sample_row, default=str, ensure_ascii=False)
            if self.sample_row is not None
            else "none"
        )
        return (
            f"No {kind}transactions found.\n"
            f"Header row found at: row {self.header_row + 1}\n"
            f"Found columns: {', '.join(self.columns) or 'none'}\n"
            f"Sample row: {sample}\n"
            "Please check that the file has Date, Narration and "
            f"{amount_col} Amt. headers and that the amount column holds values > 0."
        )


NoTransactionsFound = NoMatchingTransactions


class PersistenceUnavailable(StatementLedgerError):
    """The key-value store timed out or failed after all retry attempts."""


class DateMutationAttempted(UserWarning):
    """An update tried to change a transaction's date after creation."""


__all__ = [
    "StatementLedgerError",
    "MalformedInput",
    "EmptyInput",
    "UnresolvableRow",
    "NoMatchingTransactions",
    "NoTransactionsFound",
    "PersistenceUnavailable",
    "DateMutationAttempted",
]
