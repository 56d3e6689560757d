"""Locate the true header row of a statement grid.

Bank exports frequently prepend title, branch and account-holder rows before
the real column header. The first row (within ``max_scan``) whose cells
mention a date, a narration and an amount column is taken as the header;
otherwise row 0 is used.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from .logging_setup import get_logger

_logger = get_logger("statement_ledger.header")

DEFAULT_MAX_SCAN = 10

_NARRATION_TOKENS = ("narration", "description", "particulars", "details", "remarks")
_AMOUNT_TOKENS = ("deposit", "credit", "withdrawal", "debit", "amount")
_METADATA_TOKENS = ("page no", "statement of account", "account statement")


def _cell_text(cell: Any) -> str:
    return "" if cell is None else str(cell).strip()


def is_header_row(row: Sequence[Any]) -> bool:
    cells = [_cell_text(c) for c in row]
    if sum(1 for c in cells if c) < 3:
        return False
    text = " ".join(cells).lower()
    if any(tok in text for tok in _METADATA_TOKENS):
        return False
    has_date = "date" in text
    has_narration = any(tok in text for tok in _NARRATION_TOKENS)
    has_amount = any(tok in text for tok in _AMOUNT_TOKENS)
    return has_date and has_narration and has_amount


def locate_header(rows: Sequence[Sequence[Any]], max_scan: int = DEFAULT_MAX_SCAN) -> int:
    """Return the index of the header row among the first ``max_scan`` rows."""

    for i, row in enumerate(rows[: max(0, max_scan)]):
        if row and is_header_row(row):
            _logger.debug("header:found index=%d", i)
            return i
    _logger.debug("header:fallback index=0 scanned=%d", min(len(rows), max_scan))
    return 0


def split_header(
    rows: Sequence[Sequence[Any]], max_scan: int = DEFAULT_MAX_SCAN
) -> tuple[int, list[str], list[Sequence[Any]]]:
    """Return ``(header_index, labels, data_rows)`` for a raw grid."""

    if not rows:
        return 0, [], []
    idx = locate_header(rows, max_scan=max_scan)
    labels = [_cell_text(c) for c in rows[idx]]
    return idx, labels, list(rows[idx + 1 :])


__all__ = ["DEFAULT_MAX_SCAN", "is_header_row", "locate_header", "split_header"]
