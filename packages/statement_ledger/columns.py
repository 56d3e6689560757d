"""Raw statement rows and semantic column resolution.

Bank exports name the same column many ways ("Deposit Amt.", "Credit Amount",
"CR", ...), and labels are neither unique nor consistently cased. A
:class:`RawRow` keeps the labels exactly as found in the file; :func:`resolve`
finds the cell for a semantic target in two phases:

1. keyword scan over every label, with disqualifying substrings (a "date"
   column must not be "Value Dt" or a "Closing ..." column);
2. exact lookup in a per-target alias table.

A cell is accepted only when present and not one of the sentinel empties
(``""``, ``"undefined"``, ``"null"``); otherwise the search continues.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Mapping, Sequence
from typing import Any, Literal

type ColumnTarget = Literal["date", "narration", "deposit", "withdrawal", "reference"]

COLUMN_TARGETS: tuple[ColumnTarget, ...] = (
    "date",
    "narration",
    "deposit",
    "withdrawal",
    "reference",
)

_SENTINEL_EMPTIES = frozenset({"", "undefined", "null"})


def normalize_label(label: Any) -> str:
    """Lower-case a column label and collapse internal whitespace."""

    return " ".join(str(label if label is not None else "").split()).lower()


class RawRow(Mapping[str, Any]):
    """An ordered mapping from column label to cell value.

    Duplicate labels are kept in :meth:`cells` (file order) while mapping
    access returns the first occurrence, matching how a header-keyed reader
    would see the row.
    """

    __slots__ = ("_cells", "_first")

    def __init__(self, cells: Iterable[tuple[str, Any]]) -> None:
        self._cells: list[tuple[str, Any]] = [(str(k), v) for k, v in cells]
        self._first: dict[str, Any] = {}
        for label, value in self._cells:
            self._first.setdefault(label, value)

    @classmethod
    def from_sequence(cls, labels: Sequence[Any], values: Sequence[Any]) -> RawRow:
        """Zip header labels with a row of cells, skipping blank labels.

        Missing trailing cells become ``""``.
        """

        cells: list[tuple[str, Any]] = []
        for i, label in enumerate(labels):
            text = str(label).strip() if label is not None else ""
            if not text:
                continue
            value = values[i] if i < len(values) else ""
            cells.append((text, "" if value is None else value))
        return cls(cells)

    def __getitem__(self, key: str) -> Any:
        return self._first[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._first)

    def __len__(self) -> int:
        return len(self._first)

    def __repr__(self) -> str:
        return f"RawRow({self._cells!r})"

    def cells(self) -> list[tuple[str, Any]]:
        return list(self._cells)

    def is_blank(self) -> bool:
        return all(str(v if v is not None else "").strip() == "" for _, v in self._cells)


def _has_any(label: str, *words: str) -> bool:
    return any(w in label for w in words)


def _is_date_label(label: str) -> bool:
    return "date" in label and not _has_any(label, "value", "closing")


def _is_narration_label(label: str) -> bool:
    return _has_any(label, "narration", "description", "particulars")


def _is_deposit_label(label: str) -> bool:
    return _has_any(label, "deposit", "credit") and _has_any(label, "amt", "amount")


def _is_withdrawal_label(label: str) -> bool:
    return _has_any(label, "withdrawal", "debit") and _has_any(label, "amt", "amount")


def _is_reference_label(label: str) -> bool:
    return _has_any(label, "ref", "chq", "cheque")


_KEYWORD_RULES: dict[ColumnTarget, Callable[[str], bool]] = {
    "date": _is_date_label,
    "narration": _is_narration_label,
    "deposit": _is_deposit_label,
    "withdrawal": _is_withdrawal_label,
    "reference": _is_reference_label,
}

_ALIASES: dict[ColumnTarget, tuple[str, ...]] = {
    "date": ("date", "transaction date", "txn date", "tran date", "value dt", "value date"),
    "narration": (
        "narration",
        "description",
        "particulars",
        "transaction details",
        "details",
        "remarks",
    ),
    "deposit": (
        "deposit amt.",
        "deposit amt",
        "deposit amount",
        "deposit",
        "deposits",
        "credit amt.",
        "credit amt",
        "credit amount",
        "credit",
        "credits",
        "cr",
    ),
    "withdrawal": (
        "withdrawal amt.",
        "withdrawal amt",
        "withdrawal amount",
        "withdrawal",
        "withdrawals",
        "debit amt.",
        "debit amt",
        "debit amount",
        "debit",
        "debits",
        "dr",
    ),
    "reference": ("chq./ref.no.", "chq/ref.no.", "ref no", "ref no.", "reference", "utr"),
}


def _accept(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return value.strip().lower() not in _SENTINEL_EMPTIES
    return True


def _clean(value: Any) -> Any:
    return value.strip() if isinstance(value, str) else value


def resolve(row: RawRow, target: ColumnTarget) -> Any | None:
    """Return the cell value for ``target`` or ``None`` when absent."""

    rule = _KEYWORD_RULES[target]
    cells = row.cells()
    for label, value in cells:
        if rule(normalize_label(label)) and _accept(value):
            return _clean(value)

    by_label: dict[str, Any] = {}
    for label, value in cells:
        if _accept(value):
            by_label.setdefault(normalize_label(label), value)
    for alias in _ALIASES[target]:
        if alias in by_label:
            return _clean(by_label[alias])
    return None


def resolve_label(labels: Sequence[Any], target: ColumnTarget) -> str | None:
    """Return the header label that :func:`resolve` would prefer for ``target``.

    Used for diagnostics only; value-level fallbacks are not considered.
    """

    rule = _KEYWORD_RULES[target]
    for label in labels:
        if rule(normalize_label(label)):
            return str(label).strip()
    normalized = {normalize_label(label): str(label).strip() for label in labels}
    for alias in _ALIASES[target]:
        if alias in normalized:
            return normalized[alias]
    return None


def detect_columns(labels: Sequence[Any]) -> dict[ColumnTarget, str | None]:
    return {t: resolve_label(labels, t) for t in COLUMN_TARGETS}


__all__ = [
    "COLUMN_TARGETS",
    "ColumnTarget",
    "RawRow",
    "detect_columns",
    "normalize_label",
    "resolve",
    "resolve_label",
]
