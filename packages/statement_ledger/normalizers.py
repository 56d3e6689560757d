"""Bank statement (CSV / Excel) → canonical :class:`Transaction` normalizer.

The normalizer walks three states per file: it scans for the header row,
normalizes the rows below it one by one (in file order), and finishes with a
:class:`NormalizationResult`. Column names are never hard-coded per bank;
semantic columns are found through :mod:`statement_ledger.columns`.

Per row:

1. resolve and parse the date (no date → row skipped);
2. resolve deposit and withdrawal independently; the larger positive amount
   wins and decides the type (a tie favors credit); no positive amount → row
   skipped;
3. apply the caller's ``type_filter``;
4. resolve narration and reference number (best effort);
5. leave ``party_name`` blank for the resolution engine;
6. assign a keyword-based category.

A bad row never aborts the batch. Only an undecodable input
(:class:`MalformedInput`), an input without data rows (:class:`EmptyInput`),
or a file where nothing survives filtering (:class:`NoMatchingTransactions`)
fail the call.
"""

from __future__ import annotations

import csv
import re
import zipfile
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from io import BytesIO, StringIO
from pathlib import PurePath
from typing import Any, Literal

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException
from pydantic import ValidationError

from .categories import categorize
from .columns import RawRow, resolve
from .errors import EmptyInput, MalformedInput, NoMatchingTransactions, UnresolvableRow
from .header import DEFAULT_MAX_SCAN, split_header
from .logging_setup import get_logger
from .models import Transaction, TransactionType, TypeFilter, utcnow
from .parsing import parse_amount, parse_date

type StatementFormat = Literal["csv", "xlsx"]

_logger = get_logger("statement_ledger.normalizers")

_FORMAT_ALIASES: dict[str, StatementFormat] = {
    "csv": "csv",
    "txt": "csv",
    "xlsx": "xlsx",
    "xlsm": "xlsx",
    "excel": "xlsx",
}
_TEXT_ENCODINGS = ("utf-8-sig", "cp1252", "latin-1")
_DELIMITERS = ",;\t|"
_SNIFF_CHARS = 8192
_SEPARATOR_CELL = re.compile(r"^[*\-=_\s]*$")
_SUMMARY_PHRASES = (
    "opening balance",
    "closing balance",
    "grand total",
    "statement summary",
    "balance brought forward",
    "balance carried forward",
    "total deposit",
    "total withdrawal",
    "total credit",
    "total debit",
    "net balance",
)


class _State(Enum):
    SCANNING_HEADER = "scanning_header"
    NORMALIZING_ROWS = "normalizing_rows"
    DONE = "done"


@dataclass(frozen=True, slots=True)
class NormalizationResult:
    """Outcome of a successful normalization call."""

    transactions: list[Transaction]
    skipped: int
    errors: int
    header_row: int = 0
    columns: list[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Input decoding
# ---------------------------------------------------------------------------


def detect_format(filename: str) -> StatementFormat:
    """Infer the statement format from a file name's extension."""

    suffix = PurePath(filename).suffix.lower().lstrip(".")
    if suffix == "xls":
        raise MalformedInput(
            "Legacy .xls workbooks are not supported; re-save the file as .xlsx or CSV."
        )
    try:
        return _FORMAT_ALIASES[suffix]
    except KeyError:
        raise MalformedInput(f"Unsupported statement file type: {filename!r}") from None


def _decode_text(file_bytes: bytes) -> str:
    if b"\x00" in file_bytes[:4096] or file_bytes[:4] == b"PK\x03\x04":
        raise MalformedInput("File looks binary; expected delimited text (CSV).")
    for enc in _TEXT_ENCODINGS:
        try:
            return file_bytes.decode(enc)
        except UnicodeDecodeError:
            continue
    raise MalformedInput("Failed to decode CSV text")  # pragma: no cover - latin-1 never fails


def sniff_delimiter(text: str) -> str:
    """Guess the field delimiter (comma, semicolon, tab or pipe) of ``text``.

    ``csv.Sniffer`` gives up on files with a preamble of differently shaped
    lines; the most frequent candidate in the sample decides then.
    """

    sample = text[:_SNIFF_CHARS]
    try:
        return csv.Sniffer().sniff(sample, delimiters=_DELIMITERS).delimiter
    except csv.Error:
        counts = {d: sample.count(d) for d in _DELIMITERS}
        best = max(counts, key=lambda d: counts[d])
        return best if counts[best] else ","


def read_csv_grid(data: bytes | str) -> list[list[str]]:
    """Decode delimited text (bytes or str) into a grid of trimmed string cells."""

    text = data if isinstance(data, str) else _decode_text(data)
    delimiter = sniff_delimiter(text)
    _logger.debug("normalize:csv delimiter=%r", delimiter)
    try:
        with StringIO(text, newline="") as f:
            return [[cell.strip() for cell in row] for row in csv.reader(f, delimiter=delimiter)]
    except csv.Error as exc:
        raise MalformedInput(f"Failed to parse CSV: {exc}") from exc


def read_excel_grid(data: bytes) -> list[list[Any]]:
    """Load the first worksheet of an ``.xlsx`` workbook as a grid of cells."""

    try:
        wb = load_workbook(BytesIO(data), read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError, ValueError) as exc:
        raise MalformedInput(f"Failed to parse Excel file: {exc}") from exc
    try:
        if not wb.worksheets:
            raise MalformedInput("Excel file has no sheets")
        ws = wb.worksheets[0]
        return [["" if c is None else c for c in row] for row in ws.iter_rows(values_only=True)]
    finally:
        wb.close()


def read_grid(file_bytes: bytes | str, fmt: str) -> list[list[Any]]:
    key = _FORMAT_ALIASES.get(fmt.strip().lower())
    if key is None:
        raise MalformedInput(f"Unsupported statement format: {fmt!r}")
    if key == "csv":
        return read_csv_grid(file_bytes)
    if isinstance(file_bytes, str):
        raise MalformedInput("Excel input must be raw workbook bytes")
    return read_excel_grid(file_bytes)


# ---------------------------------------------------------------------------
# Row helpers
# ---------------------------------------------------------------------------


def _is_separator_row(row: RawRow) -> bool:
    return all(_SEPARATOR_CELL.match(str(v if v is not None else "")) for _, v in row.cells())


def _is_summary_narration(narration: str) -> bool:
    text = narration.lower()
    if len(text) >= 50:
        return False
    return text.strip() == "total" or any(p in text for p in _SUMMARY_PHRASES)


def _cell_to_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        # Excel stores cheque/reference numbers as floats.
        return str(int(value))
    if isinstance(value, datetime):
        return value.date().isoformat()
    return str(value).strip()


def _pick_amount(deposit: Decimal, withdrawal: Decimal) -> tuple[Decimal, TransactionType] | None:
    if deposit > 0 and withdrawal > 0:
        if deposit >= withdrawal:
            return deposit, "credit"
        return withdrawal, "debit"
    if deposit > 0:
        return deposit, "credit"
    if withdrawal > 0:
        return withdrawal, "debit"
    return None


# ---------------------------------------------------------------------------
# Normalizer
# ---------------------------------------------------------------------------


class StatementNormalizer:
    """Turn a raw statement into canonical transactions.

    Usage
    -----
    result = StatementNormalizer().normalize(data, "csv", "credit")
    """

    def __init__(
        self,
        *,
        max_scan: int = DEFAULT_MAX_SCAN,
        now: Callable[[], datetime] = utcnow,
    ) -> None:
        self._max_scan = max_scan
        self._now = now

    def normalize(
        self, file_bytes: bytes | str, fmt: str, type_filter: TypeFilter = "both"
    ) -> NormalizationResult:
        if type_filter not in ("credit", "debit", "both"):
            raise ValueError(f"unknown type_filter: {type_filter!r}")
        grid = read_grid(file_bytes, fmt)
        return self.normalize_grid(grid, type_filter)

    def normalize_grid(
        self, grid: Sequence[Sequence[Any]], type_filter: TypeFilter = "both"
    ) -> NormalizationResult:
        state = _State.SCANNING_HEADER
        _logger.debug("normalize:state state=%s rows=%d", state.value, len(grid))
        header_idx, labels, data_rows = split_header(grid, max_scan=self._max_scan)
        rows = [RawRow.from_sequence(labels, r) for r in data_rows]
        rows = [r for r in rows if not r.is_blank()]
        columns = [lbl for lbl in labels if lbl]
        if not rows:
            raise EmptyInput("Statement has no data rows below the header")

        state = _State.NORMALIZING_ROWS
        _logger.info(
            "normalize:header header_row=%d columns=%s data_rows=%d",
            header_idx,
            columns,
            len(rows),
        )

        transactions: list[Transaction] = []
        skipped = 0
        errors = 0
        for index, row in enumerate(rows):
            try:
                tx = self.normalize_row(row, type_filter, index=index)
            except UnresolvableRow as exc:
                skipped += 1
                if index < 3:
                    _logger.debug("normalize:row_unresolvable index=%d reason=%s", index, exc.reason)
                continue
            except (ValidationError, ValueError, TypeError, ArithmeticError) as exc:
                errors += 1
                _logger.warning(
                    "normalize:row_failed index=%d error=%s detail=%s",
                    index,
                    exc.__class__.__name__,
                    exc,
                )
                continue
            if tx is None:
                skipped += 1
                continue
            transactions.append(tx)

        state = _State.DONE
        _logger.info(
            "normalize:state state=%s transactions=%d skipped=%d errors=%d filter=%s",
            state.value,
            len(transactions),
            skipped,
            errors,
            type_filter,
        )

        if not transactions:
            raise NoMatchingTransactions(
                type_filter=type_filter,
                columns=columns,
                sample_row=dict(rows[0]),
                header_row=header_idx,
            )
        return NormalizationResult(
            transactions=transactions,
            skipped=skipped,
            errors=errors,
            header_row=header_idx,
            columns=columns,
        )

    def normalize_row(
        self, row: RawRow, type_filter: TypeFilter = "both", *, index: int = 0
    ) -> Transaction | None:
        """Normalize one row; ``None`` means the row was filtered out.

        Raises :class:`UnresolvableRow` when the row lacks a usable date or
        amount.
        """

        if _is_separator_row(row):
            return None
        narration = _cell_to_text(resolve(row, "narration"))
        if narration and _is_summary_narration(narration):
            return None

        when = parse_date(resolve(row, "date"))
        if when is None:
            raise UnresolvableRow(index, "no usable date")

        picked = _pick_amount(
            parse_amount(resolve(row, "deposit")),
            parse_amount(resolve(row, "withdrawal")),
        )
        if picked is None:
            raise UnresolvableRow(index, "no deposit or withdrawal amount")
        amount, tx_type = picked

        if type_filter != "both" and tx_type != type_filter:
            return None

        reference = _cell_to_text(resolve(row, "reference"))
        stamp = self._now()
        return Transaction(
            date=when,
            amount=amount,
            description=narration,
            type=tx_type,
            category=categorize(narration, tx_type),
            party_name="",
            reference_number=reference or None,
            created_at=stamp,
            updated_at=stamp,
        )


def normalize_statement(
    file_bytes: bytes | str,
    fmt: str,
    type_filter: TypeFilter = "both",
    *,
    max_scan: int = DEFAULT_MAX_SCAN,
) -> NormalizationResult:
    """Convenience wrapper around :meth:`StatementNormalizer.normalize`."""

    return StatementNormalizer(max_scan=max_scan).normalize(file_bytes, fmt, type_filter)


__all__ = [
    "NormalizationResult",
    "StatementFormat",
    "StatementNormalizer",
    "detect_format",
    "normalize_statement",
    "read_csv_grid",
    "read_excel_grid",
    "read_grid",
    "sniff_delimiter",
]
