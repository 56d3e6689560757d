"""Cell-level parsers for statement dates and amounts.

Both parsers accept whatever a CSV reader or ``openpyxl`` hands back for a
cell (``str``, ``int``, ``float``, ``datetime``/``date`` or ``None``).

- :func:`parse_date` returns a calendar ``date`` or ``None`` when no
  interpretation yields a valid date.
- :func:`parse_amount` never raises; a missing or unparseable amount is
  reported as ``Decimal("0")`` and callers treat zero as "no value in this
  column".
"""

from __future__ import annotations

import math
import re
from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any

from dateutil import parser as dateutil_parser

# Spreadsheet serial day 0 (the 1900 date system, including the Lotus leap-year bug).
SPREADSHEET_EPOCH = date(1899, 12, 30)

_ZERO = Decimal("0")

# Ordered: the first pattern that yields a valid calendar date wins.
# Digit look-arounds keep "2025/01/02" from being read as "25/01/02".
_DMY4_SLASH = re.compile(r"(?<!\d)(\d{1,2})/(\d{1,2})/(\d{4})(?!\d)")
_DMY4_DASH = re.compile(r"(?<!\d)(\d{1,2})-(\d{1,2})-(\d{4})(?!\d)")
_YMD_DASH = re.compile(r"(?<!\d)(\d{4})-(\d{1,2})-(\d{1,2})(?!\d)")
_DMY2_SLASH = re.compile(r"(?<!\d)(\d{1,2})/(\d{1,2})/(\d{2})(?!\d)")

_CURRENCY_AND_SPACE = re.compile(r"[₹$€£,\s]")
# Leading numeric prefix, mirroring a lenient float parse ("1200.50Cr" -> 1200.50).
_NUMBER_PREFIX = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)")
_EMPTY_AMOUNT_TOKENS = frozenset({"", "-", "—", "null", "undefined", "none", "nan"})


def _two_digit_year(yy: int) -> int:
    return 2000 + yy if yy < 50 else 1900 + yy


def _safe_date(year: int, month: int, day: int) -> date | None:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def _from_serial(value: float) -> date | None:
    if math.isnan(value) or math.isinf(value) or value <= 0:
        return None
    try:
        return SPREADSHEET_EPOCH + timedelta(days=math.floor(value))
    except OverflowError:
        return None


def _from_text(text: str) -> date | None:
    s = text.strip()
    if not s:
        return None

    m = _DMY4_SLASH.search(s)
    if m:
        d = _safe_date(int(m.group(3)), int(m.group(2)), int(m.group(1)))
        if d is not None:
            return d
    m = _DMY4_DASH.search(s)
    if m:
        d = _safe_date(int(m.group(3)), int(m.group(2)), int(m.group(1)))
        if d is not None:
            return d
    m = _YMD_DASH.search(s)
    if m:
        d = _safe_date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
        if d is not None:
            return d
    m = _DMY2_SLASH.search(s)
    if m:
        d = _safe_date(_two_digit_year(int(m.group(3))), int(m.group(2)), int(m.group(1)))
        if d is not None:
            return d

    # Generic fallback ("02 Jan 2025", "Jan 2, 2025", ...). Very short or
    # digit-free strings are rejected so labels like "Total" never parse.
    if len(s) < 6 or not any(ch.isdigit() for ch in s):
        return None
    try:
        return dateutil_parser.parse(s, dayfirst=True).date()
    except (ValueError, OverflowError):
        return None


def parse_date(value: Any) -> date | None:
    """Parse a raw cell into a calendar date.

    Numbers are spreadsheet date serials counted from 1899-12-30; any
    fractional (time-of-day) part is dropped. Strings are tried against
    ``DD/MM/YYYY``, ``DD-MM-YYYY``, ``YYYY-MM-DD`` and ``DD/MM/YY`` before a
    generic day-first parse.
    """

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, int | float):
        return _from_serial(float(value))
    if isinstance(value, Decimal):
        return _from_serial(float(value))
    return _from_text(str(value))


def parse_amount(value: Any) -> Decimal:
    """Parse a raw cell into a non-negative ``Decimal``.

    Currency symbols, thousands separators and whitespace are stripped and
    accounting parentheses are read as a minus sign before the absolute value
    is taken. Blank-like tokens and unparseable text yield ``Decimal("0")``.
    """

    if value is None or isinstance(value, bool):
        return _ZERO
    if isinstance(value, Decimal):
        return abs(value) if value.is_finite() else _ZERO
    if isinstance(value, int):
        return Decimal(abs(value))
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return _ZERO
        return abs(Decimal(repr(value)))

    s = str(value).strip()
    if s.lower() in _EMPTY_AMOUNT_TOKENS:
        return _ZERO
    cleaned = _CURRENCY_AND_SPACE.sub("", s).replace("(", "-").replace(")", "")
    if cleaned.lower() in _EMPTY_AMOUNT_TOKENS:
        return _ZERO
    # "-(100)" collapses to "--100"; the sign is discarded by abs() anyway.
    cleaned = cleaned.lstrip("+-")
    m = _NUMBER_PREFIX.match(cleaned)
    if not m:
        return _ZERO
    try:
        return abs(Decimal(m.group(0)))
    except InvalidOperation:
        return _ZERO


def format_amount(d: Decimal) -> str:
    """Render an amount as a plain two-decimal string (no exponent)."""

    return f"{d.quantize(Decimal('0.01')):.2f}"


__all__ = ["SPREADSHEET_EPOCH", "parse_date", "parse_amount", "format_amount"]
