from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest

from statement_ledger.parsing import SPREADSHEET_EPOCH, format_amount, parse_amount, parse_date


# ---- dates -------------------------------------------------------------------


@pytest.mark.parametrize(
    "d",
    [date(2024, 1, 5), date(2024, 2, 29), date(2025, 12, 31), date(1999, 7, 1)],
)
def test_date_formats_agree(d: date):
    dmy_slash = f"{d.day:02d}/{d.month:02d}/{d.year}"
    dmy_dash = f"{d.day:02d}-{d.month:02d}-{d.year}"
    ymd = d.isoformat()
    assert parse_date(dmy_slash) == parse_date(dmy_dash) == parse_date(ymd) == d


def test_date_unpadded_day_and_month():
    assert parse_date("5/1/2024") == date(2024, 1, 5)
    assert parse_date("2024-1-5") == date(2024, 1, 5)


@pytest.mark.parametrize("n", [1, 2, 59, 60, 61, 45000, 45658])
def test_spreadsheet_serials(n: int):
    assert parse_date(n) == SPREADSHEET_EPOCH + timedelta(days=n)


def test_spreadsheet_serial_drops_time_of_day():
    assert parse_date(45658.75) == SPREADSHEET_EPOCH + timedelta(days=45658)


@pytest.mark.parametrize("bad", [0, -3, float("nan"), float("inf")])
def test_non_positive_or_non_finite_serials(bad):
    assert parse_date(bad) is None


def test_two_digit_year_pivot():
    assert parse_date("05/01/24") == date(2024, 1, 5)
    assert parse_date("05/01/75") == date(1975, 1, 5)


def test_invalid_first_shape_falls_through():
    # 31/02/2024 is not a date; nothing later matches either.
    assert parse_date("31/02/2024") is None


def test_datetime_and_date_values():
    assert parse_date(datetime(2024, 3, 9, 14, 30)) == date(2024, 3, 9)
    assert parse_date(date(2024, 3, 9)) == date(2024, 3, 9)


def test_date_embedded_in_text():
    assert parse_date("Txn on 09/03/2024 10:15") == date(2024, 3, 9)


def test_generic_textual_date_fallback():
    assert parse_date("02 Jan 2025") == date(2025, 1, 2)


@pytest.mark.parametrize("junk", [None, "", "   ", "Total", "Opening Balance", True, "12"])
def test_unparseable_dates(junk):
    assert parse_date(junk) is None


# ---- amounts -----------------------------------------------------------------


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("1,200.50", Decimal("1200.50")),
        ("₹ 1,00,000.00", Decimal("100000.00")),
        ("$45", Decimal("45")),
        ("(250.00)", Decimal("250.00")),
        ("-75.5", Decimal("75.5")),
        ("1200.50Cr", Decimal("1200.50")),
        (500, Decimal("500")),
        (-500, Decimal("500")),
        (12.5, Decimal("12.5")),
        (Decimal("-3.10"), Decimal("3.10")),
    ],
)
def test_amount_parsing(raw, expected):
    assert parse_amount(raw) == expected


@pytest.mark.parametrize("blank", [None, "", " ", "-", "—", "null", "undefined", "NaN", "abc", float("nan")])
def test_blank_like_amounts_are_zero(blank):
    assert parse_amount(blank) == Decimal("0")


@pytest.mark.parametrize("raw", ["1,200.50", "(99)", "-0.01", 7, 3.25, "₹5,000", "garbage"])
def test_amount_idempotent_and_non_negative(raw):
    first = parse_amount(raw)
    assert first >= 0
    assert parse_amount(format(first, "f")) == first


def test_format_amount_two_decimals():
    assert format_amount(Decimal("1200.5")) == "1200.50"
    assert format_amount(Decimal("3")) == "3.00"
