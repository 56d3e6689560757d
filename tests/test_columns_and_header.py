from datetime import datetime

from statement_ledger.columns import RawRow, detect_columns, resolve
from statement_ledger.header import is_header_row, locate_header, split_header


def _row(**cells) -> RawRow:
    return RawRow(cells.items())


# ---- column resolution -------------------------------------------------------


def test_hdfc_style_labels():
    row = RawRow.from_sequence(
        ["Date", "Narration", "Chq./Ref.No.", "Value Dt", "Withdrawal Amt.", "Deposit Amt.", "Closing Balance"],
        ["01/04/24", "NEFT CR-ACME", "0000123", "02/04/24", "", "500.00", "10,500.00"],
    )
    assert resolve(row, "date") == "01/04/24"
    assert resolve(row, "narration") == "NEFT CR-ACME"
    assert resolve(row, "reference") == "0000123"
    assert resolve(row, "deposit") == "500.00"
    # Blank withdrawal cell is rejected and nothing else qualifies.
    assert resolve(row, "withdrawal") is None


def test_short_credit_debit_aliases():
    row = RawRow.from_sequence(
        ["Txn Date", "Particulars", "Dr", "Cr"],
        ["2024-04-01", "UPI-RENT", "1500", ""],
    )
    assert resolve(row, "date") == "2024-04-01"
    assert resolve(row, "narration") == "UPI-RENT"
    assert resolve(row, "withdrawal") == "1500"
    assert resolve(row, "deposit") is None


def test_labels_are_case_and_space_insensitive():
    row = _row(**{"  TRANSACTION   DATE ": "05/05/2024", "DESCRIPTION": "x", "CREDIT  AMOUNT": "9"})
    assert resolve(row, "date") == "05/05/2024"
    assert resolve(row, "deposit") == "9"


def test_value_date_only_as_last_resort():
    row = _row(**{"Value Date": "03/03/2024", "Transaction Date": "01/03/2024"})
    assert resolve(row, "date") == "01/03/2024"
    assert resolve(_row(**{"Value Dt": "03/03/2024"}), "date") == "03/03/2024"


def test_sentinel_values_continue_the_search():
    row = _row(**{"Date": "undefined", "Txn Date": "null", "Tran Date": "07/07/2024"})
    assert resolve(row, "date") == "07/07/2024"


def test_non_string_cells_are_accepted():
    when = datetime(2024, 6, 1)
    row = _row(Date=when, Deposit=250.0)
    assert resolve(row, "date") == when
    assert resolve(row, "deposit") == 250.0


def test_duplicate_labels_first_occurrence_wins():
    row = RawRow([("Narration", "first"), ("Narration", "second")])
    assert row["Narration"] == "first"
    assert [v for _, v in row.cells()] == ["first", "second"]


def test_from_sequence_skips_blank_labels_and_pads():
    row = RawRow.from_sequence(["Date", "", "Narration", "Deposit"], ["01/01/2024", "junk", "memo"])
    assert list(row) == ["Date", "Narration", "Deposit"]
    assert row["Deposit"] == ""


def test_detect_columns_reports_labels():
    cols = detect_columns(["Date", "Narration", "Withdrawal Amt.", "Deposit Amt.", "Chq./Ref.No."])
    assert cols == {
        "date": "Date",
        "narration": "Narration",
        "deposit": "Deposit Amt.",
        "withdrawal": "Withdrawal Amt.",
        "reference": "Chq./Ref.No.",
    }


# ---- header location ---------------------------------------------------------


def test_header_after_two_metadata_rows():
    rows = [
        ["HDFC BANK Ltd.", "", "", ""],
        ["Statement of account", "A/c 1234", "", ""],
        ["Date", "Narration", "Deposit Amt.", "Withdrawal Amt."],
        ["01/04/2024", "NEFT", "500", ""],
    ]
    assert locate_header(rows) == 2


def test_header_defaults_to_first_row():
    rows = [["a", "b"], ["c", "d"]]
    assert locate_header(rows) == 0


def test_header_scan_is_bounded():
    rows = [["filler", "", ""]] * 4 + [["Date", "Description", "Amount"]]
    assert locate_header(rows, max_scan=3) == 0
    assert locate_header(rows, max_scan=10) == 4


def test_metadata_row_with_keywords_is_not_a_header():
    assert not is_header_row(["Account Statement", "Date range", "Credit", "Narration"])
    assert is_header_row(["Tran Date", "Particulars", "Debit", "Credit", "Balance"])


def test_split_header_returns_labels_and_rows():
    rows = [["Bank"], ["Date", "Narration", "Credit"], ["01/01/2024", "x", "1"]]
    idx, labels, data = split_header(rows)
    assert idx == 1
    assert labels == ["Date", "Narration", "Credit"]
    assert data == [["01/01/2024", "x", "1"]]
