from datetime import date, datetime
from decimal import Decimal

import pytest

from statement_ledger.errors import DateMutationAttempted
from statement_ledger.ledger import TransactionLedger
from statement_ledger.models import Transaction
from statement_ledger.normalizers import normalize_statement


def _tx(**kw) -> Transaction:
    base = dict(
        date=date(2024, 4, 1),
        amount=Decimal("500"),
        description="CHQ DEP:SRI RAJA RAJESWARI ORTHO:CTS",
        type="credit",
        category="Other Credit",
    )
    base.update(kw)
    return Transaction(**base)


def test_add_get_list_roundtrip(store, engine):
    ledger = TransactionLedger(store, engine)
    tx = ledger.add(_tx())
    got = ledger.get(tx.id)
    assert got == tx
    assert ledger.list() == [tx]
    assert ledger.get("txn_missing") is None


def test_add_with_party_trains_engine(store, engine):
    ledger = TransactionLedger(store, engine)
    ledger.add(_tx(party_name="Sri Raja Rajeswari Hospital"))
    assert engine.suggest("sri raja rajeswari ortho") == "Sri Raja Rajeswari Hospital"


def test_add_without_party_learns_nothing(store, engine):
    TransactionLedger(store, engine).add(_tx())
    assert engine.mappings() == []


def test_date_change_is_rejected_with_warning(store, engine):
    ledger = TransactionLedger(store, engine)
    tx = ledger.add(_tx())
    with pytest.warns(DateMutationAttempted):
        updated = ledger.update(tx.id, date=date(2025, 1, 1), notes="checked")
    assert updated.date == date(2024, 4, 1)
    assert updated.notes == "checked"
    assert ledger.get(tx.id).date == date(2024, 4, 1)


def test_same_date_is_not_a_mutation(store, engine, recwarn):
    ledger = TransactionLedger(store, engine)
    tx = ledger.add(_tx())
    ledger.update(tx.id, date=tx.date, hold=True)
    assert not [w for w in recwarn if issubclass(w.category, DateMutationAttempted)]


@pytest.mark.parametrize("same", ["2024-04-01", "01/04/2024", datetime(2024, 4, 1, 9, 30)])
def test_same_date_in_another_form_is_not_a_mutation(store, engine, recwarn, same):
    ledger = TransactionLedger(store, engine)
    tx = ledger.add(_tx())
    updated = ledger.update(tx.id, date=same, notes="ok")
    assert updated.date == date(2024, 4, 1)
    assert not [w for w in recwarn if issubclass(w.category, DateMutationAttempted)]


def test_different_date_string_still_warns(store, engine):
    ledger = TransactionLedger(store, engine)
    tx = ledger.add(_tx())
    with pytest.warns(DateMutationAttempted):
        ledger.update(tx.id, date="2025-01-01")
    assert ledger.get(tx.id).date == date(2024, 4, 1)


def test_party_rename_retrains(store, engine):
    ledger = TransactionLedger(store, engine)
    tx = ledger.add(_tx())
    updated = ledger.update(tx.id, party_name="Sri Raja Rajeswari Hospital")
    assert updated.updated_at >= tx.updated_at
    assert engine.suggest("sri raja rajeswari ortho") == "Sri Raja Rajeswari Hospital"


def test_update_rejects_unknown_and_frozen_fields(store, engine):
    ledger = TransactionLedger(store, engine)
    tx = ledger.add(_tx())
    with pytest.raises(ValueError):
        ledger.update(tx.id, colour="blue")
    with pytest.raises(ValueError):
        ledger.update(tx.id, id="txn_other")
    with pytest.raises(KeyError):
        ledger.update("txn_missing", hold=True)


def test_import_statement_preserves_file_order(store, engine):
    csv_text = "Date,Narration,Deposit Amt.,Withdrawal Amt.\n" + "\n".join(
        f"0{d}/04/2024,ROW {d},{d}0," for d in range(1, 6)
    )
    result = normalize_statement(csv_text, "csv")
    ledger = TransactionLedger(store, engine)
    added = ledger.import_statement(result)
    assert [t.description for t in added] == [f"ROW {d}" for d in range(1, 6)]
    assert {t.id for t in ledger.list()} == {t.id for t in added}


def test_transaction_invariants():
    with pytest.raises(ValueError):
        _tx(amount=Decimal("0"))
    with pytest.raises(ValueError):
        _tx(category="Purchase")  # debit-only category on a credit row
