"""Keyword rules that assign a category to a normalized transaction.

Rules are checked in order against the lower-cased narration; the first hit
wins and anything unmatched falls back to ``Other Credit`` / ``Other Debit``.
"""

from __future__ import annotations

from .models import TransactionCategory, TransactionType

_CREDIT_RULES: tuple[tuple[tuple[str, ...], TransactionCategory], ...] = (
    (("sale", "invoice"), "Credit Sale"),
    (("payment", "received"), "Payment Received"),
    (("refund",), "Refund"),
    (("loan", "credit"), "Loan/Credit"),
    (("interest",), "Interest Income"),
)

_DEBIT_RULES: tuple[tuple[tuple[str, ...], TransactionCategory], ...] = (
    (("purchase", "buy"), "Purchase"),
    (("payment", "paid"), "Payment Made"),
    (("expense", "charge", "fee"), "Expense"),
)


def categorize(narration: str, tx_type: TransactionType) -> TransactionCategory:
    text = (narration or "").lower()
    if tx_type == "credit":
        rules, default = _CREDIT_RULES, "Other Credit"
    else:
        rules, default = _DEBIT_RULES, "Other Debit"
    for keywords, category in rules:
        if any(k in text for k in keywords):
            return category
    return default


__all__ = ["categorize"]
