"""Data models for normalized transactions and learned name mappings.

Both records are Pydantic models so they round-trip through the key-value
store as plain JSON-compatible dicts (``model_dump(mode="json")`` on write,
``model_validate`` on read).
"""

from __future__ import annotations

import datetime as dt
import uuid
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

type TransactionType = Literal["credit", "debit"]
type TypeFilter = Literal["credit", "debit", "both"]
type MappingKind = Literal["party", "supplier"]

type TransactionCategory = Literal[
    "Credit Sale",
    "Payment Received",
    "Refund",
    "Loan/Credit",
    "Interest Income",
    "Other Credit",
    "Purchase",
    "Payment Made",
    "Expense",
    "Other Debit",
]

CREDIT_CATEGORIES: frozenset[str] = frozenset(
    {"Credit Sale", "Payment Received", "Refund", "Loan/Credit", "Interest Income", "Other Credit"}
)
DEBIT_CATEGORIES: frozenset[str] = frozenset(
    {"Purchase", "Payment Made", "Expense", "Other Debit"}
)

MAX_CONFIDENCE = 10


def utcnow() -> dt.datetime:
    return dt.datetime.now(dt.UTC)


def new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex}"


class Transaction(BaseModel):
    """A canonical bank-statement transaction.

    ``date`` is fixed at creation; :class:`~statement_ledger.ledger.TransactionLedger`
    rejects later changes to it. ``party_name`` starts blank after
    normalization and is filled in by the resolution engine or the user.
    """

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    id: str = Field(default_factory=lambda: new_id("txn"))
    date: dt.date
    amount: Decimal
    description: str
    type: TransactionType
    category: TransactionCategory
    party_name: str = ""
    reference_number: str | None = None
    added_to_ledger: bool = False
    ledger_reference_number: str | None = None
    hold: bool = False
    notes: str | None = None
    created_at: dt.datetime = Field(default_factory=utcnow)
    updated_at: dt.datetime = Field(default_factory=utcnow)

    @field_validator("amount")
    @classmethod
    def _amount_positive(cls, v: Decimal) -> Decimal:
        if not v.is_finite() or v <= 0:
            raise ValueError("amount must be a positive decimal")
        return v

    @model_validator(mode="after")
    def _category_matches_type(self) -> Transaction:
        allowed = CREDIT_CATEGORIES if self.type == "credit" else DEBIT_CATEGORIES
        if self.category not in allowed:
            raise ValueError(f"category {self.category!r} is not valid for a {self.type} row")
        return self


class NameMapping(BaseModel):
    """A learned association from a raw text key to a canonical name.

    ``original_name`` is stored normalized for lookup (trimmed, lower-cased,
    whitespace collapsed); ``corrected_name`` keeps the user's casing.
    """

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    id: str = Field(default_factory=lambda: new_id("mapping"))
    original_name: str
    corrected_name: str
    confidence: int = Field(default=1, ge=1, le=MAX_CONFIDENCE)
    last_used: dt.datetime = Field(default_factory=utcnow)
    created_at: dt.datetime = Field(default_factory=utcnow)

    @field_validator("original_name", "corrected_name")
    @classmethod
    def _non_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("mapping names must be non-empty")
        return v


__all__ = [
    "CREDIT_CATEGORIES",
    "DEBIT_CATEGORIES",
    "MAX_CONFIDENCE",
    "MappingKind",
    "NameMapping",
    "Transaction",
    "TransactionCategory",
    "TransactionType",
    "TypeFilter",
    "new_id",
    "utcnow",
]
