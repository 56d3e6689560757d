"""Public interface for the ``statement_ledger`` package.

This module exposes the package's API functions and public models/types as the
stable import surface. There is no runtime logic here, only symbol re-exports.
"""

from .api import (
    auto_train_from_narration,
    build_engine,
    learn_mapping,
    normalize_statement,
    open_store,
    suggest_name,
)
from .errors import (
    DateMutationAttempted,
    EmptyInput,
    MalformedInput,
    NoMatchingTransactions,
    NoTransactionsFound,
    PersistenceUnavailable,
    StatementLedgerError,
)
from .ledger import TransactionLedger
from .matching import MatchThresholds
from .models import (
    MappingKind,
    NameMapping,
    Transaction,
    TransactionCategory,
    TransactionType,
    TypeFilter,
)
from .normalizers import NormalizationResult, StatementNormalizer
from .resolution import NameResolutionEngine
from .settings import Settings
from .store import InMemoryStore, KeyValueStore, SqlStore

__all__ = [
    # API
    "auto_train_from_narration",
    "build_engine",
    "learn_mapping",
    "normalize_statement",
    "open_store",
    "suggest_name",
    # Engine / ledger / storage
    "NameResolutionEngine",
    "TransactionLedger",
    "StatementNormalizer",
    "NormalizationResult",
    "KeyValueStore",
    "InMemoryStore",
    "SqlStore",
    "MatchThresholds",
    "Settings",
    # Models / types
    "Transaction",
    "NameMapping",
    "TransactionType",
    "TransactionCategory",
    "TypeFilter",
    "MappingKind",
    # Errors
    "StatementLedgerError",
    "MalformedInput",
    "EmptyInput",
    "NoMatchingTransactions",
    "NoTransactionsFound",
    "PersistenceUnavailable",
    "DateMutationAttempted",
]
