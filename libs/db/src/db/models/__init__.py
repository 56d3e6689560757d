"""Shared SQLAlchemy models registry for the workspace database.

Currently holds the generic key-value table used by ``statement_ledger``.
"""

from .ledger import Base, KvEntry

__all__ = [
    "Base",
    "KvEntry",
]
