"""
Persistence layer for cbzdrop state.

A single append-only text ledger of processed archive filenames.
Explicit check/mark only; nothing is ever removed from the ledger.
"""

from .errors import PersistenceError, LedgerError
from .ledger import ProcessedLedger, default_ledger_path

__all__ = [
    "PersistenceError",
    "LedgerError",
    "ProcessedLedger",
    "default_ledger_path",
]
