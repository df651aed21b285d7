"""
Persistence-specific errors.
"""


class PersistenceError(Exception):
    """Base exception for persistence operations."""

    pass


class LedgerError(PersistenceError):
    """The processed-files ledger could not be created, read or appended to."""

    def __init__(self, ledger_path: str, reason: str):
        self.ledger_path = ledger_path
        self.reason = reason
        super().__init__(f"Ledger {ledger_path}: {reason}")
