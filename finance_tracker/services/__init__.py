"""Services package."""

from finance_tracker.services.storage import (
    InMemoryLedgerStorage,
    LedgerSession,
    LedgerStorage,
    SQLiteLedgerStorage,
    create_storage,
)

__all__ = [
    "InMemoryLedgerStorage",
    "LedgerSession",
    "LedgerStorage",
    "SQLiteLedgerStorage",
    "create_storage",
]
