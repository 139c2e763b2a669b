"""
Storage Services Package

Provides the abstract ledger storage interface and its backends:
an in-memory store (default, used by tests) and SQLite.
"""

from typing import Optional

from finance_tracker.config import DatabaseSettings, get_settings
from finance_tracker.services.storage.interface import LedgerSession, LedgerStorage
from finance_tracker.services.storage.memory import InMemoryLedgerStorage
from finance_tracker.services.storage.sqlite import SQLiteLedgerStorage


def create_storage(settings: Optional[DatabaseSettings] = None) -> LedgerStorage:
    """
    Build the configured storage backend.

    The SQLite backend connects and creates its schema on first use.
    """
    settings = settings or get_settings().database

    if settings.backend == "sqlite":
        return SQLiteLedgerStorage(settings)
    return InMemoryLedgerStorage()


__all__ = [
    # Interfaces
    "LedgerSession",
    "LedgerStorage",
    # Backends
    "InMemoryLedgerStorage",
    "SQLiteLedgerStorage",
    "create_storage",
]
