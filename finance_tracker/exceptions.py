"""
Error taxonomy for the finance tracker.

Every failure the ledger can report is one of these. The boundary
(HTTP layer, UI) maps them to responses:

- UnauthorizedError        -> authentication failure
- InvalidInputError        -> bad request, nothing written
- NotFoundError            -> not found, nothing written
- InvalidAccountError      -> transfer rejected, nothing written
- InsufficientBalanceError -> transfer rejected, nothing written
- PersistenceError         -> generic failure, unit of work rolled back

No retries happen anywhere in the ledger. Failures are terminal for
the request; resubmitting is the client's call.
"""

from decimal import Decimal
from typing import Any, Optional


class FinanceTrackerError(Exception):
    """Base exception for all finance tracker errors."""
    pass


class UnauthorizedError(FinanceTrackerError):
    """No owner could be resolved from the request credential."""
    pass


class InvalidInputError(FinanceTrackerError):
    """A field failed validation before any write was attempted."""

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"{field}: {message}")


class NotFoundError(FinanceTrackerError):
    """Record (or active account) does not exist for this owner."""

    def __init__(self, entity: str, entity_id: Any):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found: {entity_id}")


class InvalidAccountError(FinanceTrackerError):
    """A transfer references an account the owner does not have."""
    pass


class SameAccountTransferError(InvalidAccountError):
    """Source and destination of a transfer are the same account."""
    pass


class InsufficientBalanceError(FinanceTrackerError):
    """Source account cannot cover amount plus fee."""

    def __init__(self, available: Decimal, required: Decimal):
        self.available = available
        self.required = required
        super().__init__(
            f"Insufficient balance: {available} available, {required} required"
        )


class StorageError(FinanceTrackerError):
    """Base exception for storage operations."""
    pass


class PersistenceError(StorageError):
    """The unit of work failed in the backend and was rolled back."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.cause = cause
        super().__init__(message)
