"""
Activity Event Models

Every ledger action emits one structured activity event to the local
log: what happened, to which entity, for which owner, and which
balance deltas were applied. Events make a request traceable while
debugging.

DESIGN DECISION: Activity events go to the structured log only. They
are not stored and are not an accounting audit trail.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from finance_tracker.models.ledger import BalanceChange


class ActivityEventType(str, Enum):
    """Types of ledger activity we log."""
    # Accounts
    ACCOUNT_CREATED = "account_created"
    ACCOUNT_UPDATED = "account_updated"
    ACCOUNT_DELETED = "account_deleted"

    # Ledger records
    EXPENSE_CREATED = "expense_created"
    EXPENSE_UPDATED = "expense_updated"
    EXPENSE_DELETED = "expense_deleted"
    INCOME_CREATED = "income_created"
    INCOME_UPDATED = "income_updated"
    INCOME_DELETED = "income_deleted"
    TRANSFER_CREATED = "transfer_created"
    TRANSFER_REJECTED = "transfer_rejected"

    # Planning
    BUDGET_CHANGED = "budget_changed"
    INVESTMENT_CHANGED = "investment_changed"

    # Failures
    OWNER_REJECTED = "owner_rejected"
    OPERATION_FAILED = "operation_failed"


class ActivitySeverity(str, Enum):
    """Severity level for activity events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class ActivityEvent(BaseModel):
    """A single activity event."""

    # Identity
    event_id: UUID = Field(default_factory=uuid4)
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    # Classification
    event_type: ActivityEventType
    severity: ActivitySeverity = ActivitySeverity.INFO

    # Context
    owner_id: Optional[str] = None
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'expense', 'account')"
    )
    entity_id: Optional[UUID] = None
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="Ties together the events of one request"
    )

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "owner_id": self.owner_id,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


def _deltas(changes: list[BalanceChange]) -> list[dict]:
    return [{"account_id": str(c.account_id), "delta": str(c.delta)} for c in changes]


class ActivityEventBuilder:
    """
    Helper class to build activity events with common patterns.

    Usage:
        event = ActivityEventBuilder.record_written(EXPENSE_CREATED, ...)
        event = ActivityEventBuilder.transfer_rejected(owner_id, reason, ...)
    """

    @staticmethod
    def account_changed(
        event_type: ActivityEventType,
        owner_id: str,
        account_id: UUID,
        name: str,
        correlation_id: Optional[UUID] = None,
    ) -> ActivityEvent:
        verb = event_type.value.split("_")[-1]
        return ActivityEvent(
            event_type=event_type,
            owner_id=owner_id,
            entity_type="account",
            entity_id=account_id,
            correlation_id=correlation_id,
            description=f"Account {verb}: {name}",
            details={"name": name},
        )

    @staticmethod
    def record_written(
        event_type: ActivityEventType,
        owner_id: str,
        entity_type: str,
        entity_id: UUID,
        amount: str,
        balance_changes: list[BalanceChange],
        correlation_id: Optional[UUID] = None,
    ) -> ActivityEvent:
        verb = event_type.value.split("_")[-1]
        return ActivityEvent(
            event_type=event_type,
            owner_id=owner_id,
            entity_type=entity_type,
            entity_id=entity_id,
            correlation_id=correlation_id,
            description=f"{entity_type.capitalize()} {verb}: {amount}",
            details={
                "amount": amount,
                "balance_changes": _deltas(balance_changes),
            },
        )

    @staticmethod
    def transfer_rejected(
        owner_id: str,
        reason: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.TRANSFER_REJECTED,
            severity=ActivitySeverity.WARNING,
            owner_id=owner_id,
            entity_type="transfer",
            correlation_id=correlation_id,
            description=f"Transfer rejected: {reason}",
            details=details or {},
            error_message=reason,
        )

    @staticmethod
    def planning_changed(
        event_type: ActivityEventType,
        owner_id: str,
        entity_type: str,
        entity_id: UUID,
        action: str,
        correlation_id: Optional[UUID] = None,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=event_type,
            owner_id=owner_id,
            entity_type=entity_type,
            entity_id=entity_id,
            correlation_id=correlation_id,
            description=f"{entity_type.capitalize()} {action}",
            details={"action": action},
        )

    @staticmethod
    def owner_rejected(
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.OWNER_REJECTED,
            severity=ActivitySeverity.WARNING,
            correlation_id=correlation_id,
            description="Request rejected: no valid owner",
            error_message=reason,
        )

    @staticmethod
    def operation_failed(
        operation: str,
        error_type: str,
        error_message: str,
        owner_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.OPERATION_FAILED,
            severity=ActivitySeverity.ERROR,
            owner_id=owner_id,
            correlation_id=correlation_id,
            description=f"{operation} failed: {error_type}",
            details={"operation": operation, "error_type": error_type},
            error_message=error_message,
        )
