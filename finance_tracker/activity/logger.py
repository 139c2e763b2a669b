"""
Activity Logger

DESIGN DECISION: Every ledger action is logged as one structured event.
This provides:
1. Traceability of balance changes while debugging
2. A correlation id tying together everything one request did
3. Visibility into rejected transfers and failed operations

The activity logger:
- Writes to the local structured log only (no persistence)
- Never raises: a logging failure must not fail a committed operation
"""

import logging
from typing import Optional
from uuid import UUID, uuid4

import structlog

from finance_tracker.config import AppSettings, get_settings
from finance_tracker.models.activity import (
    ActivityEvent,
    ActivityEventBuilder,
    ActivityEventType,
    ActivitySeverity,
)
from finance_tracker.models.ledger import BalanceChange


def configure_logging(app_settings: Optional[AppSettings] = None) -> None:
    """
    Configure structlog on top of the standard library logger.

    JSON output by default; set LOG_JSON=false for the console renderer.
    """
    app_settings = app_settings or get_settings().app

    logging.basicConfig(format="%(message)s", level=app_settings.log_level)
    logging.getLogger().setLevel(app_settings.log_level)

    renderer = (
        structlog.processors.JSONRenderer()
        if app_settings.log_json
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


class ActivityLogger:
    """
    Central activity logging service.

    One instance is shared by the tracker facade.
    """

    def __init__(self, logger_name: str = "finance_tracker.activity"):
        self._logger = structlog.get_logger(logger_name)

    def log(self, event: ActivityEvent) -> bool:
        """
        Log an activity event.

        Returns True if the event was written.
        """
        log_dict = event.to_log_dict()

        try:
            if event.severity == ActivitySeverity.ERROR:
                self._logger.error("activity_event", **log_dict)
            elif event.severity == ActivitySeverity.WARNING:
                self._logger.warning("activity_event", **log_dict)
            elif event.severity == ActivitySeverity.DEBUG:
                self._logger.debug("activity_event", **log_dict)
            else:
                self._logger.info("activity_event", **log_dict)
        except Exception:
            return False

        return True

    def log_account_changed(
        self,
        event_type: ActivityEventType,
        owner_id: str,
        account_id: UUID,
        name: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log account creation, edit or deletion."""
        self.log(ActivityEventBuilder.account_changed(
            event_type=event_type,
            owner_id=owner_id,
            account_id=account_id,
            name=name,
            correlation_id=correlation_id,
        ))

    def log_record_written(
        self,
        event_type: ActivityEventType,
        owner_id: str,
        entity_type: str,
        entity_id: UUID,
        amount: str,
        balance_changes: list[BalanceChange],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a committed expense, income or transfer write."""
        self.log(ActivityEventBuilder.record_written(
            event_type=event_type,
            owner_id=owner_id,
            entity_type=entity_type,
            entity_id=entity_id,
            amount=amount,
            balance_changes=balance_changes,
            correlation_id=correlation_id,
        ))

    def log_transfer_rejected(
        self,
        owner_id: str,
        reason: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a transfer that failed its preconditions."""
        self.log(ActivityEventBuilder.transfer_rejected(
            owner_id=owner_id,
            reason=reason,
            details=details,
            correlation_id=correlation_id,
        ))

    def log_planning_changed(
        self,
        event_type: ActivityEventType,
        owner_id: str,
        entity_type: str,
        entity_id: UUID,
        action: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a budget or investment change."""
        self.log(ActivityEventBuilder.planning_changed(
            event_type=event_type,
            owner_id=owner_id,
            entity_type=entity_type,
            entity_id=entity_id,
            action=action,
            correlation_id=correlation_id,
        ))

    def log_owner_rejected(
        self,
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a request without a valid owner."""
        self.log(ActivityEventBuilder.owner_rejected(
            reason=reason,
            correlation_id=correlation_id,
        ))

    def log_operation_failed(
        self,
        operation: str,
        error: Exception,
        owner_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an operation that raised."""
        self.log(ActivityEventBuilder.operation_failed(
            operation=operation,
            error_type=type(error).__name__,
            error_message=str(error),
            owner_id=owner_id,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a request and pass it through.
    """
    return uuid4()
