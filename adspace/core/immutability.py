"""Immutability enforcement for financial records using SQLAlchemy events."""

import logging
from datetime import UTC, datetime

from sqlalchemy import event

from adspace.core.exceptions import ValidationError

logger = logging.getLogger(__name__)

_registered = False


class ImmutabilityViolationError(ValidationError):
    """Raised when attempting to modify immutable financial records."""

    def __init__(self, model_name: str, operation: str, record_id: str):
        self.model_name = model_name
        self.operation = operation
        self.record_id = record_id
        super().__init__(
            f"Immutability violation: Cannot {operation} {model_name} record {record_id}. "
            "Financial records are immutable after creation."
        )


def _log_immutability_violation(model_name: str, operation: str, record_id: str) -> None:
    """Log immutability violation for audit purposes."""
    logger.error(
        f"IMMUTABILITY_VIOLATION: Attempted to {operation} {model_name} "
        f"record_id={record_id} at {datetime.now(UTC).isoformat()}"
    )


def _refuse(model_name: str, operation: str):
    def listener(mapper, connection, target):
        _log_immutability_violation(model_name, operation, str(target.id))
        raise ImmutabilityViolationError(model_name, operation, str(target.id))

    return listener


def register_immutability_enforcement() -> None:
    """Register SQLAlchemy event listeners for immutability enforcement.

    Idempotent; called on application startup and by the test harness.
    """
    global _registered
    if _registered:
        return

    from adspace.models.booking import Booking
    from adspace.models.financial import LedgerEntry, RevenueRecord

    # Booking: no DELETE (archive instead)
    event.listen(Booking, "before_delete", _refuse("Booking", "DELETE"))

    # LedgerEntry: append-only
    event.listen(LedgerEntry, "before_update", _refuse("LedgerEntry", "UPDATE"))
    event.listen(LedgerEntry, "before_delete", _refuse("LedgerEntry", "DELETE"))

    # RevenueRecord: replaced by reconciliation, never edited in place
    event.listen(RevenueRecord, "before_update", _refuse("RevenueRecord", "UPDATE"))

    _registered = True
    logger.info("Immutability enforcement registered for financial records")
