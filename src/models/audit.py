"""
Ledger Event Models

Every mutation of the ledger, and every rejected attempt, produces one of
these events for the structured log. This provides:
1. Traceability while debugging a wrong balance
2. A record of rejected input (what the user tried and why it failed)
3. Visibility into storage failures

DESIGN DECISION: Events go to the diagnostic log only. The shop-facing
history is the capped activity list inside the ledger document; events
are never persisted alongside it.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEventType(str, Enum):
    """
    Types of events we log.

    Every store operation has its own event type.
    """
    # Customers
    CUSTOMER_REGISTERED = "customer_registered"
    CREDIT_RECORDED = "credit_recorded"
    PAYMENT_RECORDED = "payment_recorded"

    # Purchases and expenses
    RECORD_CREATED = "record_created"
    RECORD_DELETED = "record_deleted"

    # Cash
    POCKET_ADJUSTED = "pocket_adjusted"

    # Whole-document operations
    STORE_LOADED = "store_loaded"
    SNAPSHOT_IMPORTED = "snapshot_imported"
    STORE_RESET = "store_reset"
    SETTINGS_UPDATED = "settings_updated"

    # Failures
    OPERATION_REJECTED = "operation_rejected"
    PERSISTENCE_FAILED = "persistence_failed"
    LISTENER_FAILED = "listener_failed"


class AuditSeverity(str, Enum):
    """Severity level for events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """
    A single ledger event.

    Every store operation creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Context - what entity is this about?
    operation: Optional[str] = Field(
        default=None,
        description="Store operation name (e.g. 'record_payment')"
    )
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'customer', 'purchase', 'pocket')"
    )
    entity_id: Optional[str] = None

    # Event details
    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)

    # Error information (if applicable)
    error_type: Optional[str] = None
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "operation": self.operation,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "description": self.description,
            "details": self.details,
            "error_type": self.error_type,
            "error_message": self.error_message,
        }


class AuditEventBuilder:
    """
    Helper class to build events with common patterns.

    Usage:
        event = AuditEventBuilder.payment_recorded(customer_id, "200.00", "bank")
        event = AuditEventBuilder.operation_rejected("record_credit", error)
    """

    @staticmethod
    def customer_registered(customer_id: str, name: str, opening: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CUSTOMER_REGISTERED,
            operation="register_customer",
            entity_type="customer",
            entity_id=customer_id,
            description="Customer registered",
            details={"name": name, "opening_balance": opening},
        )

    @staticmethod
    def credit_recorded(customer_id: str, amount: str, balance: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CREDIT_RECORDED,
            operation="record_credit",
            entity_type="customer",
            entity_id=customer_id,
            description=f"Credit of {amount} recorded",
            details={"amount": amount, "balance": balance},
        )

    @staticmethod
    def payment_recorded(
        customer_id: str,
        amount: str,
        pocket: str,
        balance: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PAYMENT_RECORDED,
            operation="record_payment",
            entity_type="customer",
            entity_id=customer_id,
            description=f"Payment of {amount} received into {pocket}",
            details={"amount": amount, "pocket": pocket, "balance": balance},
        )

    @staticmethod
    def record_created(
        entity_type: str,
        record_id: str,
        amount: str,
        pocket: str,
        pocket_balance: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_CREATED,
            operation=f"record_{entity_type}",
            entity_type=entity_type,
            entity_id=record_id,
            description=f"{entity_type.capitalize()} of {amount} paid from {pocket}",
            details={
                "amount": amount,
                "pocket": pocket,
                "pocket_balance": pocket_balance,
            },
        )

    @staticmethod
    def record_deleted(entity_type: str, record_id: str, amount: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_DELETED,
            operation=f"delete_{entity_type}",
            entity_type=entity_type,
            entity_id=record_id,
            description=f"{entity_type.capitalize()} deleted; pocket balance left unchanged",
            details={"amount": amount},
        )

    @staticmethod
    def pocket_adjusted(pocket: str, direction: str, amount: str, balance: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.POCKET_ADJUSTED,
            operation="adjust_pocket",
            entity_type="pocket",
            entity_id=pocket,
            description=f"Pocket {pocket}: {direction} {amount}",
            details={"direction": direction, "amount": amount, "balance": balance},
        )

    @staticmethod
    def store_loaded(location: str, customers: int, warnings: list[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORE_LOADED,
            severity=AuditSeverity.WARNING if warnings else AuditSeverity.INFO,
            operation="load",
            description="Ledger loaded",
            details={"location": location, "customers": customers, "warnings": warnings},
        )

    @staticmethod
    def snapshot_imported(customers: int, warnings: list[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SNAPSHOT_IMPORTED,
            severity=AuditSeverity.WARNING if warnings else AuditSeverity.INFO,
            operation="import_snapshot",
            description=f"Backup imported with {customers} customers",
            details={"customers": customers, "warnings": warnings},
        )

    @staticmethod
    def store_reset() -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORE_RESET,
            severity=AuditSeverity.WARNING,
            operation="reset",
            description="All ledger data cleared",
        )

    @staticmethod
    def settings_updated(field: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SETTINGS_UPDATED,
            operation=f"update_{field}",
            entity_type="settings",
            description=f"Setting updated: {field}",
        )

    @staticmethod
    def operation_rejected(operation: str, error: Exception) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.OPERATION_REJECTED,
            severity=AuditSeverity.WARNING,
            operation=operation,
            description=f"{operation} rejected",
            error_type=type(error).__name__,
            error_message=str(error),
        )

    @staticmethod
    def persistence_failed(operation: str, error: Exception) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PERSISTENCE_FAILED,
            severity=AuditSeverity.ERROR,
            operation=operation,
            description=f"Could not save ledger after {operation}",
            error_type=type(error).__name__,
            error_message=str(error),
        )

    @staticmethod
    def listener_failed(operation: str, error: Exception) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LISTENER_FAILED,
            severity=AuditSeverity.ERROR,
            operation=operation,
            description=f"Change listener failed after {operation}",
            error_type=type(error).__name__,
            error_message=str(error),
        )
