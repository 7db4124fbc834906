"""
Audit Models for Treasury

Every mutation of financial data is logged for audit purposes.
This provides:
1. Traceability of who changed the books, and when
2. Debugging information when things go wrong
3. Accountability toward the members

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from treasury.models.transaction import TransactionType, utc_now


class AuditEventType(str, Enum):
    """
    Types of events we audit.

    Values match the action names stored in the audit_logs table.
    """
    # Manual transactions
    FINANCIAL_TRANSACTION_CREATE = "financial_transaction_create"
    FINANCIAL_TRANSACTION_DELETE = "financial_transaction_delete"

    # Bank balance
    BANK_BALANCE_UPDATE = "bank_balance_update"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    INFO = "info"
    WARNING = "warning"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    Every mutation creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=utc_now,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Who did it, and to what
    actor_id: Optional[UUID] = Field(
        default=None,
        description="User who triggered the event"
    )
    subject_id: Optional[UUID] = Field(
        default=None,
        description="ID of the record the event relates to"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )

    # Event-specific metadata
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "actor_id": str(self.actor_id) if self.actor_id else None,
            "subject_id": str(self.subject_id) if self.subject_id else None,
            "description": self.description,
            "details": self.details,
        }

    def to_table_row(self) -> dict:
        """
        Convert to a row for the audit_logs table.

        Columns: action, user_id, target_id, details, created_at.
        """
        return {
            "id": str(self.event_id),
            "action": self.event_type.value,
            "user_id": str(self.actor_id) if self.actor_id else None,
            "target_id": str(self.subject_id) if self.subject_id else None,
            "details": self.details or None,
            "created_at": self.timestamp.isoformat(),
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.transaction_created(txn_id, actor_id, ...)
        event = AuditEventBuilder.bank_balance_updated(snapshot_id, actor_id, amount)
    """

    @staticmethod
    def transaction_created(
        transaction_id: UUID,
        actor_id: UUID,
        transaction_type: TransactionType,
        amount: Decimal,
        category: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.FINANCIAL_TRANSACTION_CREATE,
            actor_id=actor_id,
            subject_id=transaction_id,
            description=f"Transaction recorded: {transaction_type.value} {amount} ({category})",
            details={
                "type": transaction_type.value,
                "amount": str(amount),
                "category": category,
            },
        )

    @staticmethod
    def transaction_deleted(
        transaction_id: UUID,
        actor_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.FINANCIAL_TRANSACTION_DELETE,
            severity=AuditSeverity.WARNING,
            actor_id=actor_id,
            subject_id=transaction_id,
            description="Transaction deleted",
        )

    @staticmethod
    def bank_balance_updated(
        snapshot_id: UUID,
        actor_id: UUID,
        amount: Decimal,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BANK_BALANCE_UPDATE,
            actor_id=actor_id,
            subject_id=snapshot_id,
            description=f"Bank balance set to {amount}",
            details={
                "amount": str(amount),
            },
        )
