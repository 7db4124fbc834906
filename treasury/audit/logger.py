"""
Audit Logger

DESIGN DECISION: Every mutation of the books is logged.
This provides:
1. Traceability of who changed what, and when
2. Debugging capability
3. Accountability toward the members

The audit logger:
- Is async so it fits the service layer
- Is a best-effort side channel: a failed audit write is logged
  locally and reported as False, it never fails the mutation it describes
"""

from decimal import Decimal
from typing import Any, Optional
from uuid import UUID

import structlog

from treasury.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from treasury.models.transaction import TransactionType
from treasury.services.storage import AuditStorageInterface


# Configure structlog for local logging
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
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. The audit_logs table (for persistence and member visibility)
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger(__name__)

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                self._logger.warning(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                    event_type=event.event_type.value,
                )
                return False

        return True

    async def log_event(
        self,
        event_type: AuditEventType,
        actor_id: UUID,
        subject_id: Optional[UUID] = None,
        metadata: Optional[dict[str, Any]] = None,
    ) -> bool:
        """Log a generic event of the given type."""
        event_type = AuditEventType(event_type)
        event = AuditEvent(
            event_type=event_type,
            actor_id=actor_id,
            subject_id=subject_id,
            description=event_type.value.replace("_", " "),
            details=metadata or {},
        )
        return await self.log(event)

    async def log_transaction_created(
        self,
        transaction_id: UUID,
        actor_id: UUID,
        transaction_type: TransactionType,
        amount: Decimal,
        category: str,
    ) -> bool:
        """Log creation of a manual transaction."""
        event = AuditEventBuilder.transaction_created(
            transaction_id=transaction_id,
            actor_id=actor_id,
            transaction_type=transaction_type,
            amount=amount,
            category=category,
        )
        return await self.log(event)

    async def log_transaction_deleted(
        self,
        transaction_id: UUID,
        actor_id: UUID,
    ) -> bool:
        """Log deletion of a manual transaction."""
        event = AuditEventBuilder.transaction_deleted(
            transaction_id=transaction_id,
            actor_id=actor_id,
        )
        return await self.log(event)

    async def log_bank_balance_updated(
        self,
        snapshot_id: UUID,
        actor_id: UUID,
        amount: Decimal,
    ) -> bool:
        """Log a new bank balance snapshot."""
        event = AuditEventBuilder.bank_balance_updated(
            snapshot_id=snapshot_id,
            actor_id=actor_id,
            amount=amount,
        )
        return await self.log(event)
