"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Keep the hosted database (Supabase) behind a narrow contract
2. Use in-memory storage for testing
3. Keep business logic decoupled from storage implementation

The interface is intentionally simple - we're not building a full ORM.
Just the filter/sort/limit reads and insert/delete writes the
financial module needs.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Optional
from uuid import UUID

from treasury.models.audit import AuditEvent
from treasury.models.transaction import (
    BankBalanceSnapshot,
    Contribution,
    ContributionStatus,
    FinancialTransaction,
    Member,
    NewTransaction,
    TransactionFilters,
)


class FinancialStorageInterface(ABC):
    """
    Abstract interface for the persistence gateway.

    Any storage implementation (Supabase, in-memory, etc.)
    must implement these methods. Every method raises QueryError
    when the underlying call fails.
    """

    @abstractmethod
    async def list_transactions(
        self,
        filters: Optional[TransactionFilters] = None,
    ) -> list[FinancialTransaction]:
        """
        List transactions matching all given filters.

        Args:
            filters: Conjunctive filters; None means no constraint

        Returns:
            Matching transactions, newest date first

        Raises:
            QueryError: If the read fails
        """
        pass

    @abstractmethod
    async def insert_transaction(
        self,
        transaction: NewTransaction,
        created_by: UUID,
    ) -> FinancialTransaction:
        """
        Insert a transaction.

        Returns:
            The persisted row, with id and timestamps assigned

        Raises:
            QueryError: If the insert fails
        """
        pass

    @abstractmethod
    async def delete_transaction(self, transaction_id: UUID) -> None:
        """
        Delete a transaction by ID.

        Deleting an id that does not exist is not an error.

        Raises:
            QueryError: If the delete fails
        """
        pass

    @abstractmethod
    async def get_latest_bank_balance(self) -> Optional[BankBalanceSnapshot]:
        """
        Get the snapshot with the latest updated_at.

        Returns:
            The snapshot, or None if none were ever recorded

        Raises:
            QueryError: If the read fails
        """
        pass

    @abstractmethod
    async def insert_bank_balance(
        self,
        amount: Decimal,
        updated_by: UUID,
    ) -> BankBalanceSnapshot:
        """
        Append a new bank balance snapshot. Existing rows are never touched.

        Raises:
            QueryError: If the insert fails
        """
        pass

    @abstractmethod
    async def list_contributions(
        self,
        status: Optional[ContributionStatus] = None,
    ) -> list[Contribution]:
        """
        List contributions, optionally restricted to one status.

        Raises:
            QueryError: If the read fails
        """
        pass

    @abstractmethod
    async def list_members(self) -> list[Member]:
        """
        List member profiles ordered by name.

        Raises:
            QueryError: If the read fails
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Args:
            event: The audit event to log

        Returns:
            True if logged successfully

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def get_events_by_subject(
        self,
        subject_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a specific record.

        Returns:
            List of events in chronological order
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class QueryError(StorageError):
    """A gateway read or write failed."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
