"""
In-Memory Storage Implementation

Dict-backed implementation of the storage interfaces. Used by the test
suite and for running the app without a Supabase project
(APP: use_in_memory_storage=true).

Behaves like the hosted gateway where the service layer can observe it:
ids and timestamps are assigned on insert, and deletes of unknown ids
are silent. Reads return the stored (frozen) instances.
"""

from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

from treasury.models.audit import AuditEvent
from treasury.models.transaction import (
    BankBalanceSnapshot,
    Contribution,
    ContributionStatus,
    FinancialTransaction,
    Member,
    NewTransaction,
    TransactionFilters,
    utc_now,
)
from treasury.services.storage.interface import (
    AuditStorageInterface,
    FinancialStorageInterface,
)


class InMemoryFinancialStorage(FinancialStorageInterface):
    """In-memory persistence gateway."""

    def __init__(
        self,
        contributions: Optional[list[Contribution]] = None,
        members: Optional[list[Member]] = None,
    ):
        self._transactions: dict[UUID, FinancialTransaction] = {}
        # Kept in insertion order; ties on updated_at go to the later row
        self._snapshots: list[BankBalanceSnapshot] = []
        self._contributions = list(contributions or [])
        self._members = list(members or [])

    async def list_transactions(
        self,
        filters: Optional[TransactionFilters] = None,
    ) -> list[FinancialTransaction]:
        filters = filters or TransactionFilters()
        rows = [t for t in self._transactions.values() if filters.matches(t)]
        rows.sort(key=lambda t: (t.date, t.created_at), reverse=True)
        return rows

    async def insert_transaction(
        self,
        transaction: NewTransaction,
        created_by: UUID,
    ) -> FinancialTransaction:
        now = utc_now()
        row = FinancialTransaction(
            id=uuid4(),
            created_by=created_by,
            created_at=now,
            updated_at=now,
            **transaction.model_dump(),
        )
        self._transactions[row.id] = row
        return row

    async def delete_transaction(self, transaction_id: UUID) -> None:
        self._transactions.pop(transaction_id, None)

    async def get_latest_bank_balance(self) -> Optional[BankBalanceSnapshot]:
        if not self._snapshots:
            return None
        latest = self._snapshots[0]
        for snapshot in self._snapshots[1:]:
            if snapshot.updated_at >= latest.updated_at:
                latest = snapshot
        return latest

    async def insert_bank_balance(
        self,
        amount: Decimal,
        updated_by: UUID,
    ) -> BankBalanceSnapshot:
        snapshot = BankBalanceSnapshot(amount=amount, updated_by=updated_by)
        self._snapshots.append(snapshot)
        return snapshot

    async def list_contributions(
        self,
        status: Optional[ContributionStatus] = None,
    ) -> list[Contribution]:
        return [
            c for c in self._contributions
            if status is None or c.status == status
        ]

    async def list_members(self) -> list[Member]:
        return sorted(self._members, key=lambda m: m.name)

    @property
    def snapshot_count(self) -> int:
        return len(self._snapshots)

    def add_member(self, member: Member) -> None:
        """Seed a member profile."""
        self._members.append(member)


class InMemoryAuditStorage(AuditStorageInterface):
    """In-memory audit log."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_events_by_subject(
        self,
        subject_id: UUID,
    ) -> list[AuditEvent]:
        events = [e for e in self._events if e.subject_id == subject_id]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        events = sorted(self._events, key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
