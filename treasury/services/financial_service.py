"""
Financial Aggregation Service

The only entry point the presentation layer uses to read or change the
books. It issues queries through the storage gateway, reduces results
with the pure helpers in treasury.queries, and records an audit event
after every successful mutation.

ERROR POLICY (deliberately asymmetric):
- Transaction reads/writes, bank balance writes and the cash balance
  computation propagate QueryError unchanged.
- The bank balance read never raises. A failed read comes back as an
  UNKNOWN reading with a zero amount, so the dashboard still renders,
  but the caller can tell it apart from a real zero.
- Audit writes are best-effort and never fail the mutation.

There are no hidden dependencies: the acting user is passed to every
mutation, and the member directory is returned to the caller rather
than kept here.
"""

from decimal import Decimal
from typing import Optional
from uuid import UUID

import structlog

from treasury.audit import AuditLogger
from treasury.models.transaction import (
    BankBalanceReading,
    BankBalanceSnapshot,
    CashBalanceSummary,
    ContributionStatus,
    FinancialTransaction,
    MemberDirectory,
    NewTransaction,
    TransactionFilters,
    TransactionType,
)
from treasury.queries import summarize_cash_balance, totals_by_category
from treasury.services.storage import FinancialStorageInterface, StorageError


class FinancialService:
    """
    Query and mutation operations over manual transactions, bank
    balance snapshots and paid contributions.
    """

    def __init__(
        self,
        storage: FinancialStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._audit_logger = audit_logger or AuditLogger()
        self._logger = structlog.get_logger(__name__)

    async def list_transactions(
        self,
        filters: Optional[TransactionFilters] = None,
    ) -> list[FinancialTransaction]:
        """
        List transactions, newest date first.

        Filters are ANDed together; unset filters impose no constraint.
        """
        try:
            return await self._storage.list_transactions(filters)
        except StorageError as e:
            self._logger.error("list_transactions_failed", error=str(e))
            raise

    async def create_transaction(
        self,
        fields: NewTransaction,
        actor_id: UUID,
    ) -> FinancialTransaction:
        """
        Record a manual transaction on behalf of actor_id.

        The audit event is only emitted once the insert succeeded.
        """
        try:
            transaction = await self._storage.insert_transaction(fields, actor_id)
        except StorageError as e:
            self._logger.error(
                "create_transaction_failed",
                error=str(e),
                type=fields.type.value,
                category=fields.category,
            )
            raise

        self._logger.info(
            "transaction_created",
            transaction_id=str(transaction.id),
            type=transaction.type.value,
        )
        await self._audit_logger.log_transaction_created(
            transaction_id=transaction.id,
            actor_id=actor_id,
            transaction_type=transaction.type,
            amount=transaction.amount,
            category=transaction.category,
        )
        return transaction

    async def delete_transaction(
        self,
        transaction_id: UUID,
        actor_id: UUID,
    ) -> None:
        """
        Delete a transaction.

        There is no existence check: deleting an unknown id behaves like
        deleting an existing one.
        """
        try:
            await self._storage.delete_transaction(transaction_id)
        except StorageError as e:
            self._logger.error(
                "delete_transaction_failed",
                error=str(e),
                transaction_id=str(transaction_id),
            )
            raise

        self._logger.info("transaction_deleted", transaction_id=str(transaction_id))
        await self._audit_logger.log_transaction_deleted(
            transaction_id=transaction_id,
            actor_id=actor_id,
        )

    async def get_latest_bank_balance(self) -> BankBalanceReading:
        """Read the most recent bank balance snapshot. Never raises on gateway errors."""
        try:
            snapshot = await self._storage.get_latest_bank_balance()
        except StorageError as e:
            self._logger.warning("bank_balance_unavailable", error=str(e))
            return BankBalanceReading.unknown(str(e))

        if snapshot is None:
            return BankBalanceReading.empty()
        return BankBalanceReading.known(snapshot)

    async def update_bank_balance(
        self,
        amount: Decimal,
        actor_id: UUID,
    ) -> BankBalanceSnapshot:
        """Append a new bank balance snapshot. Earlier snapshots are kept."""
        amount = Decimal(amount)
        try:
            snapshot = await self._storage.insert_bank_balance(amount, actor_id)
        except StorageError as e:
            self._logger.error("update_bank_balance_failed", error=str(e))
            raise

        self._logger.info("bank_balance_updated", snapshot_id=str(snapshot.id))
        await self._audit_logger.log_bank_balance_updated(
            snapshot_id=snapshot.id,
            actor_id=actor_id,
            amount=snapshot.amount,
        )
        return snapshot

    async def calculate_cash_balance(self) -> CashBalanceSummary:
        """
        Compute the cash register balance from scratch.

        Reads every paid contribution and every manual transaction; if
        either read fails, nothing is returned.
        """
        try:
            contributions = await self._storage.list_contributions(
                status=ContributionStatus.PAID,
            )
            transactions = await self._storage.list_transactions()
        except StorageError as e:
            self._logger.error("calculate_cash_balance_failed", error=str(e))
            raise

        return summarize_cash_balance(contributions, transactions)

    async def list_members(self) -> MemberDirectory:
        """Fetch the member directory used to name expense recipients."""
        try:
            members = await self._storage.list_members()
        except StorageError as e:
            self._logger.error("list_members_failed", error=str(e))
            raise
        return MemberDirectory(members=members)

    async def summarize_by_category(
        self,
        filters: Optional[TransactionFilters] = None,
    ) -> dict[TransactionType, dict[str, Decimal]]:
        """Totals per type and category for the filtered transactions."""
        transactions = await self.list_transactions(filters)
        return totals_by_category(transactions)
