"""
Supabase Storage Implementation

DESIGN DECISION: The organization's data lives in a hosted Supabase
project (Postgres behind PostgREST). We only use the query builder's
filter/order/limit reads and insert/delete writes, so any PostgREST
backend with the same tables works.

TRADEOFFS:
- No transactions across tables (a balance computed while a create is
  in flight may not see it)
- No pagination on aggregate reads (fine at this data volume)
- Row-level security is enforced by the backend, not here

Every client error, and every row that does not fit its model, is
wrapped into QueryError with the operation name, so the service layer
only deals with one exception type.
"""

from decimal import Decimal
from typing import Any, Callable, Optional, TypeVar
from uuid import UUID

from supabase import Client, create_client
from tenacity import retry, stop_after_attempt, wait_exponential

from treasury.config import SupabaseSettings, get_settings
from treasury.models.audit import AuditEvent, AuditEventType
from treasury.models.transaction import (
    BankBalanceSnapshot,
    Contribution,
    ContributionStatus,
    FinancialTransaction,
    Member,
    NewTransaction,
    TransactionFilters,
)
from treasury.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    FinancialStorageInterface,
    QueryError,
)


T = TypeVar("T")


class SupabaseClient:
    """
    Low-level Supabase client wrapper.

    Handles client creation and provides retry logic for connecting.
    Queries themselves are never retried: inserts are not idempotent.
    """

    def __init__(
        self,
        settings: Optional[SupabaseSettings] = None,
        access_token: Optional[str] = None,
    ):
        self._client: Optional[Client] = None
        self._settings = settings or get_settings().supabase
        self._access_token = access_token

    @property
    def settings(self) -> SupabaseSettings:
        return self._settings

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> Client:
        """
        Create the Supabase client.

        If an access token (user JWT) was given, PostgREST requests are
        made on behalf of that user so RLS policies apply.
        """
        if self._client is None:
            try:
                client = create_client(self._settings.url, self._settings.key)
                if self._access_token:
                    client.postgrest.auth(self._access_token)
                self._client = client
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Supabase: {e}") from e

        return self._client

    def table(self, name: str):
        """Query builder for a table."""
        return self.connect().table(name)


def _decimal(value: Any) -> Decimal:
    """PostgREST returns numerics as JSON numbers; go through str to keep them exact."""
    if value is None:
        return Decimal("0")
    return Decimal(str(value))


def _convert_rows(operation: str, converter: Callable[[dict], T], rows: Optional[list]) -> list[T]:
    """
    Convert table rows to models.

    A row that does not fit the model is a failed query, not a crash.
    """
    try:
        return [converter(row) for row in rows or []]
    except (KeyError, TypeError, ValueError, ArithmeticError) as e:
        raise QueryError(f"Failed to {operation}: malformed row: {e}") from e


class SupabaseFinancialStorage(FinancialStorageInterface):
    """
    Supabase implementation of the persistence gateway.

    Tables: financial_transactions, bank_balance_updates, contributions,
    profiles (names come from SupabaseSettings).
    """

    def __init__(self, client: Optional[SupabaseClient] = None):
        self._client = client or SupabaseClient()
        self._tables = self._client.settings

    def _row_to_transaction(self, row: dict) -> FinancialTransaction:
        """Convert a table row to a FinancialTransaction."""
        return FinancialTransaction(
            id=row["id"],
            date=row["date"],
            amount=_decimal(row.get("amount")),
            type=row["type"],
            category=row["category"],
            description=row.get("description") or "",
            recipient=row.get("recipient") or None,
            created_by=row.get("created_by"),
            created_at=row["created_at"],
            updated_at=row.get("updated_at") or row["created_at"],
        )

    def _row_to_snapshot(self, row: dict) -> BankBalanceSnapshot:
        """Convert a table row to a BankBalanceSnapshot."""
        return BankBalanceSnapshot(
            id=row["id"],
            amount=_decimal(row.get("amount")),
            updated_at=row["updated_at"],
            updated_by=row.get("updated_by"),
        )

    async def list_transactions(
        self,
        filters: Optional[TransactionFilters] = None,
    ) -> list[FinancialTransaction]:
        """List transactions, newest date first."""
        filters = filters or TransactionFilters()
        try:
            query = (
                self._client.table(self._tables.transactions_table)
                .select("*")
                .order("date", desc=True)
                .order("created_at", desc=True)
            )

            if filters.type:
                query = query.eq("type", filters.type.value)
            if filters.category:
                query = query.eq("category", filters.category)
            if filters.start_date:
                query = query.gte("date", filters.start_date.isoformat())
            if filters.end_date:
                query = query.lte("date", filters.end_date.isoformat())

            response = query.execute()
        except Exception as e:
            raise QueryError(f"Failed to list transactions: {e}") from e

        return _convert_rows("list transactions", self._row_to_transaction, response.data)

    async def insert_transaction(
        self,
        transaction: NewTransaction,
        created_by: UUID,
    ) -> FinancialTransaction:
        """Insert a transaction and return the stored row."""
        try:
            response = (
                self._client.table(self._tables.transactions_table)
                .insert(transaction.to_insert_row(created_by))
                .execute()
            )
        except Exception as e:
            raise QueryError(f"Failed to create transaction: {e}") from e

        if not response.data:
            raise QueryError("Failed to create transaction: no row returned")
        return _convert_rows("create transaction", self._row_to_transaction, response.data[:1])[0]

    async def delete_transaction(self, transaction_id: UUID) -> None:
        """Delete a transaction by ID."""
        try:
            (
                self._client.table(self._tables.transactions_table)
                .delete()
                .eq("id", str(transaction_id))
                .execute()
            )
        except Exception as e:
            raise QueryError(f"Failed to delete transaction: {e}") from e

    async def get_latest_bank_balance(self) -> Optional[BankBalanceSnapshot]:
        """Get the most recent bank balance snapshot."""
        try:
            response = (
                self._client.table(self._tables.bank_balance_table)
                .select("*")
                .order("updated_at", desc=True)
                .limit(1)
                .execute()
            )
        except Exception as e:
            raise QueryError(f"Failed to fetch bank balance: {e}") from e

        if not response.data:
            return None
        return _convert_rows("fetch bank balance", self._row_to_snapshot, response.data[:1])[0]

    async def insert_bank_balance(
        self,
        amount: Decimal,
        updated_by: UUID,
    ) -> BankBalanceSnapshot:
        """Append a bank balance snapshot."""
        try:
            response = (
                self._client.table(self._tables.bank_balance_table)
                .insert({"amount": str(amount), "updated_by": str(updated_by)})
                .execute()
            )
        except Exception as e:
            raise QueryError(f"Failed to update bank balance: {e}") from e

        if not response.data:
            raise QueryError("Failed to update bank balance: no row returned")
        return _convert_rows("update bank balance", self._row_to_snapshot, response.data[:1])[0]

    async def list_contributions(
        self,
        status: Optional[ContributionStatus] = None,
    ) -> list[Contribution]:
        """List contributions, optionally by status."""
        try:
            query = (
                self._client.table(self._tables.contributions_table)
                .select("amount, status")
            )
            if status:
                query = query.eq("status", status.value)
            response = query.execute()
        except Exception as e:
            raise QueryError(f"Failed to list contributions: {e}") from e

        return _convert_rows(
            "list contributions",
            lambda row: Contribution(amount=_decimal(row.get("amount")), status=row["status"]),
            response.data,
        )

    async def list_members(self) -> list[Member]:
        """List member profiles ordered by name."""
        try:
            response = (
                self._client.table(self._tables.profiles_table)
                .select("id, name, email")
                .order("name")
                .execute()
            )
        except Exception as e:
            raise QueryError(f"Failed to list members: {e}") from e

        return _convert_rows("list members", lambda row: Member(**row), response.data)


class SupabaseAuditStorage(AuditStorageInterface):
    """
    Supabase implementation of audit log storage.

    Audit rows are append-only.
    """

    def __init__(self, client: Optional[SupabaseClient] = None):
        self._client = client or SupabaseClient()
        self._table = self._client.settings.audit_table

    def _row_to_event(self, row: dict) -> AuditEvent:
        """Convert an audit_logs row to an AuditEvent."""
        event_type = AuditEventType(row["action"])
        return AuditEvent(
            event_id=row["id"],
            timestamp=row["created_at"],
            event_type=event_type,
            actor_id=row.get("user_id"),
            subject_id=row.get("target_id"),
            description=event_type.value.replace("_", " "),
            details=row.get("details") or {},
        )

    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            self._client.table(self._table).insert(event.to_table_row()).execute()
        except Exception as e:
            raise QueryError(f"Failed to write audit event: {e}") from e
        return True

    async def get_events_by_subject(
        self,
        subject_id: UUID,
    ) -> list[AuditEvent]:
        """Get events for one record, oldest first."""
        try:
            response = (
                self._client.table(self._table)
                .select("*")
                .eq("target_id", str(subject_id))
                .order("created_at")
                .execute()
            )
        except Exception as e:
            raise QueryError(f"Failed to get audit events: {e}") from e

        return _convert_rows("get audit events", self._row_to_event, response.data)

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get recent events, newest first."""
        try:
            response = (
                self._client.table(self._table)
                .select("*")
                .order("created_at", desc=True)
                .limit(limit)
                .execute()
            )
        except Exception as e:
            raise QueryError(f"Failed to get audit events: {e}") from e

        return _convert_rows("get audit events", self._row_to_event, response.data)
