"""
Main Orchestrator for Treasury

This module ties together all the components and defines the
two user-facing flows:
1. Transaction entry (form → validate → resolve recipient → create)
2. Reconciliation dashboard (cash balance + bank balance + year's transactions)

DESIGN DECISION: The flows hold UI state (loading flags, error messages,
edit mode) but no business rules. Each flow is plain Python, so the
Streamlit page stays thin and the behavior is testable without a browser.

After any mutation the dashboard reloads everything. There is no
incremental patching of state.
"""

import inspect
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable, Optional
from uuid import UUID

import structlog
from pydantic import BaseModel, ConfigDict, Field

from treasury.audit import AuditLogger
from treasury.config import get_settings
from treasury.models.transaction import (
    BankBalanceReading,
    CashBalanceSummary,
    FinancialTransaction,
    MemberDirectory,
    ReconciliationResult,
    ReconciliationStatus,
    TransactionFilters,
    TransactionType,
    utc_now,
)
from treasury.queries import reconcile, year_options, year_range
from treasury.services.financial_service import FinancialService
from treasury.services.storage import (
    InMemoryAuditStorage,
    InMemoryFinancialStorage,
    StorageError,
    SupabaseAuditStorage,
    SupabaseClient,
    SupabaseFinancialStorage,
)
from treasury.validation import (
    TransactionFormData,
    TransactionValidator,
    ValidationError,
)


logger = structlog.get_logger(__name__)

SuccessCallback = Callable[[FinancialTransaction], Any]


class TransactionFormState(BaseModel):
    """UI state of one transaction form."""

    is_open: bool = True
    is_loading: bool = False
    error: Optional[str] = None
    field_errors: dict[str, str] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)


class TransactionEntryFlow:
    """
    Orchestrates the transaction entry form.

    Flow:
    1. Open → fetch member directory (for expense recipients)
    2. Submit → validate every field (no gateway call on failure)
    3. Resolve recipient → member name, free text, or empty for income
    4. Create → via FinancialService
    5. Success → notify caller, close. Failure → show message, re-enable.

    The loading flag is only cleared on failure: on success the form
    closes, and a closed form never accepts another submit.
    """

    def __init__(
        self,
        service: FinancialService,
        transaction_type: TransactionType,
        members: Optional[MemberDirectory] = None,
        validator: Optional[TransactionValidator] = None,
        on_success: Optional[SuccessCallback] = None,
    ):
        self._service = service
        self._validator = validator or TransactionValidator()
        self._on_success = on_success
        self.transaction_type = TransactionType(transaction_type)
        self.members = members or MemberDirectory()
        self.state = TransactionFormState()

    async def load_members(self) -> MemberDirectory:
        """Fetch the member directory. A failure is shown, not raised."""
        try:
            self.members = await self._service.list_members()
        except StorageError as e:
            logger.error("member_directory_unavailable", error=str(e))
            self.state.error = "Unable to load the member list"
        return self.members

    def new_form(self, today: Optional[date] = None) -> TransactionFormData:
        """Blank form with today's date."""
        return TransactionFormData(
            date=(today or date.today()).isoformat(),
            amount=0,
        )

    async def submit(
        self,
        form: TransactionFormData,
        actor_id: UUID,
    ) -> Optional[FinancialTransaction]:
        """
        Validate and record the transaction.

        Returns:
            The created transaction, or None if validation or the
            gateway call failed (details are in self.state)
        """
        if self.state.is_loading or not self.state.is_open:
            return None

        result = self._validator.validate(form, self.transaction_type)
        self.state.field_errors = result.field_errors()
        self.state.warnings = [
            issue.message for issue in result.issues if issue.severity == "warning"
        ]
        if not result.is_valid:
            return None

        self.state.is_loading = True
        self.state.error = None

        try:
            payload = self._validator.build_transaction(
                form, self.transaction_type, self.members
            )
        except (ValidationError, ValueError) as e:
            logger.error("transaction_payload_invalid", error=str(e))
            self.state.error = str(e) or "The transaction could not be prepared"
            self.state.is_loading = False
            return None

        try:
            transaction = await self._service.create_transaction(payload, actor_id)
        except StorageError as e:
            self.state.error = str(e) or "An error occurred while creating the transaction"
            self.state.is_loading = False
            return None

        if self._on_success is not None:
            outcome = self._on_success(transaction)
            if inspect.isawaitable(outcome):
                await outcome

        self.close()
        return transaction

    def close(self) -> None:
        self.state.is_open = False


class DashboardSnapshot(BaseModel):
    """Everything the reconciliation dashboard shows for one year."""
    model_config = ConfigDict(frozen=True)

    year: int
    cash: CashBalanceSummary
    bank: BankBalanceReading
    transactions: list[FinancialTransaction]
    reconciliation: ReconciliationResult
    loaded_at: datetime = Field(default_factory=utc_now)

    @property
    def difference(self) -> Decimal:
        return self.reconciliation.difference

    @property
    def status(self) -> ReconciliationStatus:
        return self.reconciliation.status

    @property
    def has_mismatch(self) -> bool:
        return self.reconciliation.status == ReconciliationStatus.MISMATCH


class DashboardState(BaseModel):
    """UI state of the reconciliation dashboard."""

    year: int
    snapshot: Optional[DashboardSnapshot] = None
    is_loading: bool = False
    error: Optional[str] = None
    is_editing_balance: bool = False
    pending_bank_balance: Decimal = Decimal("0")


class ReconciliationFlow:
    """
    Orchestrates the cash-vs-bank reconciliation dashboard.

    On load (and whenever the year changes):
    1. Recompute the cash balance from all paid contributions and transactions
    2. Read the latest bank balance snapshot
    3. List the selected year's transactions
    4. Compare cash and bank within the tolerance band
    """

    def __init__(
        self,
        service: FinancialService,
        year: Optional[int] = None,
        tolerance: Optional[Decimal] = None,
    ):
        self._service = service
        app_settings = get_settings().app
        self._settings = app_settings
        self._tolerance = Decimal(
            app_settings.reconciliation_tolerance if tolerance is None else tolerance
        )
        self.state = DashboardState(year=year or date.today().year)

    @property
    def snapshot(self) -> Optional[DashboardSnapshot]:
        return self.state.snapshot

    def year_options(self, today: Optional[date] = None) -> list[int]:
        """Years offered by the filter, newest first."""
        return year_options(
            today or date.today(),
            first_year=self._settings.first_fiscal_year,
            years_ahead=self._settings.future_years_shown,
        )

    async def load(self) -> Optional[DashboardSnapshot]:
        """
        Reload everything for the selected year.

        On failure the error is recorded and the previous snapshot kept.
        """
        self.state.is_loading = True
        self.state.error = None
        year = self.state.year

        try:
            cash = await self._service.calculate_cash_balance()
            bank = await self._service.get_latest_bank_balance()
            start_date, end_date = year_range(year)
            transactions = await self._service.list_transactions(
                TransactionFilters(start_date=start_date, end_date=end_date)
            )
        except StorageError as e:
            logger.error("dashboard_load_failed", year=year, error=str(e))
            self.state.error = str(e) or "An error occurred while loading the data"
            return self.state.snapshot
        finally:
            self.state.is_loading = False

        snapshot = DashboardSnapshot(
            year=year,
            cash=cash,
            bank=bank,
            transactions=transactions,
            reconciliation=reconcile(cash.total_balance, bank.amount, self._tolerance),
        )
        self.state.snapshot = snapshot
        self.state.pending_bank_balance = bank.amount
        return snapshot

    async def select_year(self, year: int) -> Optional[DashboardSnapshot]:
        """Change the year filter and reload."""
        self.state.year = int(year)
        return await self.load()

    async def category_totals(self) -> dict[TransactionType, dict[str, Decimal]]:
        """Income and expense totals per category for the selected year."""
        start_date, end_date = year_range(self.state.year)
        try:
            return await self._service.summarize_by_category(
                TransactionFilters(start_date=start_date, end_date=end_date)
            )
        except StorageError as e:
            self.state.error = str(e) or "An error occurred while loading the totals"
            return {}

    def current_bank_amount(self) -> Decimal:
        if self.state.snapshot is None:
            return Decimal("0")
        return self.state.snapshot.bank.amount

    def start_balance_edit(self) -> None:
        self.state.pending_bank_balance = self.current_bank_amount()
        self.state.is_editing_balance = True

    def cancel_balance_edit(self) -> None:
        self.state.pending_bank_balance = self.current_bank_amount()
        self.state.is_editing_balance = False

    def set_pending_bank_balance(self, amount: Decimal) -> None:
        self.state.pending_bank_balance = Decimal(str(amount))

    async def save_bank_balance(self, actor_id: UUID) -> bool:
        """
        Append the pending amount as a new snapshot, then reload.

        Returns False (edit mode kept) if the write failed.
        """
        self.state.error = None
        try:
            await self._service.update_bank_balance(
                self.state.pending_bank_balance, actor_id
            )
        except StorageError as e:
            self.state.error = str(e) or "An error occurred while updating the bank balance"
            return False

        await self.load()
        self.state.is_editing_balance = False
        return True

    async def delete_transaction(self, transaction_id: UUID, actor_id: UUID) -> bool:
        """Delete a transaction, then reload."""
        self.state.error = None
        try:
            await self._service.delete_transaction(transaction_id, actor_id)
        except StorageError as e:
            self.state.error = str(e) or "An error occurred while deleting the transaction"
            return False

        await self.load()
        return True

    async def open_transaction_form(
        self,
        transaction_type: TransactionType,
    ) -> TransactionEntryFlow:
        """
        Open an entry form whose success triggers a dashboard reload.
        """
        async def _reload(_transaction: FinancialTransaction) -> None:
            await self.load()

        form = TransactionEntryFlow(
            service=self._service,
            transaction_type=transaction_type,
            on_success=_reload,
        )
        await form.load_members()
        return form


def create_app_components(
    use_storage: bool = True,
) -> tuple[FinancialService, Optional[SupabaseClient]]:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to connect to Supabase.
                    Set to False (or APP use_in_memory_storage) to run
                    against the in-memory store.

    Returns:
        (financial_service, supabase_client)
    """
    supabase_client = None

    if use_storage and not get_settings().app.use_in_memory_storage:
        try:
            supabase_client = SupabaseClient()
            supabase_client.connect()
            storage = SupabaseFinancialStorage(supabase_client)
            audit_logger = AuditLogger(SupabaseAuditStorage(supabase_client))
            return FinancialService(storage, audit_logger), supabase_client
        except Exception as e:
            # Storage not configured - continue without it
            logger.warning("storage_not_configured", error=str(e))
            supabase_client = None

    storage = InMemoryFinancialStorage()
    audit_logger = AuditLogger(InMemoryAuditStorage())
    return FinancialService(storage, audit_logger), supabase_client
