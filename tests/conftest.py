"""
Shared fixtures for the Treasury test suite.

Everything runs against the in-memory store. No Supabase project is
needed; the Supabase gateway is tested with mocked query builders.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID, uuid4

import pytest

from treasury.audit import AuditLogger
from treasury.models.transaction import (
    FinancialTransaction,
    NewTransaction,
    TransactionType,
    utc_now,
)
from treasury.services.financial_service import FinancialService
from treasury.services.storage import (
    InMemoryAuditStorage,
    InMemoryFinancialStorage,
    QueryError,
)


class FailingStorage(InMemoryFinancialStorage):
    """In-memory store whose named operations raise QueryError."""

    def __init__(self, fail_on=(), **kwargs):
        super().__init__(**kwargs)
        self.fail_on = set(fail_on)

    def _check(self, operation: str) -> None:
        if operation in self.fail_on:
            raise QueryError(f"Failed to {operation}: backend unavailable")

    async def list_transactions(self, filters=None):
        self._check("list_transactions")
        return await super().list_transactions(filters)

    async def insert_transaction(self, transaction, created_by):
        self._check("insert_transaction")
        return await super().insert_transaction(transaction, created_by)

    async def delete_transaction(self, transaction_id):
        self._check("delete_transaction")
        return await super().delete_transaction(transaction_id)

    async def get_latest_bank_balance(self):
        self._check("get_latest_bank_balance")
        return await super().get_latest_bank_balance()

    async def insert_bank_balance(self, amount, updated_by):
        self._check("insert_bank_balance")
        return await super().insert_bank_balance(amount, updated_by)

    async def list_contributions(self, status=None):
        self._check("list_contributions")
        return await super().list_contributions(status)

    async def list_members(self):
        self._check("list_members")
        return await super().list_members()


class FailingAuditStorage(InMemoryAuditStorage):
    """Audit store that rejects every write."""

    async def append_event(self, event):
        raise QueryError("Failed to write audit event: permission denied")


@pytest.fixture
def actor_id() -> UUID:
    return uuid4()


@pytest.fixture
def storage() -> FailingStorage:
    """In-memory store that succeeds until told otherwise via fail_on."""
    return FailingStorage()


@pytest.fixture
def audit_storage() -> InMemoryAuditStorage:
    return InMemoryAuditStorage()


@pytest.fixture
def service(storage, audit_storage) -> FinancialService:
    return FinancialService(storage, AuditLogger(audit_storage))


@pytest.fixture
def new_income():
    """Factory for a valid income payload."""
    def _make(amount="1000", on=date(2024, 3, 1), category="donation", description="Gala donation"):
        return NewTransaction(
            date=on,
            amount=Decimal(amount),
            type=TransactionType.INCOME,
            category=category,
            description=description,
        )
    return _make


@pytest.fixture
def new_expense():
    """Factory for a valid expense payload."""
    def _make(amount="500", on=date(2024, 3, 1), category="event_expense", description="Hall rental", recipient=""):
        return NewTransaction(
            date=on,
            amount=Decimal(amount),
            type=TransactionType.EXPENSE,
            category=category,
            description=description,
            recipient=recipient,
        )
    return _make


@pytest.fixture
def make_transaction():
    """Factory for a persisted transaction, for the pure helpers."""
    def _make(transaction_type, amount, category=None, on=date(2024, 1, 1)):
        transaction_type = TransactionType(transaction_type)
        if category is None:
            category = "donation" if transaction_type == TransactionType.INCOME else "loan"
        now = utc_now()
        return FinancialTransaction(
            id=uuid4(),
            date=on,
            amount=Decimal(amount),
            type=transaction_type,
            category=category,
            description="Test transaction",
            created_at=now,
            updated_at=now,
        )
    return _make
