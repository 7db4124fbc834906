"""Tests for FinancialService against the in-memory store."""

import pytest
from datetime import date
from decimal import Decimal
from uuid import uuid4

from treasury.audit import AuditLogger
from treasury.models.audit import AuditEventType
from treasury.models.transaction import (
    BalanceReadingStatus,
    Contribution,
    ContributionStatus,
    Member,
    TransactionFilters,
    TransactionType,
)
from treasury.services.financial_service import FinancialService
from treasury.services.storage import QueryError

from conftest import FailingAuditStorage, FailingStorage


class TestListTransactions:
    """Tests for list_transactions."""

    @pytest.mark.asyncio
    async def test_newest_date_first(self, service, actor_id, new_income):
        for day in (date(2024, 1, 5), date(2024, 3, 1), date(2024, 2, 10)):
            await service.create_transaction(new_income(on=day), actor_id)

        transactions = await service.list_transactions()

        assert [t.date for t in transactions] == [
            date(2024, 3, 1), date(2024, 2, 10), date(2024, 1, 5),
        ]

    @pytest.mark.asyncio
    async def test_filters_are_anded(self, service, actor_id, new_income, new_expense):
        await service.create_transaction(new_income(on=date(2024, 6, 1)), actor_id)
        await service.create_transaction(new_expense(on=date(2024, 6, 1)), actor_id)
        await service.create_transaction(new_expense(on=date(2023, 6, 1)), actor_id)

        transactions = await service.list_transactions(TransactionFilters(
            type=TransactionType.EXPENSE,
            start_date=date(2024, 1, 1),
            end_date=date(2024, 12, 31),
        ))

        assert len(transactions) == 1
        assert transactions[0].type == TransactionType.EXPENSE
        assert transactions[0].date == date(2024, 6, 1)

    @pytest.mark.asyncio
    async def test_failure_propagates(self, storage, service):
        storage.fail_on.add("list_transactions")
        with pytest.raises(QueryError):
            await service.list_transactions()


class TestCreateTransaction:
    """Tests for create_transaction."""

    @pytest.mark.asyncio
    async def test_created_row_and_audit_event(self, service, storage, audit_storage, actor_id, new_expense):
        created = await service.create_transaction(new_expense(recipient="Alice"), actor_id)

        assert created.created_by == actor_id
        assert created.recipient == "Alice"
        assert await storage.list_transactions() == [created]

        events = await audit_storage.get_events_by_subject(created.id)
        assert len(events) == 1
        assert events[0].event_type == AuditEventType.FINANCIAL_TRANSACTION_CREATE
        assert events[0].actor_id == actor_id
        assert events[0].details["amount"] == "500"

    @pytest.mark.asyncio
    async def test_failed_insert_emits_no_audit(self, service, storage, audit_storage, actor_id, new_income):
        storage.fail_on.add("insert_transaction")

        with pytest.raises(QueryError):
            await service.create_transaction(new_income(), actor_id)

        assert await audit_storage.get_recent_events() == []

    @pytest.mark.asyncio
    async def test_audit_failure_does_not_fail_create(self, storage, actor_id, new_income):
        service = FinancialService(storage, AuditLogger(FailingAuditStorage()))

        created = await service.create_transaction(new_income(), actor_id)

        assert await storage.list_transactions() == [created]


class TestDeleteTransaction:
    """Tests for delete_transaction."""

    @pytest.mark.asyncio
    async def test_delete_removes_row_and_audits(self, service, storage, audit_storage, actor_id, new_income):
        created = await service.create_transaction(new_income(), actor_id)

        await service.delete_transaction(created.id, actor_id)

        assert await storage.list_transactions() == []
        events = await audit_storage.get_events_by_subject(created.id)
        assert [e.event_type for e in events] == [
            AuditEventType.FINANCIAL_TRANSACTION_CREATE,
            AuditEventType.FINANCIAL_TRANSACTION_DELETE,
        ]

    @pytest.mark.asyncio
    async def test_unknown_id_is_not_an_error(self, service, actor_id):
        await service.delete_transaction(uuid4(), actor_id)

    @pytest.mark.asyncio
    async def test_failure_propagates(self, service, storage, audit_storage, actor_id):
        storage.fail_on.add("delete_transaction")
        with pytest.raises(QueryError):
            await service.delete_transaction(uuid4(), actor_id)
        assert await audit_storage.get_recent_events() == []


class TestBankBalance:
    """Tests for reading and updating the bank balance."""

    @pytest.mark.asyncio
    async def test_no_snapshot_reads_as_empty_zero(self, service):
        reading = await service.get_latest_bank_balance()
        assert reading.status == BalanceReadingStatus.EMPTY
        assert reading.amount == Decimal("0")
        assert reading.updated_at is None

    @pytest.mark.asyncio
    async def test_updates_append_snapshots(self, service, storage, actor_id):
        await service.update_bank_balance(Decimal("100000"), actor_id)
        await service.update_bank_balance(Decimal("95000"), actor_id)
        latest = await service.update_bank_balance(Decimal("97500"), actor_id)

        reading = await service.get_latest_bank_balance()

        assert storage.snapshot_count == 3
        assert reading.status == BalanceReadingStatus.KNOWN
        assert reading.amount == Decimal("97500")
        assert reading.snapshot_id == latest.id

    @pytest.mark.asyncio
    async def test_update_is_audited(self, service, audit_storage, actor_id):
        snapshot = await service.update_bank_balance(Decimal("42"), actor_id)
        events = await audit_storage.get_events_by_subject(snapshot.id)
        assert events[0].event_type == AuditEventType.BANK_BALANCE_UPDATE

    @pytest.mark.asyncio
    async def test_read_failure_returns_unknown_zero(self, service, storage, actor_id):
        await service.update_bank_balance(Decimal("5000"), actor_id)
        storage.fail_on.add("get_latest_bank_balance")

        reading = await service.get_latest_bank_balance()

        assert reading.status == BalanceReadingStatus.UNKNOWN
        assert reading.amount == Decimal("0")
        assert "backend unavailable" in reading.reason

    @pytest.mark.asyncio
    async def test_update_failure_propagates(self, service, storage, actor_id):
        storage.fail_on.add("insert_bank_balance")
        with pytest.raises(QueryError):
            await service.update_bank_balance(Decimal("1"), actor_id)
        assert storage.snapshot_count == 0


class TestCashBalance:
    """Tests for calculate_cash_balance."""

    @pytest.mark.asyncio
    async def test_cash_balance(self, actor_id, new_income, new_expense):
        storage = FailingStorage(contributions=[
            Contribution(amount=Decimal("5000"), status=ContributionStatus.PAID),
            Contribution(amount=Decimal("2000"), status=ContributionStatus.PENDING),
        ])
        service = FinancialService(storage)
        await service.create_transaction(new_income(amount="1000"), actor_id)
        await service.create_transaction(new_expense(amount="1500"), actor_id)

        summary = await service.calculate_cash_balance()

        assert summary.total_contributions == Decimal("5000")
        assert summary.total_manual_income == Decimal("1000")
        assert summary.total_expenses == Decimal("1500")
        assert summary.total_balance == Decimal("4500")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("operation", ["list_contributions", "list_transactions"])
    async def test_any_read_failure_propagates(self, service, storage, operation):
        storage.fail_on.add(operation)
        with pytest.raises(QueryError):
            await service.calculate_cash_balance()


class TestMembersAndSummaries:
    """Tests for list_members and summarize_by_category."""

    @pytest.mark.asyncio
    async def test_list_members(self, storage, service):
        alice = Member(id=uuid4(), name="Alice")
        storage.add_member(Member(id=uuid4(), name="Zoe"))
        storage.add_member(alice)

        directory = await service.list_members()

        assert [m.name for m in directory.members] == ["Alice", "Zoe"]
        assert directory.name_of(str(alice.id)) == "Alice"

    @pytest.mark.asyncio
    async def test_summarize_by_category(self, service, actor_id, new_income, new_expense):
        await service.create_transaction(new_income(amount="300"), actor_id)
        await service.create_transaction(new_income(amount="200"), actor_id)
        await service.create_transaction(new_expense(amount="50", category="loan"), actor_id)

        totals = await service.summarize_by_category()

        assert totals[TransactionType.INCOME] == {"donation": Decimal("500")}
        assert totals[TransactionType.EXPENSE] == {"loan": Decimal("50")}


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
