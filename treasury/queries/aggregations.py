"""
Aggregation and Reconciliation

DESIGN DECISION: Every figure shown on the dashboard is computed here,
deterministically, from rows the gateway returned. Nothing is cached or
stored, so a balance is always consistent with the rows it was computed
from.

These functions do no I/O. The service fetches, these reduce.
"""

from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from treasury.models.transaction import (
    CashBalanceSummary,
    Contribution,
    ContributionStatus,
    FinancialTransaction,
    ReconciliationResult,
    ReconciliationStatus,
    TransactionType,
)


DEFAULT_TOLERANCE = Decimal("100")


def summarize_cash_balance(
    contributions: Iterable[Contribution],
    transactions: Iterable[FinancialTransaction],
) -> CashBalanceSummary:
    """
    Reduce contributions and manual transactions into the cash balance.

    Only paid contributions count. Filtering by status happens here as
    well as in the query, so callers may pass unfiltered contributions.
    """
    total_contributions = sum(
        (c.amount for c in contributions if c.status == ContributionStatus.PAID),
        Decimal("0"),
    )

    total_income = Decimal("0")
    total_expenses = Decimal("0")
    for transaction in transactions:
        if transaction.type == TransactionType.INCOME:
            total_income += transaction.amount
        else:
            total_expenses += transaction.amount

    return CashBalanceSummary(
        total_balance=total_contributions + total_income - total_expenses,
        total_contributions=total_contributions,
        total_manual_income=total_income,
        total_expenses=total_expenses,
    )


def reconcile(
    cash_balance: Decimal,
    bank_balance: Decimal,
    tolerance: Optional[Decimal] = None,
) -> ReconciliationResult:
    """
    Compare the cash register with the bank.

    The balances match when |cash - bank| < tolerance (strict).
    """
    tolerance = DEFAULT_TOLERANCE if tolerance is None else Decimal(tolerance)
    difference = Decimal(cash_balance) - Decimal(bank_balance)
    status = (
        ReconciliationStatus.MATCH
        if abs(difference) < tolerance
        else ReconciliationStatus.MISMATCH
    )
    return ReconciliationResult(
        cash_balance=cash_balance,
        bank_balance=bank_balance,
        difference=difference,
        status=status,
        tolerance=tolerance,
    )


def totals_by_category(
    transactions: Iterable[FinancialTransaction],
) -> dict[TransactionType, dict[str, Decimal]]:
    """Sum transaction amounts per type and category."""
    result: dict[TransactionType, dict[str, Decimal]] = {
        TransactionType.INCOME: {},
        TransactionType.EXPENSE: {},
    }

    for transaction in transactions:
        group = result[transaction.type]
        group[transaction.category] = (
            group.get(transaction.category, Decimal("0")) + transaction.amount
        )

    return result


def year_range(year: int) -> tuple[date, date]:
    """First and last day of a calendar year."""
    return date(year, 1, 1), date(year, 12, 31)


def year_options(
    today: date,
    first_year: int = 2020,
    years_ahead: int = 5,
) -> list[int]:
    """Years offered by the dashboard filter, newest first."""
    last_year = today.year + years_ahead
    return list(range(last_year, first_year - 1, -1))
