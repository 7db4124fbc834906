"""
Data Models Package

This package contains all Pydantic models used in Treasury.
All data flowing through the system must conform to these schemas.
"""

from treasury.models.transaction import (
    CATEGORIES,
    CATEGORY_LABELS,
    BalanceReadingStatus,
    BankBalanceReading,
    BankBalanceSnapshot,
    CashBalanceSummary,
    Contribution,
    ContributionStatus,
    ExpenseCategory,
    FinancialTransaction,
    IncomeCategory,
    Member,
    MemberDirectory,
    NewTransaction,
    RecipientType,
    ReconciliationResult,
    ReconciliationStatus,
    TransactionFilters,
    TransactionType,
    ValidationIssue,
    ValidationResult,
    categories_for,
    utc_now,
)
from treasury.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Transaction models
    "CATEGORIES",
    "CATEGORY_LABELS",
    "BalanceReadingStatus",
    "BankBalanceReading",
    "BankBalanceSnapshot",
    "CashBalanceSummary",
    "Contribution",
    "ContributionStatus",
    "ExpenseCategory",
    "FinancialTransaction",
    "IncomeCategory",
    "Member",
    "MemberDirectory",
    "NewTransaction",
    "RecipientType",
    "ReconciliationResult",
    "ReconciliationStatus",
    "TransactionFilters",
    "TransactionType",
    "ValidationIssue",
    "ValidationResult",
    "categories_for",
    "utc_now",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
