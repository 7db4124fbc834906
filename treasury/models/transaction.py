"""
Core Data Models for Treasury

These models define the strict schemas for all data flowing through the system.
They are designed to:
1. Enforce type safety at runtime
2. Provide clear validation error messages
3. Be serializable for storage and logging
4. Support the audit trail

DESIGN DECISION: Amounts are Decimal everywhere. Balances are sums of
many rows and must not drift the way floats do.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    model_validator,
)


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionType(str, Enum):
    """Direction of a manual transaction."""
    INCOME = "income"
    EXPENSE = "expense"


class IncomeCategory(str, Enum):
    """Categories allowed for income transactions."""
    DONATION = "donation"
    REIMBURSEMENT = "reimbursement"
    OTHER_INCOME = "other_income"


class ExpenseCategory(str, Enum):
    """Categories allowed for expense transactions."""
    LOAN = "loan"
    EVENT_EXPENSE = "event_expense"
    PROJECT_EXPENSE = "project_expense"
    PREFINANCING = "prefinancing"
    DONATION_EXPENSE = "donation_expense"
    OTHER_EXPENSE = "other_expense"


class RecipientType(str, Enum):
    """Who receives an expense: a registered member or someone else."""
    MEMBER = "member"
    OTHER = "other"


class ContributionStatus(str, Enum):
    """Payment status of a member contribution."""
    PENDING = "pending"
    PAID = "paid"
    PARTIAL = "partial"
    CANCELLED = "cancelled"


class ReconciliationStatus(str, Enum):
    """Outcome of comparing the cash register with the bank."""
    MATCH = "match"
    MISMATCH = "mismatch"


class BalanceReadingStatus(str, Enum):
    """
    What a bank balance read actually found.

    KNOWN: a snapshot exists and was read.
    EMPTY: no snapshot has ever been recorded.
    UNKNOWN: the read failed; the amount is a zero placeholder.
    """
    KNOWN = "known"
    EMPTY = "empty"
    UNKNOWN = "unknown"


CATEGORIES: dict[TransactionType, list[str]] = {
    TransactionType.INCOME: [c.value for c in IncomeCategory],
    TransactionType.EXPENSE: [c.value for c in ExpenseCategory],
}

CATEGORY_LABELS: dict[str, str] = {
    IncomeCategory.DONATION.value: "Don",
    IncomeCategory.REIMBURSEMENT.value: "Remboursement",
    IncomeCategory.OTHER_INCOME.value: "Autre revenu",
    ExpenseCategory.LOAN.value: "Prêt",
    ExpenseCategory.EVENT_EXPENSE.value: "Dépense événement",
    ExpenseCategory.PROJECT_EXPENSE.value: "Dépense projet",
    ExpenseCategory.PREFINANCING.value: "Préfinancement",
    ExpenseCategory.DONATION_EXPENSE.value: "Don",
    ExpenseCategory.OTHER_EXPENSE.value: "Autre dépense",
}


def categories_for(transaction_type: TransactionType) -> list[str]:
    """Category values allowed for a transaction type."""
    return list(CATEGORIES[TransactionType(transaction_type)])


# =============================================================================
# TRANSACTIONS
# =============================================================================

class NewTransaction(BaseModel):
    """
    Fields of a transaction about to be inserted.

    The service stamps created_by; the gateway assigns id and timestamps.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    date: date
    amount: Decimal = Field(
        ...,
        gt=0,
        description="Amount in the organization's currency"
    )
    type: TransactionType
    category: str = Field(..., min_length=1)
    description: str = Field(
        ...,
        min_length=2,
        max_length=200,
    )
    recipient: str = Field(
        default="",
        description="Display name of the beneficiary (expenses only)"
    )

    @model_validator(mode='after')
    def validate_category_matches_type(self) -> 'NewTransaction':
        """Each type has its own fixed category list."""
        if self.category not in CATEGORIES[self.type]:
            raise ValueError(
                f"Category {self.category!r} is not valid for {self.type.value} transactions"
            )
        return self

    def to_insert_row(self, created_by: UUID) -> dict:
        """Row payload for the transactions table."""
        return {
            "date": self.date.isoformat(),
            "amount": str(self.amount),
            "type": self.type.value,
            "category": self.category,
            "description": self.description,
            "recipient": self.recipient,
            "created_by": str(created_by),
        }


class FinancialTransaction(BaseModel):
    """
    A persisted manual transaction.

    Immutable once created; the only mutation is deletion.
    """
    model_config = ConfigDict(frozen=True)

    id: UUID
    date: date
    amount: Decimal = Field(..., ge=0)
    type: TransactionType
    category: str
    description: str
    recipient: Optional[str] = None
    created_by: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime

    @property
    def signed_amount(self) -> Decimal:
        """Amount with expenses counted negative."""
        return self.amount if self.type == TransactionType.INCOME else -self.amount


class TransactionFilters(BaseModel):
    """
    Conjunctive filters for listing transactions.

    Absent fields impose no constraint. Date bounds are inclusive.
    """

    type: Optional[TransactionType] = None
    category: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @model_validator(mode='after')
    def validate_range(self) -> 'TransactionFilters':
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("End date cannot be before start date")
        return self

    def matches(self, transaction: FinancialTransaction) -> bool:
        """Whether a transaction passes every filter that is set."""
        if self.type and transaction.type != self.type:
            return False
        if self.category and transaction.category != self.category:
            return False
        if self.start_date and transaction.date < self.start_date:
            return False
        if self.end_date and transaction.date > self.end_date:
            return False
        return True


# =============================================================================
# BANK BALANCE
# =============================================================================

class BankBalanceSnapshot(BaseModel):
    """
    A point-in-time assertion of the bank account balance.

    Snapshots are append-only. Corrections are new snapshots.
    """
    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4)
    amount: Decimal
    updated_at: datetime = Field(default_factory=utc_now)
    updated_by: Optional[UUID] = None


class BankBalanceReading(BaseModel):
    """
    Result of reading the current bank balance.

    EMPTY and UNKNOWN both report amount 0 and no timestamp, so callers
    that only look at the amount still get the zero default. The status
    tells a real zero apart from a missing or failed read.
    """

    status: BalanceReadingStatus
    amount: Decimal = Decimal("0")
    updated_at: Optional[datetime] = None
    snapshot_id: Optional[UUID] = None
    reason: Optional[str] = None

    @classmethod
    def known(cls, snapshot: BankBalanceSnapshot) -> 'BankBalanceReading':
        return cls(
            status=BalanceReadingStatus.KNOWN,
            amount=snapshot.amount,
            updated_at=snapshot.updated_at,
            snapshot_id=snapshot.id,
        )

    @classmethod
    def empty(cls) -> 'BankBalanceReading':
        return cls(status=BalanceReadingStatus.EMPTY)

    @classmethod
    def unknown(cls, reason: str) -> 'BankBalanceReading':
        return cls(status=BalanceReadingStatus.UNKNOWN, reason=reason)

    @property
    def is_known(self) -> bool:
        return self.status == BalanceReadingStatus.KNOWN


# =============================================================================
# READ-ONLY ENTITIES
# =============================================================================

class Contribution(BaseModel):
    """A member contribution. Only paid ones count toward the cash balance."""

    amount: Decimal = Field(default=Decimal("0"), ge=0)
    status: ContributionStatus


class Member(BaseModel):
    """A member profile, used to name expense recipients."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID
    name: str
    email: Optional[str] = None


class MemberDirectory(BaseModel):
    """Members fetched once and passed explicitly to the form."""

    members: list[Member] = Field(default_factory=list)

    def name_of(self, member_id: Optional[str]) -> str:
        """Display name for an id, or "" when the id is unknown."""
        if not member_id:
            return ""
        for member in self.members:
            if str(member.id) == str(member_id):
                return member.name
        return ""


# =============================================================================
# DERIVED VALUES
# =============================================================================

class CashBalanceSummary(BaseModel):
    """
    Cash register balance, recomputed on demand.

    total_balance = total_contributions + total_manual_income - total_expenses
    """

    total_balance: Decimal = Decimal("0")
    total_contributions: Decimal = Decimal("0")
    total_manual_income: Decimal = Decimal("0")
    total_expenses: Decimal = Decimal("0")


class ReconciliationResult(BaseModel):
    """Cash register compared against the bank balance."""

    cash_balance: Decimal
    bank_balance: Decimal
    difference: Decimal
    status: ReconciliationStatus
    tolerance: Decimal

    @property
    def is_match(self) -> bool:
        return self.status == ReconciliationStatus.MATCH


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found on a form field."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_format', 'out_of_range')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        default="error",
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )


class ValidationResult(BaseModel):
    """Result of validating a transaction form."""

    validated_at: datetime = Field(default_factory=utc_now)
    is_valid: bool
    issues: list[ValidationIssue] = Field(default_factory=list)

    def field_errors(self) -> dict[str, str]:
        """First error message per field, for inline rendering."""
        errors: dict[str, str] = {}
        for issue in self.issues:
            if issue.severity == "error" and issue.field not in errors:
                errors[issue.field] = issue.message
        return errors
