"""
Transaction Form Validation

DESIGN DECISION: The form is validated field by field before anything
reaches the gateway. Every rule that fails produces its own
ValidationIssue, so the UI can show the message next to the field it
concerns instead of one generic error.

Rules:
- date: YYYY-MM-DD, and a real calendar day
- amount: numeric, min_transaction_amount <= amount <= max_transaction_amount
- category: one of the fixed categories of the selected type
- description: 2 to 200 characters
- recipient_type: member or other
- recipient_name: at most 100 characters

IMPORTANT: Validation NEVER silently fixes input (beyond stripping
surrounding whitespace). It reports issues for the user to correct.
"""

import re
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict

from treasury.config import get_settings
from treasury.models.transaction import (
    MemberDirectory,
    NewTransaction,
    RecipientType,
    TransactionType,
    ValidationIssue,
    ValidationResult,
    categories_for,
)


DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")

DESCRIPTION_MIN_LENGTH = 2
DESCRIPTION_MAX_LENGTH = 200
RECIPIENT_NAME_MAX_LENGTH = 100


class TransactionFormData(BaseModel):
    """
    Raw values captured by the transaction form.

    Deliberately loose: values arrive as the widgets produce them and
    are checked by TransactionValidator, not by pydantic.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    date: str = ""
    amount: Any = None
    category: str = ""
    description: str = ""
    recipient_type: str = RecipientType.MEMBER.value
    recipient_id: Optional[str] = None
    recipient_name: Optional[str] = None


class ValidationError(Exception):
    """The transaction form failed one or more field rules."""

    def __init__(self, result: ValidationResult):
        self.result = result
        messages = "; ".join(
            f"{field}: {message}" for field, message in result.field_errors().items()
        )
        super().__init__(f"Invalid transaction: {messages}")


def _parse_amount(value: Any) -> Optional[Decimal]:
    """Parse a widget value into a Decimal, or None if it is not numeric."""
    if value is None or isinstance(value, bool):
        return None
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        return None
    if not amount.is_finite():
        return None
    return amount


def resolve_recipient(
    form: TransactionFormData,
    transaction_type: TransactionType,
    members: MemberDirectory,
) -> str:
    """
    Work out the recipient string stored on the transaction.

    - income: always empty
    - expense to a member: the member's name ("" if the id is unknown)
    - expense to someone else: recipient_name as typed
    """
    if TransactionType(transaction_type) != TransactionType.EXPENSE:
        return ""
    if form.recipient_type == RecipientType.MEMBER.value and form.recipient_id:
        return members.name_of(form.recipient_id)
    return form.recipient_name or ""


class TransactionValidator:
    """Validates transaction form input and turns it into a NewTransaction."""

    def __init__(
        self,
        min_amount: Optional[Decimal] = None,
        max_amount: Optional[Decimal] = None,
    ):
        settings = get_settings().app
        self._min_amount = Decimal(
            settings.min_transaction_amount if min_amount is None else min_amount
        )
        self._max_amount = Decimal(
            settings.max_transaction_amount if max_amount is None else max_amount
        )

    def _validate_date(self, value: str) -> list[ValidationIssue]:
        if not DATE_PATTERN.match(value):
            return [ValidationIssue(
                field="date",
                issue_type="invalid_format",
                message="Date must be in YYYY-MM-DD format",
            )]
        try:
            date.fromisoformat(value)
        except ValueError:
            return [ValidationIssue(
                field="date",
                issue_type="invalid_value",
                message=f"{value} is not a valid calendar date",
            )]
        return []

    def _validate_amount(self, value: Any) -> list[ValidationIssue]:
        amount = _parse_amount(value)
        if amount is None:
            return [ValidationIssue(
                field="amount",
                issue_type="invalid_format",
                message="Amount must be a number",
            )]
        if amount < self._min_amount:
            return [ValidationIssue(
                field="amount",
                issue_type="out_of_range",
                message=f"Amount must be at least {self._min_amount:,}",
            )]
        if amount > self._max_amount:
            return [ValidationIssue(
                field="amount",
                issue_type="out_of_range",
                message=f"Amount cannot exceed {self._max_amount:,}",
            )]
        return []

    def _validate_category(
        self,
        value: str,
        transaction_type: TransactionType,
    ) -> list[ValidationIssue]:
        if not value:
            return [ValidationIssue(
                field="category",
                issue_type="missing",
                message="Please select a category",
            )]
        if value not in categories_for(transaction_type):
            return [ValidationIssue(
                field="category",
                issue_type="invalid_value",
                message=f"{value!r} is not a {transaction_type.value} category",
            )]
        return []

    def _validate_description(self, value: str) -> list[ValidationIssue]:
        if len(value) < DESCRIPTION_MIN_LENGTH:
            return [ValidationIssue(
                field="description",
                issue_type="too_short",
                message=f"Description must be at least {DESCRIPTION_MIN_LENGTH} characters",
            )]
        if len(value) > DESCRIPTION_MAX_LENGTH:
            return [ValidationIssue(
                field="description",
                issue_type="too_long",
                message=f"Description cannot exceed {DESCRIPTION_MAX_LENGTH} characters",
            )]
        return []

    def _validate_recipient(
        self,
        form: TransactionFormData,
        transaction_type: TransactionType,
    ) -> list[ValidationIssue]:
        issues = []

        if form.recipient_type not in {r.value for r in RecipientType}:
            issues.append(ValidationIssue(
                field="recipient_type",
                issue_type="invalid_value",
                message="Recipient must be a member or other",
            ))

        if form.recipient_name and len(form.recipient_name) > RECIPIENT_NAME_MAX_LENGTH:
            issues.append(ValidationIssue(
                field="recipient_name",
                issue_type="too_long",
                message=f"Recipient cannot exceed {RECIPIENT_NAME_MAX_LENGTH} characters",
            ))

        # Not blocking: the transaction is saved with an empty recipient
        if (
            transaction_type == TransactionType.EXPENSE
            and form.recipient_type == RecipientType.MEMBER.value
            and not form.recipient_id
        ):
            issues.append(ValidationIssue(
                field="recipient_id",
                issue_type="missing",
                message="No member selected; the expense will have no recipient",
                severity="warning",
            ))

        return issues

    def validate(
        self,
        form: TransactionFormData,
        transaction_type: TransactionType,
    ) -> ValidationResult:
        """
        Check every field of the form.

        Returns:
            ValidationResult with one issue per failed rule
        """
        transaction_type = TransactionType(transaction_type)

        issues = []
        issues.extend(self._validate_date(form.date))
        issues.extend(self._validate_amount(form.amount))
        issues.extend(self._validate_category(form.category, transaction_type))
        issues.extend(self._validate_description(form.description))
        issues.extend(self._validate_recipient(form, transaction_type))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return ValidationResult(is_valid=is_valid, issues=issues)

    def ensure_valid(
        self,
        form: TransactionFormData,
        transaction_type: TransactionType,
    ) -> ValidationResult:
        """Validate, raising ValidationError if any rule failed."""
        result = self.validate(form, transaction_type)
        if not result.is_valid:
            raise ValidationError(result)
        return result

    def build_transaction(
        self,
        form: TransactionFormData,
        transaction_type: TransactionType,
        members: MemberDirectory,
    ) -> NewTransaction:
        """Validate the form and produce the insert payload."""
        transaction_type = TransactionType(transaction_type)
        self.ensure_valid(form, transaction_type)

        return NewTransaction(
            date=date.fromisoformat(form.date),
            amount=_parse_amount(form.amount),
            type=transaction_type,
            category=form.category,
            description=form.description,
            recipient=resolve_recipient(form, transaction_type, members),
        )

