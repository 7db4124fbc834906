"""Tests for transaction form validation and recipient resolution."""

import pytest
from datetime import date
from decimal import Decimal
from uuid import uuid4

from treasury.models.transaction import (
    Member,
    MemberDirectory,
    TransactionType,
)
from treasury.validation import (
    TransactionFormData,
    TransactionValidator,
    ValidationError,
    resolve_recipient,
)


def make_form(**overrides) -> TransactionFormData:
    """A form that passes every rule for an income."""
    values = {
        "date": "2024-06-15",
        "amount": 5000,
        "category": "donation",
        "description": "Annual gala donation",
    }
    values.update(overrides)
    return TransactionFormData(**values)


@pytest.fixture
def validator():
    return TransactionValidator()


@pytest.fixture
def alice():
    return Member(id=uuid4(), name="Alice", email="alice@example.org")


@pytest.fixture
def members(alice):
    return MemberDirectory(members=[alice, Member(id=uuid4(), name="Bob")])


class TestAmountRules:
    """Tests for the amount bounds."""

    @pytest.mark.parametrize("amount, valid", [
        (0, False),
        (1, True),
        (100_000_000, True),
        (100_000_001, False),
    ])
    def test_amount_bounds(self, validator, amount, valid):
        result = validator.validate(make_form(amount=amount), TransactionType.INCOME)
        assert result.is_valid is valid
        assert ("amount" in result.field_errors()) is not valid

    def test_amount_must_be_numeric(self, validator):
        result = validator.validate(make_form(amount="abc"), TransactionType.INCOME)
        assert result.field_errors()["amount"] == "Amount must be a number"

    def test_missing_amount(self, validator):
        result = validator.validate(make_form(amount=None), TransactionType.INCOME)
        assert not result.is_valid

    def test_bounds_come_from_constructor(self):
        validator = TransactionValidator(min_amount=Decimal("10"), max_amount=Decimal("20"))
        assert not validator.validate(make_form(amount=9), TransactionType.INCOME).is_valid
        assert validator.validate(make_form(amount=20), TransactionType.INCOME).is_valid


class TestDescriptionRules:
    """Tests for the description length."""

    @pytest.mark.parametrize("length, valid", [
        (1, False),
        (2, True),
        (200, True),
        (201, False),
    ])
    def test_description_length(self, validator, length, valid):
        form = make_form(description="d" * length)
        result = validator.validate(form, TransactionType.INCOME)
        assert result.is_valid is valid

    def test_whitespace_is_stripped_before_counting(self, validator):
        result = validator.validate(make_form(description="  a  "), TransactionType.INCOME)
        assert "description" in result.field_errors()


class TestDateRules:
    """Tests for the date format."""

    def test_wrong_format(self, validator):
        result = validator.validate(make_form(date="15/06/2024"), TransactionType.INCOME)
        assert result.field_errors()["date"] == "Date must be in YYYY-MM-DD format"

    def test_impossible_calendar_day(self, validator):
        result = validator.validate(make_form(date="2024-02-30"), TransactionType.INCOME)
        assert "date" in result.field_errors()

    def test_empty_date(self, validator):
        result = validator.validate(make_form(date=""), TransactionType.INCOME)
        assert not result.is_valid


class TestCategoryRules:
    """Tests for categories per transaction type."""

    def test_missing_category(self, validator):
        result = validator.validate(make_form(category=""), TransactionType.INCOME)
        assert result.field_errors()["category"] == "Please select a category"

    def test_expense_category_rejected_for_income(self, validator):
        result = validator.validate(make_form(category="loan"), TransactionType.INCOME)
        assert "category" in result.field_errors()

    def test_income_category_rejected_for_expense(self, validator):
        form = make_form(category="donation", recipient_type="other", recipient_name="Caterer")
        result = validator.validate(form, TransactionType.EXPENSE)
        assert "category" in result.field_errors()


class TestRecipientRules:
    """Tests for recipient fields."""

    def test_recipient_name_too_long(self, validator):
        form = make_form(category="loan", recipient_type="other", recipient_name="n" * 101)
        result = validator.validate(form, TransactionType.EXPENSE)
        assert "recipient_name" in result.field_errors()

    def test_unknown_recipient_type(self, validator):
        form = make_form(category="loan", recipient_type="company")
        result = validator.validate(form, TransactionType.EXPENSE)
        assert "recipient_type" in result.field_errors()

    def test_member_expense_without_member_is_a_warning(self, validator):
        """Test that a missing member does not block the expense."""
        form = make_form(category="loan", recipient_type="member")
        result = validator.validate(form, TransactionType.EXPENSE)
        assert result.is_valid
        assert [i.field for i in result.issues] == ["recipient_id"]
        assert result.issues[0].severity == "warning"


class TestResolveRecipient:
    """Tests for resolve_recipient."""

    def test_member_expense_uses_member_name(self, members, alice):
        form = make_form(category="loan", recipient_type="member", recipient_id=str(alice.id))
        assert resolve_recipient(form, TransactionType.EXPENSE, members) == "Alice"

    def test_other_expense_uses_typed_name(self, members):
        form = make_form(category="loan", recipient_type="other", recipient_name="Caterer Ltd")
        assert resolve_recipient(form, TransactionType.EXPENSE, members) == "Caterer Ltd"

    def test_income_never_has_a_recipient(self, members, alice):
        form = make_form(recipient_type="member", recipient_id=str(alice.id), recipient_name="Alice")
        assert resolve_recipient(form, TransactionType.INCOME, members) == ""

    def test_unknown_member_resolves_to_empty(self, members):
        form = make_form(category="loan", recipient_type="member", recipient_id=str(uuid4()))
        assert resolve_recipient(form, TransactionType.EXPENSE, members) == ""

    def test_other_without_name_resolves_to_empty(self, members):
        form = make_form(category="loan", recipient_type="other")
        assert resolve_recipient(form, TransactionType.EXPENSE, members) == ""


class TestBuildTransaction:
    """Tests for turning a valid form into an insert payload."""

    def test_loan_to_member(self, validator, members, alice):
        """Test a 25,000 loan to Alice."""
        form = make_form(
            date="2024-04-02",
            amount="25000",
            category="loan",
            description="Loan to Alice",
            recipient_type="member",
            recipient_id=str(alice.id),
        )

        payload = validator.build_transaction(form, TransactionType.EXPENSE, members)

        assert payload.date == date(2024, 4, 2)
        assert payload.amount == Decimal("25000")
        assert payload.type == TransactionType.EXPENSE
        assert payload.recipient == "Alice"

    def test_invalid_form_raises(self, validator, members):
        with pytest.raises(ValidationError, match="amount"):
            validator.build_transaction(make_form(amount=0), TransactionType.INCOME, members)

    def test_validation_error_carries_result(self, validator):
        with pytest.raises(ValidationError) as exc_info:
            validator.ensure_valid(make_form(amount=0, description=""), TransactionType.INCOME)
        assert set(exc_info.value.result.field_errors()) == {"amount", "description"}


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
