"""Form validation package."""

from treasury.validation.validator import (
    TransactionFormData,
    TransactionValidator,
    ValidationError,
    resolve_recipient,
)

__all__ = [
    "TransactionFormData",
    "TransactionValidator",
    "ValidationError",
    "resolve_recipient",
]
