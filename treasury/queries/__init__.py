"""Aggregation and reconciliation package."""

from treasury.queries.aggregations import (
    DEFAULT_TOLERANCE,
    reconcile,
    summarize_cash_balance,
    totals_by_category,
    year_options,
    year_range,
)

__all__ = [
    "DEFAULT_TOLERANCE",
    "reconcile",
    "summarize_cash_balance",
    "totals_by_category",
    "year_options",
    "year_range",
]
