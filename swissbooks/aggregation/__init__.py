"""Financial aggregation package."""

from swissbooks.aggregation.aggregator import (
    AggregationError,
    CreditorMismatchError,
    FinancialAggregator,
)

__all__ = ["AggregationError", "CreditorMismatchError", "FinancialAggregator"]
