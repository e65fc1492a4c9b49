"""Ledger aggregation package."""

from fincore.ledger.aggregator import (
    aggregate_balances,
    in_window,
    net_impact,
    postings_for,
    summarize_postings,
)
from fincore.ledger.periods import aggregate_by_period, period_starts

__all__ = [
    "aggregate_balances",
    "aggregate_by_period",
    "in_window",
    "net_impact",
    "period_starts",
    "postings_for",
    "summarize_postings",
]
