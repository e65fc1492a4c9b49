"""Obligation projection package."""

from fincore.obligations.aggregator import (
    loan_outstanding,
    my_share,
    outstanding_balance,
    project_obligations,
)

__all__ = [
    "loan_outstanding",
    "my_share",
    "outstanding_balance",
    "project_obligations",
]
