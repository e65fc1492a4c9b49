"""Reconciliation package."""

from fincore.reconciliation.matcher import reconcile, sort_payments

__all__ = [
    "reconcile",
    "sort_payments",
]
