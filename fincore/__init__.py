"""
fincore - Personal Finance Computation Core

Turns raw financial records (statements, transfers, splits, loans and
recurring payments) into balances, amortization schedules, reconciliation
status and projected obligations.

DESIGN PRINCIPLES:
1. Pure computations over immutable records
2. Money is Decimal end-to-end
3. Faults are surfaced, never silently corrected
4. Derived data is recomputed on every query
5. Storage is a collaborator behind an interface
"""

__version__ = "1.0.0"
__author__ = "fincore Team"
