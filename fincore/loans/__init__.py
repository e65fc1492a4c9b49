"""Loan amortization package."""

from fincore.loans.amortization import (
    calculate_installment,
    calculate_principal,
    confirm_installment_match,
    generate_schedule,
    monthly_rate,
    quantize,
    resolve_terms,
)

__all__ = [
    "calculate_installment",
    "calculate_principal",
    "confirm_installment_match",
    "generate_schedule",
    "monthly_rate",
    "quantize",
    "resolve_terms",
]
