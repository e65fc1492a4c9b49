"""Validation package."""

from fincore.validation.validator import (
    RecordSetValidator,
    raise_for_result,
    validate_loan,
    validate_loan_or_raise,
)

__all__ = [
    "RecordSetValidator",
    "raise_for_result",
    "validate_loan",
    "validate_loan_or_raise",
]
