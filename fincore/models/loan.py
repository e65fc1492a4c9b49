"""
Loan (EMI) Models

DESIGN DECISION: The calculation mode is a tagged variant. Each of the
three constructors carries only the amount that is authoritative for it:

    ByPrincipal      -> principal known, installment solved
    ByInstallment    -> installment known, principal solved
    ByTotalPayable   -> total of all installments known, principal solved

Storage keeps a loose "mode + three optional amounts" shape;
LoanTerms.from_fields() converts it and rejects contradictory input.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from fincore.faults import ValidationFault
from fincore.models.ledger import ZERO, new_id


class CalculationMode(str, Enum):
    """Which loan amount is authoritative."""
    PRINCIPAL = "principal"
    INSTALLMENT = "installment"
    TOTAL_PAYABLE = "total_payable"


# =============================================================================
# CALCULATION MODE VARIANTS
# =============================================================================

class ByPrincipal(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    mode: Literal[CalculationMode.PRINCIPAL] = CalculationMode.PRINCIPAL
    principal: Decimal


class ByInstallment(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    mode: Literal[CalculationMode.INSTALLMENT] = CalculationMode.INSTALLMENT
    installment: Decimal


class ByTotalPayable(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    mode: Literal[CalculationMode.TOTAL_PAYABLE] = CalculationMode.TOTAL_PAYABLE
    total_payable: Decimal


LoanTermsVariant = Annotated[
    Union[ByPrincipal, ByInstallment, ByTotalPayable],
    Field(discriminator="mode"),
]

_MODE_FIELDS = {
    CalculationMode.PRINCIPAL: "principal",
    CalculationMode.INSTALLMENT: "installment",
    CalculationMode.TOTAL_PAYABLE: "total_payable",
}


class LoanTerms:
    """Factory helpers for the calculation mode variant."""

    _adapter = TypeAdapter(LoanTermsVariant)

    @staticmethod
    def from_fields(
        calculation_mode: str,
        principal: Optional[Decimal | str] = None,
        installment: Optional[Decimal | str] = None,
        total_payable: Optional[Decimal | str] = None,
    ) -> Union[ByPrincipal, ByInstallment, ByTotalPayable]:
        """
        Build a variant from loosely typed storage fields.

        Exactly one amount must be populated and it must be the one the
        declared mode names. Empty strings count as not populated.

        Raises:
            ValidationFault: unknown mode, zero or several amounts given,
                or the populated amount does not belong to the mode.
        """
        try:
            mode = CalculationMode(calculation_mode)
        except ValueError:
            raise ValidationFault.for_field(
                "calculation_mode",
                f"Unknown calculation mode: {calculation_mode!r}",
                suggested_fix="Use one of: principal, installment, total_payable",
            )

        supplied = {
            name: value
            for name, value in (
                ("principal", principal),
                ("installment", installment),
                ("total_payable", total_payable),
            )
            if value is not None and str(value).strip() != ""
        }
        expected = _MODE_FIELDS[mode]

        if len(supplied) != 1:
            raise ValidationFault.for_field(
                expected,
                f"Mode '{mode.value}' needs exactly one amount, got {len(supplied)} "
                f"({', '.join(sorted(supplied)) or 'none'})",
                issue_type="contradictory_mode",
            )
        if expected not in supplied:
            populated = next(iter(supplied))
            raise ValidationFault.for_field(
                expected,
                f"Mode '{mode.value}' requires '{expected}' but '{populated}' was given",
                issue_type="contradictory_mode",
            )

        try:
            return LoanTerms._adapter.validate_python(
                {"mode": mode, expected: supplied[expected]}
            )
        except ValueError as e:
            raise ValidationFault.for_field(expected, f"Invalid {expected}: {e}") from e


# =============================================================================
# LOAN DEFINITION
# =============================================================================

class LoanSplit(BaseModel):
    """Share of a loan's burden carried by a counterparty."""
    model_config = ConfigDict(frozen=True)

    friend_id: str
    percentage: Decimal = Field(
        ...,
        ge=0,
        le=100,
        description="Percentage of each installment (0-100)"
    )


class LoanDefinition(BaseModel):
    """
    An installment loan attached to a credit instrument.

    Rates are percentages (12 means 12 %). `paid_installments` is the highest
    installment number linked to an actual payment so far.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: str = Field(default_factory=new_id)
    name: str = Field(default="Loan", max_length=200)
    terms: LoanTermsVariant
    annual_interest_rate: Decimal
    tenure_months: int
    gst_rate_on_interest: Decimal = ZERO
    processing_fee: Decimal = ZERO
    gst_rate_on_fee: Decimal = ZERO
    broken_period_interest: Decimal = Field(
        default=ZERO,
        description="Interest for the days before the first cycle, charged with installment 1"
    )
    credit_instrument_id: Optional[str] = None
    first_installment_date: Optional[date] = None
    paid_installments: int = Field(default=0, ge=0)
    splits: tuple[LoanSplit, ...] = Field(default_factory=tuple)

    @property
    def split_percentage(self) -> Decimal:
        """Percentage of the loan carried by counterparties."""
        return sum((s.percentage for s in self.splits), ZERO)


# =============================================================================
# DERIVED SCHEDULE
# =============================================================================

class ScheduleEntry(BaseModel):
    """One installment of an amortization schedule."""
    model_config = ConfigDict(frozen=True)

    installment_no: int = Field(..., ge=1)
    due_date: Optional[date] = None
    installment_amount: Decimal = Field(
        ...,
        description="Principal plus interest for this installment"
    )
    interest: Decimal
    principal: Decimal
    gst: Decimal
    one_time_charges: Decimal = Field(
        default=ZERO,
        description="Processing fee, its GST and broken-period interest (installment 1 only)"
    )
    total_payment: Decimal
    balance: Decimal = Field(
        ...,
        description="Remaining principal after this installment"
    )

    @property
    def expected_amount(self) -> Decimal:
        return self.total_payment


class LoanSummary(BaseModel):
    """Aggregate figures of a schedule."""

    installment: Decimal
    principal: Decimal
    total_installments: Decimal
    total_interest: Decimal
    total_gst: Decimal
    processing_fee: Decimal
    processing_fee_gst: Decimal
    total_processing_fee: Decimal
    broken_period_interest: Decimal
    broken_period_gst: Decimal
    total_amount: Decimal = Field(
        ...,
        description="Everything payable: installments, GST and one-time charges"
    )


class LoanSchedule(BaseModel):
    """Resolved amounts plus the full month-by-month schedule."""

    loan_id: Optional[str] = None
    mode: CalculationMode
    monthly_rate: Decimal
    installment: Decimal
    principal: Decimal
    entries: list[ScheduleEntry] = Field(default_factory=list)
    summary: LoanSummary

    def remaining_entries(self, paid_installments: int) -> list[ScheduleEntry]:
        """Entries after the last paid installment."""
        return [e for e in self.entries if e.installment_no > paid_installments]
