"""
Amortization Calculator

Resolves a loan's fixed installment (EMI) or implied principal and builds
the month-by-month schedule.

The standard annuity formula links the two:

    EMI = P * r * (1 + r)^n / ((1 + r)^n - 1)
    P   = EMI * ((1 + r)^n - 1) / (r * (1 + r)^n)

where ``r`` is the monthly rate (annual / 12 / 100) and ``n`` the tenure
in months. A zero rate is an explicit branch (EMI = P / n, P = EMI * n).

DESIGN DECISION: The resolved EMI and principal are quantized to the
currency quantum before the schedule is built, and every row is quantized
as it is produced. The rounding remainder is absorbed by the last
installment's principal, so the schedule always ends at a balance of
exactly zero and the principal components sum to the resolved principal.
"""

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from fincore.config import get_settings
from fincore.dates import add_months, same_month, as_date
from fincore.faults import ValidationFault
from fincore.models.ledger import ZERO
from fincore.models.loan import (
    ByInstallment,
    ByPrincipal,
    ByTotalPayable,
    CalculationMode,
    LoanDefinition,
    LoanSchedule,
    LoanSummary,
    ScheduleEntry,
)
from fincore.validation.validator import validate_loan_or_raise

HUNDRED = Decimal("100")
TWELVE = Decimal("12")


def _quantum(quantum: Optional[Decimal]) -> Decimal:
    if quantum is None:
        return get_settings().calculation.currency_quantum
    return quantum


def quantize(amount: Decimal, quantum: Decimal) -> Decimal:
    """Round half-up to the currency quantum."""
    return amount.quantize(quantum, rounding=ROUND_HALF_UP)


def monthly_rate(annual_rate: Decimal) -> Decimal:
    """Annual percentage rate to a monthly fraction (12 -> 0.01)."""
    return Decimal(annual_rate) / TWELVE / HUNDRED


def _check_terms(annual_rate: Decimal, tenure_months: int) -> None:
    if tenure_months <= 0:
        raise ValidationFault.for_field(
            "tenure_months",
            f"Tenure must be at least one month, got {tenure_months}",
        )
    if annual_rate < 0:
        raise ValidationFault.for_field(
            "annual_interest_rate",
            f"annual_interest_rate cannot be negative, got {annual_rate}",
        )


def calculate_installment(
    principal: Decimal,
    annual_rate: Decimal,
    tenure_months: int,
    quantum: Optional[Decimal] = None,
) -> Decimal:
    """
    Return the fixed monthly installment for a principal.

    Raises:
        ValidationFault: tenure below one month or a negative rate
    """
    _check_terms(annual_rate, tenure_months)
    r = monthly_rate(annual_rate)
    if r == 0:
        emi = principal / Decimal(tenure_months)
    else:
        factor = (1 + r) ** tenure_months
        emi = principal * r * factor / (factor - 1)
    return quantize(emi, _quantum(quantum))


def calculate_principal(
    installment: Decimal,
    annual_rate: Decimal,
    tenure_months: int,
    quantum: Optional[Decimal] = None,
) -> Decimal:
    """Return the principal a fixed monthly installment repays."""
    _check_terms(annual_rate, tenure_months)
    r = monthly_rate(annual_rate)
    if r == 0:
        principal = installment * tenure_months
    else:
        factor = (1 + r) ** tenure_months
        principal = installment * (factor - 1) / (r * factor)
    return quantize(principal, _quantum(quantum))


def resolve_terms(
    loan: LoanDefinition,
    quantum: Optional[Decimal] = None,
) -> tuple[Decimal, Decimal]:
    """
    Resolve whichever of installment/principal the mode leaves unknown.

    Returns: (installment, principal), both quantized

    Raises:
        ValidationFault: the loan definition is invalid
    """
    validate_loan_or_raise(loan)
    quantum = _quantum(quantum)
    terms = loan.terms
    n = loan.tenure_months
    rate = loan.annual_interest_rate

    if isinstance(terms, ByPrincipal):
        principal = quantize(terms.principal, quantum)
        return calculate_installment(principal, rate, n, quantum), principal

    if isinstance(terms, ByInstallment):
        installment = quantize(terms.installment, quantum)
    elif isinstance(terms, ByTotalPayable):
        installment = quantize(terms.total_payable / Decimal(n), quantum)
    else:
        raise TypeError(f"Unsupported loan terms: {type(terms).__name__}")

    return installment, calculate_principal(installment, rate, n, quantum)


def generate_schedule(
    loan: LoanDefinition,
    quantum: Optional[Decimal] = None,
) -> LoanSchedule:
    """
    Build the full amortization schedule for a loan.

    Installment 1 also carries the one-time charges: processing fee, GST
    on the fee, broken-period interest and GST on that interest. Due dates
    are set when the loan has a first installment date; installment k is
    due k-1 months after it (day clamped to the month's end).

    Raises:
        ValidationFault: the loan definition is invalid
    """
    quantum = _quantum(quantum)
    installment, principal = resolve_terms(loan, quantum)
    r = monthly_rate(loan.annual_interest_rate)
    n = loan.tenure_months

    fee = quantize(loan.processing_fee, quantum)
    fee_gst = quantize(fee * loan.gst_rate_on_fee / HUNDRED, quantum)
    bpi = quantize(loan.broken_period_interest, quantum)
    bpi_gst = quantize(bpi * loan.gst_rate_on_interest / HUNDRED, quantum)
    one_time_charges = fee + fee_gst + bpi + bpi_gst

    entries = []
    balance = principal
    for k in range(1, n + 1):
        interest = quantize(balance * r, quantum)
        if k == n:
            principal_part = balance
            amount = interest + principal_part
        else:
            principal_part = installment - interest
            amount = installment
        gst = quantize(interest * loan.gst_rate_on_interest / HUNDRED, quantum)
        charges = one_time_charges if k == 1 else ZERO
        balance = balance - principal_part

        entries.append(ScheduleEntry(
            installment_no=k,
            due_date=(
                add_months(loan.first_installment_date, k - 1)
                if loan.first_installment_date else None
            ),
            installment_amount=amount,
            interest=interest,
            principal=principal_part,
            gst=gst,
            one_time_charges=charges,
            total_payment=amount + gst + charges,
            balance=balance,
        ))

    total_installments = sum((e.installment_amount for e in entries), ZERO)
    total_interest = sum((e.interest for e in entries), ZERO)
    total_gst = sum((e.gst for e in entries), ZERO)

    summary = LoanSummary(
        installment=installment,
        principal=principal,
        total_installments=total_installments,
        total_interest=total_interest,
        total_gst=total_gst,
        processing_fee=fee,
        processing_fee_gst=fee_gst,
        total_processing_fee=fee + fee_gst,
        broken_period_interest=bpi,
        broken_period_gst=bpi_gst,
        total_amount=total_installments + total_gst + one_time_charges,
    )

    return LoanSchedule(
        loan_id=loan.id,
        mode=CalculationMode(loan.terms.mode),
        monthly_rate=r,
        installment=installment,
        principal=principal,
        entries=entries,
        summary=summary,
    )


def confirm_installment_match(
    schedule: LoanSchedule,
    amount: Decimal,
    paid_at: datetime,
    installment_no: int,
    tolerance: Optional[Decimal] = None,
) -> bool:
    """
    Check whether a payment can be linked as the given installment.

    The payment must fall in the installment's calendar month (when the
    schedule is dated) and its magnitude must be within ``tolerance`` of
    the installment's total payment. Installments beyond the tenure never
    match.
    """
    if tolerance is None:
        tolerance = get_settings().calculation.installment_match_tolerance
    if installment_no < 1 or installment_no > len(schedule.entries):
        return False

    entry = schedule.entries[installment_no - 1]
    if entry.due_date is not None and not same_month(as_date(paid_at), entry.due_date):
        return False
    return abs(abs(amount) - entry.total_payment) <= tolerance
