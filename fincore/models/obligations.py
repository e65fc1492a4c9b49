"""
Obligation Projection Models

"What do I owe, this month and going forward": loan installments and
recurring occurrences combined into month buckets, plus outstanding
balances per loan and per credit instrument.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from fincore.models.ledger import ZERO


class ObligationSource(str, Enum):
    LOAN = "loan"
    RECURRING = "recurring"


class ObligationItem(BaseModel):
    """A single dated amount owed."""

    source: ObligationSource
    source_id: str
    name: str
    due_date: date
    installment_no: Optional[int] = Field(
        default=None,
        description="Installment number for loan items"
    )
    amount: Decimal
    my_share: Decimal = Field(
        ...,
        description="Part of the amount not allocated to counterparties"
    )


class MonthProjection(BaseModel):
    """Obligations falling in one calendar month."""

    month: str = Field(
        ...,
        pattern=r"^\d{4}-\d{2}$",
        description="YYYY-MM"
    )
    items: list[ObligationItem] = Field(default_factory=list)

    @property
    def emi_total(self) -> Decimal:
        return sum(
            (i.amount for i in self.items if i.source == ObligationSource.LOAN),
            ZERO,
        )

    @property
    def emi_my_total(self) -> Decimal:
        return sum(
            (i.my_share for i in self.items if i.source == ObligationSource.LOAN),
            ZERO,
        )

    @property
    def recurring_total(self) -> Decimal:
        return sum(
            (i.amount for i in self.items if i.source == ObligationSource.RECURRING),
            ZERO,
        )

    @property
    def total(self) -> Decimal:
        return self.emi_total + self.recurring_total

    @property
    def my_total(self) -> Decimal:
        """Loan shares plus recurring amounts, which are fully the user's."""
        return self.emi_my_total + self.recurring_total


class LoanOutstanding(BaseModel):
    """Unpaid remainder of one loan."""

    loan_id: str
    name: str
    credit_instrument_id: Optional[str] = None
    installment: Decimal
    remaining_installments: int = Field(..., ge=0)
    outstanding: Decimal = Field(
        ...,
        description="Principal + interest + GST of the unpaid installments"
    )
    my_outstanding: Decimal


class InstrumentObligation(BaseModel):
    """Loans attached to one credit instrument and its utilization."""

    instrument_id: str
    account_id: Optional[str] = None
    limit: Optional[Decimal] = None
    loans: list[LoanOutstanding] = Field(default_factory=list)
    outstanding: Decimal = ZERO
    current_month_due: Decimal = Field(
        default=ZERO,
        description="Installments of this instrument's loans due in the current month"
    )
    account_balance: Optional[Decimal] = Field(
        default=None,
        description="Current balance of the account carrying the instrument"
    )

    @property
    def utilized(self) -> Decimal:
        """|account balance| plus outstanding loan amounts."""
        balance = abs(self.account_balance) if self.account_balance is not None else ZERO
        return balance + self.outstanding

    @property
    def available(self) -> Optional[Decimal]:
        if self.limit is None:
            return None
        return self.limit - self.utilized

    @property
    def utilization_percent(self) -> Optional[Decimal]:
        if not self.limit:
            return None
        return (self.utilized / self.limit * 100).quantize(Decimal("0.01"))


class ObligationReport(BaseModel):
    """Current month, future months, overdue items and outstanding balances."""

    reference_date: date
    upto: date
    current_month: MonthProjection
    future_months: list[MonthProjection] = Field(
        default_factory=list,
        description="Months after the current one, in calendar order"
    )
    overdue: list[ObligationItem] = Field(default_factory=list)
    loans: list[LoanOutstanding] = Field(default_factory=list)
    undated_loans: list[LoanOutstanding] = Field(
        default_factory=list,
        description="Loans without a first installment date; counted in the totals, absent from the months"
    )
    instruments: list[InstrumentObligation] = Field(default_factory=list)

    @property
    def total_outstanding(self) -> Decimal:
        return sum((loan.outstanding for loan in self.loans), ZERO)

    @property
    def overdue_total(self) -> Decimal:
        return sum((item.amount for item in self.overdue), ZERO)

    def month(self, key: str) -> MonthProjection:
        if key == self.current_month.month:
            return self.current_month
        for projection in self.future_months:
            if projection.month == key:
                return projection
        raise KeyError(key)

    def instrument(self, instrument_id: str) -> InstrumentObligation:
        for entry in self.instruments:
            if entry.instrument_id == instrument_id:
                return entry
        raise KeyError(instrument_id)
