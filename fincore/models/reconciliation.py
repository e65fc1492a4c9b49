"""
Reconciliation Models

Scheduled obligations (loan installments, recurring occurrences) are
matched against actual payment records, one record per obligation.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field

from fincore.models.ledger import ZERO


class PaymentStatus(str, Enum):
    """
    Reconciliation status of a scheduled obligation.

    PAID: a payment record in the same calendar month was matched
    MISSED: unmatched and dated strictly before the reference date
    UPCOMING: unmatched and not yet due, or undated
    """
    PAID = "paid"
    MISSED = "missed"
    UPCOMING = "upcoming"


@runtime_checkable
class Obligation(Protocol):
    """Anything with an optional due date and an expected amount."""

    @property
    def due_date(self) -> Optional[date]: ...

    @property
    def expected_amount(self) -> Decimal: ...


class PaymentRecord(BaseModel):
    """An actual payment linked to an obligation."""
    model_config = ConfigDict(frozen=True)

    id: str
    paid_at: datetime
    amount: Decimal

    @classmethod
    def from_statement(cls, statement) -> "PaymentRecord":
        """Payments are recorded as outflows; the record keeps the magnitude."""
        return cls(
            id=statement.id,
            paid_at=statement.created_at,
            amount=abs(statement.amount),
        )


class ReconciledEntry(BaseModel):
    """An obligation with its status and the payment it matched, if any."""

    obligation: Any = Field(
        ...,
        description="The ScheduleEntry or Occurrence that was reconciled"
    )
    due_date: Optional[date] = None
    expected_amount: Decimal
    status: PaymentStatus
    payment: Optional[PaymentRecord] = None


class ReconciliationReport(BaseModel):
    """All reconciled entries plus the payment records nothing claimed."""

    reference_date: date
    entries: list[ReconciledEntry] = Field(default_factory=list)
    unmatched_payments: list[PaymentRecord] = Field(default_factory=list)

    def _count(self, status: PaymentStatus) -> int:
        return sum(1 for entry in self.entries if entry.status == status)

    @property
    def paid_count(self) -> int:
        return self._count(PaymentStatus.PAID)

    @property
    def missed_count(self) -> int:
        return self._count(PaymentStatus.MISSED)

    @property
    def upcoming_count(self) -> int:
        return self._count(PaymentStatus.UPCOMING)

    @property
    def amount_paid(self) -> Decimal:
        """Sum of the matched payment amounts."""
        return sum(
            (e.payment.amount for e in self.entries if e.payment is not None),
            ZERO,
        )

    @property
    def amount_missed(self) -> Decimal:
        return sum(
            (e.expected_amount for e in self.entries if e.status == PaymentStatus.MISSED),
            ZERO,
        )

    def by_status(self, status: PaymentStatus) -> list[ReconciledEntry]:
        return [entry for entry in self.entries if entry.status == status]
