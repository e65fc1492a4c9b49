"""
In-Memory Record Source

Holds records in plain lists. Used by the tests and by callers that
already have their records loaded and only want the service layer.
"""

from typing import Iterable, Optional
from uuid import UUID

from fincore.models.audit import AuditEvent
from fincore.models.ledger import Account, Friend, SelfTransfer, Split, Statement
from fincore.models.loan import LoanDefinition
from fincore.models.recurring import RecurringPayment
from fincore.services.storage.interface import (
    AuditSinkInterface,
    NotFoundError,
    RecordSourceInterface,
)


class InMemoryRecordSource(RecordSourceInterface):
    """Record source backed by lists."""

    def __init__(
        self,
        accounts: Iterable[Account] = (),
        friends: Iterable[Friend] = (),
        statements: Iterable[Statement] = (),
        splits: Iterable[Split] = (),
        transfers: Iterable[SelfTransfer] = (),
        loans: Iterable[LoanDefinition] = (),
        recurring_payments: Iterable[RecurringPayment] = (),
    ):
        self.accounts = list(accounts)
        self.friends = list(friends)
        self.statements = list(statements)
        self.splits = list(splits)
        self.transfers = list(transfers)
        self.loans = list(loans)
        self.recurring_payments = list(recurring_payments)

    async def get_accounts(self) -> list[Account]:
        return list(self.accounts)

    async def get_friends(self) -> list[Friend]:
        return list(self.friends)

    async def get_statements(self) -> list[Statement]:
        return sorted(self.statements, key=lambda s: s.created_at)

    async def get_splits(self) -> list[Split]:
        return list(self.splits)

    async def get_transfers(self) -> list[SelfTransfer]:
        return sorted(self.transfers, key=lambda t: t.created_at)

    async def get_loans(self, credit_instrument_id: Optional[str] = None) -> list[LoanDefinition]:
        if credit_instrument_id is None:
            return list(self.loans)
        return [l for l in self.loans if l.credit_instrument_id == credit_instrument_id]

    async def get_loan(self, loan_id: str) -> LoanDefinition:
        for loan in self.loans:
            if loan.id == loan_id:
                return loan
        raise NotFoundError(f"Loan not found: {loan_id}")

    async def get_recurring_payments(self) -> list[RecurringPayment]:
        return list(self.recurring_payments)

    async def get_recurring_payment(self, payment_id: str) -> RecurringPayment:
        for defn in self.recurring_payments:
            if defn.id == payment_id:
                return defn
        raise NotFoundError(f"Recurring payment not found: {payment_id}")

    async def get_linked_statements(
        self,
        loan_id: Optional[str] = None,
        recurring_payment_id: Optional[str] = None,
    ) -> list[Statement]:
        if loan_id is not None:
            return [s for s in self.statements if s.loan_id == loan_id]
        if recurring_payment_id is not None:
            return [s for s in self.statements if s.recurring_payment_id == recurring_payment_id]
        return []


class InMemoryAuditSink(AuditSinkInterface):
    """Append-only audit sink backed by a list."""

    def __init__(self):
        self.events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self.events.append(event)
        return True

    async def get_events_by_correlation_id(self, correlation_id: UUID) -> list[AuditEvent]:
        return [e for e in self.events if e.correlation_id == correlation_id]

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return list(reversed(self.events))[:limit]
