"""
Abstract Record Source Interface

DESIGN DECISION: fincore never decides how records are stored. The
storage collaborator is consumed through these interfaces only. This
allows us to:
1. Plug in any database or API behind the service layer
2. Use in-memory storage for testing
3. Keep every computation a pure function of the fetched records

The interface is intentionally read-only for source records; the only
write is the append-only audit sink.
"""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from fincore.models.audit import AuditEvent
from fincore.models.ledger import Account, Friend, SelfTransfer, Split, Statement
from fincore.models.loan import LoanDefinition
from fincore.models.recurring import RecurringPayment


class RecordSourceInterface(ABC):
    """
    Abstract interface for the storage collaborator.

    All records belong to one user; tenant isolation is the
    implementation's concern.
    """

    @abstractmethod
    async def get_accounts(self) -> list[Account]:
        """
        List the user's accounts, with their credit instruments attached.
        """
        pass

    @abstractmethod
    async def get_friends(self) -> list[Friend]:
        pass

    @abstractmethod
    async def get_statements(self) -> list[Statement]:
        """
        List statements, in creation order.

        Windowing is left to the engines; splits need their parent
        statement whatever its date.
        """
        pass

    @abstractmethod
    async def get_splits(self) -> list[Split]:
        pass

    @abstractmethod
    async def get_transfers(self) -> list[SelfTransfer]:
        """
        List self-transfers, in creation order.
        """
        pass

    @abstractmethod
    async def get_loans(
        self,
        credit_instrument_id: Optional[str] = None,
    ) -> list[LoanDefinition]:
        """
        List loan definitions, optionally for one credit instrument.
        """
        pass

    @abstractmethod
    async def get_loan(self, loan_id: str) -> LoanDefinition:
        """
        Retrieve one loan.

        Raises:
            NotFoundError: If the loan doesn't exist
        """
        pass

    @abstractmethod
    async def get_recurring_payments(self) -> list[RecurringPayment]:
        pass

    @abstractmethod
    async def get_recurring_payment(self, payment_id: str) -> RecurringPayment:
        """
        Retrieve one recurring payment definition.

        Raises:
            NotFoundError: If the definition doesn't exist
        """
        pass

    @abstractmethod
    async def get_linked_statements(
        self,
        loan_id: Optional[str] = None,
        recurring_payment_id: Optional[str] = None,
    ) -> list[Statement]:
        """
        Statements previously linked to a loan or a recurring payment.

        Exactly one of the two ids is expected.
        """
        pass


class AuditSinkInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a correlation ID (one service operation).

        Returns:
            List of related events in chronological order
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class SourceUnavailableError(StorageError):
    """The storage collaborator could not be reached; safe to retry."""
    pass
