"""
Audit Models for fincore

Every computation run through the service layer is recorded as an audit
event. This provides:
1. Traceability of which records produced which figures
2. Debugging information when a fault is raised
3. A correlation id tying the source fetches to the computation

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
Amounts in `details` are stored as strings so the events stay JSON-safe
without losing decimal precision.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """
    Types of events we audit.

    Every service operation has a completion event; faults and source
    problems have their own.
    """
    # Computations
    BALANCES_AGGREGATED = "balances_aggregated"
    PERIODS_AGGREGATED = "periods_aggregated"
    SCHEDULE_GENERATED = "schedule_generated"
    RECONCILIATION_COMPLETED = "reconciliation_completed"
    OBLIGATIONS_PROJECTED = "obligations_projected"

    # Faults
    VALIDATION_FAILED = "validation_failed"
    REFERENTIAL_FAULT = "referential_fault"

    # Record source
    SOURCE_RETRY = "source_retry"
    EXTERNAL_SERVICE_ERROR = "external_service_error"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


def _plain(value: Any) -> Any:
    """Make a detail value JSON-safe."""
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'loan', 'recurring_payment', 'ledger')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (source fetches plus computation)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )

    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": _plain(self.details),
            "error_code": self.error_code,
            "error_message": self.error_message,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.schedule_generated(loan_id, "principal", ...)
        event = AuditEventBuilder.validation_failed(issues, correlation_id)
    """

    @staticmethod
    def balances_aggregated(
        account_count: int,
        friend_count: int,
        start: Optional[datetime],
        end: Optional[datetime],
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BALANCES_AGGREGATED,
            entity_type="ledger",
            correlation_id=correlation_id,
            description=f"Balances aggregated for {account_count} accounts and {friend_count} friends",
            details=_plain({
                "account_count": account_count,
                "friend_count": friend_count,
                "start": start,
                "end": end,
            }),
        )

    @staticmethod
    def periods_aggregated(
        unit: str,
        period_count: int,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PERIODS_AGGREGATED,
            entity_type="ledger",
            correlation_id=correlation_id,
            description=f"Balances aggregated into {period_count} {unit} periods",
            details={
                "unit": unit,
                "period_count": period_count,
            },
        )

    @staticmethod
    def schedule_generated(
        loan_id: Optional[str],
        mode: str,
        installment: Decimal,
        principal: Decimal,
        tenure_months: int,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SCHEDULE_GENERATED,
            entity_type="loan",
            entity_id=loan_id,
            correlation_id=correlation_id,
            description=f"Schedule generated: {tenure_months} installments of {installment}",
            details=_plain({
                "mode": mode,
                "installment": installment,
                "principal": principal,
                "tenure_months": tenure_months,
            }),
        )

    @staticmethod
    def reconciliation_completed(
        entity_type: str,
        entity_id: str,
        paid: int,
        missed: int,
        upcoming: int,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECONCILIATION_COMPLETED,
            severity=AuditSeverity.WARNING if missed else AuditSeverity.INFO,
            entity_type=entity_type,
            entity_id=entity_id,
            correlation_id=correlation_id,
            description=f"Reconciled: {paid} paid, {missed} missed, {upcoming} upcoming",
            details={
                "paid": paid,
                "missed": missed,
                "upcoming": upcoming,
            },
        )

    @staticmethod
    def obligations_projected(
        loan_count: int,
        recurring_count: int,
        month_count: int,
        total_outstanding: Decimal,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.OBLIGATIONS_PROJECTED,
            entity_type="obligations",
            correlation_id=correlation_id,
            description=f"Obligations projected over {month_count} future months",
            details=_plain({
                "loan_count": loan_count,
                "recurring_count": recurring_count,
                "month_count": month_count,
                "total_outstanding": total_outstanding,
            }),
        )

    @staticmethod
    def validation_failed(
        operation: str,
        issues: list[dict],
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            correlation_id=correlation_id,
            description=f"{operation} rejected with {len(issues)} validation issues",
            details={
                "operation": operation,
                "issues": issues,
            },
        )

    @staticmethod
    def referential_fault(
        operation: str,
        missing: list[tuple[str, str, str, str]],
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REFERENTIAL_FAULT,
            severity=AuditSeverity.ERROR,
            correlation_id=correlation_id,
            description=f"{operation} found {len(missing)} dangling references",
            details={
                "operation": operation,
                "missing": [
                    {
                        "record_type": record_type,
                        "record_id": record_id,
                        "referenced_type": referenced_type,
                        "referenced_id": referenced_id,
                    }
                    for record_type, record_id, referenced_type, referenced_id in missing
                ],
            },
        )

    @staticmethod
    def source_retry(
        operation: str,
        attempt: int,
        error_message: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SOURCE_RETRY,
            severity=AuditSeverity.WARNING,
            correlation_id=correlation_id,
            description=f"Record source call {operation} failed (attempt {attempt})",
            error_message=error_message,
            details={
                "operation": operation,
                "attempt": attempt,
            },
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )

    @staticmethod
    def external_service_error(
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTERNAL_SERVICE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"External service error: {service}",
            error_message=error_message,
            details={
                "service": service,
            },
            correlation_id=correlation_id,
        )
