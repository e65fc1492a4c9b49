"""
Audit Logger

DESIGN DECISION: Every service operation is logged.
This provides:
1. Traceability from source records to computed figures
2. Debugging capability when a fault surfaces
3. Correlation of the source fetches with the computation they fed

The audit logger:
- Is async so sink writes fit the service's await points
- Gracefully handles sink failures (a broken audit sink never breaks a
  computation)
- Supports correlation IDs to trace related events

The computation engines themselves never log; only the service layer does.
"""

import logging
from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

import structlog

from fincore.config import get_settings
from fincore.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from fincore.services.storage import AuditSinkInterface


def configure_logging(
    level: Optional[str] = None,
    json_logs: Optional[bool] = None,
) -> None:
    """
    Configure structlog on top of the standard library logger.

    Defaults come from the application settings.
    """
    app = get_settings().app
    level = level or app.log_level
    json_logs = app.json_logs if json_logs is None else json_logs

    logging.basicConfig(format="%(message)s", level=getattr(logging, level))

    renderer = (
        structlog.processors.JSONRenderer()
        if json_logs
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


configure_logging()


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. An audit sink (for persistence), when one is configured
    """

    def __init__(
        self,
        sink: Optional[AuditSinkInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            sink: Storage backend for persistence.
                  If None, only logs locally.
        """
        self._sink = sink
        self._logger = structlog.get_logger("fincore.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to the sink if available.

        Returns True if the sink write succeeded (or no sink is configured).
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._sink:
            try:
                return await self._sink.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_sink_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_schedule_generated(
        self,
        loan_id: Optional[str],
        mode: str,
        installment: Decimal,
        principal: Decimal,
        tenure_months: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a generated amortization schedule."""
        await self.log(AuditEventBuilder.schedule_generated(
            loan_id=loan_id,
            mode=mode,
            installment=installment,
            principal=principal,
            tenure_months=tenure_months,
            correlation_id=correlation_id,
        ))

    async def log_validation_failed(
        self,
        operation: str,
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.validation_failed(
            operation=operation,
            issues=issues,
            correlation_id=correlation_id,
        ))

    async def log_referential_fault(
        self,
        operation: str,
        missing: list[tuple[str, str, str, str]],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.referential_fault(
            operation=operation,
            missing=missing,
            correlation_id=correlation_id,
        ))

    async def log_source_retry(
        self,
        operation: str,
        attempt: int,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.source_retry(
            operation=operation,
            attempt=attempt,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_external_service_error(
        self,
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a record source that stayed unavailable after all retries."""
        await self.log(AuditEventBuilder.external_service_error(
            service=service,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        await self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a service operation and pass it through
    every source call and audit event of that operation.
    """
    return uuid4()
