"""
Tests for the audit logger and the in-memory audit sink.
"""

import pytest
from decimal import Decimal

from fincore.audit import AuditLogger, create_correlation_id
from fincore.models.audit import AuditEvent, AuditEventType, AuditSeverity
from fincore.services.storage import AuditSinkInterface, InMemoryAuditSink


class BrokenSink(AuditSinkInterface):
    """Audit sink whose writes always fail."""

    async def append_event(self, event):
        raise ConnectionError("sink offline")

    async def get_events_by_correlation_id(self, correlation_id):
        return []

    async def get_recent_events(self, limit=100):
        return []


class TestAuditLogger:
    """Tests for AuditLogger."""

    @pytest.mark.asyncio
    async def test_log_without_sink(self):
        """Test that logging works with no sink configured."""
        logger = AuditLogger()
        event = AuditEvent(event_type=AuditEventType.SCHEDULE_GENERATED, description="x")
        assert await logger.log(event) is True

    @pytest.mark.asyncio
    async def test_log_persists_to_sink(self):
        sink = InMemoryAuditSink()
        logger = AuditLogger(sink)
        correlation_id = create_correlation_id()
        await logger.log_schedule_generated(
            loan_id="loan-1",
            mode="principal",
            installment=Decimal("10661.85"),
            principal=Decimal("120000.00"),
            tenure_months=12,
            correlation_id=correlation_id,
        )
        assert len(sink.events) == 1
        assert sink.events[0].event_type == AuditEventType.SCHEDULE_GENERATED
        assert await sink.get_events_by_correlation_id(correlation_id) == sink.events

    @pytest.mark.asyncio
    async def test_sink_failure_does_not_raise(self):
        """Test that a broken sink never breaks the caller."""
        logger = AuditLogger(BrokenSink())
        event = AuditEvent(event_type=AuditEventType.SYSTEM_ERROR, description="x")
        assert await logger.log(event) is False

    @pytest.mark.asyncio
    async def test_fault_helpers(self):
        sink = InMemoryAuditSink()
        logger = AuditLogger(sink)
        await logger.log_referential_fault(
            operation="account_summaries",
            missing=[("statement", "s1", "account", "gone")],
        )
        await logger.log_validation_failed(operation="loan_schedule", issues=[{"field": "tenure_months"}])
        await logger.log_source_retry(operation="get_accounts", attempt=1, error_message="timeout")
        await logger.log_error(error_type="RuntimeError", error_message="boom")
        types = [e.event_type for e in sink.events]
        assert types == [
            AuditEventType.REFERENTIAL_FAULT,
            AuditEventType.VALIDATION_FAILED,
            AuditEventType.SOURCE_RETRY,
            AuditEventType.SYSTEM_ERROR,
        ]
        assert sink.events[2].severity == AuditSeverity.WARNING

    @pytest.mark.asyncio
    async def test_recent_events_newest_first(self):
        sink = InMemoryAuditSink()
        logger = AuditLogger(sink)
        for attempt in (1, 2, 3):
            await logger.log_source_retry(operation="get_loans", attempt=attempt, error_message="x")
        recent = await sink.get_recent_events(limit=2)
        assert [e.details["attempt"] for e in recent] == [3, 2]

    def test_correlation_ids_are_unique(self):
        assert create_correlation_id() != create_correlation_id()
