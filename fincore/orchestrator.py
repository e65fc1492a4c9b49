"""
Finance Service for fincore

This module ties the pure engines to the storage collaborator and defines
the end-to-end operations:
1. Balances (fetch records -> validate -> aggregate)
2. Loan schedules and their reconciliation against linked payments
3. Recurring payment reconciliation
4. Obligation projection across loans, instruments and recurring payments

DESIGN DECISION: The service enforces the boundaries:
- Record source calls are the only await points and the only thing retried
- Faults from the engines are audited and re-raised, never retried
- Every operation is audited under one correlation id

The engines stay pure; everything stateful lives here.
"""

from datetime import date, datetime
from typing import Awaitable, Callable, Optional, TypeVar
from uuid import UUID

from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from fincore.audit import AuditLogger, create_correlation_id
from fincore.config import AppSettings, CalculationSettings, SourceSettings, get_settings
from fincore.dates import add_months, end_of_month, end_of_year, today
from fincore.faults import ReferentialFault, ValidationFault
from fincore.ledger import aggregate_balances, aggregate_by_period
from fincore.loans import generate_schedule
from fincore.models.audit import AuditEventBuilder
from fincore.models.ledger import LedgerSummary, PeriodSummary, PeriodUnit, RecordSet
from fincore.models.loan import LoanSchedule
from fincore.models.obligations import ObligationReport
from fincore.models.reconciliation import PaymentRecord, ReconciliationReport
from fincore.obligations import project_obligations
from fincore.reconciliation import reconcile
from fincore.recurring import occurrence_schedule
from fincore.services.storage import RecordSourceInterface, SourceUnavailableError

T = TypeVar("T")


class FinanceService:
    """
    Runs fincore operations against a record source.

    Usage:
        service = FinanceService(source, audit_logger=AuditLogger(sink))
        summary = await service.account_summaries()
        report = await service.obligations(now=date(2024, 5, 10))
    """

    def __init__(
        self,
        source: RecordSourceInterface,
        audit_logger: Optional[AuditLogger] = None,
        source_settings: Optional[SourceSettings] = None,
        calculation_settings: Optional[CalculationSettings] = None,
        app_settings: Optional[AppSettings] = None,
    ):
        settings = get_settings()
        self._source = source
        self._audit_logger = audit_logger
        self._source_settings = source_settings or settings.source
        self._calculation = calculation_settings or settings.calculation
        self._app = app_settings or settings.app

    # =========================================================================
    # PLUMBING
    # =========================================================================

    def _today(self) -> date:
        return today(self._app.timezone)

    async def _fetch(
        self,
        operation: str,
        call: Callable[[], Awaitable[T]],
        correlation_id: UUID,
    ) -> T:
        """
        Await a record source call, retrying while the source is unavailable.

        Any other error (including NotFoundError) propagates immediately.
        """
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._source_settings.retry_attempts),
            wait=wait_exponential(
                multiplier=self._source_settings.retry_min_wait_seconds,
                min=self._source_settings.retry_min_wait_seconds,
                max=self._source_settings.retry_max_wait_seconds,
            ),
            retry=retry_if_exception_type(SourceUnavailableError),
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    try:
                        return await call()
                    except SourceUnavailableError as e:
                        if self._audit_logger:
                            await self._audit_logger.log_source_retry(
                                operation=operation,
                                attempt=attempt.retry_state.attempt_number,
                                error_message=str(e),
                                correlation_id=correlation_id,
                            )
                        raise
        except SourceUnavailableError as e:
            if self._audit_logger:
                await self._audit_logger.log_external_service_error(
                    service=f"record_source.{operation}",
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise

    async def _compute(
        self,
        operation: str,
        compute: Callable[[], T],
        correlation_id: UUID,
    ) -> T:
        """Run a pure computation, auditing any fault before re-raising it."""
        try:
            return compute()
        except ReferentialFault as e:
            if self._audit_logger:
                await self._audit_logger.log_referential_fault(
                    operation=operation,
                    missing=e.missing,
                    correlation_id=correlation_id,
                )
            raise
        except ValidationFault as e:
            if self._audit_logger:
                await self._audit_logger.log_validation_failed(
                    operation=operation,
                    issues=[issue.model_dump() for issue in e.issues],
                    correlation_id=correlation_id,
                )
            raise

    async def _audit(self, event) -> None:
        if self._audit_logger:
            await self._audit_logger.log(event)

    async def load_records(
        self,
        correlation_id: Optional[UUID] = None,
    ) -> RecordSet:
        """Fetch everything the balance aggregator needs."""
        correlation_id = correlation_id or create_correlation_id()
        source = self._source
        return RecordSet(
            accounts=tuple(await self._fetch("get_accounts", source.get_accounts, correlation_id)),
            friends=tuple(await self._fetch("get_friends", source.get_friends, correlation_id)),
            statements=tuple(await self._fetch(
                "get_statements", source.get_statements, correlation_id
            )),
            splits=tuple(await self._fetch("get_splits", source.get_splits, correlation_id)),
            transfers=tuple(await self._fetch(
                "get_transfers", source.get_transfers, correlation_id
            )),
        )

    # =========================================================================
    # OPERATIONS
    # =========================================================================

    async def account_summaries(
        self,
        start: Optional[date | datetime] = None,
        end: Optional[date | datetime] = None,
        correlation_id: Optional[UUID] = None,
    ) -> LedgerSummary:
        """Per-account and per-counterparty balances for an optional window."""
        correlation_id = correlation_id or create_correlation_id()
        # Records before the window are needed for the opening balances.
        records = await self.load_records(correlation_id=correlation_id)

        summary = await self._compute(
            "account_summaries",
            lambda: aggregate_balances(records, start=start, end=end),
            correlation_id,
        )
        await self._audit(AuditEventBuilder.balances_aggregated(
            account_count=len(summary.accounts),
            friend_count=len(summary.friends),
            start=start,
            end=end,
            correlation_id=correlation_id,
        ))
        return summary

    async def period_summaries(
        self,
        unit: PeriodUnit | str,
        start: Optional[date] = None,
        end: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> list[PeriodSummary]:
        """Balances bucketed by day, week, month, quarter or year."""
        correlation_id = correlation_id or create_correlation_id()
        unit = PeriodUnit(unit)
        records = await self.load_records(correlation_id=correlation_id)

        periods = await self._compute(
            "period_summaries",
            lambda: aggregate_by_period(records, unit, start=start, end=end),
            correlation_id,
        )
        await self._audit(AuditEventBuilder.periods_aggregated(
            unit=unit.value,
            period_count=len(periods),
            correlation_id=correlation_id,
        ))
        return periods

    async def loan_schedule(
        self,
        loan_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> LoanSchedule:
        """Amortization schedule for a stored loan."""
        correlation_id = correlation_id or create_correlation_id()
        loan = await self._fetch(
            "get_loan", lambda: self._source.get_loan(loan_id), correlation_id
        )

        schedule = await self._compute(
            "loan_schedule",
            lambda: generate_schedule(loan, self._calculation.currency_quantum),
            correlation_id,
        )
        if self._audit_logger:
            await self._audit_logger.log_schedule_generated(
                loan_id=loan.id,
                mode=schedule.mode.value,
                installment=schedule.installment,
                principal=schedule.principal,
                tenure_months=loan.tenure_months,
                correlation_id=correlation_id,
            )
        return schedule

    async def reconcile_loan(
        self,
        loan_id: str,
        now: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> ReconciliationReport:
        """Paid / missed / upcoming status of every installment of a loan."""
        correlation_id = correlation_id or create_correlation_id()
        now = now or self._today()
        schedule = await self.loan_schedule(loan_id, correlation_id=correlation_id)
        linked = await self._fetch(
            "get_linked_statements",
            lambda: self._source.get_linked_statements(loan_id=loan_id),
            correlation_id,
        )

        report = reconcile(
            schedule.entries,
            [PaymentRecord.from_statement(s) for s in linked],
            now,
        )
        await self._audit(AuditEventBuilder.reconciliation_completed(
            entity_type="loan",
            entity_id=loan_id,
            paid=report.paid_count,
            missed=report.missed_count,
            upcoming=report.upcoming_count,
            correlation_id=correlation_id,
        ))
        return report

    async def reconcile_recurring_payment(
        self,
        payment_id: str,
        now: Optional[date] = None,
        upto: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> ReconciliationReport:
        """
        Status of every occurrence of a recurring payment.

        Occurrences run from the start date to `upto` (end of the current
        year by default), past ones included.
        """
        correlation_id = correlation_id or create_correlation_id()
        now = now or self._today()
        upto = upto or end_of_year(now)
        defn = await self._fetch(
            "get_recurring_payment",
            lambda: self._source.get_recurring_payment(payment_id),
            correlation_id,
        )
        linked = await self._fetch(
            "get_linked_statements",
            lambda: self._source.get_linked_statements(recurring_payment_id=payment_id),
            correlation_id,
        )

        report = reconcile(
            occurrence_schedule(defn, upto),
            [PaymentRecord.from_statement(s) for s in linked],
            now,
        )
        await self._audit(AuditEventBuilder.reconciliation_completed(
            entity_type="recurring_payment",
            entity_id=payment_id,
            paid=report.paid_count,
            missed=report.missed_count,
            upcoming=report.upcoming_count,
            correlation_id=correlation_id,
        ))
        return report

    async def obligations(
        self,
        now: Optional[date] = None,
        upto: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> ObligationReport:
        """
        Current month, future months, overdue items, outstanding balances
        and credit utilization.
        """
        correlation_id = correlation_id or create_correlation_id()
        now = now or self._today()
        upto = upto or end_of_month(add_months(now, self._calculation.default_projection_months))
        records = await self.load_records(correlation_id=correlation_id)
        loans = await self._fetch("get_loans", self._source.get_loans, correlation_id)
        recurring = await self._fetch(
            "get_recurring_payments", self._source.get_recurring_payments, correlation_id
        )

        def compute() -> ObligationReport:
            ledger = aggregate_balances(records)
            balances = {s.account.id: s.final_balance for s in ledger.accounts}
            return project_obligations(
                loans,
                recurring,
                now=now,
                upto=upto,
                accounts=records.accounts,
                account_balances=balances,
                quantum=self._calculation.currency_quantum,
                friends=records.friends,
            )

        report = await self._compute("obligations", compute, correlation_id)
        await self._audit(AuditEventBuilder.obligations_projected(
            loan_count=len(loans),
            recurring_count=len(recurring),
            month_count=len(report.future_months),
            total_outstanding=report.total_outstanding,
            correlation_id=correlation_id,
        ))
        return report
