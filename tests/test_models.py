"""
Tests for fincore models

Test strategy:
1. Unit tests for individual components (models, engines, validators)
2. Service tests against the in-memory record source
3. No real storage in tests
"""

import pytest
from datetime import date, datetime
from decimal import Decimal
from uuid import uuid4

from pydantic import ValidationError

from fincore.faults import FinanceCoreError, ReferentialFault, ValidationFault
from fincore.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from fincore.models.ledger import (
    Account,
    CreditInstrument,
    Direction,
    Friend,
    Split,
    Statement,
    StatementKind,
)
from fincore.models.loan import (
    ByInstallment,
    ByPrincipal,
    ByTotalPayable,
    CalculationMode,
    LoanDefinition,
    LoanSplit,
    LoanTerms,
)
from fincore.models.obligations import (
    InstrumentObligation,
    MonthProjection,
    ObligationItem,
    ObligationSource,
)
from fincore.models.recurring import Frequency, RecurringPayment
from fincore.models.validation import ValidationIssue, ValidationResult


class TestLedgerModels:
    """Tests for ledger source records."""

    def test_account_creation(self):
        """Test Account model creation."""
        account = Account(name="  HDFC Savings  ", starting_balance="1500.50")
        assert account.name == "HDFC Savings"
        assert account.starting_balance == Decimal("1500.50")
        assert account.credit_instrument is None

    def test_account_is_frozen(self):
        """Test that source records cannot be mutated."""
        account = Account(name="Cash")
        with pytest.raises(ValidationError):
            account.name = "Wallet"

    def test_credit_instrument_rejects_negative_limit(self):
        """Test that a negative credit limit is rejected."""
        with pytest.raises(ValueError):
            CreditInstrument(limit=Decimal("-1"))

    def test_statement_defaults(self):
        """Test Statement defaults."""
        statement = Statement(amount="250", created_at=datetime(2024, 1, 5))
        assert statement.kind == StatementKind.EXPENSE
        assert statement.category == "uncategorized"
        assert statement.tags == ()
        assert statement.amount == Decimal("250")

    def test_split_rejects_negative_amount(self):
        """Test that negative split amounts are rejected."""
        with pytest.raises(ValueError):
            Split(statement_id="s1", friend_id="f1", amount=Decimal("-5"))

    def test_friend_requires_name(self):
        with pytest.raises(ValueError):
            Friend(name="")

    def test_direction_signs(self):
        """Test that debit lowers and credit raises."""
        assert Direction.DEBIT.signed(Decimal("10")) == Decimal("-10")
        assert Direction.CREDIT.signed(Decimal("10")) == Decimal("10")


class TestLoanTerms:
    """Tests for the calculation mode variants."""

    def test_from_fields_principal(self):
        """Test building a principal variant from storage fields."""
        terms = LoanTerms.from_fields("principal", principal="120000")
        assert isinstance(terms, ByPrincipal)
        assert terms.principal == Decimal("120000")
        assert terms.mode == CalculationMode.PRINCIPAL

    def test_from_fields_installment(self):
        terms = LoanTerms.from_fields("installment", installment=Decimal("5000"))
        assert isinstance(terms, ByInstallment)

    def test_from_fields_total_payable_ignores_empty_strings(self):
        """Test that empty strings count as not populated."""
        terms = LoanTerms.from_fields(
            "total_payable", principal="", installment="  ", total_payable="60000"
        )
        assert isinstance(terms, ByTotalPayable)
        assert terms.total_payable == Decimal("60000")

    def test_from_fields_rejects_two_amounts(self):
        """Test that contradictory input is a validation fault."""
        with pytest.raises(ValidationFault, match="exactly one amount") as exc:
            LoanTerms.from_fields("principal", principal="1000", installment="100")
        assert exc.value.issues[0].issue_type == "contradictory_mode"

    def test_from_fields_rejects_no_amount(self):
        with pytest.raises(ValidationFault, match="got 0"):
            LoanTerms.from_fields("installment")

    def test_from_fields_rejects_wrong_amount(self):
        """Test that the populated amount must belong to the mode."""
        with pytest.raises(ValidationFault, match="requires 'installment'"):
            LoanTerms.from_fields("installment", principal="1000")

    def test_from_fields_rejects_unknown_mode(self):
        with pytest.raises(ValidationFault, match="Unknown calculation mode"):
            LoanTerms.from_fields("interest_only", principal="1000")

    def test_validation_fault_is_value_error(self):
        """Test that faults fit the standard exception hierarchy."""
        with pytest.raises(ValueError):
            LoanTerms.from_fields("installment")
        assert issubclass(ValidationFault, FinanceCoreError)
        assert issubclass(ReferentialFault, LookupError)

    def test_loan_definition_discriminates_terms(self):
        """Test that a plain dict is parsed into the right variant."""
        loan = LoanDefinition(
            terms={"mode": "installment", "installment": "10661.85"},
            annual_interest_rate="12",
            tenure_months=12,
        )
        assert isinstance(loan.terms, ByInstallment)

    def test_variant_rejects_foreign_fields(self):
        """Test that a variant only carries its own amount."""
        with pytest.raises(ValidationError):
            ByPrincipal(principal=Decimal("1000"), installment=Decimal("10"))

    def test_loan_split_percentage(self):
        loan = LoanDefinition(
            terms=ByPrincipal(principal=Decimal("1000")),
            annual_interest_rate=Decimal("0"),
            tenure_months=10,
            splits=(
                LoanSplit(friend_id="a", percentage=Decimal("25")),
                LoanSplit(friend_id="b", percentage=Decimal("15.5")),
            ),
        )
        assert loan.split_percentage == Decimal("40.5")

    def test_loan_split_bounds(self):
        with pytest.raises(ValueError):
            LoanSplit(friend_id="a", percentage=Decimal("101"))


class TestRecurringModels:
    """Tests for recurring payment definitions."""

    def test_is_active_without_end_date(self):
        defn = RecurringPayment(
            name="Rent",
            amount=Decimal("15000"),
            frequency=Frequency.MONTHLY,
            start_date=date(2024, 1, 1),
        )
        assert defn.is_active(date(2030, 1, 1)) is True

    def test_is_active_on_end_date(self):
        """Test that the end date itself is still active."""
        defn = RecurringPayment(
            name="Gym",
            amount=Decimal("1200"),
            frequency=Frequency.MONTHLY,
            start_date=date(2024, 1, 1),
            end_date=date(2024, 6, 30),
        )
        assert defn.is_active(date(2024, 6, 30)) is True
        assert defn.is_active(date(2024, 7, 1)) is False

    def test_rejects_end_before_start(self):
        with pytest.raises(ValueError, match="before start_date"):
            RecurringPayment(
                name="Bad",
                amount=Decimal("1"),
                frequency=Frequency.DAILY,
                start_date=date(2024, 2, 1),
                end_date=date(2024, 1, 1),
            )

    def test_rejects_zero_multiplier(self):
        with pytest.raises(ValueError):
            RecurringPayment(
                name="Bad",
                amount=Decimal("1"),
                frequency=Frequency.WEEKLY,
                frequency_multiplier=0,
                start_date=date(2024, 1, 1),
            )


class TestObligationModels:
    """Tests for projection models."""

    def _item(self, source, amount, share):
        return ObligationItem(
            source=source,
            source_id="x",
            name="x",
            due_date=date(2024, 5, 5),
            amount=Decimal(amount),
            my_share=Decimal(share),
        )

    def test_month_projection_totals(self):
        """Test that month totals separate loan and recurring items."""
        month = MonthProjection(
            month="2024-05",
            items=[
                self._item(ObligationSource.LOAN, "1000", "600"),
                self._item(ObligationSource.LOAN, "500", "500"),
                self._item(ObligationSource.RECURRING, "200", "200"),
            ],
        )
        assert month.emi_total == Decimal("1500")
        assert month.emi_my_total == Decimal("1100")
        assert month.recurring_total == Decimal("200")
        assert month.total == Decimal("1700")
        assert month.my_total == Decimal("1300")

    def test_month_key_format(self):
        with pytest.raises(ValueError):
            MonthProjection(month="May 2024")

    def test_instrument_utilization(self):
        """Test utilized = |balance| + outstanding."""
        entry = InstrumentObligation(
            instrument_id="card",
            limit=Decimal("100000"),
            outstanding=Decimal("30000"),
            account_balance=Decimal("-20000"),
        )
        assert entry.utilized == Decimal("50000")
        assert entry.available == Decimal("50000")
        assert entry.utilization_percent == Decimal("50.00")

    def test_instrument_without_limit(self):
        entry = InstrumentObligation(instrument_id="card", outstanding=Decimal("10"))
        assert entry.utilized == Decimal("10")
        assert entry.available is None
        assert entry.utilization_percent is None


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.SCHEDULE_GENERATED,
            description="Schedule generated",
        )
        assert event.event_type == AuditEventType.SCHEDULE_GENERATED
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEvent(
            event_type=AuditEventType.BALANCES_AGGREGATED,
            description="Balances aggregated",
            details={"total": Decimal("10.50"), "as_of": date(2024, 1, 31)},
        )
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "balances_aggregated"
        assert log_dict["details"]["total"] == "10.50"
        assert log_dict["details"]["as_of"] == "2024-01-31"

    def test_audit_event_builder_schedule_generated(self):
        """Test AuditEventBuilder.schedule_generated."""
        correlation_id = uuid4()
        event = AuditEventBuilder.schedule_generated(
            loan_id="loan-1",
            mode="principal",
            installment=Decimal("10661.85"),
            principal=Decimal("120000.00"),
            tenure_months=12,
            correlation_id=correlation_id,
        )
        assert event.event_type == AuditEventType.SCHEDULE_GENERATED
        assert event.entity_id == "loan-1"
        assert event.correlation_id == correlation_id
        assert event.details["installment"] == "10661.85"

    def test_audit_event_builder_reconciliation_warns_on_missed(self):
        event = AuditEventBuilder.reconciliation_completed(
            entity_type="loan",
            entity_id="loan-1",
            paid=2,
            missed=1,
            upcoming=3,
        )
        assert event.severity == AuditSeverity.WARNING

    def test_audit_event_builder_referential_fault(self):
        event = AuditEventBuilder.referential_fault(
            operation="account_summaries",
            missing=[("statement", "s1", "account", "gone")],
        )
        assert event.severity == AuditSeverity.ERROR
        assert event.details["missing"][0]["referenced_id"] == "gone"


class TestValidationResult:
    """Tests for ValidationResult model."""

    def test_validation_result_has_errors(self):
        """Test has_errors property."""
        result = ValidationResult(
            references_valid=False,
            allocations_valid=True,
            issues=[
                ValidationIssue(
                    field="statement[s1].account_id",
                    issue_type="missing_reference",
                    message="statement s1 references unknown account a9",
                    severity="error",
                ),
            ],
        )
        assert result.has_errors is True
        assert result.error_count == 1
        assert result.is_valid is False

    def test_validation_result_warnings_only(self):
        """Test that warnings don't count as errors."""
        result = ValidationResult(
            references_valid=True,
            allocations_valid=True,
            issues=[
                ValidationIssue(
                    field="statement[s1]",
                    issue_type="suspicious_value",
                    message="Unusually large amount",
                    severity="warning",
                ),
            ],
        )
        assert result.has_errors is False
        assert result.error_count == 0
        assert result.is_valid is True

    def test_issue_severity_pattern(self):
        with pytest.raises(ValueError):
            ValidationIssue(field="x", issue_type="y", message="z", severity="fatal")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
