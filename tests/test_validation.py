"""
Tests for record and loan validation.
"""

import pytest
from datetime import datetime
from decimal import Decimal

from fincore.faults import ReferentialFault, ValidationFault
from fincore.models.ledger import (
    Account,
    Friend,
    RecordSet,
    SelfTransfer,
    Split,
    Statement,
    StatementKind,
)
from fincore.models.loan import ByInstallment, ByPrincipal, LoanDefinition
from fincore.models.validation import ValidationResult
from fincore.validation import (
    RecordSetValidator,
    raise_for_result,
    validate_loan,
    validate_loan_or_raise,
)


D = Decimal
WHEN = datetime(2024, 1, 1)


def records(**kwargs):
    return RecordSet(
        accounts=(Account(id="bank", name="Bank"),),
        friends=(Friend(id="alice", name="Alice"),),
        **kwargs,
    )


class TestShapes:
    """Tests for stage 1: statement and transfer shapes."""

    def test_valid_records(self):
        result = RecordSetValidator(records(
            statements=(Statement(id="s1", amount=D("10"), account_id="bank", created_at=WHEN),),
        )).validate()
        assert result.is_valid is True
        assert result.issues == []

    def test_expense_with_both_links(self):
        result = RecordSetValidator(records(
            statements=(Statement(
                id="s1", amount=D("10"), account_id="bank", friend_id="alice", created_at=WHEN
            ),),
        )).validate()
        assert result.shapes_valid is False
        assert result.issues[0].field == "statement[s1]"

    def test_expense_with_no_link(self):
        result = RecordSetValidator(records(
            statements=(Statement(id="s1", amount=D("10"), created_at=WHEN),),
        )).validate()
        assert result.shapes_valid is False

    def test_outside_transaction_with_friend(self):
        result = RecordSetValidator(records(
            statements=(Statement(
                id="s1",
                amount=D("10"),
                kind=StatementKind.OUTSIDE_TRANSACTION,
                account_id="bank",
                friend_id="alice",
                created_at=WHEN,
            ),),
        )).validate()
        assert result.shapes_valid is False

    def test_friend_transaction_without_account(self):
        result = RecordSetValidator(records(
            statements=(Statement(
                id="s1",
                amount=D("10"),
                kind=StatementKind.FRIEND_TRANSACTION,
                friend_id="alice",
                created_at=WHEN,
            ),),
        )).validate()
        assert result.shapes_valid is False

    def test_transfer_to_same_account(self):
        validator = RecordSetValidator(records(
            transfers=(SelfTransfer(
                id="t1", from_account_id="bank", to_account_id="bank", amount=D("5"), created_at=WHEN
            ),),
        ))
        with pytest.raises(ValidationFault, match="two different accounts"):
            validator.validate_or_raise()


class TestReferences:
    """Tests for stage 2: references."""

    def test_all_dangling_references_listed(self):
        """Test that every missing reference is collected."""
        validator = RecordSetValidator(records(
            statements=(Statement(id="s1", amount=D("10"), account_id="ghost", created_at=WHEN),),
            splits=(Split(id="sp1", statement_id="s1", friend_id="bob", amount=D("1")),),
            transfers=(SelfTransfer(
                id="t1", from_account_id="bank", to_account_id="vault", amount=D("5"), created_at=WHEN
            ),),
        ))
        result = validator.validate()
        assert result.references_valid is False
        assert validator.missing == [
            ("statement", "s1", "account", "ghost"),
            ("split", "sp1", "friend", "bob"),
            ("transfer", "t1", "account", "vault"),
        ]

    def test_allocations_skipped_when_references_fail(self):
        validator = RecordSetValidator(records(
            splits=(Split(id="sp1", statement_id="none", friend_id="alice", amount=D("1")),),
        ))
        result = validator.validate()
        assert result.allocations_valid is True
        with pytest.raises(ReferentialFault):
            validator.validate_or_raise()


class TestAllocations:
    """Tests for stage 3: split allocation."""

    def test_under_allocation_is_fine(self):
        result = RecordSetValidator(records(
            statements=(Statement(id="s1", amount=D("100"), account_id="bank", created_at=WHEN),),
            splits=(Split(statement_id="s1", friend_id="alice", amount=D("99.99")),),
        )).validate()
        assert result.is_valid is True

    def test_full_allocation_is_fine(self):
        result = RecordSetValidator(records(
            statements=(Statement(id="s1", amount=D("100"), account_id="bank", created_at=WHEN),),
            splits=(Split(statement_id="s1", friend_id="alice", amount=D("100")),),
        )).validate()
        assert result.allocations_valid is True

    def test_over_allocation(self):
        result = RecordSetValidator(records(
            statements=(Statement(id="s1", amount=D("100"), account_id="bank", created_at=WHEN),),
            splits=(Split(statement_id="s1", friend_id="alice", amount=D("100.01")),),
        )).validate()
        assert result.allocations_valid is False
        assert result.issues[0].issue_type == "over_allocated"


class TestRaiseForResult:
    """Tests for turning results into faults."""

    def test_valid_result_does_not_raise(self):
        raise_for_result(ValidationResult(references_valid=True, allocations_valid=True))

    def test_referential_fault_wins(self):
        result = ValidationResult(references_valid=False, allocations_valid=True)
        with pytest.raises(ReferentialFault) as exc:
            raise_for_result(result, [("split", "x", "statement", "y")])
        assert exc.value.missing == [("split", "x", "statement", "y")]


class TestLoanValidation:
    """Tests for loan definition checks."""

    def _loan(self, **overrides):
        fields = dict(
            id="loan-1",
            terms=ByPrincipal(principal=D("1000")),
            annual_interest_rate=D("10"),
            tenure_months=10,
        )
        fields.update(overrides)
        return LoanDefinition(**fields)

    def test_valid_loan(self):
        assert validate_loan(self._loan()) == []

    def test_zero_rate_is_valid(self):
        assert validate_loan(self._loan(annual_interest_rate=D("0"))) == []

    def test_non_positive_installment(self):
        issues = validate_loan(self._loan(terms=ByInstallment(installment=D("-1"))))
        assert [i.field for i in issues] == ["installment"]

    def test_paid_beyond_tenure(self):
        issues = validate_loan(self._loan(paid_installments=11))
        assert [i.field for i in issues] == ["paid_installments"]

    def test_negative_gst(self):
        issues = validate_loan(self._loan(gst_rate_on_interest=D("-18")))
        assert issues[0].field == "gst_rate_on_interest"

    def test_raise_names_loan(self):
        with pytest.raises(ValidationFault, match="Invalid loan loan-1"):
            validate_loan_or_raise(self._loan(tenure_months=-3))
