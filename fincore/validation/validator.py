"""
Record Validation

DESIGN DECISION: Records are validated in three stages before any figure is
computed from them:

STAGE 1 - SHAPE:
- Each statement kind carries the links it needs
- Self-transfers move between two different accounts

STAGE 2 - REFERENCES:
- Every account, counterparty and parent statement a record points at
  exists in the supplied set

STAGE 3 - ALLOCATIONS:
- Splits of a statement never exceed the statement amount

IMPORTANT: Validation NEVER silently fixes or skips records. A record the
aggregator cannot attribute would produce an undetectably wrong balance, so
every problem is collected and surfaced as a fault.
"""

from collections import defaultdict
from decimal import Decimal
from typing import Optional

from fincore.faults import ReferentialFault, ValidationFault
from fincore.models.ledger import ZERO, RecordSet, StatementKind
from fincore.models.loan import (
    ByInstallment,
    ByPrincipal,
    ByTotalPayable,
    LoanDefinition,
)
from fincore.models.validation import ValidationIssue, ValidationResult


Missing = tuple[str, str, str, str]


class RecordSetValidator:
    """
    Validates a ledger record set.

    Usage:
        RecordSetValidator(records).validate_or_raise()
    """

    def __init__(self, records: RecordSet):
        self._records = records
        self._missing: list[Missing] = []

    @property
    def missing(self) -> list[Missing]:
        """Dangling references found by the last validate() call."""
        return list(self._missing)

    def _validate_shapes(self) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 1: Shape validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        for st in self._records.statements:
            ref = f"statement[{st.id}]"

            if st.kind == StatementKind.EXPENSE:
                if (st.account_id is None) == (st.friend_id is None):
                    issues.append(ValidationIssue(
                        field=ref,
                        issue_type="invalid_shape",
                        message="An expense needs exactly one of account or friend",
                        severity="error",
                        suggested_fix="Set account_id for own spending, friend_id when a friend paid",
                    ))
            elif st.kind == StatementKind.OUTSIDE_TRANSACTION:
                if st.account_id is None or st.friend_id is not None:
                    issues.append(ValidationIssue(
                        field=ref,
                        issue_type="invalid_shape",
                        message="An outside transaction needs an account and no friend",
                        severity="error",
                    ))
            elif st.kind == StatementKind.FRIEND_TRANSACTION:
                if st.account_id is None or st.friend_id is None:
                    issues.append(ValidationIssue(
                        field=ref,
                        issue_type="invalid_shape",
                        message="A friend transaction needs both an account and a friend",
                        severity="error",
                    ))

        for tr in self._records.transfers:
            if tr.from_account_id == tr.to_account_id:
                issues.append(ValidationIssue(
                    field=f"transfer[{tr.id}]",
                    issue_type="invalid_shape",
                    message="A self-transfer must move between two different accounts",
                    severity="error",
                ))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    def _validate_references(self) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 2: Referential validation.

        Every dangling reference is reported, not just the first one.
        """
        issues = []
        missing: list[Missing] = []

        account_ids = {a.id for a in self._records.accounts}
        friend_ids = {f.id for f in self._records.friends}
        statement_ids = {s.id for s in self._records.statements}

        def check(record_type: str, record_id: str, ref_type: str, ref_id, known: set):
            if ref_id is None or ref_id in known:
                return
            missing.append((record_type, record_id, ref_type, ref_id))
            issues.append(ValidationIssue(
                field=f"{record_type}[{record_id}].{ref_type}_id",
                issue_type="missing_reference",
                message=f"{record_type} {record_id} references unknown {ref_type} {ref_id}",
                severity="error",
            ))

        for st in self._records.statements:
            check("statement", st.id, "account", st.account_id, account_ids)
            check("statement", st.id, "friend", st.friend_id, friend_ids)

        for sp in self._records.splits:
            check("split", sp.id, "statement", sp.statement_id, statement_ids)
            check("split", sp.id, "friend", sp.friend_id, friend_ids)

        for tr in self._records.transfers:
            check("transfer", tr.id, "account", tr.from_account_id, account_ids)
            check("transfer", tr.id, "account", tr.to_account_id, account_ids)

        self._missing = missing
        return not missing, issues

    def _validate_allocations(self) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 3: Split allocation validation.

        Under-allocation is fine (the rest stays with the account);
        over-allocation is a fault.
        """
        issues = []
        allocated: dict[str, Decimal] = defaultdict(lambda: ZERO)
        for sp in self._records.splits:
            allocated[sp.statement_id] += sp.amount

        for st in self._records.statements:
            total = allocated.get(st.id)
            if total is None:
                continue
            if total > abs(st.amount):
                issues.append(ValidationIssue(
                    field=f"statement[{st.id}].splits",
                    issue_type="over_allocated",
                    message=f"Splits total {total} exceeds statement amount {abs(st.amount)}",
                    severity="error",
                    suggested_fix="Reduce the split amounts",
                ))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    def validate(self) -> ValidationResult:
        """
        Run all three stages and collect every issue.

        Allocations are only checked once references resolve, since a
        split with a missing parent has nothing to be checked against.
        """
        all_issues = []

        shapes_valid, shape_issues = self._validate_shapes()
        all_issues.extend(shape_issues)

        references_valid, reference_issues = self._validate_references()
        all_issues.extend(reference_issues)

        allocations_valid = True
        if references_valid:
            allocations_valid, allocation_issues = self._validate_allocations()
            all_issues.extend(allocation_issues)

        return ValidationResult(
            shapes_valid=shapes_valid,
            references_valid=references_valid,
            allocations_valid=allocations_valid,
            issues=all_issues,
        )

    def validate_or_raise(self) -> ValidationResult:
        """
        Validate and raise on any error.

        Raises:
            ReferentialFault: at least one reference does not resolve
            ValidationFault: shape or allocation errors
        """
        result = self.validate()
        raise_for_result(result, self._missing)
        return result


def raise_for_result(result: ValidationResult, missing: Optional[list[Missing]] = None) -> None:
    """Turn a failed validation result into the matching fault."""
    if not result.references_valid:
        raise ReferentialFault(
            f"{len(missing or [])} record references could not be resolved",
            missing=missing,
        )
    if result.has_errors:
        errors = [issue for issue in result.issues if issue.severity == "error"]
        raise ValidationFault(
            "; ".join(issue.message for issue in errors),
            issues=errors,
        )


# =============================================================================
# LOAN DEFINITIONS
# =============================================================================

def validate_loan(loan: LoanDefinition) -> list[ValidationIssue]:
    """
    Check a loan definition before a schedule is computed from it.

    A zero interest rate is valid; everything negative is not.
    """
    issues = []

    def error(field: str, message: str, suggested_fix=None):
        issues.append(ValidationIssue(
            field=field,
            issue_type="invalid_value",
            message=message,
            severity="error",
            suggested_fix=suggested_fix,
        ))

    if loan.tenure_months <= 0:
        error("tenure_months", f"Tenure must be at least one month, got {loan.tenure_months}")

    for field in (
        "annual_interest_rate",
        "gst_rate_on_interest",
        "processing_fee",
        "gst_rate_on_fee",
        "broken_period_interest",
    ):
        value = getattr(loan, field)
        if value < 0:
            error(field, f"{field} cannot be negative, got {value}")

    terms = loan.terms
    if isinstance(terms, ByPrincipal) and terms.principal <= 0:
        error("principal", f"Principal must be positive, got {terms.principal}")
    elif isinstance(terms, ByInstallment) and terms.installment <= 0:
        error("installment", f"Installment must be positive, got {terms.installment}")
    elif isinstance(terms, ByTotalPayable) and terms.total_payable <= 0:
        error("total_payable", f"Total payable must be positive, got {terms.total_payable}")

    if loan.tenure_months > 0 and loan.paid_installments > loan.tenure_months:
        error(
            "paid_installments",
            f"{loan.paid_installments} installments paid on a {loan.tenure_months} month loan",
        )

    split_total = loan.split_percentage
    if split_total > 100:
        issues.append(ValidationIssue(
            field="splits",
            issue_type="over_allocated",
            message=f"Loan splits total {split_total}% which exceeds 100%",
            severity="error",
            suggested_fix="Reduce the split percentages",
        ))

    return issues


def validate_loan_or_raise(loan: LoanDefinition) -> None:
    """Raises ValidationFault listing every problem with the loan."""
    issues = validate_loan(loan)
    if issues:
        raise ValidationFault(
            f"Invalid loan {loan.id}: " + "; ".join(issue.message for issue in issues),
            issues=issues,
        )
