"""
Fault Taxonomy

Every error the computation core raises derives from FinanceCoreError.

- ValidationFault: malformed or contradictory inputs (loan modes, tenure,
  over-allocated splits). Permanent for the same input.
- ReferentialFault: a record points at an account, counterparty or
  statement that is not in the supplied record set.

Zero interest rates and similar degeneracies are not faults; the engines
handle them with explicit branches.
"""

from typing import TYPE_CHECKING, Iterable, Optional

if TYPE_CHECKING:
    from fincore.models.validation import ValidationIssue


class FinanceCoreError(Exception):
    """Base exception for the computation core."""
    pass


class ValidationFault(FinanceCoreError, ValueError):
    """
    Inputs are invalid or contradict each other.

    Carries the individual issues so a presentation layer can render
    one message per offending field.
    """

    def __init__(
        self,
        message: str,
        issues: Optional[Iterable["ValidationIssue"]] = None,
    ):
        super().__init__(message)
        self.issues: list["ValidationIssue"] = list(issues or [])

    @classmethod
    def for_field(
        cls,
        field: str,
        message: str,
        issue_type: str = "invalid_value",
        suggested_fix: Optional[str] = None,
    ) -> "ValidationFault":
        """Build a fault for a single offending field."""
        from fincore.models.validation import ValidationIssue

        return cls(
            message,
            issues=[
                ValidationIssue(
                    field=field,
                    issue_type=issue_type,
                    message=message,
                    severity="error",
                    suggested_fix=suggested_fix,
                )
            ],
        )


class ReferentialFault(FinanceCoreError, LookupError):
    """
    A record references an entity missing from the supplied set.

    `missing` holds (record_type, record_id, referenced_type, referenced_id)
    tuples for every dangling reference found.
    """

    def __init__(
        self,
        message: str,
        missing: Optional[Iterable[tuple[str, str, str, str]]] = None,
    ):
        super().__init__(message)
        self.missing: list[tuple[str, str, str, str]] = list(missing or [])
