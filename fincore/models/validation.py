"""
Validation Models

A validation run over a record set collects issues instead of stopping at
the first one, so a single fault can report every offending record.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field


class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field or record reference with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing_reference', 'over_allocated', 'invalid_value')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class ValidationResult(BaseModel):
    """
    Result of validating a record set.

    Stage 1: Shape checks (each statement kind has the links it needs)
    Stage 2: Referential checks (every reference resolves)
    Stage 3: Allocation checks (splits never exceed their parent)
    """

    validated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    shapes_valid: bool = Field(
        default=True,
        description="Does every record carry the links its kind requires?"
    )
    references_valid: bool = Field(
        ...,
        description="Did every reference resolve?"
    )
    allocations_valid: bool = Field(
        ...,
        description="Are split allocations within their parent amounts?"
    )

    issues: list[ValidationIssue] = Field(
        default_factory=list,
        description="All validation issues found"
    )

    @property
    def is_valid(self) -> bool:
        return self.shapes_valid and self.references_valid and self.allocations_valid

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")
