"""
Data Models Package

This package contains all Pydantic models used by fincore.
Source records are frozen; derived models are rebuilt on every query.
"""

from fincore.models.validation import (
    ValidationIssue,
    ValidationResult,
)
from fincore.models.ledger import (
    Account,
    AccountSummary,
    AccountTotals,
    Bucket,
    CreditInstrument,
    Direction,
    Friend,
    FriendSummary,
    FriendTotals,
    HolderType,
    LedgerSummary,
    PeriodSummary,
    PeriodUnit,
    Posting,
    RecordSet,
    SelfTransfer,
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
    LoanSchedule,
    LoanSplit,
    LoanSummary,
    LoanTerms,
    ScheduleEntry,
)
from fincore.models.recurring import (
    Frequency,
    Occurrence,
    RecurringPayment,
)
from fincore.models.reconciliation import (
    Obligation,
    PaymentRecord,
    PaymentStatus,
    ReconciledEntry,
    ReconciliationReport,
)
from fincore.models.obligations import (
    InstrumentObligation,
    LoanOutstanding,
    MonthProjection,
    ObligationItem,
    ObligationReport,
    ObligationSource,
)
from fincore.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Validation models
    "ValidationIssue",
    "ValidationResult",
    # Ledger models
    "Account",
    "AccountSummary",
    "AccountTotals",
    "Bucket",
    "CreditInstrument",
    "Direction",
    "Friend",
    "FriendSummary",
    "FriendTotals",
    "HolderType",
    "LedgerSummary",
    "PeriodSummary",
    "PeriodUnit",
    "Posting",
    "RecordSet",
    "SelfTransfer",
    "Split",
    "Statement",
    "StatementKind",
    # Loan models
    "ByInstallment",
    "ByPrincipal",
    "ByTotalPayable",
    "CalculationMode",
    "LoanDefinition",
    "LoanSchedule",
    "LoanSplit",
    "LoanSummary",
    "LoanTerms",
    "ScheduleEntry",
    # Recurring models
    "Frequency",
    "Occurrence",
    "RecurringPayment",
    # Reconciliation models
    "Obligation",
    "PaymentRecord",
    "PaymentStatus",
    "ReconciledEntry",
    "ReconciliationReport",
    # Obligation models
    "InstrumentObligation",
    "LoanOutstanding",
    "MonthProjection",
    "ObligationItem",
    "ObligationReport",
    "ObligationSource",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
