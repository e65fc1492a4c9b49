"""
Reconciliation Matcher

Matches scheduled obligations (loan installments or recurring occurrences)
against the payment records linked to the same obligation.

DESIGN DECISION: Matching granularity is the calendar month. An entry is
paid by the first unused record dated in the same year and month as the
entry's due date. Records are sorted by date (then id) before matching so
the outcome never depends on the order the source returned them in, and
every record is used at most once.
"""

from datetime import date
from typing import Iterable

from fincore.dates import as_date, same_month
from fincore.models.reconciliation import (
    Obligation,
    PaymentRecord,
    PaymentStatus,
    ReconciledEntry,
    ReconciliationReport,
)


def sort_payments(payments: Iterable[PaymentRecord]) -> list[PaymentRecord]:
    return sorted(payments, key=lambda p: (p.paid_at, p.id))


def reconcile(
    obligations: Iterable[Obligation],
    payments: Iterable[PaymentRecord],
    now: date,
) -> ReconciliationReport:
    """
    Give each obligation a status.

    PAID: an unused payment falls in the due date's calendar month
    MISSED: no payment and the due date is strictly before ``now``
    UPCOMING: otherwise, including entries without a due date

    Args:
        obligations: Entries with `due_date` and `expected_amount`
        payments: Candidate payment records for the same obligation
        now: Reference date

    Returns:
        ReconciliationReport with one entry per obligation, in input order,
        and the payments nothing claimed
    """
    pool = sort_payments(payments)
    used: set[int] = set()
    entries = []

    for obligation in obligations:
        due = obligation.due_date
        match = None

        if due is not None:
            for position, payment in enumerate(pool):
                if position in used:
                    continue
                if same_month(as_date(payment.paid_at), due):
                    match = payment
                    used.add(position)
                    break

        if match is not None:
            status = PaymentStatus.PAID
        elif due is not None and due < now:
            status = PaymentStatus.MISSED
        else:
            status = PaymentStatus.UPCOMING

        entries.append(ReconciledEntry(
            obligation=obligation,
            due_date=due,
            expected_amount=obligation.expected_amount,
            status=status,
            payment=match,
        ))

    return ReconciliationReport(
        reference_date=now,
        entries=entries,
        unmatched_payments=[p for i, p in enumerate(pool) if i not in used],
    )
