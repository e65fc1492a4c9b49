"""
Obligation Aggregator

Combines loan schedules and recurring occurrences into "what do I owe":

- outstanding balance per loan and per credit instrument
- the current calendar month's obligations
- future months (after the current one, up to `upto`), grouped by YYYY-MM
- overdue installments (unpaid and dated before the current month)
- credit utilization per instrument

DESIGN DECISION: An installment is unpaid when its number is above the
loan's `paid_installments` marker. The marker is the only payment state
the aggregator trusts; reconciliation against individual payment records
is a separate step.

The user's share of a loan item is the part not allocated to
counterparties: amount * (100 - sum of split percentages) / 100.
Recurring payments are never split.
"""

from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Iterable, Mapping, Optional

from fincore.config import get_settings
from fincore.dates import add_months, end_of_month, month_key, start_of_month
from fincore.faults import ReferentialFault
from fincore.loans.amortization import generate_schedule, quantize
from fincore.models.ledger import ZERO, Account, Friend
from fincore.models.loan import LoanDefinition, LoanSchedule
from fincore.models.obligations import (
    InstrumentObligation,
    LoanOutstanding,
    MonthProjection,
    ObligationItem,
    ObligationReport,
    ObligationSource,
)
from fincore.models.recurring import RecurringPayment
from fincore.recurring.occurrences import upcoming_occurrences

HUNDRED = Decimal("100")


def my_share(
    amount: Decimal,
    split_percentage: Decimal,
    quantum: Optional[Decimal] = None,
) -> Decimal:
    """Part of ``amount`` left to the user after counterparty splits."""
    if quantum is None:
        quantum = get_settings().calculation.currency_quantum
    return quantize(amount * (HUNDRED - split_percentage) / HUNDRED, quantum)


def outstanding_balance(loan: LoanDefinition, schedule: LoanSchedule) -> Decimal:
    """Principal + interest + GST of every installment after the paid marker."""
    return sum(
        (
            e.principal + e.interest + e.gst
            for e in schedule.remaining_entries(loan.paid_installments)
        ),
        ZERO,
    )


def loan_outstanding(
    loan: LoanDefinition,
    schedule: Optional[LoanSchedule] = None,
    quantum: Optional[Decimal] = None,
) -> LoanOutstanding:
    if schedule is None:
        schedule = generate_schedule(loan, quantum)
    outstanding = outstanding_balance(loan, schedule)
    return LoanOutstanding(
        loan_id=loan.id,
        name=loan.name,
        credit_instrument_id=loan.credit_instrument_id,
        installment=schedule.installment,
        remaining_installments=len(schedule.remaining_entries(loan.paid_installments)),
        outstanding=outstanding,
        my_outstanding=my_share(outstanding, loan.split_percentage, quantum),
    )


def _loan_items(
    loan: LoanDefinition,
    schedule: LoanSchedule,
    quantum: Optional[Decimal],
) -> list[ObligationItem]:
    """Unpaid, dated installments of a loan as obligation items."""
    items = []
    for entry in schedule.remaining_entries(loan.paid_installments):
        if entry.due_date is None:
            continue
        items.append(ObligationItem(
            source=ObligationSource.LOAN,
            source_id=loan.id,
            name=loan.name,
            due_date=entry.due_date,
            installment_no=entry.installment_no,
            amount=entry.total_payment,
            my_share=my_share(entry.total_payment, loan.split_percentage, quantum),
        ))
    return items


def _recurring_items(
    defn: RecurringPayment,
    upto: date,
    now: date,
) -> list[ObligationItem]:
    return [
        ObligationItem(
            source=ObligationSource.RECURRING,
            source_id=defn.id,
            name=defn.name,
            due_date=occurrence.due_date,
            amount=occurrence.amount,
            my_share=occurrence.amount,
        )
        for occurrence in upcoming_occurrences(defn, upto, now)
    ]


def _sorted(items: Iterable[ObligationItem]) -> list[ObligationItem]:
    return sorted(items, key=lambda i: (i.due_date, i.source.value, i.name, i.installment_no or 0))


def project_obligations(
    loans: Iterable[LoanDefinition],
    recurring: Iterable[RecurringPayment],
    now: date,
    upto: Optional[date] = None,
    accounts: Optional[Iterable[Account]] = None,
    account_balances: Optional[Mapping[str, Decimal]] = None,
    quantum: Optional[Decimal] = None,
    friends: Optional[Iterable[Friend]] = None,
) -> ObligationReport:
    """
    Project loan and recurring obligations from ``now`` to ``upto``.

    Args:
        loans: Loan definitions (any number of them per credit instrument)
        recurring: Recurring payment definitions
        now: Reference date; its calendar month is the current month
        upto: Last date of the projection (defaults to the end of the month
            `default_projection_months` after now)
        accounts: Accounts carrying credit instruments; when given, every
            loan's instrument must belong to one of them
        account_balances: Current balance per account id, for utilization
        quantum: Currency quantum (defaults to settings)
        friends: Known counterparties; when given, every loan split must
            name one of them

    Raises:
        ValidationFault: a loan definition is invalid (incl. splits over 100%)
        ReferentialFault: a loan references an instrument not carried by
            any of the supplied accounts, or splits with an unknown friend

    Loans without a first installment date still count towards the
    outstanding totals but have no due dates to place in a month; they are
    listed in `undated_loans`.
    """
    loans = list(loans)
    recurring = list(recurring)
    account_balances = account_balances or {}
    if upto is None:
        months = get_settings().calculation.default_projection_months
        upto = end_of_month(add_months(now, months))

    month_start = start_of_month(now)
    month_end = end_of_month(now)

    instrument_accounts: dict[str, Account] = {}
    missing = []
    if accounts is not None:
        for account in accounts:
            if account.credit_instrument is not None:
                instrument_accounts[account.credit_instrument.id] = account

        missing.extend(
            ("loan", loan.id, "credit_instrument", loan.credit_instrument_id)
            for loan in loans
            if loan.credit_instrument_id is not None
            and loan.credit_instrument_id not in instrument_accounts
        )
    if friends is not None:
        friend_ids = {friend.id for friend in friends}
        missing.extend(
            ("loan", loan.id, "friend", split.friend_id)
            for loan in loans
            for split in loan.splits
            if split.friend_id not in friend_ids
        )
    if missing:
        raise ReferentialFault(
            f"{len(missing)} loan references point at unknown records",
            missing=missing,
        )

    current: list[ObligationItem] = []
    future: list[ObligationItem] = []
    overdue: list[ObligationItem] = []
    outstanding_by_loan: list[LoanOutstanding] = []
    undated: list[LoanOutstanding] = []
    due_by_instrument: dict[str, Decimal] = defaultdict(lambda: ZERO)

    for loan in loans:
        schedule = generate_schedule(loan, quantum)
        outstanding = loan_outstanding(loan, schedule, quantum)
        outstanding_by_loan.append(outstanding)
        if loan.first_installment_date is None:
            undated.append(outstanding)

        for item in _loan_items(loan, schedule, quantum):
            if item.due_date < month_start:
                overdue.append(item)
            elif item.due_date <= month_end:
                current.append(item)
                if loan.credit_instrument_id is not None:
                    due_by_instrument[loan.credit_instrument_id] += item.amount
            elif item.due_date <= upto:
                future.append(item)

    for defn in recurring:
        current.extend(_recurring_items(defn, month_end, now))
        future.extend(
            item for item in _recurring_items(defn, upto, now)
            if item.due_date > month_end
        )

    by_month: dict[str, list[ObligationItem]] = defaultdict(list)
    for item in _sorted(future):
        by_month[month_key(item.due_date)].append(item)

    instrument_ids = list(instrument_accounts)
    for entry in outstanding_by_loan:
        if entry.credit_instrument_id is not None and entry.credit_instrument_id not in instrument_ids:
            instrument_ids.append(entry.credit_instrument_id)

    instruments = []
    for instrument_id in instrument_ids:
        account = instrument_accounts.get(instrument_id)
        attached = [e for e in outstanding_by_loan if e.credit_instrument_id == instrument_id]
        instruments.append(InstrumentObligation(
            instrument_id=instrument_id,
            account_id=account.id if account else None,
            limit=account.credit_instrument.limit if account else None,
            loans=attached,
            outstanding=sum((e.outstanding for e in attached), ZERO),
            current_month_due=due_by_instrument[instrument_id],
            account_balance=account_balances.get(account.id) if account else None,
        ))

    return ObligationReport(
        reference_date=now,
        upto=upto,
        current_month=MonthProjection(month=month_key(now), items=_sorted(current)),
        future_months=[
            MonthProjection(month=key, items=items)
            for key, items in sorted(by_month.items())
        ],
        overdue=_sorted(overdue),
        loans=outstanding_by_loan,
        undated_loans=undated,
        instruments=instruments,
    )
