"""
Balance Aggregator

Turns statements, splits and self-transfers into per-account and
per-counterparty summaries.

DESIGN DECISION: Every record is first expanded into explicit postings.
A posting names its holder, the summary bucket it feeds and a Direction
(DEBIT lowers the holder's balance, CREDIT raises it), so no sign is ever
inferred from which side of a join a record came from:

    record                              account posting        friend posting
    ----------------------------------  ---------------------  ----------------------
    expense, account set                DEBIT  expenses        -
    expense, friend set (friend paid)   -                      DEBIT  paid_by_friend
    outside transaction                 DEBIT  outside         -
    friend transaction                  DEBIT  friend_tx       CREDIT friend_tx
    split                               -                      CREDIT splits
    self-transfer                       source DEBIT, destination CREDIT

Counterparty balances are receivable-view: positive means the counterparty
owes the user. With these postings the balance changes of all holders sum
to the net impact of the records (see net_impact()).
"""

from collections import defaultdict
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, Iterator, Optional, Union

from fincore.config import get_settings
from fincore.dates import as_aware, local_date
from fincore.models.ledger import (
    ZERO,
    Account,
    AccountSummary,
    AccountTotals,
    Bucket,
    Direction,
    Friend,
    FriendSummary,
    FriendTotals,
    HolderType,
    LedgerSummary,
    Posting,
    RecordSet,
    StatementKind,
)
from fincore.validation.validator import RecordSetValidator


Bound = Union[date, datetime]

# Buckets reported as outflows: the summary field shows the debited amount
# as a positive figure.
_OUTFLOW_FIELDS = {
    (HolderType.ACCOUNT, Bucket.EXPENSES),
    (HolderType.ACCOUNT, Bucket.OUTSIDE_TRANSACTIONS),
    (HolderType.ACCOUNT, Bucket.FRIEND_TRANSACTIONS),
    (HolderType.FRIEND, Bucket.PAID_BY_FRIEND),
}


# =============================================================================
# POSTINGS
# =============================================================================

def postings_for(records: RecordSet) -> Iterator[Posting]:
    """
    Expand a record set into postings.

    Assumes the record set is valid; splits whose parent statement is
    missing are the validator's concern.
    """
    statements = {s.id: s for s in records.statements}

    for st in records.statements:
        if st.kind == StatementKind.EXPENSE:
            if st.account_id is not None:
                yield Posting(
                    holder_type=HolderType.ACCOUNT,
                    holder_id=st.account_id,
                    bucket=Bucket.EXPENSES,
                    direction=Direction.DEBIT,
                    amount=st.amount,
                    occurred_at=st.created_at,
                    record_type="statement",
                    record_id=st.id,
                )
            else:
                yield Posting(
                    holder_type=HolderType.FRIEND,
                    holder_id=st.friend_id,
                    bucket=Bucket.PAID_BY_FRIEND,
                    direction=Direction.DEBIT,
                    amount=st.amount,
                    occurred_at=st.created_at,
                    record_type="statement",
                    record_id=st.id,
                )

        elif st.kind == StatementKind.OUTSIDE_TRANSACTION:
            yield Posting(
                holder_type=HolderType.ACCOUNT,
                holder_id=st.account_id,
                bucket=Bucket.OUTSIDE_TRANSACTIONS,
                direction=Direction.DEBIT,
                amount=st.amount,
                occurred_at=st.created_at,
                record_type="statement",
                record_id=st.id,
            )

        elif st.kind == StatementKind.FRIEND_TRANSACTION:
            yield Posting(
                holder_type=HolderType.ACCOUNT,
                holder_id=st.account_id,
                bucket=Bucket.FRIEND_TRANSACTIONS,
                direction=Direction.DEBIT,
                amount=st.amount,
                occurred_at=st.created_at,
                record_type="statement",
                record_id=st.id,
            )
            yield Posting(
                holder_type=HolderType.FRIEND,
                holder_id=st.friend_id,
                bucket=Bucket.FRIEND_TRANSACTIONS,
                direction=Direction.CREDIT,
                amount=st.amount,
                occurred_at=st.created_at,
                record_type="statement",
                record_id=st.id,
            )

    for sp in records.splits:
        parent = statements[sp.statement_id]
        yield Posting(
            holder_type=HolderType.FRIEND,
            holder_id=sp.friend_id,
            bucket=Bucket.SPLITS,
            direction=Direction.CREDIT,
            amount=sp.amount,
            occurred_at=parent.created_at,
            record_type="split",
            record_id=sp.id,
        )

    for tr in records.transfers:
        yield Posting(
            holder_type=HolderType.ACCOUNT,
            holder_id=tr.from_account_id,
            bucket=Bucket.SELF_TRANSFERS,
            direction=Direction.DEBIT,
            amount=tr.amount,
            occurred_at=tr.created_at,
            record_type="transfer",
            record_id=tr.id,
        )
        yield Posting(
            holder_type=HolderType.ACCOUNT,
            holder_id=tr.to_account_id,
            bucket=Bucket.SELF_TRANSFERS,
            direction=Direction.CREDIT,
            amount=tr.amount,
            occurred_at=tr.created_at,
            record_type="transfer",
            record_id=tr.id,
        )


def _before(moment: datetime, bound: Bound) -> bool:
    # A plain date bound means midnight of that day. Naive values are read
    # in the configured timezone when the other side is aware.
    if not isinstance(bound, datetime):
        return local_date(moment, get_settings().app.timezone) < bound
    if (moment.tzinfo is None) != (bound.tzinfo is None):
        timezone = get_settings().app.timezone
        return as_aware(moment, timezone) < as_aware(bound, timezone)
    return moment < bound


def in_window(moment: datetime, start: Optional[Bound], end: Optional[Bound]) -> bool:
    """True when ``moment`` lies in the half-open window [start, end)."""
    if start is not None and _before(moment, start):
        return False
    if end is not None and not _before(moment, end):
        return False
    return True


def net_impact(
    records: RecordSet,
    start: Optional[Bound] = None,
    end: Optional[Bound] = None,
) -> Decimal:
    """
    Net effect of the records on the user's position, from the raw records.

    Expenses and outside transactions lower it, splits raise it (a friend
    now owes that part), friend transactions and self-transfers only move
    money between holders.
    """
    total = ZERO
    statements = {s.id: s for s in records.statements}

    for st in records.statements:
        if not in_window(st.created_at, start, end):
            continue
        if st.kind in (StatementKind.EXPENSE, StatementKind.OUTSIDE_TRANSACTION):
            total -= st.amount

    for sp in records.splits:
        if in_window(statements[sp.statement_id].created_at, start, end):
            total += sp.amount

    return total


# =============================================================================
# AGGREGATION
# =============================================================================

def summarize_postings(
    accounts: Iterable[Account],
    friends: Iterable[Friend],
    postings: Iterable[Posting],
    start: Optional[Bound] = None,
    end: Optional[Bound] = None,
) -> LedgerSummary:
    """
    Fold postings into summaries for the window [start, end).

    Postings before ``start`` move the starting balances; postings at or
    after ``end`` are ignored.
    """
    accounts = list(accounts)
    friends = list(friends)

    opening: dict[tuple[HolderType, str], Decimal] = defaultdict(lambda: ZERO)
    fields: dict[tuple[HolderType, str], dict[Bucket, Decimal]] = defaultdict(
        lambda: defaultdict(lambda: ZERO)
    )
    movement: dict[tuple[HolderType, str], Decimal] = defaultdict(lambda: ZERO)

    for account in accounts:
        opening[(HolderType.ACCOUNT, account.id)] = account.starting_balance

    for posting in postings:
        key = (posting.holder_type, posting.holder_id)
        if start is not None and _before(posting.occurred_at, start):
            opening[key] += posting.signed_amount
            continue
        if end is not None and not _before(posting.occurred_at, end):
            continue

        movement[key] += posting.signed_amount
        if (posting.holder_type, posting.bucket) in _OUTFLOW_FIELDS:
            fields[key][posting.bucket] -= posting.signed_amount
        else:
            fields[key][posting.bucket] += posting.signed_amount

    account_summaries = []
    for account in accounts:
        key = (HolderType.ACCOUNT, account.id)
        values = fields[key]
        account_summaries.append(AccountSummary(
            account=account,
            starting_balance=opening[key],
            expenses=values[Bucket.EXPENSES],
            self_transfers=values[Bucket.SELF_TRANSFERS],
            outside_transactions=values[Bucket.OUTSIDE_TRANSACTIONS],
            friend_transactions=values[Bucket.FRIEND_TRANSACTIONS],
            total_transfers=movement[key],
            final_balance=opening[key] + movement[key],
        ))

    friend_summaries = []
    for friend in friends:
        key = (HolderType.FRIEND, friend.id)
        values = fields[key]
        friend_summaries.append(FriendSummary(
            friend=friend,
            starting_balance=opening[key],
            friend_transactions=values[Bucket.FRIEND_TRANSACTIONS],
            paid_by_friend=values[Bucket.PAID_BY_FRIEND],
            splits=values[Bucket.SPLITS],
            total_transfers=movement[key],
            final_balance=opening[key] + movement[key],
        ))

    total_accounts = AccountTotals(
        starting_balance=sum((s.starting_balance for s in account_summaries), ZERO),
        expenses=sum((s.expenses for s in account_summaries), ZERO),
        self_transfers=sum((s.self_transfers for s in account_summaries), ZERO),
        outside_transactions=sum((s.outside_transactions for s in account_summaries), ZERO),
        friend_transactions=sum((s.friend_transactions for s in account_summaries), ZERO),
        total_transfers=sum((s.total_transfers for s in account_summaries), ZERO),
        final_balance=sum((s.final_balance for s in account_summaries), ZERO),
    )
    total_friends = FriendTotals(
        starting_balance=sum((s.starting_balance for s in friend_summaries), ZERO),
        friend_transactions=sum((s.friend_transactions for s in friend_summaries), ZERO),
        paid_by_friend=sum((s.paid_by_friend for s in friend_summaries), ZERO),
        splits=sum((s.splits for s in friend_summaries), ZERO),
        total_transfers=sum((s.total_transfers for s in friend_summaries), ZERO),
        final_balance=sum((s.final_balance for s in friend_summaries), ZERO),
    )

    return LedgerSummary(
        start=start,
        end=end,
        accounts=account_summaries,
        friends=friend_summaries,
        total_accounts=total_accounts,
        total_friends=total_friends,
        total_expenses=total_accounts.expenses + total_friends.paid_by_friend,
    )


def aggregate_balances(
    records: RecordSet,
    start: Optional[Bound] = None,
    end: Optional[Bound] = None,
) -> LedgerSummary:
    """
    Per-account and per-counterparty balances for an optional window.

    Args:
        records: Accounts, friends, statements, splits and transfers
        start: Records before this fold into the starting balances
        end: Records at or after this are ignored

    Raises:
        ReferentialFault: a record points at an unknown account, friend
            or statement (every dangling reference is listed)
        ValidationFault: malformed statements or over-allocated splits
    """
    RecordSetValidator(records).validate_or_raise()
    return summarize_postings(
        records.accounts,
        records.friends,
        postings_for(records),
        start=start,
        end=end,
    )
