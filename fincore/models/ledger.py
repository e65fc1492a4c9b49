"""
Ledger Data Models

Source records (accounts, counterparties, statements, splits and
self-transfers) and the summaries derived from them.

DESIGN DECISION: Statement amounts are outflow-positive for the account
they touch. A positive amount leaves the account, a negative amount
enters it (salary is an outside transaction of -50000).

Source records are frozen: the engines never mutate their inputs.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, Union
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


def new_id() -> str:
    return str(uuid4())


ZERO = Decimal("0")


# =============================================================================
# ENUMS
# =============================================================================

class StatementKind(str, Enum):
    """
    Kinds of ledger statements.

    EXPENSE: money spent; against an account, or paid directly by a
    counterparty on the user's behalf when no account is set.
    OUTSIDE_TRANSACTION: money moving between an account and the world
    outside the tracked accounts/counterparties.
    FRIEND_TRANSACTION: money the user advances to (positive) or receives
    from (negative) a counterparty through an account.
    """
    EXPENSE = "expense"
    OUTSIDE_TRANSACTION = "outside_transaction"
    FRIEND_TRANSACTION = "friend_transaction"


class Direction(str, Enum):
    """Debit reduces the holder's balance, credit increases it."""
    DEBIT = "debit"
    CREDIT = "credit"

    def signed(self, amount: Decimal) -> Decimal:
        return -amount if self is Direction.DEBIT else amount


class HolderType(str, Enum):
    """Who a posting lands on."""
    ACCOUNT = "account"
    FRIEND = "friend"


class Bucket(str, Enum):
    """Summary field a posting accumulates into."""
    EXPENSES = "expenses"
    SELF_TRANSFERS = "self_transfers"
    OUTSIDE_TRANSACTIONS = "outside_transactions"
    FRIEND_TRANSACTIONS = "friend_transactions"
    PAID_BY_FRIEND = "paid_by_friend"
    SPLITS = "splits"


class PeriodUnit(str, Enum):
    """Bucket sizes for period aggregation."""
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"


# =============================================================================
# SOURCE RECORDS
# =============================================================================

class CreditInstrument(BaseModel):
    """A credit line (e.g. a credit card) attached to an account."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    limit: Decimal = Field(
        ...,
        ge=0,
        description="Credit limit"
    )


class Account(BaseModel):
    """A ledger account owned by the user."""
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: str = Field(default_factory=new_id)
    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Display name"
    )
    starting_balance: Decimal = Field(
        default=ZERO,
        description="Balance before the first recorded statement"
    )
    credit_instrument: Optional[CreditInstrument] = None


class Friend(BaseModel):
    """A counterparty with whom expenses are shared."""
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: str = Field(default_factory=new_id)
    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Display name"
    )


class Statement(BaseModel):
    """
    A signed ledger transaction.

    `loan_id`/`installment_no` and `recurring_payment_id` are the links the
    storage collaborator keeps between a statement and an obligation.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: str = Field(default_factory=new_id)
    amount: Decimal = Field(
        ...,
        description="Outflow-positive amount"
    )
    category: str = Field(
        default="uncategorized",
        max_length=100
    )
    tags: tuple[str, ...] = Field(default_factory=tuple)
    kind: StatementKind = StatementKind.EXPENSE
    account_id: Optional[str] = None
    friend_id: Optional[str] = None
    created_at: datetime

    loan_id: Optional[str] = None
    installment_no: Optional[int] = Field(default=None, ge=1)
    recurring_payment_id: Optional[str] = None


class Split(BaseModel):
    """A portion of a statement attributed to a counterparty."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    statement_id: str
    friend_id: str
    amount: Decimal = Field(
        ...,
        ge=0,
        description="Attributed amount"
    )


class SelfTransfer(BaseModel):
    """Movement of funds between two of the user's own accounts."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    from_account_id: str
    to_account_id: str
    amount: Decimal = Field(
        ...,
        description="Amount moved from the source to the destination"
    )
    created_at: datetime


class RecordSet(BaseModel):
    """Everything the storage collaborator supplies for balance aggregation."""
    model_config = ConfigDict(frozen=True)

    accounts: tuple[Account, ...] = Field(default_factory=tuple)
    friends: tuple[Friend, ...] = Field(default_factory=tuple)
    statements: tuple[Statement, ...] = Field(default_factory=tuple)
    splits: tuple[Split, ...] = Field(default_factory=tuple)
    transfers: tuple[SelfTransfer, ...] = Field(default_factory=tuple)


# =============================================================================
# POSTINGS
# =============================================================================

class Posting(BaseModel):
    """One directed movement on an account or counterparty."""
    model_config = ConfigDict(frozen=True)

    holder_type: HolderType
    holder_id: str
    bucket: Bucket
    direction: Direction
    amount: Decimal
    occurred_at: datetime
    record_type: str
    record_id: str

    @property
    def signed_amount(self) -> Decimal:
        return self.direction.signed(self.amount)


# =============================================================================
# SUMMARIES
# =============================================================================

class AccountSummary(BaseModel):
    """Balance figures for one account over a window."""

    account: Account
    starting_balance: Decimal = ZERO
    expenses: Decimal = ZERO
    self_transfers: Decimal = Field(
        default=ZERO,
        description="Inbound minus outbound self-transfers"
    )
    outside_transactions: Decimal = ZERO
    friend_transactions: Decimal = ZERO
    total_transfers: Decimal = ZERO
    final_balance: Decimal = ZERO


class FriendSummary(BaseModel):
    """
    Balance figures for one counterparty over a window.

    A positive final balance means the counterparty owes the user.
    """

    friend: Friend
    starting_balance: Decimal = ZERO
    friend_transactions: Decimal = ZERO
    paid_by_friend: Decimal = ZERO
    splits: Decimal = ZERO
    total_transfers: Decimal = ZERO
    final_balance: Decimal = ZERO


class AccountTotals(BaseModel):
    """Account figures summed across all accounts."""

    starting_balance: Decimal = ZERO
    expenses: Decimal = ZERO
    self_transfers: Decimal = ZERO
    outside_transactions: Decimal = ZERO
    friend_transactions: Decimal = ZERO
    total_transfers: Decimal = ZERO
    final_balance: Decimal = ZERO


class FriendTotals(BaseModel):
    """Counterparty figures summed across all counterparties."""

    starting_balance: Decimal = ZERO
    friend_transactions: Decimal = ZERO
    paid_by_friend: Decimal = ZERO
    splits: Decimal = ZERO
    total_transfers: Decimal = ZERO
    final_balance: Decimal = ZERO


class LedgerSummary(BaseModel):
    """Per-account and per-counterparty figures for one window."""

    start: Optional[Union[datetime, date]] = None
    end: Optional[Union[datetime, date]] = None
    accounts: list[AccountSummary] = Field(default_factory=list)
    friends: list[FriendSummary] = Field(default_factory=list)
    total_accounts: AccountTotals = Field(default_factory=AccountTotals)
    total_friends: FriendTotals = Field(default_factory=FriendTotals)
    total_expenses: Decimal = Field(
        default=ZERO,
        description="Expenses from accounts plus expenses paid by counterparties"
    )

    def account(self, account_id: str) -> AccountSummary:
        for summary in self.accounts:
            if summary.account.id == account_id:
                return summary
        raise KeyError(account_id)

    def friend(self, friend_id: str) -> FriendSummary:
        for summary in self.friends:
            if summary.friend.id == friend_id:
                return summary
        raise KeyError(friend_id)


class PeriodSummary(BaseModel):
    """Ledger summary for one period bucket."""

    unit: PeriodUnit
    period_start: date
    period_end: date = Field(
        ...,
        description="Exclusive end of the bucket"
    )
    summary: LedgerSummary
