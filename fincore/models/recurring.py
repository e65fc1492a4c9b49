"""
Recurring Payment Models
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from fincore.models.ledger import new_id


class Frequency(str, Enum):
    """Base period of a recurring payment; the multiplier scales it."""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


class RecurringPayment(BaseModel):
    """
    A payment that repeats every `frequency_multiplier` periods.

    A definition is active while it has no end date or its end date is not
    before the reference date.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: str = Field(default_factory=new_id)
    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Display name (e.g., 'Rent', 'Netflix')"
    )
    category: str = Field(default="uncategorized", max_length=100)
    amount: Decimal = Field(
        ...,
        gt=0,
        description="Amount per occurrence"
    )
    frequency: Frequency
    frequency_multiplier: int = Field(
        default=1,
        ge=1,
        description="Every N periods"
    )
    start_date: date
    end_date: Optional[date] = None

    @model_validator(mode='after')
    def validate_dates(self) -> 'RecurringPayment':
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError(
                f"end_date {self.end_date} is before start_date {self.start_date}"
            )
        return self

    def is_active(self, now: date) -> bool:
        return self.end_date is None or self.end_date >= now


class Occurrence(BaseModel):
    """One dated instance of a recurring payment."""
    model_config = ConfigDict(frozen=True)

    recurring_payment_id: str
    index: int = Field(
        ...,
        ge=0,
        description="Step number counted from the start date"
    )
    due_date: date
    amount: Decimal

    @property
    def expected_amount(self) -> Decimal:
        return self.amount
