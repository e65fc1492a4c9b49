"""
Tests for the recurring occurrence generator.
"""

import pytest
from datetime import date
from decimal import Decimal

from fincore.models.recurring import Frequency, RecurringPayment
from fincore.recurring import (
    group_by_month,
    next_occurrence,
    occurrence_date,
    occurrence_schedule,
    period_in_days,
    upcoming_occurrences,
)


def make_payment(frequency=Frequency.MONTHLY, start=date(2024, 1, 15), end=None, multiplier=1):
    return RecurringPayment(
        id="rent",
        name="Rent",
        category="housing",
        amount=Decimal("15000"),
        frequency=frequency,
        frequency_multiplier=multiplier,
        start_date=start,
        end_date=end,
    )


def dates(occurrences):
    return [o.due_date for o in occurrences]


class TestOccurrenceDates:
    """Tests for stepping from the start date."""

    def test_monthly_from_start(self):
        defn = make_payment(start=date(2024, 1, 31))
        assert occurrence_date(defn, 0) == date(2024, 1, 31)
        assert occurrence_date(defn, 1) == date(2024, 2, 29)
        # Computed from the start, not from Feb 29.
        assert occurrence_date(defn, 2) == date(2024, 3, 31)

    def test_weekly_with_multiplier(self):
        defn = make_payment(Frequency.WEEKLY, start=date(2024, 1, 1), multiplier=2)
        assert occurrence_date(defn, 3) == date(2024, 2, 12)

    def test_quarterly_and_yearly(self):
        quarterly = make_payment(Frequency.QUARTERLY, start=date(2024, 11, 30))
        assert occurrence_date(quarterly, 1) == date(2025, 2, 28)
        yearly = make_payment(Frequency.YEARLY, start=date(2024, 2, 29))
        assert occurrence_date(yearly, 1) == date(2025, 2, 28)
        assert occurrence_date(yearly, 4) == date(2028, 2, 29)

    def test_period_in_days(self):
        assert period_in_days(Frequency.WEEKLY, 2) == 14
        assert period_in_days("monthly") == 30
        assert period_in_days(Frequency.YEARLY) == 365


class TestUpcomingOccurrences:
    """Tests for the upcoming window."""

    def test_window_before_start(self):
        """Test that occurrences begin at the start date, not at now."""
        upcoming = upcoming_occurrences(make_payment(), upto=date(2024, 4, 1), now=date(2024, 1, 1))
        assert dates(upcoming) == [date(2024, 1, 15), date(2024, 2, 15), date(2024, 3, 15)]

    def test_past_occurrences_skipped(self):
        upcoming = upcoming_occurrences(make_payment(), upto=date(2024, 5, 31), now=date(2024, 3, 16))
        assert dates(upcoming) == [date(2024, 4, 15), date(2024, 5, 15)]

    def test_bounds_inclusive(self):
        """Test that both now and upto are included."""
        upcoming = upcoming_occurrences(make_payment(), upto=date(2024, 3, 15), now=date(2024, 2, 15))
        assert dates(upcoming) == [date(2024, 2, 15), date(2024, 3, 15)]

    def test_end_date_caps_window(self):
        defn = make_payment(end=date(2024, 3, 1))
        upcoming = upcoming_occurrences(defn, upto=date(2024, 12, 31), now=date(2024, 1, 1))
        assert dates(upcoming) == [date(2024, 1, 15), date(2024, 2, 15)]

    def test_inactive_definition_yields_nothing(self):
        defn = make_payment(end=date(2024, 3, 1))
        upcoming = upcoming_occurrences(defn, upto=date(2024, 12, 31), now=date(2024, 6, 1))
        assert list(upcoming) == []

    def test_upto_before_now(self):
        upcoming = upcoming_occurrences(make_payment(), upto=date(2024, 1, 1), now=date(2024, 6, 1))
        assert list(upcoming) == []

    def test_restartable(self):
        """Test that the sequence can be consumed more than once."""
        upcoming = upcoming_occurrences(make_payment(), upto=date(2024, 4, 1), now=date(2024, 1, 1))
        assert dates(upcoming) == dates(upcoming)
        assert len(list(upcoming)) == 3

    def test_occurrence_fields(self):
        first = next(iter(upcoming_occurrences(make_payment(), date(2024, 2, 1), date(2024, 1, 1))))
        assert first.recurring_payment_id == "rent"
        assert first.index == 0
        assert first.expected_amount == Decimal("15000")

    def test_daily(self):
        defn = make_payment(Frequency.DAILY, start=date(2024, 2, 27))
        upcoming = upcoming_occurrences(defn, upto=date(2024, 3, 1), now=date(2024, 2, 1))
        assert dates(upcoming) == [
            date(2024, 2, 27),
            date(2024, 2, 28),
            date(2024, 2, 29),
            date(2024, 3, 1),
        ]


class TestScheduleHelpers:
    """Tests for the full schedule, next occurrence and grouping."""

    def test_occurrence_schedule_includes_past(self):
        schedule = occurrence_schedule(make_payment(), upto=date(2024, 3, 31))
        assert dates(schedule) == [date(2024, 1, 15), date(2024, 2, 15), date(2024, 3, 15)]
        assert [o.index for o in schedule] == [0, 1, 2]

    def test_next_occurrence(self):
        occurrence = next_occurrence(make_payment(), now=date(2024, 2, 16))
        assert occurrence.due_date == date(2024, 3, 15)

    def test_next_occurrence_after_end(self):
        defn = make_payment(end=date(2024, 2, 20))
        assert next_occurrence(defn, now=date(2024, 2, 16)) is None
        assert next_occurrence(defn, now=date(2024, 3, 1)) is None

    def test_group_by_month(self):
        defn = make_payment(Frequency.WEEKLY, start=date(2024, 1, 22))
        grouped = group_by_month(upcoming_occurrences(defn, date(2024, 2, 12), date(2024, 1, 1)))
        assert list(grouped) == ["2024-01", "2024-02"]
        assert len(grouped["2024-01"]) == 2
        assert len(grouped["2024-02"]) == 2

    def test_by_month_on_sequence(self):
        upcoming = upcoming_occurrences(make_payment(), upto=date(2024, 4, 1), now=date(2024, 1, 1))
        assert list(upcoming.by_month()) == ["2024-01", "2024-02", "2024-03"]
