"""Recurring payment package."""

from fincore.recurring.occurrences import (
    UpcomingOccurrences,
    group_by_month,
    next_occurrence,
    occurrence_date,
    occurrence_schedule,
    period_in_days,
    upcoming_occurrences,
)

__all__ = [
    "UpcomingOccurrences",
    "group_by_month",
    "next_occurrence",
    "occurrence_date",
    "occurrence_schedule",
    "period_in_days",
    "upcoming_occurrences",
]
