"""
Recurring Occurrence Generator

Turns a recurring payment definition into dated occurrences.

DESIGN DECISION: Occurrence k is computed from the start date directly
(start + k * multiplier periods), never by chaining from occurrence k-1.
Chaining month steps would drift: Jan 31 -> Feb 29 -> Mar 29. Computing
from the start keeps Jan 31 -> Feb 29 -> Mar 31.

Upcoming occurrences are bounded by [max(now, start), min(upto, end)],
both ends inclusive.
"""

from collections import OrderedDict
from datetime import date, timedelta
from typing import Iterable, Iterator, Optional

from fincore.dates import add_months, month_key
from fincore.models.recurring import Frequency, Occurrence, RecurringPayment


_DAYS_PER_PERIOD = {
    Frequency.DAILY: 1,
    Frequency.WEEKLY: 7,
    Frequency.MONTHLY: 30,
    Frequency.QUARTERLY: 90,
    Frequency.YEARLY: 365,
}

_MONTHS_PER_PERIOD = {
    Frequency.MONTHLY: 1,
    Frequency.QUARTERLY: 3,
    Frequency.YEARLY: 12,
}


def period_in_days(frequency: Frequency | str, multiplier: int = 1) -> int:
    """Approximate length of one repetition in days (a month counts as 30)."""
    return _DAYS_PER_PERIOD[Frequency(frequency)] * multiplier


def occurrence_date(defn: RecurringPayment, index: int) -> date:
    """Date of the occurrence ``index`` steps after the start date."""
    steps = index * defn.frequency_multiplier
    if defn.frequency == Frequency.DAILY:
        return defn.start_date + timedelta(days=steps)
    if defn.frequency == Frequency.WEEKLY:
        return defn.start_date + timedelta(weeks=steps)
    return add_months(defn.start_date, steps * _MONTHS_PER_PERIOD[defn.frequency])


def _walk(
    defn: RecurringPayment,
    since: Optional[date],
    until: Optional[date],
) -> Iterator[Occurrence]:
    """Occurrences dated in [since, until]; either bound may be open."""
    last = defn.end_date
    if until is not None and (last is None or until < last):
        last = until

    index = 0
    while True:
        due = occurrence_date(defn, index)
        if last is not None and due > last:
            return
        if since is None or due >= since:
            yield Occurrence(
                recurring_payment_id=defn.id,
                index=index,
                due_date=due,
                amount=defn.amount,
            )
        index += 1


class UpcomingOccurrences:
    """
    Restartable lazy sequence of a definition's upcoming occurrences.

    Every iteration walks the definition again, so the same object can be
    consumed any number of times.
    """

    def __init__(self, defn: RecurringPayment, upto: date, now: date):
        self.definition = defn
        self.upto = upto
        self.now = now

    def __iter__(self) -> Iterator[Occurrence]:
        if not self.definition.is_active(self.now):
            return iter(())
        since = max(self.now, self.definition.start_date)
        return _walk(self.definition, since, self.upto)

    def __repr__(self) -> str:
        return (
            f"UpcomingOccurrences({self.definition.name!r}, "
            f"now={self.now.isoformat()}, upto={self.upto.isoformat()})"
        )

    def by_month(self) -> "OrderedDict[str, list[Occurrence]]":
        return group_by_month(self)


def upcoming_occurrences(
    defn: RecurringPayment,
    upto: date,
    now: date,
) -> UpcomingOccurrences:
    """
    Occurrences inside [max(now, start), min(upto, end)].

    Past occurrences are never emitted; an inactive definition yields an
    empty sequence.
    """
    return UpcomingOccurrences(defn, upto, now)


def occurrence_schedule(defn: RecurringPayment, upto: date) -> list[Occurrence]:
    """All occurrences from the start date up to min(upto, end), past ones included."""
    return list(_walk(defn, None, upto))


def next_occurrence(defn: RecurringPayment, now: date) -> Optional[Occurrence]:
    """First occurrence on or after ``now``; None once the definition has ended."""
    if not defn.is_active(now):
        return None
    return next(_walk(defn, now, None), None)


def group_by_month(
    occurrences: Iterable[Occurrence],
) -> "OrderedDict[str, list[Occurrence]]":
    """Group occurrences under ``YYYY-MM`` keys, keeping their order."""
    grouped: OrderedDict[str, list[Occurrence]] = OrderedDict()
    for occurrence in occurrences:
        grouped.setdefault(month_key(occurrence.due_date), []).append(occurrence)
    return grouped
