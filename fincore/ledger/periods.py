"""
Period Aggregation

Splits the ledger into consecutive day/week/month/quarter/year buckets.
Each bucket's starting balances are the previous bucket's final balances,
so the buckets chain without gaps.
"""

from datetime import date
from typing import Optional

from fincore.dates import as_date, next_bucket, truncate
from fincore.ledger.aggregator import postings_for, summarize_postings
from fincore.models.ledger import PeriodSummary, PeriodUnit, RecordSet
from fincore.validation.validator import RecordSetValidator


def period_starts(unit: PeriodUnit, start: date, end: date) -> list[date]:
    """Bucket starts covering [start, end); the first is ``start`` truncated."""
    starts = []
    current = truncate(start, unit.value)
    while current < end:
        starts.append(current)
        current = next_bucket(current, unit.value)
    return starts


def aggregate_by_period(
    records: RecordSet,
    unit: PeriodUnit | str,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> list[PeriodSummary]:
    """
    One ledger summary per bucket.

    Without explicit bounds the buckets span from the first to the last
    dated record. An empty record set yields no buckets.

    Raises:
        ReferentialFault / ValidationFault: as for aggregate_balances()
    """
    unit = PeriodUnit(unit)
    RecordSetValidator(records).validate_or_raise()
    postings = list(postings_for(records))

    moments = [as_date(p.occurred_at) for p in postings]
    if start is None:
        if not moments:
            return []
        start = min(moments)
    if end is None:
        if not moments:
            return []
        end = next_bucket(truncate(max(moments), unit.value), unit.value)

    summaries = []
    for bucket_start in period_starts(unit, start, end):
        bucket_end = next_bucket(bucket_start, unit.value)
        summaries.append(PeriodSummary(
            unit=unit,
            period_start=bucket_start,
            period_end=bucket_end,
            summary=summarize_postings(
                records.accounts,
                records.friends,
                postings,
                start=bucket_start,
                end=bucket_end,
            ),
        ))
    return summaries
