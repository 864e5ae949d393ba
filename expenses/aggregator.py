"""Pure aggregation over an in-memory list of expenses.

Every function here takes the current record list (plus parameters) and
returns a new derived value. Nothing reads the clock: callers pass ``now``.
"""

from datetime import datetime, timedelta
from decimal import Decimal
from functools import reduce
from typing import Callable, Dict, Iterable, List, Tuple

from expenses.domain import CategorySummary, Expense, PeriodTotals, TimeRange


ZERO = Decimal("0")
WEEK = timedelta(days=7)


def _align(ts: datetime, now: datetime) -> datetime:
    """Express ``ts`` on the same clock as ``now`` for calendar comparisons.

    Aware timestamps are converted to ``now``'s zone; when ``now`` is naive
    they are converted to the host's local zone and made naive.
    """
    if ts.tzinfo is None and now.tzinfo is None:
        return ts
    if now.tzinfo is None:
        return ts.astimezone().replace(tzinfo=None)
    if ts.tzinfo is None:
        return ts.replace(tzinfo=now.tzinfo)
    return ts.astimezone(now.tzinfo)


def is_same_day(ts: datetime, now: datetime) -> bool:
    return _align(ts, now).date() == now.date()


def is_within_week(ts: datetime, now: datetime) -> bool:
    # rolling 168 hour window, not calendar aligned
    return _align(ts, now) >= now - WEEK


def is_same_month(ts: datetime, now: datetime) -> bool:
    local = _align(ts, now)
    return (local.year, local.month) == (now.year, now.month)


def is_same_year(ts: datetime, now: datetime) -> bool:
    return _align(ts, now).year == now.year


_RANGE_PREDICATES: Dict[TimeRange, Callable[[datetime, datetime], bool]] = {
    TimeRange.TODAY: is_same_day,
    TimeRange.LAST_7_DAYS: is_within_week,
    TimeRange.THIS_MONTH: is_same_month,
    TimeRange.THIS_YEAR: is_same_year,
    TimeRange.ALL_TIME: lambda ts, now: True,
}


def in_range(e: Expense, time_range: TimeRange, now: datetime) -> bool:
    return _RANGE_PREDICATES[time_range](e.created_at, now)


def filter_by_range(
    records: Iterable[Expense], time_range: TimeRange, now: datetime
) -> Tuple[Expense, ...]:
    """Keep the records that fall inside ``time_range`` relative to ``now``.

    Relative order is preserved. ``ALL_TIME`` returns the input unchanged.
    """
    if time_range is TimeRange.ALL_TIME:
        return tuple(records)
    return tuple(filter(lambda e: in_range(e, time_range, now), records))


def sum_amount(records: Iterable[Expense]) -> Decimal:
    return reduce(lambda acc, e: acc + e.amount, records, ZERO)


def summarize_by_category(records: Iterable[Expense]) -> Tuple[CategorySummary, ...]:
    """Group records by exact category string.

    Sorted by total descending. Equal totals keep the order in which their
    category was first seen.
    """
    totals: Dict[str, Decimal] = {}
    counts: Dict[str, int] = {}

    for e in records:
        totals[e.category] = totals.get(e.category, ZERO) + e.amount
        counts[e.category] = counts.get(e.category, 0) + 1

    summaries: List[CategorySummary] = [
        CategorySummary(category=c, total_amount=totals[c], transaction_count=counts[c])
        for c in totals
    ]
    return tuple(sorted(summaries, key=lambda s: s.total_amount, reverse=True))


def percentage_of_total(amount: Decimal, grand_total: Decimal) -> Decimal:
    if grand_total == 0:
        return ZERO
    return amount / grand_total * 100


def compute_period_totals(records: Iterable[Expense], now: datetime) -> PeriodTotals:
    """Today, rolling week and calendar month totals.

    The windows overlap: a record from today also counts towards the week and
    the month.
    """
    records = tuple(records)
    return PeriodTotals(
        today=sum_amount(filter_by_range(records, TimeRange.TODAY, now)),
        week=sum_amount(filter_by_range(records, TimeRange.LAST_7_DAYS, now)),
        month=sum_amount(filter_by_range(records, TimeRange.THIS_MONTH, now)),
    )


def search_filter(records: Iterable[Expense], query: str) -> Tuple[Expense, ...]:
    """Case-insensitive substring match on title or category.

    Surrounding whitespace is stripped from every query, so a pasted " bus"
    still matches "Bus"; a blank query returns the records unchanged.
    """
    needle = (query or "").strip().casefold()
    if not needle:
        return tuple(records)
    return tuple(
        e for e in records
        if needle in e.title.casefold() or needle in e.category.casefold()
    )


def sort_newest_first(records: Iterable[Expense]) -> Tuple[Expense, ...]:
    return tuple(sorted(records, key=lambda e: e.created_at, reverse=True))
