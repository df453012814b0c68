"""
Transaction Aggregator Module
Turns raw transaction records into zero-filled daily time series
"""

import calendar
from collections import defaultdict
from datetime import date, timedelta
from typing import Dict, Iterable, List, Sequence, Tuple

from .models import DailySeries, SeriesBundle, TimeSeriesPoint, TransactionRecord


def date_range(start: date, end: date) -> List[date]:
    """Every calendar day from start to end, inclusive"""
    if end < start:
        return []
    return [start + timedelta(days=offset) for offset in range((end - start).days + 1)]


def build_series(transactions: Iterable[TransactionRecord], start: date, end: date) -> SeriesBundle:
    """
    Aggregate transactions into daily totals

    Args:
        transactions: Transaction records, in any order
        start: First day of the window (inclusive)
        end: Last day of the window (inclusive)

    Returns:
        SeriesBundle with the aggregate series and one series per category,
        each covering every day of the window with explicit zero days
    """
    days = date_range(start, end)
    totals: Dict[date, float] = defaultdict(float)
    per_category: Dict[str, Dict[date, float]] = {}

    for record in transactions:
        day = record.day
        if day < start or day > end:
            continue
        totals[day] += record.amount
        per_category.setdefault(record.category, defaultdict(float))[day] += record.amount

    total = DailySeries([TimeSeriesPoint(day, totals.get(day, 0.0)) for day in days])
    by_category = {
        category: DailySeries(
            [TimeSeriesPoint(day, amounts.get(day, 0.0)) for day in days],
            category=category,
        )
        for category, amounts in per_category.items()
    }
    return SeriesBundle(total=total, by_category=by_category)


def daily_series(transactions: Iterable[TransactionRecord], start: date, end: date) -> DailySeries:
    return build_series(transactions, start, end).total


def weekday_buckets(points: Sequence[TimeSeriesPoint]) -> List[List[float]]:
    """Group point values by weekday (index 0 = Monday)"""
    buckets: List[List[float]] = [[] for _ in range(7)]
    for point in points:
        buckets[point.date.weekday()].append(point.value)
    return buckets


def month_window(today: date) -> Tuple[date, date, int, int]:
    """
    Calendar month containing ``today``

    Returns:
        (month_start, month_end, days_elapsed, days_remaining), where today
        counts as elapsed
    """
    days_in_month = calendar.monthrange(today.year, today.month)[1]
    month_start = today.replace(day=1)
    month_end = today.replace(day=days_in_month)
    return month_start, month_end, today.day, days_in_month - today.day
