"""
Benchmark Comparator Module
Places a user's monthly category spend against reference population figures
"""

import logging
import math
from typing import Dict, Mapping, Optional, Union

from .models import BenchmarkResult, BenchmarkSummary, SeriesBundle

LOGGER = logging.getLogger(__name__)

STATUS_EXCELLENT = "excellent"
STATUS_GOOD = "good"
STATUS_AVERAGE = "average"
STATUS_HIGH = "high"

DEFAULT_AGE_GROUP = "25-34"
DEFAULT_CITY = "other"

# Monthly averages in minor currency units
REFERENCE_SPENDING: Dict[str, Dict[str, int]] = {
    "18-24": {
        "food": 80000, "transport": 35000, "entertainment": 45000, "shopping": 60000,
        "subscriptions": 15000, "health": 12000, "bills": 40000, "other": 25000,
    },
    "25-34": {
        "food": 120000, "transport": 55000, "entertainment": 50000, "shopping": 80000,
        "subscriptions": 25000, "health": 20000, "bills": 85000, "other": 40000,
    },
    "35-44": {
        "food": 150000, "transport": 70000, "entertainment": 40000, "shopping": 100000,
        "subscriptions": 30000, "health": 35000, "bills": 120000, "other": 50000,
    },
    "45+": {
        "food": 140000, "transport": 60000, "entertainment": 30000, "shopping": 90000,
        "subscriptions": 20000, "health": 50000, "bills": 130000, "other": 45000,
    },
}

CITY_MULTIPLIERS: Dict[str, float] = {
    "warszawa": 1.35,
    "kraków": 1.15,
    "wrocław": 1.12,
    "poznań": 1.10,
    "gdańsk": 1.10,
    "łódź": 1.00,
    "other": 0.95,
}

# Share of the average that the top 25% of spenders achieve
TOP_PERFORMER_RATIOS: Dict[str, float] = {
    "food": 0.70,
    "transport": 0.60,
    "entertainment": 0.50,
    "shopping": 0.55,
    "subscriptions": 0.65,
    "health": 0.80,
    "bills": 0.90,
    "other": 0.60,
}

# Steepness of the logistic ratio-to-percentile curve
PERCENTILE_STEEPNESS = 2.0


def percentile(user_amount: float, reference_amount: float) -> int:
    """
    Population-relative rank of a spend amount, 1-99

    The spend ratio goes through a logistic curve centred on 1.0, so matching
    the reference is the 50th percentile, double the reference is ~88 and
    half of it ~27. Not an empirical percentile.
    """
    if reference_amount == 0:
        return 50

    ratio = user_amount / reference_amount
    value = 100 / (1 + math.exp(-PERCENTILE_STEEPNESS * (ratio - 1)))
    return int(round(max(1.0, min(99.0, value))))


def benchmark_status(rank: int) -> str:
    if rank <= 25:
        return STATUS_EXCELLENT
    if rank <= 50:
        return STATUS_GOOD
    if rank <= 75:
        return STATUS_AVERAGE
    return STATUS_HIGH


def potential_savings(user_amount: float, top_performer_amount: float) -> int:
    return int(round(max(0.0, user_amount - top_performer_amount)))


class BenchmarkComparator:
    """Compares category spend with reference averages for a demographic"""

    def __init__(self,
                 reference: Optional[Mapping[str, Mapping[str, int]]] = None,
                 city_multipliers: Optional[Mapping[str, float]] = None,
                 top_performer_ratios: Optional[Mapping[str, float]] = None):
        self.reference = reference or REFERENCE_SPENDING
        self.city_multipliers = city_multipliers or CITY_MULTIPLIERS
        self.top_performer_ratios = top_performer_ratios or TOP_PERFORMER_RATIOS

    def compare_category(self, category: str, user_amount: float, reference_amount: float) -> BenchmarkResult:
        top_amount = round(reference_amount * self.top_performer_ratios.get(category, 1.0))
        rank = percentile(user_amount, reference_amount)
        return BenchmarkResult(
            category=category,
            user_amount=round(user_amount),
            reference_amount=round(reference_amount),
            top_performer_amount=top_amount,
            percentile=rank,
            potential_savings=potential_savings(user_amount, top_amount),
            status=benchmark_status(rank),
        )

    def compare(self,
                spending: Union[SeriesBundle, Mapping[str, float]],
                age_group: str = DEFAULT_AGE_GROUP,
                city: str = DEFAULT_CITY) -> BenchmarkSummary:
        """
        Benchmark every reference category

        Args:
            spending: Aggregator output, or category totals for the month
            age_group: Key into the reference table
            city: Key into the city multipliers; unknown cities use "other"

        Returns:
            BenchmarkSummary with categories sorted by potential savings (largest first)
        """
        if isinstance(spending, SeriesBundle):
            totals = {name: series.total for name, series in spending.by_category.items()}
        else:
            totals = dict(spending)

        if age_group not in self.reference:
            LOGGER.warning("Unknown age group %r, using %s", age_group, DEFAULT_AGE_GROUP)
            age_group = DEFAULT_AGE_GROUP
        multiplier = self.city_multipliers.get(city.lower(), self.city_multipliers.get(DEFAULT_CITY, 1.0))

        results = [
            self.compare_category(category, totals.get(category, 0), round(base * multiplier))
            for category, base in self.reference[age_group].items()
        ]
        results.sort(key=lambda r: r.potential_savings, reverse=True)

        total_user = sum(r.user_amount for r in results)
        total_reference = sum(r.reference_amount for r in results)

        active = sorted((r for r in results if r.user_amount > 0), key=lambda r: r.percentile)
        return BenchmarkSummary(
            total_user_spending=total_user,
            total_reference_spending=total_reference,
            total_potential_savings=sum(r.potential_savings for r in results),
            overall_percentile=percentile(total_user, total_reference),
            categories=results,
            best_category=active[0] if active else None,
            worst_category=active[-1] if active else None,
        )
