"""
Spending Projector Module
Projects month-end spending from partial-month daily totals
"""

import logging
from datetime import date, timedelta
from typing import Iterable, List, Mapping, Optional, Sequence

from .aggregator import build_series, month_window
from .budget_advisor import BudgetAdvisor
from .config import DEFAULT_SETTINGS, ForecastSettings
from .models import (
    TREND_DOWN,
    TREND_FLAT,
    TREND_UP,
    CategoryBreakdown,
    DailySeries,
    ForecastResult,
    TransactionRecord,
)
from .statistics_core import (
    WeightFn,
    classify_spending_type,
    coefficient_of_variation,
    confidence_interval_width,
    cumulative,
    linear_regression,
    linear_weight,
    mean_stdev,
    weekday_seasonality,
    weighted_moving_average,
)

LOGGER = logging.getLogger(__name__)


def trend_daily_rate(values: Sequence[float]) -> float:
    """
    Least-squares spending rate per day

    The running total is regressed against day index, anchored at zero on
    the day before the window opens, so a constant daily spend v yields
    exactly v and a single observed day still has a rate.
    """
    fit = linear_regression([0.0] + cumulative(values))
    return max(0.0, fit.slope)


def trend_estimate(values: Sequence[float], days_remaining: int) -> float:
    """Spent so far plus the regression rate extrapolated over the remaining days"""
    return sum(values) + trend_daily_rate(values) * max(0, days_remaining)


def recency_estimate(values: Sequence[float], days_remaining: int,
                     weight_fn: WeightFn = linear_weight) -> float:
    """Spent so far plus the recency-weighted daily average for the remaining days"""
    return sum(values) + weighted_moving_average(values, weight_fn) * max(0, days_remaining)


def blend_weight(days_elapsed: float, full_trust_days: float = 10.0) -> float:
    """Weight of the trend estimate; 1.0 once full_trust_days of data exist"""
    if full_trust_days <= 0:
        return 1.0
    return min(1.0, max(0.0, days_elapsed / full_trust_days))


class SpendingProjector:
    """Projects monthly spending and calculates budget guidance"""

    def __init__(self, settings: ForecastSettings = DEFAULT_SETTINGS,
                 weight_fn: WeightFn = linear_weight):
        self.settings = settings
        self.weight_fn = weight_fn
        self.advisor = BudgetAdvisor(settings)

    def forecast(self,
                 transactions: Iterable[TransactionRecord],
                 today: date,
                 budget_limit: Optional[float] = None) -> ForecastResult:
        """
        Forecast the calendar month containing ``today``

        Args:
            transactions: Transaction records; anything outside the month to date is ignored
            today: Current date, counted as elapsed
            budget_limit: Optional monthly limit

        Returns:
            ForecastResult for the month
        """
        month_start, _, days_elapsed, days_remaining = month_window(today)
        bundle = build_series(transactions, month_start, today)
        return self.predict_month_total(
            bundle.total,
            days_elapsed,
            days_remaining,
            budget_limit=budget_limit,
            category_series=bundle.by_category,
        )

    def predict_month_total(self,
                            daily_series: DailySeries,
                            days_elapsed: int,
                            days_remaining: int,
                            budget_limit: Optional[float] = None,
                            category_series: Optional[Mapping[str, DailySeries]] = None) -> ForecastResult:
        """
        Project the full-period total from partial-period daily totals

        Args:
            daily_series: Zero-filled daily totals observed so far
            days_elapsed: Days of the period already observed
            days_remaining: Days left in the period
            budget_limit: Optional period limit
            category_series: Optional per-category series for the breakdown

        Returns:
            ForecastResult; never raises for well-formed input
        """
        values = daily_series.values
        current_spent = sum(values)
        remaining = self._remaining_projection(daily_series, days_elapsed, days_remaining, seasonal=True)
        predicted_total = current_spent + remaining

        if budget_limit is not None:
            daily_budget = self.advisor.recommended_daily_budget(budget_limit, current_spent, days_remaining)
        elif days_remaining > 0:
            daily_budget = remaining / days_remaining
        else:
            daily_budget = 0.0

        confidence = self.confidence(values, days_elapsed)

        LOGGER.debug(
            "Forecast: spent=%.0f remaining=%.0f elapsed=%d left=%d confidence=%d",
            current_spent, remaining, days_elapsed, days_remaining, confidence,
        )

        return ForecastResult(
            current_spent=round(current_spent),
            predicted_total=max(round(current_spent), round(predicted_total)),
            predicted_daily_budget=round(daily_budget),
            days_remaining=max(0, days_remaining),
            confidence=confidence,
            days_elapsed=days_elapsed,
            daily_average=round(current_spent / max(1, days_elapsed)),
            breakdown=self._breakdown(category_series or {}, days_elapsed, days_remaining),
            budget_limit=round(budget_limit) if budget_limit is not None else None,
            spending_type=classify_spending_type(daily_series.points, self.settings),
        )

    def confidence(self, values: Sequence[float], days_elapsed: int) -> int:
        """
        0-100 reliability score

        Starts at 100 and loses the coefficient of variation and the relative
        confidence-interval width (both in percent). Fewer than
        ``cold_start_days`` of data scale the score down proportionally, and a
        series without any spending is capped at ``no_signal_confidence``.
        """
        settings = self.settings
        mean, _ = mean_stdev(values)
        cv = coefficient_of_variation(values)
        ci_ratio = confidence_interval_width(values, settings.confidence_z) / mean if mean else 0.0

        score = 100 - min(100.0, cv * 100 + ci_ratio * 100)
        if days_elapsed < settings.cold_start_days:
            score *= max(0, days_elapsed) / settings.cold_start_days
        if not any(values):
            score = min(score, settings.no_signal_confidence)

        return int(round(min(100.0, max(0.0, score))))

    def trend_direction(self, values: Sequence[float]) -> str:
        slope = linear_regression(values).slope
        mean, _ = mean_stdev(values)
        tolerance = max(1e-9, abs(mean) * self.settings.trend_slope_tolerance)
        if slope > tolerance:
            return TREND_UP
        if slope < -tolerance:
            return TREND_DOWN
        return TREND_FLAT

    def _remaining_projection(self,
                              series: DailySeries,
                              days_elapsed: int,
                              days_remaining: int,
                              seasonal: bool = False) -> float:
        if days_remaining <= 0:
            return 0.0

        values = series.values
        weight = blend_weight(days_elapsed, self.settings.trend_full_trust_days)
        daily_rate = (weight * trend_daily_rate(values)
                      + (1 - weight) * weighted_moving_average(values, self.weight_fn))

        factors = self._seasonal_factors(series, days_remaining) if seasonal else [1.0] * days_remaining
        remaining = sum(daily_rate * factor for factor in factors)

        # Too little data to extrapolate at full strength
        cold_start = self.settings.cold_start_days
        if cold_start > 0 and days_elapsed < cold_start:
            remaining *= max(0, days_elapsed) / cold_start
        return remaining

    def _seasonal_factors(self, series: DailySeries, days_remaining: int) -> List[float]:
        """Weekday index of each upcoming day, or uniform when history is too short"""
        if series.end is None or len(series) < self.settings.seasonality_min_days:
            return [1.0] * days_remaining

        index = weekday_seasonality(series.points)
        upcoming = [series.end + timedelta(days=offset) for offset in range(1, days_remaining + 1)]
        return [index[day.weekday()] for day in upcoming]

    def _breakdown(self,
                   category_series: Mapping[str, DailySeries],
                   days_elapsed: int,
                   days_remaining: int) -> List[CategoryBreakdown]:
        breakdown = []
        for category, series in category_series.items():
            spent = series.total
            predicted = spent + self._remaining_projection(series, days_elapsed, days_remaining)
            breakdown.append(CategoryBreakdown(
                category=category,
                spent=round(spent),
                predicted=round(predicted),
                trend=self.trend_direction(series.values),
            ))

        breakdown.sort(key=lambda item: item.spent, reverse=True)
        limit = self.settings.breakdown_limit
        return breakdown[:limit] if limit else breakdown
