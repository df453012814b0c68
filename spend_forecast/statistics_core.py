"""
Statistics Core
Pure numeric primitives behind the forecast engine.

Every function is total: degenerate input (empty series, zero mean, a single
point) returns a documented sentinel instead of raising. Series are plain
sequences of numbers in calendar order, oldest first; the weekday helpers take
``TimeSeriesPoint`` sequences because they need the dates.
"""

from __future__ import annotations

import math
import statistics
from itertools import accumulate
from typing import Callable, List, NamedTuple, Sequence, Tuple

from .aggregator import weekday_buckets
from .config import DEFAULT_SETTINGS, ForecastSettings
from .models import SPENDING_SEASONAL, SPENDING_STEADY, SPENDING_VOLATILE, TimeSeriesPoint

WeightFn = Callable[[int], float]

NEUTRAL_SEASONALITY = (1.0,) * 7


class RegressionFit(NamedTuple):
    slope: float
    intercept: float
    r_squared: float = 0.0

    def predict(self, x: float) -> float:
        return self.intercept + self.slope * x


def mean_stdev(values: Sequence[float]) -> Tuple[float, float]:
    """Arithmetic mean and population standard deviation; (0, 0) when empty"""
    if not values:
        return 0.0, 0.0
    return statistics.fmean(values), statistics.pstdev(values)


def median(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    return float(statistics.median(values))


def cumulative(values: Sequence[float]) -> List[float]:
    return list(accumulate(values))


def linear_regression(values: Sequence[float]) -> RegressionFit:
    """
    Ordinary least-squares fit of value against day index (0, 1, 2, ...)

    A trend cannot be established from fewer than two points, so those fall
    back to a flat line through the single value (or zero).
    """
    n = len(values)
    if n == 0:
        return RegressionFit(0.0, 0.0)
    if n == 1:
        return RegressionFit(0.0, float(values[0]))

    xs = list(range(n))
    slope, intercept = statistics.linear_regression(xs, values)

    y_mean = statistics.fmean(values)
    ss_total = sum((y - y_mean) ** 2 for y in values)
    if ss_total == 0:
        return RegressionFit(slope, intercept, 0.0)
    ss_residual = sum((y - (intercept + slope * x)) ** 2 for x, y in zip(xs, values))
    return RegressionFit(slope, intercept, max(0.0, 1 - ss_residual / ss_total))


def linear_weight(position: int) -> float:
    """Position 1 is the oldest point; the newest of n points weighs n"""
    return float(position)


def exponential_weight(base: float = 1.5) -> WeightFn:
    def weight(position: int) -> float:
        return base ** position
    return weight


def weighted_moving_average(values: Sequence[float], weight_fn: WeightFn = linear_weight) -> float:
    """
    Recency-weighted mean of the series; 0 when empty.

    ``weight_fn`` receives the 1-based position counted from the oldest point
    and must be increasing, so that recent behaviour outweighs the long-run
    average.
    """
    if not values:
        return 0.0
    weights = [weight_fn(position) for position in range(1, len(values) + 1)]
    total_weight = sum(weights)
    if total_weight == 0:
        return 0.0
    return sum(w * v for w, v in zip(weights, values)) / total_weight


def coefficient_of_variation(values: Sequence[float]) -> float:
    """stdev / mean; a zero-mean series has zero volatility"""
    mean, stdev = mean_stdev(values)
    if mean == 0:
        return 0.0
    return abs(stdev / mean)


def confidence_interval_width(values: Sequence[float], z: float = 1.96) -> float:
    _, stdev = mean_stdev(values)
    return z * stdev / math.sqrt(max(1, len(values)))


def weekday_seasonality(points: Sequence[TimeSeriesPoint]) -> List[float]:
    """
    Per-weekday spending index, Monday first.

    Each entry is that weekday's average divided by the overall average.
    Weekdays without observations, and every weekday of a zero-mean series,
    get the neutral index 1.0.
    """
    overall, _ = mean_stdev([point.value for point in points])
    if overall == 0:
        return list(NEUTRAL_SEASONALITY)
    return [
        statistics.fmean(bucket) / overall if bucket else 1.0
        for bucket in weekday_buckets(points)
    ]


def classify_spending_type(
    points: Sequence[TimeSeriesPoint],
    settings: ForecastSettings = DEFAULT_SETTINGS,
) -> str:
    """
    Label the series as steady, volatile or seasonal.

    Moderate variation that the weekday pattern does not explain is treated
    as volatile.
    """
    cv = coefficient_of_variation([point.value for point in points])
    if cv < settings.steady_cv_threshold:
        return SPENDING_STEADY
    if cv > settings.volatile_cv_threshold:
        return SPENDING_VOLATILE

    index = weekday_seasonality(points)
    if max(index) - min(index) > settings.seasonal_spread_threshold:
        return SPENDING_SEASONAL
    return SPENDING_VOLATILE


def z_score(value: float, history: Sequence[float]) -> float:
    """
    Standard score of ``value`` against ``history`` (sample stdev).

    Fewer than three observations give 0; a zero-spread history gives
    +/-3 for any deviation.
    """
    if len(history) < 3:
        return 0.0
    mean = statistics.fmean(history)
    stdev = statistics.stdev(history)
    if stdev == 0:
        return 0.0 if value == mean else math.copysign(3.0, value - mean)
    return (value - mean) / stdev


def robust_z_score(value: float, history: Sequence[float]) -> float:
    """Modified z-score based on the median absolute deviation"""
    if len(history) < 3:
        return 0.0
    center = statistics.median(history)
    mad = statistics.median([abs(v - center) for v in history])
    if mad == 0:
        return 0.0 if value == center else math.copysign(3.0, value - center)
    # 0.6745 makes the MAD consistent with the standard deviation
    return 0.6745 * (value - center) / mad
