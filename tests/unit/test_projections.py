"""
Test Suite: Month-end projection accuracy
"""

import json
from datetime import date, timedelta

import pytest

from spend_forecast.config import ForecastSettings
from spend_forecast.models import (
    SPENDING_STEADY,
    TREND_DOWN,
    TREND_FLAT,
    TREND_UP,
    DailySeries,
    TransactionRecord,
)
from spend_forecast.projector import (
    SpendingProjector,
    blend_weight,
    recency_estimate,
    trend_estimate,
)


class TestEstimators:
    """Trend and recency estimators in isolation"""

    @pytest.mark.parametrize("days_remaining", [0, 1, 7, 20])
    def test_constant_series_trend_estimate(self, days_remaining):
        values = [100] * 10
        assert trend_estimate(values, days_remaining) == pytest.approx(1000 + 100 * days_remaining)

    def test_single_point_trend_estimate(self):
        assert trend_estimate([250], 5) == pytest.approx(250 + 250 * 5)

    def test_empty_series_estimates(self):
        assert trend_estimate([], 10) == 0.0
        assert recency_estimate([], 10) == 0.0

    def test_recency_estimate_reacts_to_latest_days(self):
        rising = [50] * 5 + [150] * 5
        falling = [150] * 5 + [50] * 5
        assert recency_estimate(rising, 10) > recency_estimate(falling, 10)
        assert recency_estimate([100] * 10, 10) == pytest.approx(2000)

    @pytest.mark.parametrize("days_elapsed,expected", [
        (0, 0.0),
        (5, 0.5),
        (10, 1.0),
        (25, 1.0),
        (-3, 0.0),
    ])
    def test_blend_weight(self, days_elapsed, expected):
        assert blend_weight(days_elapsed) == pytest.approx(expected)


class TestProjections:
    """Forecast engine behaviour"""

    @pytest.fixture
    def projector(self):
        """Initialize projector instance"""
        return SpendingProjector(ForecastSettings())

    @pytest.fixture
    def reference_series(self):
        """Assorted histories used for invariant checks"""
        return {
            'flat': [100] * 10,
            'rising': [20 * day for day in range(1, 16)],
            'falling': [400 - 20 * day for day in range(1, 16)],
            'sparse': [0, 0, 900, 0, 0, 0, 450, 0, 0, 0, 0, 1200, 0, 0, 0, 0, 0, 300],
            'weekend': [0, 0, 40, 40, 40, 40, 40] * 3,
            'single': [500],
        }

    def test_no_days_remaining_returns_current_spent(self, projector, series_factory, reference_series):
        for name, values in reference_series.items():
            result = projector.predict_month_total(series_factory(values), len(values), 0)
            assert result.predicted_total == result.current_spent, name
            assert result.days_remaining == 0

    def test_prediction_never_below_current_spent(self, projector, series_factory, reference_series):
        for name, values in reference_series.items():
            for days_remaining in (1, 10, 25):
                result = projector.predict_month_total(series_factory(values), len(values), days_remaining)
                assert result.predicted_total >= result.current_spent, name

    def test_flat_ten_days_scenario(self, projector, series_factory):
        """10 days at 100 in a 30-day month projects to ~3000 with good confidence"""
        result = projector.predict_month_total(series_factory([100] * 10), 10, 20)

        print(f"\nFlat scenario: predicted={result.predicted_total} confidence={result.confidence}")

        assert result.current_spent == 1000
        assert result.predicted_total == pytest.approx(3000, rel=0.05)
        assert result.confidence > 50
        assert result.budget_limit is None
        assert result.spending_type == SPENDING_STEADY

    def test_cold_start_scenario(self, projector, series_factory):
        """A single 500 purchase on day 1 gives a conservative, low-confidence forecast"""
        result = projector.predict_month_total(series_factory([500]), 1, 29)

        assert result.current_spent == 500
        assert result.confidence <= 20
        assert 500 <= result.predicted_total < 500 * 30

    def test_no_history_scenario(self, projector):
        empty = DailySeries([])
        result = projector.predict_month_total(empty, 0, 30)

        assert result.current_spent == 0
        assert result.predicted_total == 0
        assert result.confidence <= 20

        later = projector.predict_month_total(empty, 12, 18)
        assert later.predicted_total == 0
        assert later.confidence <= 20

    @pytest.mark.parametrize("history,expected_daily_budget", [
        ([100] * 18, 100),     # 1800 spent, 200 left over 2 days
        ([100] * 22, -100),    # 2200 spent, already 200 over
    ])
    def test_predicted_daily_budget(self, projector, series_factory, history, expected_daily_budget):
        result = projector.predict_month_total(series_factory(history), len(history), 2, budget_limit=2000)

        assert result.predicted_daily_budget == expected_daily_budget
        assert result.budget_limit == 2000

    def test_daily_budget_without_limit_is_projected_pace(self, projector, series_factory):
        result = projector.predict_month_total(series_factory([100] * 10), 10, 20)
        assert result.predicted_daily_budget == 100

    def test_budget_overrun_flags(self, projector, series_factory):
        result = projector.predict_month_total(series_factory([100] * 10), 10, 20, budget_limit=2500)
        assert result.will_exceed_budget
        assert result.excess_amount == result.predicted_total - 2500

        relaxed = projector.predict_month_total(series_factory([100] * 10), 10, 20, budget_limit=5000)
        assert not relaxed.will_exceed_budget
        assert relaxed.excess_amount == 0

    @pytest.mark.parametrize("base", [
        [100] * 10,
        [100] * 20,
        [40, 80, 60, 120, 90, 150, 110, 130, 170, 160],
    ])
    def test_raising_a_value_never_lowers_the_forecast(self, projector, series_factory, base):
        days_remaining = 30 - len(base)
        baseline = projector.predict_month_total(series_factory(base), len(base), days_remaining)

        for index in range(len(base)):
            bumped = list(base)
            bumped[index] += 50
            result = projector.predict_month_total(series_factory(bumped), len(bumped), days_remaining)
            assert result.predicted_total >= baseline.predicted_total, f"index {index}"

    def test_confidence_falls_with_volatility(self, projector):
        histories = [[100] * 10, [90, 110] * 5, [70, 130] * 5, [50, 150] * 5]
        scores = [projector.confidence(values, 10) for values in histories]
        assert scores == sorted(scores, reverse=True)
        assert scores[0] == 100

    def test_confidence_grows_with_observations(self, projector):
        histories = [[90, 110] * n for n in (3, 5, 10)]
        scores = [projector.confidence(values, len(values)) for values in histories]
        assert scores == sorted(scores)

    def test_confidence_cold_start_penalty(self, projector):
        assert projector.confidence([100, 100], 2) < projector.confidence([100, 100], 5)
        assert 0 <= projector.confidence([0, 5000, 0], 3) <= 100

    def test_weekday_seasonality_shifts_projection(self, series_factory):
        """Saturday-only spender with two Saturdays left projects more than a uniform rate"""
        values = [700 if day % 7 == 0 else 0 for day in range(21)]  # June 1st is a Saturday
        series = series_factory(values)

        seasonal = SpendingProjector(ForecastSettings()).predict_month_total(series, 21, 9)
        uniform = SpendingProjector(ForecastSettings(seasonality_min_days=1000)).predict_month_total(series, 21, 9)

        assert seasonal.predicted_total > uniform.predicted_total

    def test_serialization(self, projector, series_factory):
        result = projector.predict_month_total(series_factory([100] * 10), 10, 20, budget_limit=4000)
        payload = json.loads(json.dumps(result.to_dict()))

        assert payload['current_spent'] == 1000
        assert payload['budget_limit'] == 4000
        assert isinstance(payload['confidence'], int)
        assert payload['breakdown'] == []


class TestMonthlyForecast:
    """Aggregation plus projection for a calendar month"""

    @pytest.fixture
    def projector(self):
        return SpendingProjector(ForecastSettings())

    @pytest.fixture
    def june_transactions(self):
        records = []
        for day in range(1, 11):
            when = date(2024, 6, day)
            records.append(TransactionRecord(when, 100 * day, "food"))
            records.append(TransactionRecord(when, 1000 - 50 * day, "transport"))
            records.append(TransactionRecord(when, 200, "bills"))
        records.append(TransactionRecord(date(2024, 5, 28), 5000, "food"))
        return records

    def test_forecast_uses_month_to_date(self, projector, june_transactions):
        result = projector.forecast(june_transactions, date(2024, 6, 10))

        assert result.days_elapsed == 10
        assert result.days_remaining == 20
        assert result.current_spent == 5500 + 7250 + 2000
        assert result.daily_average == round(14750 / 10)
        assert result.predicted_total >= result.current_spent

    def test_category_breakdown_trends(self, projector, june_transactions):
        result = projector.forecast(june_transactions, date(2024, 6, 10))
        by_category = {item.category: item for item in result.breakdown}

        assert [item.category for item in result.breakdown] == ["transport", "food", "bills"]
        assert by_category["food"].trend == TREND_UP
        assert by_category["transport"].trend == TREND_DOWN
        assert by_category["bills"].trend == TREND_FLAT
        assert by_category["bills"].predicted == 6000
        assert all(item.predicted >= item.spent for item in result.breakdown)

    def test_breakdown_limit(self, june_transactions):
        extra = [
            TransactionRecord(date(2024, 6, 2), 10 * (i + 1), f"extra-{i}")
            for i in range(5)
        ]
        limited = SpendingProjector(ForecastSettings()).forecast(june_transactions + extra, date(2024, 6, 10))
        unlimited = SpendingProjector(ForecastSettings(breakdown_limit=None)).forecast(
            june_transactions + extra, date(2024, 6, 10)
        )

        assert len(limited.breakdown) == 5
        assert len(unlimited.breakdown) == 8

    def test_last_day_of_month(self, projector, june_transactions):
        result = projector.forecast(june_transactions, date(2024, 6, 30))
        assert result.days_remaining == 0
        assert result.predicted_total == result.current_spent

    def test_injected_today_keeps_forecast_deterministic(self, projector, june_transactions):
        first = projector.forecast(june_transactions, date(2024, 6, 10))
        second = projector.forecast(june_transactions, date(2024, 6, 10))
        assert first == second
        assert projector.forecast(june_transactions, date(2024, 6, 10) + timedelta(days=1)) != first


if __name__ == "__main__":
    pytest.main([__file__, "-v", "--tb=short"])
