"""
Budget Advisor Module
Derives the recommended daily allowance and budget variance from a forecast
"""

from typing import Dict, Optional

from .config import DEFAULT_SETTINGS, ForecastSettings
from .models import ForecastResult

STATUS_SAFE = "safe"
STATUS_WARNING = "warning"
STATUS_DANGER = "danger"


class BudgetAdvisor:
    """Turns a forecast and a configured limit into spending guidance"""

    def __init__(self, settings: ForecastSettings = DEFAULT_SETTINGS):
        self.settings = settings

    def recommended_daily_budget(self, budget_limit: float, current_spent: float, days_remaining: int) -> float:
        """
        Daily amount that still lands the month on budget

        Args:
            budget_limit: Monthly limit
            current_spent: Amount already spent this period
            days_remaining: Days left in the period (0 is treated as 1)

        Returns:
            Allowance per remaining day. Negative when the budget is already
            exhausted; that is a meaningful over-budget signal, not an error.
        """
        return (budget_limit - current_spent) / max(1, days_remaining)

    def calculate_vs_budget(self, forecast: ForecastResult) -> Optional[Dict]:
        """
        Compare a forecast with the limit it was made against

        Returns None when the forecast carries no limit. ``variance`` is the
        projected overrun and goes negative when the month lands under budget.
        """
        limit = forecast.budget_limit
        if limit is None:
            return None

        variance = forecast.predicted_total - limit
        return {
            'budget_limit': limit,
            'predicted_total': forecast.predicted_total,
            'variance': variance,
            'utilisation': round(forecast.predicted_total / limit * 100) if limit > 0 else 0,
            'left_to_spend': limit - forecast.current_spent,
            'status': self.budget_status(forecast.predicted_total, limit),
        }

    def forecast_status(self, forecast: ForecastResult) -> str:
        comparison = self.calculate_vs_budget(forecast)
        return comparison['status'] if comparison else STATUS_SAFE

    def budget_status(self, predicted_total: float, budget_limit: Optional[float]) -> str:
        """safe / warning / danger by predicted utilisation of the limit"""
        if not budget_limit:
            return STATUS_SAFE

        utilisation = predicted_total / budget_limit
        if utilisation > 1:
            return STATUS_DANGER
        if utilisation > self.settings.budget_warning_ratio:
            return STATUS_WARNING
        return STATUS_SAFE
