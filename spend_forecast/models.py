"""
Data Model
Value objects shared by the aggregator, the forecast engine and the benchmark comparator
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, Iterator, List, Optional, Union

TREND_UP = "up"
TREND_DOWN = "down"
TREND_FLAT = "flat"

SPENDING_STEADY = "steady"
SPENDING_VOLATILE = "volatile"
SPENDING_SEASONAL = "seasonal"


@dataclass(frozen=True)
class TransactionRecord:
    """A single expense as read from the datastore (amount in minor units)."""

    timestamp: Union[date, datetime]
    amount: int
    category: str = "other"

    @property
    def day(self) -> date:
        if isinstance(self.timestamp, datetime):
            return self.timestamp.date()
        return self.timestamp

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "amount": self.amount,
            "category": self.category,
        }


@dataclass(frozen=True)
class TimeSeriesPoint:
    date: date
    value: float


@dataclass
class DailySeries:
    """Contiguous, zero-filled run of daily totals in calendar order."""

    points: List[TimeSeriesPoint] = field(default_factory=list)
    category: Optional[str] = None

    def __iter__(self) -> Iterator[TimeSeriesPoint]:
        return iter(self.points)

    def __len__(self) -> int:
        return len(self.points)

    @property
    def values(self) -> List[float]:
        return [point.value for point in self.points]

    @property
    def total(self) -> float:
        return sum(self.values)

    @property
    def start(self) -> Optional[date]:
        return self.points[0].date if self.points else None

    @property
    def end(self) -> Optional[date]:
        return self.points[-1].date if self.points else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category,
            "points": [{"date": p.date.isoformat(), "value": p.value} for p in self.points],
        }


@dataclass
class SeriesBundle:
    """Aggregate series plus one series per category over the same range."""

    total: DailySeries
    by_category: Dict[str, DailySeries] = field(default_factory=dict)


@dataclass
class CategoryBreakdown:
    category: str
    spent: int
    predicted: int
    trend: str = TREND_FLAT

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category,
            "spent": self.spent,
            "predicted": self.predicted,
            "trend": self.trend,
        }


@dataclass
class ForecastResult:
    """Month-end spending forecast. Currency fields are integer minor units."""

    current_spent: int
    predicted_total: int
    predicted_daily_budget: int
    days_remaining: int
    confidence: int
    days_elapsed: int = 0
    daily_average: int = 0
    breakdown: List[CategoryBreakdown] = field(default_factory=list)
    budget_limit: Optional[int] = None
    spending_type: str = SPENDING_STEADY

    @property
    def will_exceed_budget(self) -> bool:
        return self.budget_limit is not None and self.predicted_total > self.budget_limit

    @property
    def excess_amount(self) -> int:
        if not self.will_exceed_budget:
            return 0
        return self.predicted_total - self.budget_limit

    def to_dict(self) -> Dict[str, Any]:
        return {
            "current_spent": self.current_spent,
            "predicted_total": self.predicted_total,
            "predicted_daily_budget": self.predicted_daily_budget,
            "days_elapsed": self.days_elapsed,
            "days_remaining": self.days_remaining,
            "daily_average": self.daily_average,
            "confidence": self.confidence,
            "budget_limit": self.budget_limit,
            "will_exceed_budget": self.will_exceed_budget,
            "excess_amount": self.excess_amount,
            "spending_type": self.spending_type,
            "breakdown": [item.to_dict() for item in self.breakdown],
        }


@dataclass
class BenchmarkResult:
    category: str
    user_amount: int
    reference_amount: int
    top_performer_amount: int
    percentile: int
    potential_savings: int
    status: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category,
            "user_amount": self.user_amount,
            "reference_amount": self.reference_amount,
            "top_performer_amount": self.top_performer_amount,
            "percentile": self.percentile,
            "potential_savings": self.potential_savings,
            "status": self.status,
        }


@dataclass
class BenchmarkSummary:
    total_user_spending: int
    total_reference_spending: int
    total_potential_savings: int
    overall_percentile: int
    categories: List[BenchmarkResult] = field(default_factory=list)
    best_category: Optional[BenchmarkResult] = None
    worst_category: Optional[BenchmarkResult] = None

    @property
    def yearly_potential_savings(self) -> int:
        return self.total_potential_savings * 12

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_user_spending": self.total_user_spending,
            "total_reference_spending": self.total_reference_spending,
            "total_potential_savings": self.total_potential_savings,
            "yearly_potential_savings": self.yearly_potential_savings,
            "overall_percentile": self.overall_percentile,
            "categories": [c.to_dict() for c in self.categories],
            "best_category": self.best_category.category if self.best_category else None,
            "worst_category": self.worst_category.category if self.worst_category else None,
        }


@dataclass
class OutlierFlag:
    record: TransactionRecord
    score: float
    reasons: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            **self.record.to_dict(),
            "is_outlier": True,
            "score": round(self.score, 2),
            "outlier_reason": ", ".join(self.reasons),
        }
