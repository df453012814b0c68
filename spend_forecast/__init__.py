"""
Spending Forecast Engine - Core Modules
"""

from .aggregator import build_series, month_window
from .benchmarks import BenchmarkComparator, percentile
from .budget_advisor import BudgetAdvisor
from .config import ForecastSettings
from .models import ForecastResult, TransactionRecord
from .outlier_detector import OutlierDetector
from .projector import SpendingProjector

__all__ = [
    'build_series',
    'month_window',
    'BenchmarkComparator',
    'percentile',
    'BudgetAdvisor',
    'ForecastSettings',
    'ForecastResult',
    'TransactionRecord',
    'OutlierDetector',
    'SpendingProjector',
]

__version__ = '0.1.0'
