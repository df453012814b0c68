"""Shared pytest configuration for the project test suite."""
from __future__ import annotations

import sys
from datetime import date, timedelta
from pathlib import Path
from typing import Callable, Optional, Sequence

import pytest


# Ensure the repository root (which contains the ``spend_forecast`` package) is importable.
ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from spend_forecast.models import DailySeries, TimeSeriesPoint  # noqa: E402

# 2024-06-01 is a Saturday and June has 30 days
JUNE_START = date(2024, 6, 1)


def make_series(values: Sequence[float], start: date = JUNE_START, category: Optional[str] = None) -> DailySeries:
    return DailySeries(
        [TimeSeriesPoint(start + timedelta(days=offset), value) for offset, value in enumerate(values)],
        category=category,
    )


@pytest.fixture
def series_factory() -> Callable[..., DailySeries]:
    """Build a zero-filled daily series starting on 2024-06-01."""

    return make_series
