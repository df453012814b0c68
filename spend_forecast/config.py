"""
Forecast Settings
Tunable constants for the forecast engine, overridable from the environment
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from typing import Any, Dict, Optional

ENV_PREFIX = "FORECAST_"
# Settings that may be switched off with "none"
NULLABLE_FIELDS = frozenset({"breakdown_limit"})


@dataclass(frozen=True)
class ForecastSettings:
    """
    Calibration knobs for the estimators.

    None of these values has a mathematical derivation; they are product
    decisions and should be calibrated against real history before relying
    on them. Every field can be overridden with ``FORECAST_<FIELD_NAME>``.
    """

    # Days of data after which the regression estimate is fully trusted
    trend_full_trust_days: float = 10.0
    # Below this many elapsed days confidence and projection are damped
    cold_start_days: int = 5
    confidence_z: float = 1.96
    # Ceiling applied when the series carries no spending at all
    no_signal_confidence: int = 20
    steady_cv_threshold: float = 0.2
    volatile_cv_threshold: float = 0.5
    seasonal_spread_threshold: float = 0.5
    # Slopes within this share of the mean daily spend are reported as flat
    trend_slope_tolerance: float = 0.01
    # Weekday adjustment needs every weekday observed at least twice
    seasonality_min_days: int = 14
    breakdown_limit: Optional[int] = 5
    budget_warning_ratio: float = 0.85

    @classmethod
    def from_environment(cls, environ: Optional[Dict[str, str]] = None) -> "ForecastSettings":
        environ = os.environ if environ is None else environ
        overrides: Dict[str, Any] = {}
        for field_def in fields(cls):
            raw = environ.get(ENV_PREFIX + field_def.name.upper())
            if raw is None or raw == "":
                continue
            overrides[field_def.name] = _coerce(field_def.name, raw, field_def.default)
        return replace(cls(), **overrides)


def _coerce(name: str, raw: str, default: Any) -> Any:
    if raw.lower() in ("none", "null"):
        if name not in NULLABLE_FIELDS:
            raise ValueError(f"{ENV_PREFIX}{name.upper()} cannot be disabled, got {raw!r}")
        return None
    try:
        if isinstance(default, int) or default is None:
            return int(raw)
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{ENV_PREFIX}{name.upper()} must be numeric, got {raw!r}") from exc


DEFAULT_SETTINGS = ForecastSettings()
