"""HTTP surface for the spending forecast engine.

A thin aiohttp application that lets a presentation layer (or the narrative
generation service) request forecasts without importing the engine:

* ``GET /health`` - liveness probe.
* ``POST /v1/forecast`` - month-end forecast for the month containing ``today``.
* ``POST /v1/benchmarks`` - percentile comparison over the 30 days ending ``today``.
* ``POST /v1/outliers`` - unusual transactions in the supplied list.

Request bodies carry transactions as ``{"timestamp", "amount", "category"}``
objects with integer minor-unit amounts. Payloads are validated here; the
engine itself trusts its input.
"""

from __future__ import annotations

import json
import logging
import math
import os
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional, Union

from aiohttp import web

from .aggregator import build_series
from .benchmarks import DEFAULT_AGE_GROUP, DEFAULT_CITY, BenchmarkComparator
from .config import ForecastSettings
from .models import TransactionRecord
from .outlier_detector import OutlierDetector
from .projector import SpendingProjector

LOGGER = logging.getLogger("spend_forecast.api")

BENCHMARK_WINDOW_DAYS = 30


class PayloadError(ValueError):
    """Raised when a request body cannot be turned into engine input."""


def _parse_date(value: Any, field_name: str) -> date:
    if not isinstance(value, str):
        raise PayloadError(f"{field_name} must be an ISO date string")
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise PayloadError(f"{field_name} is not a valid ISO date: {value!r}") from exc


def _parse_timestamp(value: Any) -> Union[date, datetime]:
    if not isinstance(value, str):
        raise PayloadError("timestamp must be an ISO date or datetime string")
    try:
        if "T" in value:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        return date.fromisoformat(value)
    except ValueError as exc:
        raise PayloadError(f"Invalid timestamp: {value!r}") from exc


def _parse_amount(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise PayloadError(f"{field_name} must be a number")
    if isinstance(value, float) and not math.isfinite(value):
        raise PayloadError(f"{field_name} must be a finite number")
    if value < 0:
        raise PayloadError(f"{field_name} must not be negative")
    return int(round(value))


def _optional_flag(payload: Dict[str, Any], field_name: str, default: bool = False) -> bool:
    value = payload.get(field_name)
    if value is None:
        return default
    if not isinstance(value, bool):
        raise PayloadError(f"{field_name} must be true or false")
    return value


def _optional_amount(payload: Dict[str, Any], field_name: str) -> Optional[int]:
    value = payload.get(field_name)
    if value is None:
        return None
    return _parse_amount(value, field_name)


def parse_transactions(raw: Any) -> List[TransactionRecord]:
    """Convert a JSON list of transaction objects into records."""

    if not isinstance(raw, list):
        raise PayloadError("transactions must be a list")

    records = []
    for index, item in enumerate(raw):
        if not isinstance(item, dict):
            raise PayloadError(f"transactions[{index}] must be an object")
        if "timestamp" not in item or "amount" not in item:
            raise PayloadError(f"transactions[{index}] requires timestamp and amount")
        records.append(
            TransactionRecord(
                timestamp=_parse_timestamp(item["timestamp"]),
                amount=_parse_amount(item["amount"], f"transactions[{index}].amount"),
                category=str(item.get("category") or "other"),
            )
        )
    return records


class ForecastApplication:
    """Encapsulates the aiohttp application and the engine handlers."""

    def __init__(self, settings: Optional[ForecastSettings] = None) -> None:
        self.settings = settings or ForecastSettings.from_environment()
        self.projector = SpendingProjector(self.settings)
        self.comparator = BenchmarkComparator()
        self.app = web.Application(middlewares=[payload_error_middleware])
        self.app.router.add_get("/health", self.handle_health)
        self.app.router.add_post("/v1/forecast", self.handle_forecast)
        self.app.router.add_post("/v1/benchmarks", self.handle_benchmarks)
        self.app.router.add_post("/v1/outliers", self.handle_outliers)

    async def _read_payload(self, request: web.Request) -> Dict[str, Any]:
        try:
            payload = await request.json()
        except json.JSONDecodeError as exc:
            raise PayloadError(f"Invalid JSON payload: {exc}") from exc
        if not isinstance(payload, dict):
            raise PayloadError("Payload must be a JSON object")
        return payload

    async def handle_health(self, request: web.Request) -> web.Response:
        return web.json_response({"status": "ok"})

    async def handle_forecast(self, request: web.Request) -> web.Response:
        payload = await self._read_payload(request)
        today = _parse_date(payload.get("today"), "today")
        transactions = parse_transactions(payload.get("transactions", []))
        budget_limit = _optional_amount(payload, "budget_limit")

        result = self.projector.forecast(transactions, today, budget_limit=budget_limit)
        LOGGER.info(
            "Forecast for %s: %d transactions, predicted=%d confidence=%d",
            today.isoformat(), len(transactions), result.predicted_total, result.confidence,
        )
        return web.json_response(result.to_dict())

    async def handle_benchmarks(self, request: web.Request) -> web.Response:
        payload = await self._read_payload(request)
        today = _parse_date(payload.get("today"), "today")
        transactions = parse_transactions(payload.get("transactions", []))
        age_group = str(payload.get("age_group") or DEFAULT_AGE_GROUP)
        city = str(payload.get("city") or DEFAULT_CITY)

        window_start = today - timedelta(days=BENCHMARK_WINDOW_DAYS - 1)
        bundle = build_series(transactions, window_start, today)
        summary = self.comparator.compare(bundle, age_group=age_group, city=city)
        LOGGER.info("Benchmarks for %s: overall percentile %d", today.isoformat(), summary.overall_percentile)
        return web.json_response(summary.to_dict())

    async def handle_outliers(self, request: web.Request) -> web.Response:
        payload = await self._read_payload(request)
        transactions = parse_transactions(payload.get("transactions", []))
        monthly_budget = _optional_amount(payload, "monthly_budget")
        detector = OutlierDetector(robust=_optional_flag(payload, "robust"))

        flags = detector.detect_outliers(transactions, monthly_budget=monthly_budget)
        return web.json_response({"outliers": [flag.to_dict() for flag in flags]})


@web.middleware
async def payload_error_middleware(request: web.Request, handler):
    try:
        return await handler(request)
    except PayloadError as exc:
        LOGGER.info("Rejected %s %s: %s", request.method, request.path, exc)
        return web.json_response({"error": str(exc)}, status=400)


def create_app(settings: Optional[ForecastSettings] = None) -> web.Application:
    server = ForecastApplication(settings)
    return server.app


def main() -> None:
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )
    app = create_app()
    host = os.getenv("FORECAST_HOST", "127.0.0.1")
    port = int(os.getenv("FORECAST_PORT", "8080"))
    LOGGER.info("Starting forecast service on %s:%d", host, port)
    web.run_app(app, host=host, port=port)


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    main()
