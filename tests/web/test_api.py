"""Tests for the HTTP API."""

from __future__ import annotations

import asyncio

import pytest
from fastapi.testclient import TestClient
from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry

from ratewatch.core.aggregator import Aggregator
from ratewatch.core.config import RateWatchConfig
from ratewatch.core.monitoring import MetricsCollector, configure_metrics_collector
from ratewatch.core.service import FundingService
from ratewatch.core.storage import TimeSeriesLog
from ratewatch.web.app import create_app


@pytest.fixture
def metrics() -> MetricsCollector:
    collector = MetricsCollector(registry=CollectorRegistry())
    configure_metrics_collector(collector)
    yield collector
    configure_metrics_collector(None)


@pytest.fixture
def service(tmp_path, clock, fake_source, observation, metrics) -> FundingService:
    alpha = fake_source(
        "alpha",
        [observation("BTCUSDT", "alpha", "0.0001", "63000", "62990"), observation("ETHUSDT", "alpha", "0.0002", "3000", "2999")],
    )
    beta = fake_source("beta", error=RuntimeError("maintenance"), healthy=False)
    return FundingService(
        Aggregator([alpha, beta], timeout=0.5, metrics=metrics),
        TimeSeriesLog(tmp_path, clock=clock),
        metrics=metrics,
    )


@pytest.fixture
def client(service) -> TestClient:
    app = create_app(RateWatchConfig(), service=service, start_scheduler=False)
    with TestClient(app) as test_client:
        yield test_client


def test_funding_merges_available_exchanges(client) -> None:
    response = client.get("/api/funding")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["data"]["count"] == 2
    assert {rate["instrument"] for rate in body["data"]["rates"]} == {"BTCUSDT", "ETHUSDT"}
    assert body["data"]["rates"][0]["funding_rate"] == "0.0001"


def test_single_exchange(client) -> None:
    response = client.get("/api/funding/alpha")

    assert response.status_code == 200
    assert response.json()["data"]["exchange"] == "alpha"
    assert response.json()["data"]["count"] == 2


def test_unknown_exchange_is_404(client) -> None:
    response = client.get("/api/funding/gamma")

    assert response.status_code == 404
    body = response.json()
    assert body["success"] is False
    assert body["error"] == "SourceNotFoundError"
    assert body["details"]["code"] == "SOURCE_NOT_FOUND"


def test_failing_exchange_is_502(client) -> None:
    response = client.get("/api/funding/beta")

    assert response.status_code == 502
    assert response.json()["details"]["code"] == "SOURCE_UNAVAILABLE"
    assert "maintenance" in response.json()["message"]


def test_health_reports_each_exchange(client) -> None:
    response = client.get("/api/health", headers={"X-Request-ID": "req-7"})

    body = response.json()
    assert response.status_code == 200
    assert body["request_id"] == "req-7"
    assert body["data"]["status"] == "healthy"
    assert body["data"]["exchanges"] == 2
    assert body["data"]["healthy_exchanges"] == 1
    assert body["data"]["exchange_info"]["beta"] == {"name": "beta", "healthy": False}
    assert body["data"]["collection_running"] is False


def test_log_views(client, service, tmp_path) -> None:
    asyncio.run(service.run_collection_round())

    listing = client.get("/api/logs").json()["data"]
    raw = client.get("/api/logs/BTCUSDT", params={"date": "2024-05-01"})
    entries = client.get("/api/logs/BTCUSDT", params={"format": "entries"}).json()["data"]

    assert listing["count"] == 2
    assert {item["instrument"] for item in listing["log_files"]} == {"BTCUSDT", "ETHUSDT"}
    assert raw.status_code == 200
    assert raw.headers["content-type"].startswith("text/plain")
    assert raw.text == (tmp_path / "BTCUSDT" / "01-05-2024.log").read_text()
    assert entries["count"] == 1
    assert entries["entries"][0]["provider"] == "alpha"
    assert entries["entries"][0]["funding_rate"] == 0.0001


def test_log_entries_echo_native_date(client, service) -> None:
    asyncio.run(service.run_collection_round())

    iso = client.get("/api/logs/BTCUSDT", params={"date": "2024-05-01", "format": "entries"}).json()["data"]
    native = client.get("/api/logs/BTCUSDT", params={"date": "01-05-2024", "format": "entries"}).json()["data"]

    assert iso["date"] == "01-05-2024"
    assert native["date"] == "01-05-2024"
    assert iso["count"] == native["count"] == 1


def test_missing_log_file_is_404(client) -> None:
    response = client.get("/api/logs/BTCUSDT", params={"date": "01-01-2020"})

    assert response.status_code == 404
    assert response.json()["message"] == "log file not found"


def test_invalid_date_is_400(client) -> None:
    response = client.get("/api/logs/BTCUSDT", params={"date": "May 1st"})

    assert response.status_code == 400
    assert response.json()["details"]["details"]["parameter"] == "date"


def test_history(client, service, clock) -> None:
    asyncio.run(service.run_collection_round())
    clock.advance(days=1)
    asyncio.run(service.run_collection_round())

    response = client.get("/api/history/BTCUSDT", params={"exchange": "alpha"})

    assert response.status_code == 200
    points = response.json()["data"]
    assert [point["funding_rate"] for point in points] == [0.0001, 0.0001]
    assert points[1]["timestamp"] - points[0]["timestamp"] == 86400


def test_history_requires_exchange(client) -> None:
    response = client.get("/api/history/BTCUSDT")

    assert response.status_code == 400
    assert response.json()["message"] == "Missing exchange parameter"


def test_history_for_unknown_symbol_is_empty(client) -> None:
    response = client.get("/api/history/NOPE", params={"exchange": "alpha"})

    assert response.status_code == 200
    assert response.json()["data"] == []


def test_metrics_endpoint_exposes_prometheus_payload(client) -> None:
    client.get("/api/funding")

    response = client.get("/metrics")

    assert response.status_code == 200
    assert response.headers["content-type"] == CONTENT_TYPE_LATEST
    assert "ratewatch_fetch_requests_total" in response.text
    assert "ratewatch_fetch_failures_total" in response.text


def test_app_builds_service_from_config(tmp_path, metrics) -> None:
    config = RateWatchConfig.from_dict(
        {
            "storage": {"log_directory": str(tmp_path)},
            "exchanges": {name: {"enabled": False} for name in ("binance", "bybit", "okx")},
        }
    )
    app = create_app(config, start_scheduler=False)

    with TestClient(app) as client:
        funding = client.get("/api/funding").json()["data"]
        logs = client.get("/api/logs").json()["data"]

    assert funding["count"] == 0
    assert logs == {"log_files": [], "count": 0}
