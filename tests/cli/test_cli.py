from __future__ import annotations

import json
import os
from datetime import UTC, datetime, timedelta

import pytest
from typer.testing import CliRunner

from ratewatch.cli import main as main_module
from ratewatch.cli import utils as cli_utils
from ratewatch.cli.main import create_app
from ratewatch.core.exceptions import SourceNotFoundError
from ratewatch.core.service import RoundSummary
from ratewatch.core.storage import TimeSeriesLog


class StubFundingService:
    def __init__(self, observations=None, error: Exception | None = None) -> None:
        self.observations = observations or []
        self.error = error
        self.closed = False

    async def run_collection_round(self) -> RoundSummary:
        return RoundSummary(
            observations=3,
            instruments_written=["BTCUSDT", "ETHUSDT"],
            providers_failed=["okx"],
        )

    async def get_all_live(self):
        return self.observations

    async def get_one_live(self, provider: str):
        if self.error is not None:
            raise self.error
        return [o for o in self.observations if o.provider == provider]

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def log_dir(tmp_path, monkeypatch: pytest.MonkeyPatch):
    directory = tmp_path / "logs"
    monkeypatch.setenv("RATEWATCH_LOG_DIRECTORY", str(directory))
    monkeypatch.setattr(main_module, "configure_logging", lambda *args, **kwargs: None)
    return directory


@pytest.fixture
def invoke(tmp_path, log_dir):
    runner = CliRunner()
    app = create_app()

    def _invoke(*args: str):
        return runner.invoke(app, ["--config", str(tmp_path / "absent.toml"), *args])

    return _invoke


@pytest.fixture
def populated(log_dir, clock, observation) -> TimeSeriesLog:
    log = TimeSeriesLog(log_dir, clock=clock)
    log.append("BTCUSDT", [observation("BTCUSDT", "binance", "0.0001", "63000", "62990")])
    log.append("ETHUSDT", [observation("ETHUSDT", "binance", "0.0002", "3000", "2999")])
    clock.advance(days=1)
    log.append("BTCUSDT", [observation("BTCUSDT", "binance", "0.0003", "63100", "63090")])
    return log


def _jsonl(output: str) -> list[dict[str, object]]:
    return [json.loads(line) for line in output.splitlines() if line.startswith("{")]


def test_logs_list_table(invoke, populated) -> None:
    result = invoke("logs", "list")

    assert result.exit_code == 0, result.output
    assert "BTCUSDT" in result.output
    assert "02-05-2024" in result.output


def test_logs_list_jsonl(invoke, populated) -> None:
    result = invoke("--format", "jsonl", "logs", "list")

    rows = _jsonl(result.output)
    assert result.exit_code == 0, result.output
    assert [(row["instrument"], row["day"]) for row in rows] == [
        ("BTCUSDT", "01-05-2024"),
        ("BTCUSDT", "02-05-2024"),
        ("ETHUSDT", "01-05-2024"),
    ]


def test_logs_show_raw(invoke, populated, log_dir) -> None:
    result = invoke("logs", "show", "BTCUSDT", "--date", "2024-05-01", "--raw")

    assert result.exit_code == 0, result.output
    assert result.output == (log_dir / "BTCUSDT" / "01-05-2024.log").read_text()


def test_logs_show_entries(invoke, populated) -> None:
    result = invoke("--format", "jsonl", "logs", "show", "BTCUSDT", "--date", "02-05-2024")

    rows = _jsonl(result.output)
    assert result.exit_code == 0, result.output
    assert rows == [
        {
            "timestamp": "2024-05-02 12:00:00",
            "provider": "binance",
            "funding_rate": 0.0003,
            "mark_price": 63100.0,
            "index_price": 63090.0,
        }
    ]


def test_logs_show_missing_day(invoke, populated) -> None:
    result = invoke("logs", "show", "BTCUSDT", "--date", "01-01-2020")

    assert result.exit_code == cli_utils.NOT_FOUND_EXIT_CODE
    assert "LOG_FILE_NOT_FOUND" in result.output


def test_logs_show_invalid_date(invoke, populated) -> None:
    result = invoke("logs", "show", "BTCUSDT", "--date", "tomorrow")

    assert result.exit_code == cli_utils.VALIDATION_EXIT_CODE
    assert "INVALID_QUERY" in result.output


def test_logs_stats(invoke, populated) -> None:
    result = invoke("--format", "jsonl", "logs", "stats")

    rows = _jsonl(result.output)
    assert result.exit_code == 0, result.output
    assert rows == [
        {"day": "01-05-2024", "files": 2},
        {"day": "02-05-2024", "files": 1},
        {"day": "total", "files": 3},
    ]
    assert "2 instruments" in result.output


def test_logs_cleanup_removes_old_files(invoke, populated, log_dir) -> None:
    old = log_dir / "ETHUSDT" / "01-05-2024.log"
    stamp = (datetime.now(UTC) - timedelta(days=30)).timestamp()
    os.utime(old, (stamp, stamp))

    result = invoke("logs", "cleanup", "--days", "7")

    assert result.exit_code == 0, result.output
    assert "1 files removed" in result.output
    assert not old.exists()
    assert (log_dir / "BTCUSDT" / "01-05-2024.log").exists()


def test_history(invoke, populated) -> None:
    result = invoke("--format", "jsonl", "history", "BTCUSDT", "--exchange", "binance")

    rows = _jsonl(result.output)
    assert result.exit_code == 0, result.output
    assert [row["funding_rate"] for row in rows] == [0.0001, 0.0003]


def test_history_requires_exchange(invoke) -> None:
    result = invoke("history", "BTCUSDT")

    assert result.exit_code == 2


def test_collect_reports_round(invoke, monkeypatch: pytest.MonkeyPatch) -> None:
    stub = StubFundingService()
    monkeypatch.setattr(cli_utils, "get_funding_service", lambda config: stub)

    result = invoke("collect")

    assert result.exit_code == 0, result.output
    assert "3 observations, 2 instruments written, 0 failed" in result.output
    assert "unavailable: okx" in result.output
    assert stub.closed is True


def test_rates_filters_exchange(invoke, monkeypatch: pytest.MonkeyPatch, observation) -> None:
    stub = StubFundingService([observation("BTCUSDT", "binance", "0.0001"), observation("BTCUSDT", "okx", "0.0002")])
    monkeypatch.setattr(cli_utils, "get_funding_service", lambda config: stub)

    result = invoke("--format", "jsonl", "rates", "--exchange", "okx")

    rows = _jsonl(result.output)
    assert result.exit_code == 0, result.output
    assert [(row["provider"], row["funding_rate"]) for row in rows] == [("okx", "0.0002")]


def test_rates_unknown_exchange(invoke, monkeypatch: pytest.MonkeyPatch) -> None:
    stub = StubFundingService(error=SourceNotFoundError("gamma", available=["binance"]))
    monkeypatch.setattr(cli_utils, "get_funding_service", lambda config: stub)

    result = invoke("rates", "--exchange", "gamma")

    assert result.exit_code == cli_utils.NOT_FOUND_EXIT_CODE
    assert "exchange not found: gamma" in result.output


def test_invalid_format_is_rejected(invoke) -> None:
    result = invoke("--format", "xml", "logs", "list")

    assert result.exit_code == 2
