"""Tests for structured logging with trace propagation."""

from __future__ import annotations

import io
import json

from ratewatch.core.logging import LogConfig, StructuredLogger, current_trace_id, log_context


def _read_records(stream: io.StringIO) -> list[dict[str, object]]:
    stream.seek(0)
    lines = [line for line in stream.getvalue().splitlines() if line.strip()]
    return [json.loads(line) for line in lines]


def _logger(buffer: io.StringIO) -> StructuredLogger:
    return StructuredLogger(LogConfig(console_stream=buffer, console_output=True, file_output=False))


def test_structured_log_contains_trace_and_context() -> None:
    buffer = io.StringIO()
    logger = _logger(buffer)

    with logger.context(trace_id="trace-123", provider="binance", error_code="SOURCE_UNAVAILABLE", operation="collection_round"):
        logger.logger.info("round finished", instrument="BTCUSDT")

    records = _read_records(buffer)
    assert len(records) == 1
    record = records[0]
    assert record["trace_id"] == "trace-123"
    assert record["provider"] == "binance"
    assert record["error_code"] == "SOURCE_UNAVAILABLE"
    assert record["context"]["operation"] == "collection_round"
    assert record["context"]["instrument"] == "BTCUSDT"


def test_bound_provider_wins_over_context() -> None:
    buffer = io.StringIO()
    logger = _logger(buffer)

    with log_context(provider="binance"):
        logger.logger.bind(provider="okx").warning("probe failed")

    assert _read_records(buffer)[0]["provider"] == "okx"


def test_trace_id_propagates_within_context() -> None:
    buffer = io.StringIO()
    logger = _logger(buffer)

    with logger.context() as trace_id:
        logger.logger.info("first event")
        logger.logger.info("second event")
        assert current_trace_id() == trace_id

    logger.logger.info("outside context")

    records = _read_records(buffer)
    assert len(records) == 3
    assert records[0]["trace_id"] == records[1]["trace_id"] == trace_id
    assert records[2]["trace_id"] != trace_id


def test_trace_id_generated_when_missing() -> None:
    buffer = io.StringIO()
    logger = _logger(buffer)

    logger.logger.info("single message")

    records = _read_records(buffer)
    assert len(records) == 1
    trace_id = records[0]["trace_id"]
    assert isinstance(trace_id, str)
    assert len(trace_id) == 32
    assert all(character in "0123456789abcdef" for character in trace_id)


def test_level_filters_records() -> None:
    buffer = io.StringIO()
    logger = StructuredLogger(LogConfig(level="WARNING", console_stream=buffer))

    logger.logger.info("hidden")
    logger.logger.error("shown")

    assert [r["message"] for r in _read_records(buffer)] == ["shown"]
    assert _read_records(buffer)[0]["level"] == "ERROR"
