"""Tests for the exception hierarchy."""

from ratewatch.core.exceptions import (
    ErrorCode,
    InvalidQueryError,
    LogFileNotFoundError,
    LogWriteFailedError,
    NetworkError,
    ProviderError,
    RateWatchError,
    SourceNotFoundError,
    SourceUnavailableError,
    StorageError,
)


def test_base_error_payload() -> None:
    error = RateWatchError("something broke", "GENERAL_ERROR", {"key": "value"})

    assert error.error_code is ErrorCode.GENERAL_ERROR
    assert error.to_payload() == {"code": "GENERAL_ERROR", "message": "something broke", "details": {"key": "value"}}
    assert str(error) == "something broke"


def test_provider_errors_carry_provider_name() -> None:
    unavailable = SourceUnavailableError("slow", "bybit", timed_out=True)
    network = NetworkError("bad gateway", "okx", status_code=502)

    assert isinstance(unavailable, ProviderError)
    assert unavailable.details == {"provider": "bybit", "timed_out": True}
    assert network.error_code is ErrorCode.NETWORK_ERROR
    assert network.details["status_code"] == 502


def test_source_not_found_message() -> None:
    error = SourceNotFoundError("gamma", available=["alpha", "beta"])

    assert error.message == "exchange not found: gamma"
    assert error.error_code is ErrorCode.SOURCE_NOT_FOUND


def test_storage_errors() -> None:
    write = LogWriteFailedError("BTCUSDT", reason="disk full")
    missing = LogFileNotFoundError("BTCUSDT", "01-01-2020")

    assert isinstance(write, StorageError)
    assert write.message == "failed to write funding log for BTCUSDT: disk full"
    assert missing.message == "log file not found"
    assert missing.error_code is ErrorCode.LOG_FILE_NOT_FOUND


def test_invalid_query_parameter() -> None:
    error = InvalidQueryError("bad date", parameter="date")

    assert error.details == {"parameter": "date"}
    assert error.error_code is ErrorCode.INVALID_QUERY
