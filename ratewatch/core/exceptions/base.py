"""Core exception classes for ratewatch."""

from typing import Any

from ratewatch.core.exceptions.codes import ErrorCode


class RateWatchError(Exception):
    """Base class for every ratewatch error."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode | str = ErrorCode.GENERAL_ERROR,
        details: dict[str, Any] | None = None,
    ):
        """Initialise the error.

        Args:
            message: human readable message
            error_code: standardized error code
            details: extra context attached to the error
        """
        super().__init__(message)
        self.message = message
        self.error_code = ErrorCode(error_code)
        self.details = details or {}

    def to_payload(self) -> dict[str, Any]:
        """Return a serializable payload representing the error."""

        return {
            "code": self.error_code.value,
            "message": self.message,
            "details": dict(self.details),
        }


class ConfigurationError(RateWatchError):
    """Configuration could not be loaded or is invalid."""

    def __init__(self, message: str, path: str | None = None, details: dict[str, Any] | None = None):
        super_details = details or {}
        if path:
            super_details["path"] = path
        super().__init__(message, ErrorCode.CONFIGURATION_ERROR, super_details)
        self.path = path


class InvalidQueryError(RateWatchError):
    """A caller supplied an unusable argument (instrument name, day, ...)."""

    def __init__(self, message: str, parameter: str | None = None, details: dict[str, Any] | None = None):
        super_details = details or {}
        if parameter:
            super_details["parameter"] = parameter
        super().__init__(message, ErrorCode.INVALID_QUERY, super_details)
        self.parameter = parameter


class ProviderError(RateWatchError):
    """An exchange adapter failed to fetch or normalize data."""

    def __init__(
        self,
        message: str,
        provider_name: str,
        error_code: ErrorCode | str = ErrorCode.PROVIDER_ERROR,
        details: dict[str, Any] | None = None,
    ):
        super_details = details or {}
        super_details.setdefault("provider", provider_name)
        super().__init__(message, error_code, super_details)
        self.provider_name = provider_name


class NetworkError(ProviderError):
    """Transport level failure talking to an exchange."""

    def __init__(
        self,
        message: str,
        provider_name: str,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        super_details = details or {}
        if status_code is not None:
            super_details["status_code"] = status_code
        super().__init__(message, provider_name, ErrorCode.NETWORK_ERROR, super_details)
        self.status_code = status_code


class SourceUnavailableError(ProviderError):
    """A registered source failed or timed out during fetch or probe."""

    def __init__(
        self,
        message: str,
        provider_name: str,
        timed_out: bool = False,
        details: dict[str, Any] | None = None,
    ):
        super_details = details or {}
        super_details["timed_out"] = timed_out
        super().__init__(message, provider_name, ErrorCode.SOURCE_UNAVAILABLE, super_details)
        self.timed_out = timed_out


class SourceNotFoundError(RateWatchError):
    """No source is registered under the requested name."""

    def __init__(self, provider_name: str, available: list[str] | None = None):
        details: dict[str, Any] = {"provider": provider_name}
        if available is not None:
            details["available"] = available
        super().__init__(f"exchange not found: {provider_name}", ErrorCode.SOURCE_NOT_FOUND, details)
        self.provider_name = provider_name


class StorageError(RateWatchError):
    """Unexpected I/O failure in the funding log store."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode | str = ErrorCode.STORAGE_ERROR,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, error_code, details)


class LogWriteFailedError(StorageError):
    """Appending a block to an instrument's day-file failed."""

    def __init__(self, instrument: str, reason: str | None = None, details: dict[str, Any] | None = None):
        super_details = details or {}
        super_details["instrument"] = instrument
        message = f"failed to write funding log for {instrument}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message, ErrorCode.LOG_WRITE_FAILED, super_details)
        self.instrument = instrument


class LogFileNotFoundError(StorageError):
    """The requested day-file does not exist."""

    def __init__(self, instrument: str, day: str):
        super().__init__(
            "log file not found",
            ErrorCode.LOG_FILE_NOT_FOUND,
            {"instrument": instrument, "day": day},
        )
        self.instrument = instrument
        self.day = day


class MalformedLogLineError(StorageError):
    """A log line did not match the expected shape. Only raised inside the parser."""

    def __init__(self, line: str, reason: str):
        super().__init__(f"malformed log line: {reason}", ErrorCode.MALFORMED_LOG_LINE, {"line": line})
        self.line = line
        self.reason = reason
