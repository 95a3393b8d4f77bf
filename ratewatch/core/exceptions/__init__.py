"""Exception handling module."""

from ratewatch.core.exceptions.base import (
    ConfigurationError,
    InvalidQueryError,
    LogFileNotFoundError,
    LogWriteFailedError,
    MalformedLogLineError,
    NetworkError,
    ProviderError,
    RateWatchError,
    SourceNotFoundError,
    SourceUnavailableError,
    StorageError,
)
from ratewatch.core.exceptions.codes import ErrorCode

__all__ = [
    "RateWatchError",
    "ConfigurationError",
    "InvalidQueryError",
    "ProviderError",
    "NetworkError",
    "SourceUnavailableError",
    "SourceNotFoundError",
    "StorageError",
    "LogWriteFailedError",
    "LogFileNotFoundError",
    "MalformedLogLineError",
    "ErrorCode",
]
