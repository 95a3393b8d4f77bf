"""Data models."""

from ratewatch.core.models.funding import (
    HistoryPoint,
    LogFileDescriptor,
    LogRecord,
    Observation,
    ProviderStatus,
)

__all__ = [
    "Observation",
    "ProviderStatus",
    "LogFileDescriptor",
    "HistoryPoint",
    "LogRecord",
]
