"""Funding log storage."""

from ratewatch.core.storage.retention import LogStats, purge_older_than, summarize
from ratewatch.core.storage.timeseries_log import (
    DAY_FORMAT,
    TimeSeriesLog,
    normalize_day,
)

__all__ = [
    "TimeSeriesLog",
    "DAY_FORMAT",
    "normalize_day",
    "LogStats",
    "summarize",
    "purge_older_than",
]
