"""ratewatch - funding rate monitor

Polls exchange funding rates on a schedule, serves a merged live view and
keeps an append-only, human-readable log per instrument and day.
"""

from ratewatch.core import (
    Aggregator,
    CollectionScheduler,
    ConfigManager,
    FundingService,
    Observation,
    RateWatchConfig,
    TimeSeriesLog,
)

__version__ = "0.1.0"

__all__ = [
    "Aggregator",
    "CollectionScheduler",
    "ConfigManager",
    "FundingService",
    "Observation",
    "RateWatchConfig",
    "TimeSeriesLog",
    "__version__",
]
