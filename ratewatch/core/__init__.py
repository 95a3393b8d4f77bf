"""ratewatch core: aggregation of exchange funding rates and the funding log."""

from ratewatch.core.aggregator import Aggregator
from ratewatch.core.config import ConfigManager, RateWatchConfig
from ratewatch.core.models import HistoryPoint, LogFileDescriptor, Observation, ProviderStatus
from ratewatch.core.scheduler import CollectionScheduler
from ratewatch.core.service import FundingService, RoundSummary
from ratewatch.core.storage import TimeSeriesLog

__all__ = [
    "Aggregator",
    "CollectionScheduler",
    "ConfigManager",
    "FundingService",
    "HistoryPoint",
    "LogFileDescriptor",
    "Observation",
    "ProviderStatus",
    "RateWatchConfig",
    "RoundSummary",
    "TimeSeriesLog",
]
