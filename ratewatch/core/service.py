"""Query surface shared by the web API, the CLI and the scheduler."""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field

from loguru import logger

from ratewatch.core.aggregator import Aggregator
from ratewatch.core.config import RateWatchConfig
from ratewatch.core.exceptions import LogWriteFailedError
from ratewatch.core.logging import log_context
from ratewatch.core.models import HistoryPoint, LogFileDescriptor, LogRecord, Observation, ProviderStatus
from ratewatch.core.monitoring import MetricsCollector, get_metrics_collector
from ratewatch.core.sources import create_sources
from ratewatch.core.storage import TimeSeriesLog, normalize_day


@dataclass
class RoundSummary:
    """Outcome of one collection round."""

    observations: int = 0
    instruments_written: list[str] = field(default_factory=list)
    instruments_failed: list[str] = field(default_factory=list)
    providers_failed: list[str] = field(default_factory=list)
    duration_seconds: float = 0.0


def group_by_instrument(observations: list[Observation]) -> dict[str, list[Observation]]:
    groups: dict[str, list[Observation]] = {}
    for observation in observations:
        groups.setdefault(observation.instrument, []).append(observation)
    return groups


class FundingService:
    """Ties the aggregator to the funding log."""

    def __init__(
        self,
        aggregator: Aggregator,
        log: TimeSeriesLog,
        *,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self.aggregator = aggregator
        self.log = log
        self.metrics = metrics

    @classmethod
    def from_config(cls, config: RateWatchConfig, *, metrics: MetricsCollector | None = None) -> "FundingService":
        metrics = metrics or get_metrics_collector()
        aggregator = Aggregator(
            create_sources(config),
            timeout=config.collection.source_timeout,
            metrics=metrics,
        )
        return cls(aggregator, TimeSeriesLog(config.storage.log_directory), metrics=metrics)

    async def aclose(self) -> None:
        for source in self.aggregator.sources:
            await source.aclose()

    # live data

    async def get_all_live(self) -> list[Observation]:
        return await self.aggregator.collect_all()

    async def get_one_live(self, provider: str) -> list[Observation]:
        return await self.aggregator.collect_one(provider)

    async def get_status(self) -> dict[str, ProviderStatus]:
        return await self.aggregator.status()

    # historical data

    async def get_symbol_log(self, instrument: str, day: str | None = None) -> bytes:
        day = normalize_day(day) if day else self.log.today()
        return await asyncio.to_thread(self.log.read_raw, instrument, day)

    async def get_symbol_records(self, instrument: str, day: str | None = None) -> list[LogRecord]:
        day = normalize_day(day) if day else self.log.today()
        return await asyncio.to_thread(self.log.read_records, instrument, day)

    async def get_all_logs(self) -> list[LogFileDescriptor]:
        return await asyncio.to_thread(self.log.enumerate)

    async def get_history(self, instrument: str, provider: str) -> list[HistoryPoint]:
        return await asyncio.to_thread(self.log.reconstruct_history, instrument, provider)

    # collection

    async def run_collection_round(self) -> RoundSummary:
        """Collect from every exchange and append one block per instrument."""

        started = time.perf_counter()
        with log_context(operation="collection_round"):
            observations = await self.aggregator.collect_all()
            summary = RoundSummary(
                observations=len(observations),
                providers_failed=sorted(self.aggregator.last_errors),
            )

            for instrument, group in group_by_instrument(observations).items():
                try:
                    await asyncio.to_thread(self.log.append, instrument, group)
                except LogWriteFailedError as e:
                    summary.instruments_failed.append(instrument)
                    logger.bind(error_code=e.error_code.value).error("Failed to log funding rates: {}", e.message)
                    self._record_write(success=False)
                    continue
                summary.instruments_written.append(instrument)
                self._record_write(success=True)

            summary.duration_seconds = round(time.perf_counter() - started, 3)
            logger.info(
                "Collection round finished: {} observations, {} instruments written, {} failed",
                summary.observations,
                len(summary.instruments_written),
                len(summary.instruments_failed),
            )
        return summary

    def _record_write(self, *, success: bool) -> None:
        if self.metrics is not None:
            self.metrics.record_log_write(success=success)
