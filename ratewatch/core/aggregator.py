"""Fan-out collection over the registered funding sources."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Iterable

from loguru import logger

from ratewatch.core.exceptions import SourceNotFoundError, SourceUnavailableError
from ratewatch.core.models import Observation, ProviderStatus
from ratewatch.core.monitoring import MetricsCollector
from ratewatch.core.sources import FundingSource

DEFAULT_SOURCE_TIMEOUT = 10.0


class Aggregator:
    """Collects observations from every registered source.

    Each source is fetched concurrently under its own deadline. A source that
    raises or times out contributes nothing to :meth:`collect_all`; its error
    is logged and kept in :attr:`last_errors` but never raised, so "all
    exchanges down" yields an empty list.
    """

    def __init__(
        self,
        sources: Iterable[FundingSource] = (),
        *,
        timeout: float = DEFAULT_SOURCE_TIMEOUT,
        metrics: MetricsCollector | None = None,
    ) -> None:
        if timeout <= 0:
            raise ValueError("timeout must be positive")
        self.timeout = timeout
        self.metrics = metrics
        self._sources: dict[str, FundingSource] = {}
        self.last_errors: dict[str, SourceUnavailableError] = {}
        for source in sources:
            self.register_source(source)

    def register_source(self, source: FundingSource) -> None:
        """Register ``source`` under its name; a later registration replaces an earlier one."""

        if source.name in self._sources:
            logger.warning("Replacing already registered source {}", source.name)
        self._sources[source.name] = source

    @property
    def source_names(self) -> list[str]:
        return sorted(self._sources)

    @property
    def sources(self) -> list[FundingSource]:
        return list(self._sources.values())

    async def collect_all(self) -> list[Observation]:
        """Fetch from every source concurrently and merge the successful results."""

        names = list(self._sources)
        results = await asyncio.gather(
            *(self._fetch(self._sources[name]) for name in names),
            return_exceptions=True,
        )

        observations: list[Observation] = []
        for name, result in zip(names, results, strict=True):
            if isinstance(result, SourceUnavailableError):
                self.last_errors[name] = result
                logger.bind(provider=name, error_code=result.error_code.value).error(
                    "Failed to get funding rates from {}: {}", name, result.message
                )
                continue
            if isinstance(result, BaseException):
                # cancellation and other BaseExceptions are not a source failure
                raise result
            self.last_errors.pop(name, None)
            observations.extend(result)

        logger.info(
            "Collected {} observations from {}/{} sources",
            len(observations),
            len(names) - sum(1 for n in names if n in self.last_errors),
            len(names),
        )
        return observations

    async def collect_one(self, name: str) -> list[Observation]:
        """Fetch from exactly one source; its failure is raised to the caller."""

        source = self._sources.get(name)
        if source is None:
            raise SourceNotFoundError(name, available=self.source_names)
        try:
            observations = await self._fetch(source)
        except SourceUnavailableError as e:
            self.last_errors[name] = e
            raise
        self.last_errors.pop(name, None)
        return observations

    async def status(self) -> dict[str, ProviderStatus]:
        """Probe every source's liveness concurrently."""

        names = list(self._sources)
        results = await asyncio.gather(*(self._probe(self._sources[name]) for name in names))
        return {
            name: ProviderStatus(name=name, healthy=healthy)
            for name, healthy in zip(names, results, strict=True)
        }

    async def _fetch(self, source: FundingSource) -> list[Observation]:
        started = time.perf_counter()
        try:
            observations = await asyncio.wait_for(source.fetch(), timeout=self.timeout)
        except TimeoutError as e:
            self._observe(source.name, started, success=False)
            raise SourceUnavailableError(
                f"{source.name} did not respond within {self.timeout}s",
                source.name,
                timed_out=True,
            ) from e
        except Exception as e:
            self._observe(source.name, started, success=False)
            raise SourceUnavailableError(f"{source.name} fetch failed: {e}", source.name) from e
        self._observe(source.name, started, success=True)
        # the registered name is authoritative
        return [
            o if o.provider == source.name else o.model_copy(update={"provider": source.name})
            for o in observations
        ]

    async def _probe(self, source: FundingSource) -> bool:
        try:
            return bool(await asyncio.wait_for(source.is_healthy(), timeout=self.timeout))
        except TimeoutError:
            logger.bind(provider=source.name).warning("Health probe for {} timed out", source.name)
            return False
        except Exception as e:
            logger.bind(provider=source.name).warning("Health probe for {} failed: {}", source.name, e)
            return False

    def _observe(self, provider: str, started: float, *, success: bool) -> None:
        if self.metrics is not None:
            self.metrics.observe_fetch(provider, time.perf_counter() - started, success=success)
