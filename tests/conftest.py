"""Pytest configuration for the ratewatch test suite."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest

from ratewatch.core.models import Observation
from ratewatch.core.sources import FundingSource


def pytest_addoption(parser: pytest.Parser) -> None:
    """Register command-line options for controlling integration tests."""

    parser.addoption(
        "--ratewatch-run-integration",
        action="store_true",
        default=False,
        help="Run ratewatch integration tests that talk to live exchanges.",
    )


def pytest_configure(config: pytest.Config) -> None:
    """Register the integration marker for ratewatch tests."""

    config.addinivalue_line(
        "markers",
        "integration: marks ratewatch tests requiring network access",
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Skip integration tests unless explicitly requested."""

    if config.getoption("--ratewatch-run-integration"):
        return

    skip_integration = pytest.mark.skip(
        reason="integration tests require --ratewatch-run-integration",
    )
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


class FakeSource(FundingSource):
    """In-memory funding source with scripted behaviour."""

    def __init__(
        self,
        name: str,
        observations: list[Observation] | None = None,
        *,
        error: Exception | None = None,
        delay: float = 0.0,
        healthy: bool | Exception = True,
    ) -> None:
        self._name = name
        self.observations = observations or []
        self.error = error
        self.delay = delay
        self.healthy = healthy
        self.fetch_calls = 0
        self.closed = False

    @property
    def name(self) -> str:
        return self._name

    async def fetch(self) -> list[Observation]:
        self.fetch_calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return list(self.observations)

    async def is_healthy(self) -> bool:
        if self.delay:
            await asyncio.sleep(self.delay)
        if isinstance(self.healthy, Exception):
            raise self.healthy
        return self.healthy

    async def aclose(self) -> None:
        self.closed = True


class FixedClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta: float) -> None:
        self.now += timedelta(**delta)


def make_observation(
    instrument: str,
    provider: str,
    rate: str,
    mark: str = "0",
    index: str = "0",
) -> Observation:
    return Observation(
        instrument=instrument,
        provider=provider,
        funding_rate=Decimal(rate),
        mark_price=Decimal(mark),
        index_price=Decimal(index),
    )


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(datetime(2024, 5, 1, 12, 0, 0, tzinfo=UTC))


@pytest.fixture
def fake_source() -> Callable[..., FakeSource]:
    return FakeSource


@pytest.fixture
def observation() -> Callable[..., Observation]:
    return make_observation
