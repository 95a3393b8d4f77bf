"""
Funding source abstraction.

A funding source is one exchange: it can fetch the current funding rates,
report its name and answer a liveness probe. Adapters normalize each
exchange's wire format into ``Observation`` objects so the aggregator never
sees provider specific payloads.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import UTC, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

import httpx
from loguru import logger

from ratewatch.core.config import ExchangeConfig
from ratewatch.core.exceptions import NetworkError, ProviderError
from ratewatch.core.models import Observation

Clock = Callable[[], datetime]

DEFAULT_HTTP_TIMEOUT = 10.0


def utc_now() -> datetime:
    return datetime.now(UTC)


class FundingSource(ABC):
    """Capability set every exchange adapter implements."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique provider identifier, e.g. ``binance``."""

    @abstractmethod
    async def fetch(self) -> list[Observation]:
        """Fetch current observations. Raises on any failure."""

    @abstractmethod
    async def is_healthy(self) -> bool:
        """Side-effect free liveness probe."""

    async def aclose(self) -> None:
        """Release network resources held by the source."""
        return None


class HttpFundingSource(FundingSource):
    """Base class for adapters polling a single JSON endpoint over HTTP."""

    provider_name: str = ""
    endpoint: str = ""
    params: dict[str, str] = {}
    api_key_header: str | None = None

    def __init__(
        self,
        config: ExchangeConfig,
        *,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Clock | None = None,
    ) -> None:
        if not config.base_url:
            raise ValueError(f"base_url is required for {self.provider_name}")
        self.config = config
        self.timeout = timeout
        self._transport = transport
        self._clock = clock or utc_now
        self._client: httpx.AsyncClient | None = None

    @property
    def name(self) -> str:
        return self.provider_name

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            headers = {"User-Agent": "ratewatch/0.1.0"}
            if self.api_key_header and self.config.api_key:
                headers[self.api_key_header] = self.config.api_key
            self._client = httpx.AsyncClient(
                base_url=self.config.base_url,
                timeout=httpx.Timeout(self.timeout),
                headers=headers,
                transport=self._transport,
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _get_json(self) -> Any:
        client = self._ensure_client()
        try:
            response = await client.get(self.endpoint, params=self.params)
        except httpx.HTTPError as e:
            raise NetworkError(f"request to {self.name} failed: {e}", self.name) from e

        if response.status_code != httpx.codes.OK:
            raise NetworkError(
                f"{self.name} API request failed with status {response.status_code}",
                self.name,
                status_code=response.status_code,
                details={"body": response.text[:200]},
            )
        try:
            return response.json()
        except ValueError as e:
            raise ProviderError(f"{self.name} returned invalid JSON", self.name) from e

    async def fetch(self) -> list[Observation]:
        payload = await self._get_json()
        captured_at = self._clock()
        observations = self.parse(payload, captured_at)
        logger.bind(provider=self.name).info("Retrieved {} funding rates from {}", len(observations), self.name)
        return observations

    async def is_healthy(self) -> bool:
        client = self._ensure_client()
        try:
            response = await client.get(self.endpoint, params=self.params)
        except httpx.HTTPError:
            return False
        return response.status_code == httpx.codes.OK

    @abstractmethod
    def parse(self, payload: Any, captured_at: datetime) -> list[Observation]:
        """Normalize a decoded response body into observations."""

    def _warn_skip(self, instrument: str, field_name: str, value: Any) -> None:
        logger.bind(provider=self.name).warning(
            "Failed to parse {} for {}: {!r}", field_name, instrument, value
        )


def to_decimal(value: Any) -> Decimal | None:
    """Parse an exchange numeric field, ``None`` when missing or unparsable."""
    if value is None or value == "":
        return None
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    if not result.is_finite():
        return None
    return result


def from_millis(value: Any) -> datetime | None:
    """Convert an epoch-milliseconds field (int or string) to an aware datetime."""
    if value is None or value == "":
        return None
    try:
        millis = int(value)
    except (TypeError, ValueError):
        return None
    if millis <= 0:
        return None
    return datetime.fromtimestamp(millis // 1000, UTC)
