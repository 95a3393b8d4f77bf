"""Bybit linear perpetual funding source."""

from datetime import datetime
from decimal import Decimal
from typing import Any

from ratewatch.core.exceptions import ProviderError
from ratewatch.core.models import Observation
from ratewatch.core.sources.base import HttpFundingSource, from_millis, to_decimal


class BybitSource(HttpFundingSource):
    """Reads the v5 linear tickers, which carry the current funding rate."""

    provider_name = "bybit"
    endpoint = "/v5/market/tickers"
    params = {"category": "linear"}
    api_key_header = "X-BAPI-API-KEY"

    def parse(self, payload: Any, captured_at: datetime) -> list[Observation]:
        if not isinstance(payload, dict):
            raise ProviderError("unexpected tickers payload", self.name)
        if payload.get("retCode") != 0:
            raise ProviderError(
                f"Bybit API error: {payload.get('retMsg')}",
                self.name,
                details={"ret_code": payload.get("retCode")},
            )

        observations: list[Observation] = []
        for ticker in (payload.get("result") or {}).get("list") or []:
            symbol = ticker.get("symbol")
            if not symbol:
                continue
            rate = to_decimal(ticker.get("fundingRate"))
            if rate is None:
                # spot-like or delisted tickers come back with an empty funding rate
                self._warn_skip(symbol, "funding rate", ticker.get("fundingRate"))
                continue
            observations.append(
                Observation(
                    instrument=symbol,
                    provider=self.name,
                    funding_rate=rate,
                    mark_price=to_decimal(ticker.get("markPrice")) or Decimal("0"),
                    index_price=to_decimal(ticker.get("indexPrice")) or Decimal("0"),
                    next_funding_time=from_millis(ticker.get("nextFundingTime")),
                    timestamp=captured_at,
                )
            )
        return observations
