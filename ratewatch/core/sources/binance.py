"""Binance USD-M futures funding source."""

from datetime import datetime
from decimal import Decimal
from typing import Any

from ratewatch.core.exceptions import ProviderError
from ratewatch.core.models import Observation
from ratewatch.core.sources.base import HttpFundingSource, from_millis, to_decimal


class BinanceSource(HttpFundingSource):
    """Reads ``/fapi/v1/premiumIndex``, which lists every perpetual in one call."""

    provider_name = "binance"
    endpoint = "/fapi/v1/premiumIndex"
    api_key_header = "X-MBX-APIKEY"

    def parse(self, payload: Any, captured_at: datetime) -> list[Observation]:
        if not isinstance(payload, list):
            raise ProviderError("unexpected premiumIndex payload", self.name)

        observations: list[Observation] = []
        for item in payload:
            symbol = item.get("symbol")
            if not symbol:
                continue
            rate = to_decimal(item.get("lastFundingRate"))
            if rate is None:
                self._warn_skip(symbol, "funding rate", item.get("lastFundingRate"))
                continue
            observations.append(
                Observation(
                    instrument=symbol,
                    provider=self.name,
                    funding_rate=rate,
                    mark_price=to_decimal(item.get("markPrice")) or Decimal("0"),
                    index_price=to_decimal(item.get("indexPrice")) or Decimal("0"),
                    last_funding_rate=rate,
                    next_funding_time=from_millis(item.get("nextFundingTime")),
                    timestamp=captured_at,
                )
            )
        return observations
