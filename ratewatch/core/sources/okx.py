"""OKX perpetual swap funding source."""

from datetime import datetime
from decimal import Decimal
from typing import Any

from ratewatch.core.exceptions import ProviderError
from ratewatch.core.models import Observation
from ratewatch.core.sources.base import HttpFundingSource, from_millis, to_decimal


class OKXSource(HttpFundingSource):
    """Reads ``/api/v5/public/funding-rate`` for swap instruments.

    OKX names instruments ``BTC-USDT-SWAP``; they are kept verbatim so the
    log shows what the exchange reported.
    """

    provider_name = "okx"
    endpoint = "/api/v5/public/funding-rate"
    params = {"instType": "SWAP"}

    def parse(self, payload: Any, captured_at: datetime) -> list[Observation]:
        if not isinstance(payload, dict):
            raise ProviderError("unexpected funding-rate payload", self.name)
        if str(payload.get("code")) != "0":
            raise ProviderError(
                f"OKX API error: {payload.get('msg')}",
                self.name,
                details={"code": payload.get("code")},
            )

        observations: list[Observation] = []
        for item in payload.get("data") or []:
            inst_id = item.get("instId")
            if not inst_id:
                continue
            rate = to_decimal(item.get("fundingRate"))
            if rate is None:
                self._warn_skip(inst_id, "funding rate", item.get("fundingRate"))
                continue
            observations.append(
                Observation(
                    instrument=inst_id,
                    provider=self.name,
                    funding_rate=rate,
                    mark_price=to_decimal(item.get("markPx")) or Decimal("0"),
                    index_price=to_decimal(item.get("idxPx")) or Decimal("0"),
                    last_funding_rate=to_decimal(item.get("lastFundingRate")),
                    next_funding_time=from_millis(item.get("nextFundingTime")),
                    timestamp=captured_at,
                )
            )
        return observations
