"""
Live funding rate routes.
"""

import time

from fastapi import APIRouter, Request

from ratewatch.web.models import APIResponse
from ratewatch.web.utils import get_request_id, get_service

router = APIRouter()


@router.get("/funding", response_model=APIResponse)
async def get_funding_rates(request: Request) -> APIResponse:
    """
    Current funding rates merged across every exchange.

    Exchanges that fail or time out are left out of the result.
    """
    service = get_service(request)
    rates = await service.get_all_live()
    return APIResponse(
        success=True,
        data={
            "timestamp": int(time.time()),
            "rates": [rate.model_dump(mode="json") for rate in rates],
            "count": len(rates),
        },
        request_id=get_request_id(request),
    )


@router.get("/funding/{exchange}", response_model=APIResponse)
async def get_exchange_funding(request: Request, exchange: str) -> APIResponse:
    """
    Current funding rates from one exchange.

    - **exchange**: registered exchange name, e.g. binance
    """
    service = get_service(request)
    rates = await service.get_one_live(exchange)
    return APIResponse(
        success=True,
        data={
            "exchange": exchange,
            "timestamp": int(time.time()),
            "rates": [rate.model_dump(mode="json") for rate in rates],
            "count": len(rates),
        },
        request_id=get_request_id(request),
    )
