"""
Funding log routes: day-files, their listing and reconstructed history.
"""

from fastapi import APIRouter, Query, Request
from fastapi.responses import PlainTextResponse, Response

from ratewatch.core.exceptions import InvalidQueryError
from ratewatch.core.storage import normalize_day
from ratewatch.web.models import APIResponse
from ratewatch.web.utils import get_request_id, get_service

router = APIRouter()


@router.get("/logs", response_model=APIResponse)
async def get_all_logs(request: Request) -> APIResponse:
    """List every day-file with its size and modification time."""
    service = get_service(request)
    log_files = await service.get_all_logs()
    return APIResponse(
        success=True,
        data={
            "log_files": [log_file.model_dump(mode="json") for log_file in log_files],
            "count": len(log_files),
        },
        request_id=get_request_id(request),
    )


@router.get("/logs/{symbol}", response_model=None)
async def get_symbol_logs(
    request: Request,
    symbol: str,
    date: str | None = Query(None, description="YYYY-MM-DD or DD-MM-YYYY, defaults to today"),
    format: str = Query("raw", pattern="^(raw|entries)$", description="raw text or parsed entries"),
) -> Response:
    """
    One instrument's log for one day.

    - **format=raw** returns the file as written
    - **format=entries** returns one record per exchange line
    """
    service = get_service(request)
    if format == "raw":
        content = await service.get_symbol_log(symbol, date)
        return PlainTextResponse(content.decode("utf-8", errors="replace"))

    records = await service.get_symbol_records(symbol, date)
    return APIResponse(
        success=True,
        data={
            "symbol": symbol,
            "date": normalize_day(date) if date else service.log.today(),
            "entries": [record.model_dump(mode="json") for record in records],
            "count": len(records),
        },
        request_id=get_request_id(request),
    )


@router.get("/history/{symbol}", response_model=APIResponse)
async def get_historical_funding_rates(
    request: Request,
    symbol: str,
    exchange: str | None = Query(None, description="Exchange whose history to rebuild"),
) -> APIResponse:
    """Funding history of one exchange for one instrument, rebuilt from the log."""
    if not exchange:
        raise InvalidQueryError("Missing exchange parameter", parameter="exchange")

    service = get_service(request)
    history = await service.get_history(symbol, exchange)
    return APIResponse(
        success=True,
        data=[point.model_dump(mode="json") for point in history],
        message=f"{len(history)} points",
        request_id=get_request_id(request),
    )
