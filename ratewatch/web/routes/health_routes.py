"""
Health check routes.
"""

from fastapi import APIRouter, Request
from loguru import logger

from ratewatch.web.models import APIResponse
from ratewatch.web.utils import get_request_id, get_service

router = APIRouter()


@router.get("/health", response_model=APIResponse)
async def health_check(request: Request) -> APIResponse:
    """
    Liveness of every registered exchange.

    The service itself reports healthy as long as it answers; exchanges that
    are down only show up in ``exchange_info``.
    """
    service = get_service(request)
    statuses = await service.get_status()
    healthy = sum(1 for status in statuses.values() if status.healthy)

    logger.info("Health check completed", healthy=healthy, exchanges=len(statuses))

    scheduler = getattr(request.app.state, "scheduler", None)
    return APIResponse(
        success=True,
        data={
            "status": "healthy",
            "exchanges": len(statuses),
            "healthy_exchanges": healthy,
            "exchange_info": {name: status.model_dump() for name, status in statuses.items()},
            "collection_running": bool(scheduler and scheduler.running),
        },
        request_id=get_request_id(request),
    )
