"""Web helpers."""

from fastapi import Request

from ratewatch.core.service import FundingService


def get_request_id(request: Request) -> str | None:
    """Return the X-Request-ID header if the client sent one."""
    return request.headers.get("X-Request-ID")


def get_service(request: Request) -> FundingService:
    return request.app.state.service
