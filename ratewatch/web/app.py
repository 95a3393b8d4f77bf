"""
FastAPI application factory.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from ratewatch.core.config import ConfigManager, RateWatchConfig
from ratewatch.core.exceptions import ErrorCode, RateWatchError
from ratewatch.core.scheduler import CollectionScheduler
from ratewatch.core.service import FundingService
from ratewatch.web.models import ErrorResponse
from ratewatch.web.routes import funding_router, health_router, log_router, metrics_router
from ratewatch.web.utils import get_request_id

_STATUS_BY_CODE = {
    ErrorCode.INVALID_QUERY: 400,
    ErrorCode.SOURCE_NOT_FOUND: 404,
    ErrorCode.LOG_FILE_NOT_FOUND: 404,
    ErrorCode.SOURCE_UNAVAILABLE: 502,
    ErrorCode.PROVIDER_ERROR: 502,
    ErrorCode.NETWORK_ERROR: 502,
}


def create_app(
    config: RateWatchConfig | None = None,
    service: FundingService | None = None,
    *,
    start_scheduler: bool = True,
) -> FastAPI:
    """Create the FastAPI application.

    Args:
        config: configuration; loaded through ``ConfigManager`` when omitted
        service: prebuilt service, mostly for tests; built from ``config``
            when omitted
        start_scheduler: run periodic collection rounds while the app is up
    """
    config = config or ConfigManager().get_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        if getattr(app.state, "service", None) is None:
            app.state.service = FundingService.from_config(config)
        scheduler = CollectionScheduler(app.state.service, interval=config.collection.interval_seconds)
        app.state.scheduler = scheduler
        if start_scheduler:
            scheduler.start()

        yield

        await scheduler.stop()
        await app.state.service.aclose()

    app = FastAPI(
        title="ratewatch",
        description="Funding rates across exchanges, live and from the funding log",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.service = service

    _setup_middleware(app)
    _setup_routes(app)
    _setup_exception_handlers(app)
    return app


def _setup_middleware(app: FastAPI) -> None:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["*"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=1000)


def _setup_routes(app: FastAPI) -> None:
    app.include_router(funding_router, prefix="/api", tags=["funding"])
    app.include_router(log_router, prefix="/api", tags=["logs"])
    app.include_router(health_router, prefix="/api", tags=["health"])
    app.include_router(metrics_router)


def _setup_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(RateWatchError)
    async def ratewatch_exception_handler(request: Request, exc: RateWatchError) -> JSONResponse:
        status_code = _STATUS_BY_CODE.get(exc.error_code, 500)
        if status_code >= 500:
            logger.bind(error_code=exc.error_code.value).error("{} {} failed: {}", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(
                error=exc.__class__.__name__,
                message=exc.message,
                details=exc.to_payload(),
                request_id=get_request_id(request),
            ).model_dump(mode="json"),
        )
