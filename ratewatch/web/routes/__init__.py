"""API routers."""

from ratewatch.web.routes.funding_routes import router as funding_router
from ratewatch.web.routes.health_routes import router as health_router
from ratewatch.web.routes.log_routes import router as log_router
from ratewatch.web.routes.metrics_routes import router as metrics_router

__all__ = ["funding_router", "health_router", "log_router", "metrics_router"]
