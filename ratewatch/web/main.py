"""
Web service entry point.
"""

import uvicorn

from ratewatch.core.config import ConfigManager, RateWatchConfig
from ratewatch.web.app import create_app


def run(config: RateWatchConfig | None = None, host: str | None = None, port: int | None = None) -> None:
    """Start the FastAPI service with uvicorn."""

    config = config or ConfigManager().get_config()
    uvicorn.run(
        create_app(config),
        host=host or config.server.host,
        port=port or config.server.port,
        log_level=config.logging.level.lower(),
    )


if __name__ == "__main__":
    run()
