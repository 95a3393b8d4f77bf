"""Build exchange adapters from configuration."""

from loguru import logger

from ratewatch.core.config import RateWatchConfig
from ratewatch.core.sources.base import FundingSource, HttpFundingSource
from ratewatch.core.sources.binance import BinanceSource
from ratewatch.core.sources.bybit import BybitSource
from ratewatch.core.sources.okx import OKXSource

SOURCE_TYPES: dict[str, type[HttpFundingSource]] = {
    "binance": BinanceSource,
    "bybit": BybitSource,
    "okx": OKXSource,
}


def create_sources(config: RateWatchConfig) -> list[FundingSource]:
    """Instantiate every enabled exchange that has a known adapter."""

    sources: list[FundingSource] = []
    for name, exchange_config in config.enabled_exchanges.items():
        source_type = SOURCE_TYPES.get(name)
        if source_type is None:
            logger.warning("Unknown exchange: {}", name)
            continue
        sources.append(source_type(exchange_config, timeout=config.collection.source_timeout))
        logger.info("Initialized exchange: {}", name)
    return sources
