"""Exchange funding sources."""

from ratewatch.core.sources.base import FundingSource, HttpFundingSource
from ratewatch.core.sources.binance import BinanceSource
from ratewatch.core.sources.bybit import BybitSource
from ratewatch.core.sources.factory import SOURCE_TYPES, create_sources
from ratewatch.core.sources.okx import OKXSource

__all__ = [
    "FundingSource",
    "HttpFundingSource",
    "BinanceSource",
    "BybitSource",
    "OKXSource",
    "SOURCE_TYPES",
    "create_sources",
]
