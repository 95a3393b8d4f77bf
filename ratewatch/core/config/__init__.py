"""Configuration management module."""

from ratewatch.core.config.settings import (
    CollectionConfig,
    ConfigManager,
    ExchangeConfig,
    LoggingConfig,
    RateWatchConfig,
    ServerConfig,
    StorageConfig,
    load_config_from_env,
)

__all__ = [
    "ConfigManager",
    "RateWatchConfig",
    "ServerConfig",
    "CollectionConfig",
    "StorageConfig",
    "LoggingConfig",
    "ExchangeConfig",
    "load_config_from_env",
]
