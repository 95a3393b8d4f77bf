"""Configuration management - loads ratewatch settings from TOML and the environment."""

import os
import tomllib
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from loguru import logger

from ratewatch.core.exceptions import ConfigurationError


@dataclass
class ServerConfig:
    """HTTP server configuration."""

    host: str = "0.0.0.0"
    port: int = 8080


@dataclass
class CollectionConfig:
    """Collection round configuration."""

    interval_seconds: float = 60.0
    source_timeout: float = 10.0


@dataclass
class StorageConfig:
    """Funding log storage configuration."""

    log_directory: str = "funding_logs"
    retention_days: int = 7


@dataclass
class LoggingConfig:
    """Application logging configuration."""

    level: str = "INFO"
    format: str = "console"
    file: str | None = None


@dataclass
class ExchangeConfig:
    """Per-exchange connection settings."""

    enabled: bool = True
    base_url: str = ""
    api_key: str = ""
    api_secret: str = ""


def _default_exchanges() -> dict[str, ExchangeConfig]:
    return {
        "binance": ExchangeConfig(base_url="https://fapi.binance.com"),
        "bybit": ExchangeConfig(base_url="https://api.bybit.com"),
        "okx": ExchangeConfig(base_url="https://www.okx.com"),
    }


@dataclass
class RateWatchConfig:
    """Top-level ratewatch configuration."""

    server: ServerConfig = field(default_factory=ServerConfig)
    collection: CollectionConfig = field(default_factory=CollectionConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    exchanges: dict[str, ExchangeConfig] = field(default_factory=_default_exchanges)

    @classmethod
    def from_dict(cls, config_dict: dict[str, Any]) -> "RateWatchConfig":
        """Build a configuration from a plain dictionary."""
        exchanges = _default_exchanges()
        for name, values in config_dict.get("exchanges", {}).items():
            base = asdict(exchanges.get(name, ExchangeConfig()))
            base.update(values)
            exchanges[name] = ExchangeConfig(**base)

        return cls(
            server=ServerConfig(**config_dict.get("server", {})),
            collection=CollectionConfig(**config_dict.get("collection", {})),
            storage=StorageConfig(**config_dict.get("storage", {})),
            logging=LoggingConfig(**config_dict.get("logging", {})),
            exchanges=exchanges,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dictionary."""
        return asdict(self)

    @property
    def enabled_exchanges(self) -> dict[str, ExchangeConfig]:
        return {name: cfg for name, cfg in self.exchanges.items() if cfg.enabled}


class ConfigManager:
    """Loads the configuration file and applies environment overrides."""

    def __init__(self, config_path: Path | None = None, *, use_env: bool = True):
        """Initialise the manager.

        Args:
            config_path: path of the TOML file; ``ratewatch.toml`` in the
                working directory when omitted
            use_env: apply ``RATEWATCH_*`` environment overrides
        """
        self.config_path = Path(config_path) if config_path else Path("ratewatch.toml")
        self.use_env = use_env
        self.config = self._load_config()

    def _load_config(self) -> RateWatchConfig:
        config_dict: dict[str, Any] = {}
        if self.config_path.exists():
            try:
                with open(self.config_path, "rb") as f:
                    config_dict = tomllib.load(f)
            except (OSError, tomllib.TOMLDecodeError) as e:
                raise ConfigurationError(f"failed to read config: {e}", path=str(self.config_path)) from e
        else:
            logger.debug("Config file {} not found, using defaults", self.config_path)

        if self.use_env:
            deep_update(config_dict, load_config_from_env())

        try:
            return RateWatchConfig.from_dict(config_dict)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"invalid configuration: {e}", path=str(self.config_path)) from e

    def get_config(self) -> RateWatchConfig:
        """Return the current configuration."""
        return self.config


def deep_update(d: dict[str, Any], u: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``u`` into ``d``."""
    for k, v in u.items():
        if isinstance(v, dict):
            d[k] = deep_update(d.get(k, {}), v)
        else:
            d[k] = v
    return d


def load_config_from_env() -> dict[str, Any]:
    """Read ``RATEWATCH_*`` overrides from the environment."""
    config: dict[str, Any] = {}

    try:
        server_config: dict[str, Any] = {}
        if os.getenv("RATEWATCH_HOST"):
            server_config["host"] = os.getenv("RATEWATCH_HOST")
        ratewatch_port = os.getenv("RATEWATCH_PORT")
        if ratewatch_port is not None:
            server_config["port"] = int(ratewatch_port)
        if server_config:
            config["server"] = server_config

        collection_config: dict[str, Any] = {}
        ratewatch_interval = os.getenv("RATEWATCH_COLLECTION_INTERVAL")
        if ratewatch_interval is not None:
            collection_config["interval_seconds"] = float(ratewatch_interval)
        ratewatch_timeout = os.getenv("RATEWATCH_SOURCE_TIMEOUT")
        if ratewatch_timeout is not None:
            collection_config["source_timeout"] = float(ratewatch_timeout)
        if collection_config:
            config["collection"] = collection_config

        storage_config: dict[str, Any] = {}
        if os.getenv("RATEWATCH_LOG_DIRECTORY"):
            storage_config["log_directory"] = os.getenv("RATEWATCH_LOG_DIRECTORY")
        ratewatch_retention = os.getenv("RATEWATCH_RETENTION_DAYS")
        if ratewatch_retention is not None:
            storage_config["retention_days"] = int(ratewatch_retention)
        if storage_config:
            config["storage"] = storage_config
    except ValueError as e:
        raise ConfigurationError(f"invalid environment override: {e}") from e

    ratewatch_logging_level = os.getenv("RATEWATCH_LOGGING_LEVEL")
    if ratewatch_logging_level is not None:
        config["logging"] = {"level": ratewatch_logging_level}

    return config
