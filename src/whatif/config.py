"""Configuration loading for the backtester.

Example config file (whatif.yaml):

    data_source: "yahoo"        # yahoo | csv | stub
    source_params:
      timeout: 30
    cache:
      enabled: true
      max_entries: 300
      ttl_seconds: 86400
    logging:
      level: "INFO"

Setting the environment variable ``WHATIF_STUB_DATA=true`` forces stub mode
regardless of the file, for local development and tests.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field

from whatif.data.cache import (DEFAULT_MAX_ENTRIES, DEFAULT_TTL_SECONDS,
                               NullSeriesCache, SeriesCache)
from whatif.data.provider import SeriesProvider
from whatif.data.sources import resolve_price_source
from whatif.exceptions import ConfigError
from whatif.types import FrozenModel

STUB_ENV_VAR = "WHATIF_STUB_DATA"

# Valid data source types
VALID_DATA_SOURCES = frozenset(["yahoo", "csv", "stub"])

VALID_LOG_LEVELS = frozenset(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])


class CacheSettings(FrozenModel):
    """Series cache configuration.

    :param enabled: Whether series are cached at all.
    :param max_entries: Maximum number of cached series.
    :param ttl_seconds: Lifetime of a cached series.
    """

    enabled: bool = True
    max_entries: int = DEFAULT_MAX_ENTRIES
    ttl_seconds: int = DEFAULT_TTL_SECONDS


class Settings(FrozenModel):
    """Process-wide backtester configuration.

    :param data_source: Price source type ("yahoo", "csv" or "stub").
    :param source_params: Source-specific parameters.
    :param cache: Cache configuration.
    :param log_level: Logging level name.
    """

    data_source: str = "yahoo"
    source_params: dict[str, Any] = Field(default_factory=dict)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    log_level: str = "INFO"

    @property
    def is_stub(self) -> bool:
        return self.data_source == "stub"


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in ("1", "true", "yes")


def _parse_positive_int(raw: dict[str, Any], field: str, default: int) -> int:
    value = raw.get(field, default)
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ConfigError(f"'cache.{field}' must be a positive integer")
    return value


def _parse_cache(raw_cache: Any) -> CacheSettings:
    if raw_cache is None:
        return CacheSettings()
    if not isinstance(raw_cache, dict):
        raise ConfigError("'cache' must be a mapping")

    enabled = raw_cache.get("enabled", True)
    if not isinstance(enabled, bool):
        raise ConfigError("'cache.enabled' must be a boolean")

    return CacheSettings(
        enabled=enabled,
        max_entries=_parse_positive_int(raw_cache, "max_entries", DEFAULT_MAX_ENTRIES),
        ttl_seconds=_parse_positive_int(raw_cache, "ttl_seconds", DEFAULT_TTL_SECONDS),
    )


def load_settings(config_path: str | Path | None = None) -> Settings:
    """Parse and validate a configuration file.

    :param config_path: Path to a YAML configuration file, or None for defaults.
    :returns: Validated Settings object.
    :raises ConfigError: If the file cannot be read or the config is invalid.
    """
    raw_config: dict[str, Any] = {}

    if config_path is not None:
        config_path = Path(config_path)
        try:
            with open(config_path) as f:
                loaded = yaml.safe_load(f)
        except FileNotFoundError as e:
            raise ConfigError(f"Configuration file not found: {config_path}") from e
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in configuration file: {e}") from e

        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise ConfigError("Configuration must be a YAML mapping")
        raw_config = loaded

    # Parse data_source
    data_source = raw_config.get("data_source", "yahoo")
    if not isinstance(data_source, str) or data_source.lower() not in VALID_DATA_SOURCES:
        raise ConfigError(
            f"Invalid data_source '{data_source}'. "
            f"Valid options: {sorted(VALID_DATA_SOURCES)}"
        )
    data_source = data_source.lower()
    if _env_flag(STUB_ENV_VAR):
        data_source = "stub"

    # Parse source_params (optional)
    source_params = raw_config.get("source_params") or {}
    if not isinstance(source_params, dict):
        raise ConfigError("'source_params' must be a mapping")

    cache = _parse_cache(raw_config.get("cache"))

    # Parse logging (optional)
    raw_logging = raw_config.get("logging") or {}
    if not isinstance(raw_logging, dict):
        raise ConfigError("'logging' must be a mapping")
    log_level = str(raw_logging.get("level", "INFO")).upper()
    if log_level not in VALID_LOG_LEVELS:
        raise ConfigError(
            f"Invalid logging.level '{log_level}'. "
            f"Valid options: {sorted(VALID_LOG_LEVELS)}"
        )

    return Settings(
        data_source=data_source,
        source_params=source_params,
        cache=cache,
        log_level=log_level,
    )


def build_cache(settings: Settings) -> SeriesCache:
    """Construct the process-wide series cache from settings."""
    if not settings.cache.enabled:
        return NullSeriesCache()
    return SeriesCache(
        max_entries=settings.cache.max_entries,
        ttl_seconds=settings.cache.ttl_seconds,
    )


def build_provider(settings: Settings) -> SeriesProvider:
    """Construct a series provider (source and cache) from settings.

    :raises ConfigError: If the source configuration is invalid.
    """
    return SeriesProvider(
        source=resolve_price_source(settings),
        cache=build_cache(settings),
        stub=settings.is_stub,
    )


__all__ = [
    "STUB_ENV_VAR",
    "VALID_DATA_SOURCES",
    "CacheSettings",
    "Settings",
    "load_settings",
    "build_cache",
    "build_provider",
]
