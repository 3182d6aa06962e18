"""Configuration management - loads store.yaml and environment variables."""

import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import ValidationError

from credit_store.models import (
    CatalogConfig,
    EngineConfig,
    EventsConfig,
    MessageRelayConfig,
    StoreConfig,
)

DEFAULT_CONFIG_PATH = "config/store.yaml"


class ConfigurationError(Exception):
    """Raised when configuration is invalid or missing."""

    pass


class Config:
    """Application configuration loader and manager.

    Loads store.yaml and provides validated access to:
    - Seed catalog (digital products, credit packages)
    - Ledger engine settings
    - Pub/Sub event publishing
    - Phone message relay
    """

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration loader.

        Args:
            config_path: Path to store.yaml. If not provided, uses CONFIG_PATH env var
                        or defaults to ./config/store.yaml
        """
        self._config_path = self._resolve_config_path(config_path)
        self._store_config: Optional[StoreConfig] = None
        self._load_config()

    def _resolve_config_path(self, config_path: Optional[str]) -> Path:
        """Resolve configuration file path from argument, env var, or default."""
        if config_path:
            return Path(config_path)

        env_path = os.getenv("CONFIG_PATH")
        if env_path:
            return Path(env_path)

        return Path(DEFAULT_CONFIG_PATH)

    def _load_config(self) -> None:
        """Load and validate store.yaml configuration."""
        if not self._config_path.exists():
            raise ConfigurationError(
                f"Configuration file not found: {self._config_path}\n"
                f"Please create {DEFAULT_CONFIG_PATH} or set CONFIG_PATH environment variable"
            )

        try:
            with open(self._config_path, encoding="utf-8") as f:
                raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Failed to parse YAML configuration: {e}") from e

        if not raw_config:
            raise ConfigurationError(f"Configuration file is empty: {self._config_path}")
        if not isinstance(raw_config, dict):
            raise ConfigurationError(
                f"Configuration root must be a mapping: {self._config_path}"
            )

        try:
            self._store_config = StoreConfig(**raw_config)
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed:\n{e}") from e

    @property
    def store(self) -> StoreConfig:
        """Get validated store configuration."""
        if self._store_config is None:
            raise ConfigurationError("Configuration not loaded")
        return self._store_config

    @property
    def config_path(self) -> Path:
        """Get path to configuration file."""
        return self._config_path

    @property
    def catalog(self) -> CatalogConfig:
        """Get the seed catalog."""
        return self.store.catalog

    @property
    def engine_settings(self) -> EngineConfig:
        """Get credit ledger engine settings."""
        return self.store.engine

    @property
    def events(self) -> EventsConfig:
        """Get Pub/Sub event publishing settings."""
        return self.store.events

    @property
    def message_relay(self) -> MessageRelayConfig:
        """Get phone message relay settings."""
        return self.store.message_relay

    def reload(self) -> None:
        """Reload configuration from disk."""
        self._load_config()


# Global configuration instance
_config_instance: Optional[Config] = None


def get_config(config_path: Optional[str] = None) -> Config:
    """Get global configuration instance (singleton).

    Args:
        config_path: Optional path to configuration file (only used on first call)

    Returns:
        Config instance
    """
    global _config_instance
    if _config_instance is None:
        _config_instance = Config(config_path)
    return _config_instance


def reload_config() -> None:
    """Reload global configuration from disk."""
    global _config_instance
    if _config_instance:
        _config_instance.reload()
    else:
        _config_instance = Config()
