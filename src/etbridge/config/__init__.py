"""Configuration loading and models."""

from etbridge.config.loader import get_default_config, load_config
from etbridge.config.models import (
    BridgeConfig,
    ConfigError,
    EmulatorConfig,
    LoggingConfig,
    TrackerConfig,
)

__all__ = [
    "BridgeConfig",
    "ConfigError",
    "EmulatorConfig",
    "LoggingConfig",
    "TrackerConfig",
    "get_default_config",
    "load_config",
]
