"""Configuration loading from TOML files and environment variables."""

import logging
import os
import tomllib
from pathlib import Path
from typing import Any

from etbridge.config.models import BridgeConfig, ConfigError
from etbridge.config.paths import get_config_path

logger = logging.getLogger(__name__)

HOST_ENV = "ETBRIDGE_HOST"
PORT_ENV = "ETBRIDGE_PORT"


def _get_default_config_paths() -> list[Path]:
    """Get ordered list of default config file locations."""
    return [
        Path("config.toml"),  # Current directory
        get_config_path(),  # ~/.etbridge/config.toml (or ETBRIDGE_HOME)
        Path("/etc/etbridge/config.toml"),  # System-wide
    ]


def _resolve_env_overrides(config: dict[str, Any]) -> dict[str, Any]:
    """Apply ETBRIDGE_HOST / ETBRIDGE_PORT over the file's tracker section."""
    tracker = config.get("tracker")
    if tracker is None:
        tracker = config["tracker"] = {}
    elif not isinstance(tracker, dict):
        raise ConfigError("[tracker] must be a table")

    if host := (os.environ.get(HOST_ENV) or "").strip():
        tracker["host"] = host

    raw_port = (os.environ.get(PORT_ENV) or "").strip()
    if raw_port:
        try:
            tracker["port"] = int(raw_port)
        except ValueError as e:
            raise ConfigError(f"Invalid {PORT_ENV}: {raw_port!r}") from e

    return config


def load_config(path: Path | None = None) -> BridgeConfig:
    """Load configuration from a TOML file.

    Args:
        path: Explicit path to config file. If None, searches default
            locations and falls back to built-in defaults.

    Returns:
        Validated BridgeConfig instance.

    Raises:
        FileNotFoundError: If an explicit path does not exist.
        ConfigError: If an environment override is invalid.
        ValueError: If the config file is invalid.
    """
    config_path: Path | None = None

    if path is not None:
        config_path = Path(path).expanduser()
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
    else:
        for default_path in _get_default_config_paths():
            expanded = default_path.expanduser()
            if expanded.exists():
                config_path = expanded
                break

    raw_config: dict[str, Any] = {}
    if config_path is None:
        logger.debug("No config file found, using defaults")
    else:
        with config_path.open("rb") as f:
            raw_config = tomllib.load(f)

    raw_config = _resolve_env_overrides(raw_config)

    return BridgeConfig.model_validate(raw_config)


def get_default_config() -> BridgeConfig:
    """Get a default configuration for development/testing."""
    return BridgeConfig()
