"""Centralized path management for etbridge.

State (config, logs) lives under a single base directory, overridable with
the ETBRIDGE_HOME environment variable. Default: ~/.etbridge
"""

import os
from functools import lru_cache
from pathlib import Path

ENV_VAR = "ETBRIDGE_HOME"


@lru_cache(maxsize=1)
def get_etbridge_home() -> Path:
    """Get the base directory for all etbridge data.

    Resolution order:
    1. ETBRIDGE_HOME environment variable (if set)
    2. ~/.etbridge
    """
    if env_home := os.environ.get(ENV_VAR):
        return Path(env_home).expanduser().resolve()
    return Path.home() / ".etbridge"


def get_config_path() -> Path:
    """Get the default config file path."""
    return get_etbridge_home() / "config.toml"


def get_logs_path() -> Path:
    """Get the default logs directory path."""
    return get_etbridge_home() / "logs"
