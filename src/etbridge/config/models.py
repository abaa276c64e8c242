"""Configuration models using Pydantic."""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from etbridge.bridge.connection import DEFAULT_CONNECT_TIMEOUT
from etbridge.bridge.protocol import DEFAULT_MAX_FRAME_SIZE
from etbridge.bridge.types import (
    DEFAULT_CORE_ID,
    DEFAULT_HOST,
    DEFAULT_PORT,
    DEFAULT_RETRY_DELAY,
)
from etbridge.memory import DEFAULT_BASE_ADDRESS, DEFAULT_RAM_SIZE


class ConfigError(Exception):
    """Configuration error."""

    pass


class TrackerConfig(BaseModel):
    """Where the tracker listens and how to reach it."""

    model_config = ConfigDict(validate_assignment=True)

    host: str = DEFAULT_HOST
    port: int = Field(default=DEFAULT_PORT, ge=1, le=65535)
    retry_delay: float = Field(default=DEFAULT_RETRY_DELAY, gt=0)
    connect_timeout: float = Field(default=DEFAULT_CONNECT_TIMEOUT, gt=0)
    max_frame_size: int = Field(default=DEFAULT_MAX_FRAME_SIZE, gt=0)


class EmulatorConfig(BaseModel):
    """Configuration for the emulator side of the bridge.

    tick_interval is the scheduling period; one command is answered per tick,
    so the default of one NTSC frame caps throughput at ~60 commands/second.
    """

    model_config = ConfigDict(validate_assignment=True)

    core_id: str = DEFAULT_CORE_ID
    tick_interval: float = Field(default=1 / 60, gt=0)
    ram_size: int = Field(default=DEFAULT_RAM_SIZE, gt=0)
    base_address: int = Field(default=DEFAULT_BASE_ADDRESS, ge=0)
    # Raw memory dump used to seed RAM when running standalone
    ram_image: Path | None = None


class LoggingConfig(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] | None = None
    log_to_file: bool = False


class BridgeConfig(BaseModel):
    """Root configuration model."""

    tracker: TrackerConfig = Field(default_factory=TrackerConfig)
    emulator: EmulatorConfig = Field(default_factory=EmulatorConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
