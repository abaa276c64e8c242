"""Host-facing plugin surface.

Mirrors the lifecycle an emulator mod loader drives: preinit/init/postinit
once at startup, on_tick once per frame, shutdown on exit. Each hook is a thin
pass-through into the tracker connection.
"""

import asyncio
import logging

from etbridge.bridge import CommandDispatcher, TrackerConnection
from etbridge.config.models import BridgeConfig
from etbridge.memory import MemoryBackend

logger = logging.getLogger(__name__)


class TrackerPlugin:
    """Wires a memory backend to a tracker connection."""

    name = "ETAutoTracker"

    def __init__(
        self,
        config: BridgeConfig,
        backend: MemoryBackend,
        loop: asyncio.AbstractEventLoop | None = None,
    ):
        self.config = config
        self.backend = backend
        self.dispatcher = CommandDispatcher(backend, core_id=config.emulator.core_id)
        self.connection = TrackerConnection(
            self.dispatcher,
            host=config.tracker.host,
            port=config.tracker.port,
            retry_delay=config.tracker.retry_delay,
            connect_timeout=config.tracker.connect_timeout,
            max_frame_size=config.tracker.max_frame_size,
            loop=loop,
        )

    def preinit(self) -> None:
        pass

    def init(self) -> None:
        pass

    def postinit(self) -> None:
        logger.debug(f"{self.name} starting")
        self.connection.start()

    def on_tick(self, frame: int | None = None) -> None:
        self.connection.tick(frame)

    def shutdown(self) -> None:
        self.connection.stop()
