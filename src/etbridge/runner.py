"""Standalone tick loop for running the bridge outside an emulator host."""

import asyncio
import logging

from etbridge.plugin import TrackerPlugin

logger = logging.getLogger(__name__)


class BridgeRunner:
    """Drives a TrackerPlugin the way an emulator would, one tick per period.

    Example:
        runner = BridgeRunner(plugin, tick_interval=1 / 60)
        await runner.run()  # until cancelled
    """

    def __init__(self, plugin: TrackerPlugin, tick_interval: float = 1 / 60):
        self._plugin = plugin
        self._tick_interval = tick_interval
        self._running = False
        self._task: asyncio.Task | None = None
        self._frame = 0

    @property
    def frame(self) -> int:
        return self._frame

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        if self._running:
            return
        self._running = True
        self._plugin.preinit()
        self._plugin.init()
        self._plugin.postinit()
        self._task = asyncio.create_task(self._tick_loop())
        logger.debug(f"Tick loop started ({self._tick_interval:g}s period)")

    async def stop(self) -> None:
        if not self._running:
            return
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        self._plugin.shutdown()

    async def run(self) -> None:
        """Start and keep ticking until cancelled, then shut down."""
        await self.start()
        try:
            if self._task:
                await self._task
        finally:
            await self.stop()

    async def _tick_loop(self) -> None:
        while self._running:
            self._frame += 1
            self._plugin.on_tick(self._frame)
            await asyncio.sleep(self._tick_interval)
