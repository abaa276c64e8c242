"""Tests for the plugin surface and the standalone tick loop."""

import asyncio

import pytest

from etbridge.bridge import ConnectionState
from etbridge.config import BridgeConfig
from etbridge.plugin import TrackerPlugin
from etbridge.runner import BridgeRunner


@pytest.fixture
def config() -> BridgeConfig:
    config = BridgeConfig()
    config.tracker.host = "127.0.0.1"
    config.tracker.retry_delay = 2.0
    config.emulator.core_id = "SNES"
    return config


class TestTrackerPlugin:
    def test_wires_config_into_connection(self, config, ram, fake_loop):
        plugin = TrackerPlugin(config, ram, loop=fake_loop)
        assert plugin.connection.host == "127.0.0.1"
        assert plugin.connection.retry_delay == 2.0
        assert plugin.dispatcher.core_id == "SNES"

    def test_lifecycle(self, config, ram, fake_loop):
        plugin = TrackerPlugin(config, ram, loop=fake_loop)
        plugin.preinit()
        plugin.init()
        assert plugin.connection.state is None

        plugin.postinit()
        assert plugin.connection.state is ConnectionState.CONNECTING
        assert plugin.connection.attempts == 1

        plugin.on_tick(1)
        plugin.shutdown()
        assert plugin.connection.state is ConnectionState.EXIT


class _RecordingPlugin:
    def __init__(self) -> None:
        self.calls: list[str] = []
        self.frames: list[int] = []

    def preinit(self) -> None:
        self.calls.append("preinit")

    def init(self) -> None:
        self.calls.append("init")

    def postinit(self) -> None:
        self.calls.append("postinit")

    def on_tick(self, frame: int | None = None) -> None:
        self.frames.append(frame)

    def shutdown(self) -> None:
        self.calls.append("shutdown")


class TestBridgeRunner:
    @pytest.mark.asyncio
    async def test_ticks_until_stopped(self):
        plugin = _RecordingPlugin()
        runner = BridgeRunner(plugin, tick_interval=0.001)

        await runner.start()
        assert runner.running
        for _ in range(200):
            if len(plugin.frames) >= 3:
                break
            await asyncio.sleep(0.001)
        await runner.stop()

        assert plugin.calls == ["preinit", "init", "postinit", "shutdown"]
        assert plugin.frames[:3] == [1, 2, 3]
        assert runner.frame == len(plugin.frames)
        assert not runner.running

    @pytest.mark.asyncio
    async def test_start_and_stop_are_idempotent(self):
        plugin = _RecordingPlugin()
        runner = BridgeRunner(plugin, tick_interval=0.001)

        await runner.stop()
        await runner.start()
        await runner.start()
        await runner.stop()
        await runner.stop()

        assert plugin.calls == ["preinit", "init", "postinit", "shutdown"]

    @pytest.mark.asyncio
    async def test_run_shuts_down_on_cancel(self):
        plugin = _RecordingPlugin()
        runner = BridgeRunner(plugin, tick_interval=0.001)

        task = asyncio.create_task(runner.run())
        await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert plugin.calls[-1] == "shutdown"
        assert not runner.running
