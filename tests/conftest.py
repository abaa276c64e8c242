"""Shared test fixtures and factories."""

from collections.abc import Callable
from typing import Any

import pytest

from etbridge.bridge.dispatcher import CommandDispatcher
from etbridge.memory import RamBackend

FIXED_STAMP = 1_700_000_000

# =============================================================================
# Memory Fixtures
# =============================================================================


@pytest.fixture
def ram() -> RamBackend:
    """Small RAM backend with no KSEG0 rebasing."""
    return RamBackend(size=0x1000, base_address=0)


@pytest.fixture
def dispatcher(ram: RamBackend) -> CommandDispatcher:
    """Dispatcher over the test RAM with a frozen clock."""
    return CommandDispatcher(ram, clock=lambda: FIXED_STAMP)


# =============================================================================
# Event Loop Fakes
# =============================================================================


class FakeTimerHandle:
    def __init__(self, delay: float, callback: Callable[[], Any]):
        self.delay = delay
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeLoop:
    """Records scheduled work instead of running it.

    Connect coroutines are closed unstarted; tests deliver the socket events
    themselves through TrackerConnection.handle_event.
    """

    def __init__(self) -> None:
        self.tasks: list[Any] = []
        self.timers: list[FakeTimerHandle] = []

    def create_task(self, coro: Any) -> "FakeTask":
        coro.close()
        task = FakeTask()
        self.tasks.append(task)
        return task

    def call_later(self, delay: float, callback: Callable[[], Any]) -> FakeTimerHandle:
        handle = FakeTimerHandle(delay, callback)
        self.timers.append(handle)
        return handle

    @property
    def active_timers(self) -> list[FakeTimerHandle]:
        return [t for t in self.timers if not t.cancelled]

    def fire_timers(self) -> None:
        """Run every timer that has not been cancelled, once."""
        due = self.active_timers
        for timer in due:
            timer.cancelled = True
        for timer in due:
            timer.callback()


class FakeTask:
    def __init__(self) -> None:
        self.cancelled = False

    def done(self) -> bool:
        return self.cancelled

    def cancel(self) -> None:
        self.cancelled = True


class FakeTransport:
    def __init__(self) -> None:
        self.written: list[bytes] = []
        self.closed = False

    def is_closing(self) -> bool:
        return self.closed

    def write(self, data: bytes) -> None:
        self.written.append(data)

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_loop() -> FakeLoop:
    return FakeLoop()


# =============================================================================
# CLI Fixtures
# =============================================================================


@pytest.fixture
def cli_runner():
    """Create a Typer CLI test runner with colors disabled."""
    from typer.testing import CliRunner

    return CliRunner(env={"NO_COLOR": "1"})


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Point ETBRIDGE_HOME at a temp dir and clear env overrides."""
    from etbridge.config.paths import get_etbridge_home

    monkeypatch.setenv("ETBRIDGE_HOME", str(tmp_path / "home"))
    monkeypatch.delenv("ETBRIDGE_HOST", raising=False)
    monkeypatch.delenv("ETBRIDGE_PORT", raising=False)
    monkeypatch.delenv("ETBRIDGE_LOG_LEVEL", raising=False)
    monkeypatch.chdir(tmp_path)
    get_etbridge_home.cache_clear()
    yield
    get_etbridge_home.cache_clear()
