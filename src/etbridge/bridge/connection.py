"""Connection to the tracker.

Owns the socket lifecycle as a three-state machine:

    CONNECTING --connected--> CONNECTED --lost/protocol error--> CONNECTING
    CONNECTING --failed--> (retry after delay) CONNECTING

Every attempt after the first waits for the retry timer, whether the previous
socket failed to open or was dropped after connecting.
    any --stop()--> EXIT

Socket callbacks arrive from asyncio as events and are handled synchronously
on the event loop. Commands are only dispatched from tick(), one per call, so
responses leave in the order their frames arrived.
"""

import asyncio
import logging
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import cast

from etbridge.bridge.dispatcher import CommandDispatcher
from etbridge.bridge.protocol import DEFAULT_MAX_FRAME_SIZE, FrameDecoder, FrameError, encode_frame
from etbridge.bridge.state import StateHandlers, StateMachine
from etbridge.bridge.types import (
    DEFAULT_HOST,
    DEFAULT_PORT,
    DEFAULT_RETRY_DELAY,
    Command,
    CommandError,
    Response,
)

logger = logging.getLogger(__name__)

DEFAULT_CONNECT_TIMEOUT = 5.0  # seconds


class ConnectionState(Enum):
    CONNECTING = "connecting"
    CONNECTED = "connected"
    EXIT = "exit"


class Session:
    """State owned by one connection attempt.

    A fresh Session is created for every attempt, so nothing decoded on one
    socket can leak into the next.
    """

    def __init__(self, max_frame_size: int = DEFAULT_MAX_FRAME_SIZE):
        self.transport: asyncio.Transport | None = None
        self.decoder = FrameDecoder(max_frame_size)
        self.pending: deque[bytes] = deque()


@dataclass
class Connected:
    session: Session
    transport: asyncio.Transport


@dataclass
class DataReceived:
    session: Session
    data: bytes


@dataclass
class ConnectionFailed:
    session: Session
    error: BaseException


@dataclass
class ConnectionLost:
    session: Session
    error: BaseException | None = None


ConnectionEvent = Connected | DataReceived | ConnectionFailed | ConnectionLost


class _TrackerProtocol(asyncio.Protocol):
    """Translates asyncio callbacks into connection events."""

    def __init__(self, connection: "TrackerConnection", session: Session):
        self._connection = connection
        self._session = session

    def connection_made(self, transport: asyncio.BaseTransport) -> None:
        transport = cast(asyncio.Transport, transport)
        self._connection.handle_event(Connected(self._session, transport))

    def data_received(self, data: bytes) -> None:
        self._connection.handle_event(DataReceived(self._session, data))

    def connection_lost(self, exc: Exception | None) -> None:
        self._connection.handle_event(ConnectionLost(self._session, exc))


class TrackerConnection:
    """Keeps a single connection to the tracker alive and serves its commands.

    Example:
        connection = TrackerConnection(CommandDispatcher(backend))
        connection.start()
        ...
        connection.tick()  # once per emulator frame
        ...
        connection.stop()
    """

    def __init__(
        self,
        dispatcher: CommandDispatcher,
        host: str = DEFAULT_HOST,
        port: int = DEFAULT_PORT,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
        max_frame_size: int = DEFAULT_MAX_FRAME_SIZE,
        loop: asyncio.AbstractEventLoop | None = None,
    ):
        self._dispatcher = dispatcher
        self._host = host
        self._port = port
        self._retry_delay = retry_delay
        self._connect_timeout = connect_timeout
        self._max_frame_size = max_frame_size
        self._loop = loop

        self._session: Session | None = None
        self._connect_task: asyncio.Task | None = None
        self._retry_handle: asyncio.TimerHandle | None = None
        self._attempts = 0
        # Set when a live connection is dropped so the next attempt waits for the retry timer
        self._reconnect_delayed = False

        self._machine: StateMachine[ConnectionState] = StateMachine()
        self._machine.register(
            ConnectionState.CONNECTING,
            StateHandlers(on_enter=self._enter_connecting),
        )
        self._machine.register(
            ConnectionState.CONNECTED,
            StateHandlers(
                on_enter=self._on_connected,
                on_tick=self._tick_connected,
                on_exit=self._disconnect,
            ),
        )
        self._machine.register(
            ConnectionState.EXIT,
            StateHandlers(on_enter=self._shutdown),
        )

    @property
    def state(self) -> ConnectionState | None:
        return self._machine.state

    @property
    def host(self) -> str:
        return self._host

    @property
    def port(self) -> int:
        return self._port

    @property
    def retry_delay(self) -> float:
        return self._retry_delay

    @property
    def session(self) -> Session | None:
        return self._session

    @property
    def pending_count(self) -> int:
        return len(self._session.pending) if self._session else 0

    @property
    def attempts(self) -> int:
        """Connection attempts made so far, including retries."""
        return self._attempts

    @property
    def retry_pending(self) -> bool:
        return self._retry_handle is not None

    def start(self) -> None:
        if self._machine.state is not None:
            logger.warning(f"Tracker connection already started ({self._machine.state.value})")
            return
        self._machine.set_state(ConnectionState.CONNECTING)

    def stop(self) -> None:
        self._machine.set_state(ConnectionState.EXIT)

    def tick(self, frame: int | None = None) -> None:
        """Advance the connection by one scheduling period.

        Never raises; the host calls this unconditionally every frame.
        """
        try:
            self._machine.tick()
        except Exception:
            logger.exception("Unexpected error during tracker tick")

    def handle_event(self, event: ConnectionEvent) -> None:
        state = self._machine.state
        if event.session is not self._session or state is ConnectionState.EXIT:
            # Late callback from a socket we already gave up on
            if isinstance(event, Connected):
                event.transport.close()
            return

        if isinstance(event, Connected):
            if state is not ConnectionState.CONNECTING:
                event.transport.close()
                return
            event.session.transport = event.transport
            self._machine.set_state(ConnectionState.CONNECTED)
        elif isinstance(event, ConnectionFailed):
            logger.warning(f"Could not connect to tracker: {event.error}")
            self._schedule_retry()
        elif isinstance(event, ConnectionLost):
            if state is ConnectionState.CONNECTED:
                reason = f": {event.error}" if event.error else ""
                self._reconnect(f"Lost connection to tracker{reason}")
        elif isinstance(event, DataReceived):
            if state is ConnectionState.CONNECTED:
                self._receive(event.session, event.data)

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def _enter_connecting(self) -> None:
        if self._reconnect_delayed:
            self._reconnect_delayed = False
            self._session = None
            self._schedule_retry()
            return
        self._connect()

    def _reconnect(self, reason: str) -> None:
        logger.error(f"{reason}, reconnecting...")
        self._reconnect_delayed = True
        self._machine.set_state(ConnectionState.CONNECTING)

    def _connect(self) -> None:
        self._cancel_retry()
        self._close_transport()

        session = Session(self._max_frame_size)
        self._session = session
        self._attempts += 1

        logger.info(f"Connecting to tracker on {self._host}:{self._port}")
        self._connect_task = self._get_loop().create_task(self._open(session))

    async def _open(self, session: Session) -> None:
        loop = self._get_loop()
        try:
            await asyncio.wait_for(
                loop.create_connection(
                    lambda: _TrackerProtocol(self, session),
                    self._host,
                    self._port,
                ),
                timeout=self._connect_timeout,
            )
        except Exception as e:
            self.handle_event(ConnectionFailed(session, e))

    def _schedule_retry(self) -> None:
        if self._retry_handle is not None:
            return
        logger.info(f"Retrying tracker connection in {self._retry_delay:g}s")
        self._retry_handle = self._get_loop().call_later(self._retry_delay, self._retry)

    def _retry(self) -> None:
        self._retry_handle = None
        if self._machine.state is ConnectionState.CONNECTING:
            self._connect()

    def _cancel_retry(self) -> None:
        if self._retry_handle is not None:
            self._retry_handle.cancel()
            self._retry_handle = None

    def _close_transport(self) -> None:
        session = self._session
        if session is not None and session.transport is not None:
            session.transport.close()
            session.transport = None

    def _on_connected(self) -> None:
        self._connect_task = None
        logger.info("Connected to tracker")

    def _disconnect(self) -> None:
        if self._session is not None and self._session.pending:
            logger.debug(f"Discarding {len(self._session.pending)} undispatched messages")
        self._close_transport()

    def _shutdown(self) -> None:
        self._cancel_retry()
        if self._connect_task is not None and not self._connect_task.done():
            self._connect_task.cancel()
        self._connect_task = None
        self._close_transport()
        self._session = None
        logger.info("Tracker connection stopped")

    def _receive(self, session: Session, data: bytes) -> None:
        try:
            payloads = session.decoder.feed(data)
        except FrameError as e:
            self._reconnect(f"Protocol error from tracker ({e})")
            return
        for payload in payloads:
            logger.debug(f"-> {payload.decode('utf-8', errors='replace')}")
        session.pending.extend(payloads)

    def _tick_connected(self) -> None:
        session = self._session
        transport = session.transport if session is not None else None
        if session is None or transport is None or transport.is_closing():
            self._reconnect("Lost connection to tracker")
            return

        if not session.pending:
            return

        payload = session.pending.popleft()
        try:
            command = Command.from_json(payload)
        except CommandError as e:
            # No resync marker in the stream, so start over on a fresh socket
            self._reconnect(f"Bad command from tracker ({e})")
            return

        response = self._dispatcher.dispatch(command)
        self._send(transport, response)

    def _send(self, transport: asyncio.Transport, response: Response) -> None:
        data = response.to_json()
        logger.debug(f"<- {data.decode('utf-8')}")
        try:
            transport.write(encode_frame(data))
        except (OSError, RuntimeError, FrameError) as e:
            self._reconnect(f"Failed to send response ({e})")
