"""Tracker bridge core.

Connects to the tracker over local TCP, reassembles length-prefixed JSON
commands from the stream and answers each one from emulator memory.

Public API:
- TrackerConnection: Reconnecting connection driven by a per-frame tick
- CommandDispatcher: Executes one Command against a MemoryBackend

Protocol:
- Command, Response, CommandType: Wire message types
- FrameDecoder, encode_frame: Length-prefixed framing
"""

from etbridge.bridge.connection import ConnectionState, TrackerConnection
from etbridge.bridge.dispatcher import CommandDispatcher
from etbridge.bridge.protocol import FrameDecoder, FrameError, encode_frame
from etbridge.bridge.types import (
    Command,
    CommandError,
    CommandFieldError,
    CommandType,
    ProtocolError,
    Response,
)

__all__ = [
    # Connection
    "ConnectionState",
    "TrackerConnection",
    # Dispatch
    "CommandDispatcher",
    # Protocol
    "Command",
    "CommandError",
    "CommandFieldError",
    "CommandType",
    "FrameDecoder",
    "FrameError",
    "ProtocolError",
    "Response",
    "encode_frame",
]
