"""Wire types shared by the codec, dispatcher and connection.

Public types:
- CommandType: Stable numeric command identifiers the tracker depends on
- Command: A decoded request from the tracker
- Response: The answer to exactly one Command
"""

import json
from dataclasses import dataclass
from enum import IntEnum
from typing import Any

DEFAULT_HOST = "localhost"
DEFAULT_PORT = 43884
DEFAULT_RETRY_DELAY = 5.0  # seconds
DEFAULT_CORE_ID = "N64"

SIZE_PREFIX_BYTES = 4


class ProtocolError(Exception):
    """Base class for wire protocol failures."""


class CommandError(ProtocolError):
    """A frame payload could not be parsed as a Command."""


class CommandFieldError(ValueError):
    """A Command is missing a field its type requires."""


class CommandType(IntEnum):
    READ_BYTE = 0x00
    READ_USHORT = 0x01
    READ_UINT = 0x02
    READ_BLOCK = 0x0F
    WRITE_BYTE = 0x10
    WRITE_USHORT = 0x11
    WRITE_UINT = 0x12
    WRITE_BLOCK = 0x1F
    ATOMIC_BIT_FLIP = 0x20
    ATOMIC_BIT_UNFLIP = 0x21
    MEMORY_FREEZE_UNSIGNED = 0x30
    MEMORY_UNFREEZE = 0x3F
    LOAD_ROM = 0xE0
    UNLOAD_ROM = 0xE1
    GET_ROM_PATH = 0xE2
    GET_EMULATOR_CORE_ID = 0xE3
    MESSAGE = 0xF0
    DO_NOTHING = 0xFF


def describe_type(value: int) -> str:
    """Human-readable name for a raw command type."""
    try:
        return CommandType(value).name
    except ValueError:
        return f"0x{value:02X}"


def _optional(data: dict[str, Any], key: str, kind: type) -> Any:
    value = data.get(key)
    if value is None:
        return None
    # bool is an int subclass; the tracker never sends booleans
    if not isinstance(value, kind) or isinstance(value, bool):
        raise CommandError(f"Field '{key}' must be {kind.__name__}, got {value!r}")
    return value


@dataclass
class Command:
    """A decoded request from the tracker.

    Only `type` is guaranteed. The other fields are present when the command
    type needs them and None otherwise.
    """

    type: int
    id: Any = None  # Opaque correlation token, echoed back
    domain: str | None = None
    address: int | None = None
    value: int | None = None
    size: int | None = None
    message: str | None = None
    block: str | None = None  # Base64 payload for WriteBlock

    @property
    def command_type(self) -> CommandType | None:
        """The known command type, or None for values outside the table."""
        try:
            return CommandType(self.type)
        except ValueError:
            return None

    @classmethod
    def from_dict(cls, data: Any) -> "Command":
        if not isinstance(data, dict):
            raise CommandError(f"Command must be a JSON object, got {type(data).__name__}")
        if data.get("type") is None:
            raise CommandError("Command is missing 'type'")
        return cls(
            type=_optional(data, "type", int),
            id=data.get("id"),
            domain=_optional(data, "domain", str),
            address=_optional(data, "address", int),
            value=_optional(data, "value", int),
            size=_optional(data, "size", int),
            message=_optional(data, "message", str),
            block=_optional(data, "block", str),
        )

    @classmethod
    def from_json(cls, payload: bytes) -> "Command":
        """Parse one frame payload.

        Raises:
            CommandError: If the payload is not a UTF-8 JSON command object.
        """
        try:
            data = json.loads(payload.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise CommandError(f"Invalid command payload: {e}") from e
        return cls.from_dict(data)


@dataclass
class Response:
    """The answer to exactly one Command."""

    id: Any
    stamp: int
    type: int
    message: str = ""
    address: int | None = None
    size: int | None = None
    domain: str | None = None
    value: int | None = None
    block: str | None = None

    @classmethod
    def echo(cls, command: Command, stamp: int) -> "Response":
        """Bare echo of a command's fields."""
        return cls(
            id=command.id,
            stamp=stamp,
            type=command.type,
            address=command.address,
            size=command.size,
            domain=command.domain,
            value=command.value,
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "stamp": self.stamp,
            "type": self.type,
            "message": self.message,
        }
        for key in ("address", "size", "domain", "value", "block"):
            value = getattr(self, key)
            if value is not None:
                d[key] = value
        return d

    def to_json(self) -> bytes:
        return json.dumps(self.to_dict(), separators=(",", ":")).encode("utf-8")
