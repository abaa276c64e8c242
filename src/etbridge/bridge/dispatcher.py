"""Command dispatch against the memory-access capability."""

import base64
import binascii
import logging
import time
from collections.abc import Callable
from pathlib import Path

from etbridge.bridge.types import (
    DEFAULT_CORE_ID,
    Command,
    CommandFieldError,
    CommandType,
    Response,
    describe_type,
)
from etbridge.memory.base import MemoryAccessError, MemoryBackend

logger = logging.getLogger(__name__)

CommandHandler = Callable[[Command, Response], None]

# Types whose Response carries data read from the backend
READ_TYPES = frozenset(
    {
        CommandType.READ_BYTE,
        CommandType.READ_USHORT,
        CommandType.READ_UINT,
        CommandType.READ_BLOCK,
    }
)


def _require(command: Command, field: str) -> int | str:
    value = getattr(command, field)
    if value is None:
        raise CommandFieldError(
            f"{describe_type(command.type)} requires '{field}'"
        )
    return value


def decode_version(value: int) -> tuple[int, int, int]:
    """Split a packed major<<16 | minor<<8 | patch version."""
    return (value >> 16) & 0xFF, (value >> 8) & 0xFF, value & 0xFF


class CommandDispatcher:
    """Turns one Command into exactly one Response.

    Dispatch never raises. Missing fields and backend failures are logged and
    answered with a degraded Response instead.
    """

    def __init__(
        self,
        backend: MemoryBackend,
        core_id: str = DEFAULT_CORE_ID,
        clock: Callable[[], float] = time.time,
    ):
        self._backend = backend
        self._core_id = core_id
        self._clock = clock
        self._last_stamp = 0
        self._handlers: dict[CommandType, CommandHandler] = {
            CommandType.GET_EMULATOR_CORE_ID: self._get_core_id,
            CommandType.READ_BYTE: self._read_byte,
            CommandType.READ_USHORT: self._read_ushort,
            CommandType.READ_UINT: self._read_uint,
            CommandType.READ_BLOCK: self._read_block,
            CommandType.WRITE_BYTE: self._write_byte,
            CommandType.WRITE_USHORT: self._write_ushort,
            CommandType.WRITE_UINT: self._write_uint,
            CommandType.WRITE_BLOCK: self._write_block,
            CommandType.ATOMIC_BIT_FLIP: self._bit_flip,
            CommandType.ATOMIC_BIT_UNFLIP: self._bit_unflip,
            CommandType.MEMORY_FREEZE_UNSIGNED: self._freeze,
            CommandType.MEMORY_UNFREEZE: self._unfreeze,
            CommandType.LOAD_ROM: self._load_rom,
            CommandType.UNLOAD_ROM: self._unload_rom,
            CommandType.GET_ROM_PATH: self._get_rom_path,
            CommandType.MESSAGE: self._message,
            CommandType.DO_NOTHING: self._do_nothing,
        }

    @property
    def core_id(self) -> str:
        return self._core_id

    def _stamp(self) -> int:
        # Unix seconds, never moving backwards within one run
        self._last_stamp = max(self._last_stamp, int(self._clock()))
        return self._last_stamp

    def dispatch(self, command: Command) -> Response:
        response = Response.echo(command, self._stamp())

        command_type = command.command_type
        handler = self._handlers.get(command_type) if command_type is not None else None
        if handler is None:
            logger.error(f"Unhandled command type '{describe_type(command.type)}'")
            return response

        try:
            handler(command, response)
        except CommandFieldError as e:
            logger.warning(f"Malformed command {command.id}: {e}")
            return self._degraded(command, command_type)
        except MemoryAccessError as e:
            logger.warning(f"{command_type.name} failed for command {command.id}: {e}")
            return self._degraded(command, command_type)
        except Exception:
            logger.exception(f"Error handling {command_type.name} command {command.id}")
            return self._degraded(command, command_type)

        return response

    def _degraded(self, command: Command, command_type: CommandType) -> Response:
        response = Response.echo(command, self._stamp())
        if command_type in READ_TYPES:
            response.value = 0
        return response

    def _get_core_id(self, command: Command, response: Response) -> None:
        if command.value is not None:
            major, minor, patch = decode_version(command.value)
            # The peer reports its pack version here, not its own
            logger.info(f"Tracker pack version {major}.{minor}.{patch}")
        response.message = self._core_id

    def _read_byte(self, command: Command, response: Response) -> None:
        response.value = self._backend.read_u8(_require(command, "address"))

    def _read_ushort(self, command: Command, response: Response) -> None:
        response.value = self._backend.read_u16(_require(command, "address"))

    def _read_uint(self, command: Command, response: Response) -> None:
        response.value = self._backend.read_u32(_require(command, "address"))

    def _read_block(self, command: Command, response: Response) -> None:
        address = _require(command, "address")
        length = _require(command, "value")
        data = self._backend.read_block(address, length)
        response.block = base64.b64encode(data).decode("ascii")

    def _write_byte(self, command: Command, response: Response) -> None:
        self._backend.write_u8(_require(command, "address"), _require(command, "value"))

    def _write_ushort(self, command: Command, response: Response) -> None:
        self._backend.write_u16(_require(command, "address"), _require(command, "value"))

    def _write_uint(self, command: Command, response: Response) -> None:
        self._backend.write_u32(_require(command, "address"), _require(command, "value"))

    def _write_block(self, command: Command, response: Response) -> None:
        address = _require(command, "address")
        try:
            data = base64.b64decode(_require(command, "block"), validate=True)
        except binascii.Error as e:
            raise CommandFieldError(f"Invalid base64 block: {e}") from e
        self._backend.write_block(address, data)

    def _bit_flip(self, command: Command, response: Response) -> None:
        self._backend.set_bits(_require(command, "address"), _require(command, "value"))

    def _bit_unflip(self, command: Command, response: Response) -> None:
        self._backend.clear_bits(_require(command, "address"), _require(command, "value"))

    def _freeze(self, command: Command, response: Response) -> None:
        self._backend.freeze(
            _require(command, "address"),
            _require(command, "value"),
            1 if command.size is None else command.size,
        )

    def _unfreeze(self, command: Command, response: Response) -> None:
        self._backend.unfreeze(_require(command, "address"))

    def _load_rom(self, command: Command, response: Response) -> None:
        self._backend.load_rom(Path(_require(command, "message")))

    def _unload_rom(self, command: Command, response: Response) -> None:
        self._backend.unload_rom()

    def _get_rom_path(self, command: Command, response: Response) -> None:
        rom_path = self._backend.rom_path
        response.message = str(rom_path) if rom_path is not None else ""

    def _message(self, command: Command, response: Response) -> None:
        logger.info(_require(command, "message"))

    def _do_nothing(self, command: Command, response: Response) -> None:
        pass
