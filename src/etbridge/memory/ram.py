"""In-process RDRAM backend.

Stands in for an emulator's memory when running the bridge standalone or in
tests. Layout follows the N64: big-endian words, and addresses in the KSEG0
window (0x80000000 and up) map onto the start of RAM.
"""

import logging
from pathlib import Path

from etbridge.memory.base import MemoryAccessError

logger = logging.getLogger(__name__)

DEFAULT_RAM_SIZE = 8 * 1024 * 1024  # 8MB with the expansion pak
DEFAULT_BASE_ADDRESS = 0x80000000

_FREEZE_SIZES = (1, 2, 4)


class RamBackend:
    """Bytearray-backed memory with freezes and a loaded-ROM slot.

    Frozen bytes are pinned: writes that touch them are applied and then the
    frozen value is restored, so readers always observe the override.
    """

    def __init__(
        self,
        size: int = DEFAULT_RAM_SIZE,
        base_address: int = DEFAULT_BASE_ADDRESS,
    ):
        if size <= 0:
            raise ValueError("RAM size must be positive")
        self._ram = bytearray(size)
        self._base_address = base_address
        # address -> frozen bytes
        self._freezes: dict[int, bytes] = {}
        self._rom_path: Path | None = None

    @property
    def size(self) -> int:
        return len(self._ram)

    @property
    def rom_path(self) -> Path | None:
        return self._rom_path

    @property
    def frozen(self) -> dict[int, bytes]:
        return dict(self._freezes)

    def _offset(self, address: int, length: int) -> int:
        if address < 0:
            raise MemoryAccessError(f"Negative address: {address}")
        offset = address
        if self._base_address and address >= self._base_address:
            offset = address - self._base_address
        if length < 0 or offset + length > len(self._ram):
            raise MemoryAccessError(
                f"Access of {length} bytes at 0x{address:08X} is outside RAM"
            )
        return offset

    def _read(self, address: int, length: int) -> bytes:
        offset = self._offset(address, length)
        return bytes(self._ram[offset : offset + length])

    def _write(self, address: int, data: bytes) -> None:
        offset = self._offset(address, len(data))
        self._ram[offset : offset + len(data)] = data
        self._reapply_freezes(offset, len(data))

    def _reapply_freezes(self, offset: int, length: int) -> None:
        for address, frozen in self._freezes.items():
            start = self._offset(address, len(frozen))
            if start < offset + length and offset < start + len(frozen):
                self._ram[start : start + len(frozen)] = frozen

    @staticmethod
    def _pack(value: int, width: int) -> bytes:
        try:
            return value.to_bytes(width, "big")
        except OverflowError as e:
            raise MemoryAccessError(
                f"Value {value} does not fit in {width} byte(s)"
            ) from e

    def read_u8(self, address: int) -> int:
        return self._read(address, 1)[0]

    def read_u16(self, address: int) -> int:
        return int.from_bytes(self._read(address, 2), "big")

    def read_u32(self, address: int) -> int:
        return int.from_bytes(self._read(address, 4), "big")

    def read_block(self, address: int, size: int) -> bytes:
        return self._read(address, size)

    def write_u8(self, address: int, value: int) -> None:
        self._write(address, self._pack(value, 1))

    def write_u16(self, address: int, value: int) -> None:
        self._write(address, self._pack(value, 2))

    def write_u32(self, address: int, value: int) -> None:
        self._write(address, self._pack(value, 4))

    def write_block(self, address: int, data: bytes) -> None:
        self._write(address, bytes(data))

    @staticmethod
    def _check_mask(mask: int) -> None:
        if not 0 <= mask <= 0xFF:
            raise MemoryAccessError(f"Bit mask 0x{mask:X} does not fit in one byte")

    def set_bits(self, address: int, mask: int) -> None:
        self._check_mask(mask)
        self.write_u8(address, self.read_u8(address) | mask)

    def clear_bits(self, address: int, mask: int) -> None:
        self._check_mask(mask)
        self.write_u8(address, self.read_u8(address) & ~mask & 0xFF)

    def freeze(self, address: int, value: int, size: int = 1) -> None:
        if size not in _FREEZE_SIZES:
            raise MemoryAccessError(f"Unsupported freeze size: {size}")
        data = self._pack(value, size)
        offset = self._offset(address, size)
        self._freezes[address] = data
        self._ram[offset : offset + size] = data

    def unfreeze(self, address: int) -> None:
        if self._freezes.pop(address, None) is None:
            logger.debug(f"No freeze registered at 0x{address:08X}")

    def load_rom(self, path: Path) -> None:
        path = Path(path).expanduser()
        if not path.is_file():
            raise MemoryAccessError(f"ROM not found: {path}")
        self._rom_path = path
        logger.info(f"Loaded ROM {path}")

    def unload_rom(self) -> None:
        self._rom_path = None

    def load_image(self, path: Path) -> int:
        """Seed RAM from a raw memory dump.

        Returns:
            Number of bytes copied (the dump is truncated to RAM size).
        """
        data = Path(path).expanduser().read_bytes()[: len(self._ram)]
        self._ram[: len(data)] = data
        return len(data)
