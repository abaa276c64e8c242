"""Memory-access capability consumed by the command dispatcher."""

from pathlib import Path
from typing import Protocol


class MemoryAccessError(Exception):
    """A memory operation could not be completed (e.g. address out of range)."""


class MemoryBackend(Protocol):
    """Raw memory primitives supplied by the emulator host.

    Multi-byte endianness is the backend's choice; the bridge passes values
    through untouched.
    """

    def read_u8(self, address: int) -> int: ...

    def read_u16(self, address: int) -> int: ...

    def read_u32(self, address: int) -> int: ...

    def read_block(self, address: int, size: int) -> bytes: ...

    def write_u8(self, address: int, value: int) -> None: ...

    def write_u16(self, address: int, value: int) -> None: ...

    def write_u32(self, address: int, value: int) -> None: ...

    def write_block(self, address: int, data: bytes) -> None: ...

    def set_bits(self, address: int, mask: int) -> None: ...

    def clear_bits(self, address: int, mask: int) -> None: ...

    def freeze(self, address: int, value: int, size: int = 1) -> None: ...

    def unfreeze(self, address: int) -> None: ...

    def load_rom(self, path: Path) -> None: ...

    def unload_rom(self) -> None: ...

    @property
    def rom_path(self) -> Path | None: ...
