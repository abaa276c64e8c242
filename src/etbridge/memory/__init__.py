"""Memory-access backends.

Public API:
- MemoryBackend: Capability protocol the dispatcher calls into
- MemoryAccessError: Raised by backends on failed operations
- RamBackend: Standalone bytearray-backed RDRAM
"""

from etbridge.memory.base import MemoryAccessError, MemoryBackend
from etbridge.memory.ram import DEFAULT_BASE_ADDRESS, DEFAULT_RAM_SIZE, RamBackend

__all__ = [
    "DEFAULT_BASE_ADDRESS",
    "DEFAULT_RAM_SIZE",
    "MemoryAccessError",
    "MemoryBackend",
    "RamBackend",
]
