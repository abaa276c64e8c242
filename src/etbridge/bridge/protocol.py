"""Length-prefixed frame codec.

Wire format, repeated for the life of a connection:

    [4-byte big-endian unsigned length][length bytes of UTF-8 JSON]

There is no delimiter or resync marker, so a malformed prefix can only be
recovered from by dropping the connection.
"""

import struct

from etbridge.bridge.types import SIZE_PREFIX_BYTES, ProtocolError

MAX_PAYLOAD_SIZE = 0xFFFFFFFF
DEFAULT_MAX_FRAME_SIZE = 10 * 1024 * 1024  # 10MB

_PREFIX = struct.Struct("!I")


class FrameError(ProtocolError):
    """The byte stream violates the framing rules."""


def encode_frame(payload: bytes) -> bytes:
    """Serialize a payload to length-prefixed bytes."""
    if len(payload) > MAX_PAYLOAD_SIZE:
        raise FrameError(f"Payload too large to frame: {len(payload)} bytes")
    return _PREFIX.pack(len(payload)) + payload


class FrameDecoder:
    """Reassembles complete payloads from arbitrarily chunked stream data.

    The decoder holds whatever bytes have not yet formed a complete frame,
    plus the body length announced by the last prefix (0 while waiting for a
    new prefix). Feeding never blocks: it consumes what is buffered and stops.
    """

    def __init__(self, max_frame_size: int = DEFAULT_MAX_FRAME_SIZE):
        self._max_frame_size = max_frame_size
        self._buffer = bytearray()
        self._expected = 0

    @property
    def buffered(self) -> int:
        """Bytes held that do not yet form a complete frame."""
        return len(self._buffer)

    @property
    def expected(self) -> int:
        """Body length of the frame in progress, 0 if awaiting a prefix."""
        return self._expected

    def feed(self, data: bytes) -> list[bytes]:
        """Add stream data and return every payload it completes, in order.

        Raises:
            FrameError: On a zero-length or oversized prefix. The decoder is
                unusable afterwards; the connection should be dropped.
        """
        self._buffer.extend(data)
        payloads: list[bytes] = []

        while True:
            if self._expected == 0:
                if len(self._buffer) < SIZE_PREFIX_BYTES:
                    break
                (length,) = _PREFIX.unpack_from(self._buffer)
                if length == 0:
                    raise FrameError("Zero-length frame")
                if length > self._max_frame_size:
                    raise FrameError(f"Frame too large: {length}")
                del self._buffer[:SIZE_PREFIX_BYTES]
                self._expected = length

            if len(self._buffer) < self._expected:
                break

            payloads.append(bytes(self._buffer[: self._expected]))
            del self._buffer[: self._expected]
            self._expected = 0

        return payloads
