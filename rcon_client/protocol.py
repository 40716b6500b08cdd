"""Frame codec for the Source/Minecraft RCON protocol.

Every frame on the wire has the same layout, with all integers signed 32-bit
little-endian::

    size | request_id | type | payload | 0x00 0x00

``size`` counts every byte after itself. This module has no I/O of its own so
that the client and the mock server can share it.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import IntEnum
from typing import Callable

from .errors import ProtocolError


HEADER_SIZE = 4
TERMINATOR_SIZE = 2
MIN_FRAME_SIZE = 4 + 4 + TERMINATOR_SIZE
AUTH_FAILURE_ID = -1
PAYLOAD_ENCODING = "ascii"

_INT = struct.Struct("<i")
_ID_AND_TYPE = struct.Struct("<ii")
_TERMINATOR = b"\x00\x00"


class FrameType(IntEnum):
    RESPONSE_VALUE = 0
    COMMAND = 2
    AUTH_RESPONSE = 2
    AUTH = 3


@dataclass(frozen=True)
class Frame:
    request_id: int
    type: int
    payload: str


def encode_frame(request_id: int, frame_type: int, payload: str) -> bytes:
    """Build a complete frame ready to be written to the socket.

    Raises ``ValueError`` if the payload contains characters outside ASCII.
    """
    try:
        body = payload.encode(PAYLOAD_ENCODING)
    except UnicodeEncodeError as exc:
        raise ValueError(f"Payload is not {PAYLOAD_ENCODING}-encodable: {exc.reason} at position {exc.start}") from exc

    size = _ID_AND_TYPE.size + len(body) + TERMINATOR_SIZE
    return _INT.pack(size) + _ID_AND_TYPE.pack(request_id, frame_type) + body + _TERMINATOR


def decode_header(data: bytes) -> int:
    """Return the declared size stored in the first four bytes of ``data``."""
    if len(data) < HEADER_SIZE:
        raise ProtocolError(f"Frame header needs {HEADER_SIZE} bytes, got {len(data)}")
    (size,) = _INT.unpack_from(data, 0)
    return size


def decode_body(data: bytes) -> Frame:
    """Decode the request id, type and payload that follow the size field.

    ``data`` must not include the two terminator bytes.
    """
    if len(data) < _ID_AND_TYPE.size:
        raise ProtocolError(f"Frame body needs at least {_ID_AND_TYPE.size} bytes, got {len(data)}")
    request_id, frame_type = _ID_AND_TYPE.unpack_from(data, 0)
    payload = bytes(data[_ID_AND_TYPE.size :]).decode(PAYLOAD_ENCODING, errors="replace")
    return Frame(request_id=request_id, type=frame_type, payload=payload)


def check_terminator(data: bytes) -> None:
    if len(data) != TERMINATOR_SIZE:
        raise ProtocolError(f"Expected {TERMINATOR_SIZE} terminator bytes but received {len(data)}")
    if data[0] != 0 or data[1] != 0:
        raise ProtocolError(f"Expected 2 null bytes but received {data[0]} and {data[1]}")


def read_frame(read_exact: Callable[[int], bytes]) -> Frame:
    """Read one frame using ``read_exact(n)``, which must return exactly ``n`` bytes or raise."""
    size = decode_header(read_exact(HEADER_SIZE))
    if size < MIN_FRAME_SIZE:
        raise ProtocolError(f"Declared frame size {size} is below the minimum of {MIN_FRAME_SIZE}")
    frame = decode_body(read_exact(size - TERMINATOR_SIZE))
    check_terminator(read_exact(TERMINATOR_SIZE))
    return frame


def decode_frame(data: bytes) -> Frame:
    """Decode a single complete frame held in memory."""
    view = memoryview(data)
    offset = 0

    def read_exact(size: int) -> bytes:
        nonlocal offset
        chunk = view[offset : offset + size]
        if len(chunk) != size:
            raise ProtocolError(f"Truncated frame: expected {size} more bytes, got {len(chunk)}")
        offset += size
        return bytes(chunk)

    frame = read_frame(read_exact)
    if offset != len(data):
        raise ProtocolError(f"{len(data) - offset} trailing bytes after frame")
    return frame
