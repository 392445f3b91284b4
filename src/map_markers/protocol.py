"""Binary wire format for client-to-server waypoint requests.

Layout (little-endian)::

    magic "MMWP" | version u8 | x f64 | y f64 | z f64
    | title str | icon str | color str | pinned u8 | coverage f32

``str`` is a u16 byte length followed by UTF-8 bytes.
"""

from __future__ import annotations

import math
import struct
from dataclasses import dataclass

from map_markers.errors import ProtocolDecodeError
from map_markers.models import Appearance, Position

MAGIC = b"MMWP"
VERSION = 1

_HEADER = struct.Struct("<4sB")
_POSITION = struct.Struct("<3d")
_STR_LEN = struct.Struct("<H")
_TAIL = struct.Struct("<Bf")
MAX_STR_BYTES = 0xFFFF
MAX_F32 = 3.4028234663852886e38


@dataclass(frozen=True, slots=True)
class WaypointRequest:
    position: Position
    appearance: Appearance


def _pack_str(value: str) -> bytes:
    raw = value.encode("utf-8")
    if len(raw) > MAX_STR_BYTES:
        raise ValueError(f"String field too long for wire format: {len(raw)} bytes")
    return _STR_LEN.pack(len(raw)) + raw


def encode_request(request: WaypointRequest) -> bytes:
    appearance = request.appearance
    if len(request.position) != 3:
        raise ValueError("Waypoint request position must have exactly 3 coordinates")
    return b"".join(
        (
            _HEADER.pack(MAGIC, VERSION),
            _POSITION.pack(*request.position),
            _pack_str(appearance.title),
            _pack_str(appearance.icon),
            _pack_str(appearance.color),
            _TAIL.pack(1 if appearance.pinned else 0, appearance.coverage_radius),
        )
    )


class _Reader:
    def __init__(self, payload: bytes) -> None:
        self._view = memoryview(payload)
        self._offset = 0

    def unpack(self, fmt: struct.Struct) -> tuple:
        end = self._offset + fmt.size
        if end > len(self._view):
            raise ProtocolDecodeError(f"Truncated payload at offset {self._offset}")
        values = fmt.unpack_from(self._view, self._offset)
        self._offset = end
        return values

    def string(self) -> str:
        (length,) = self.unpack(_STR_LEN)
        end = self._offset + length
        if end > len(self._view):
            raise ProtocolDecodeError(f"Truncated string at offset {self._offset}")
        raw = bytes(self._view[self._offset : end])
        self._offset = end
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ProtocolDecodeError("String field is not valid UTF-8") from exc

    def finish(self) -> None:
        if self._offset != len(self._view):
            raise ProtocolDecodeError(f"{len(self._view) - self._offset} trailing bytes after request")


def decode_request(payload: bytes) -> WaypointRequest:
    """Decode a request, raising :class:`ProtocolDecodeError` on any malformed input."""
    reader = _Reader(payload)
    magic, version = reader.unpack(_HEADER)
    if magic != MAGIC:
        raise ProtocolDecodeError("Bad magic for waypoint request")
    if version != VERSION:
        raise ProtocolDecodeError(f"Unsupported waypoint request version: {version}")

    position = reader.unpack(_POSITION)
    if not all(math.isfinite(value) for value in position):
        raise ProtocolDecodeError("Waypoint position must be finite")

    title = reader.string()
    icon = reader.string()
    color = reader.string()
    pinned, coverage = reader.unpack(_TAIL)
    if pinned not in (0, 1):
        raise ProtocolDecodeError(f"Invalid pinned flag: {pinned}")
    reader.finish()

    return WaypointRequest(
        position=position,
        appearance=Appearance(
            title=title,
            icon=icon,
            color=color,
            pinned=bool(pinned),
            coverage_radius=coverage,
        ),
    )
