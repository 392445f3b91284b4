from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass

logger = logging.getLogger("map_markers.models")

DEFAULT_ICON = "0-circle"

_HEX_DIGITS = re.compile(r"[0-9a-fA-F]{1,8}")

Position = tuple[float, float, float]


@dataclass(frozen=True, slots=True)
class Appearance:
    """How an automatically placed waypoint looks on the map."""

    title: str = ""
    icon: str = DEFAULT_ICON
    color: str = ""
    pinned: bool = False
    coverage_radius: float = 0.0


@dataclass(slots=True)
class Waypoint:
    position: Position
    title: str
    icon: str
    color: int
    pinned: bool
    owning_player_uid: str


def hex_to_int(color: str) -> int:
    """Pack a ``#RRGGBB`` / ``#AARRGGBB`` string into a signed 32-bit integer.

    Empty or unparsable values fall back to ``0``.
    """
    text = (color or "").strip()
    if not text:
        return 0
    digits = text[1:] if text.startswith("#") else text
    if _HEX_DIGITS.fullmatch(digits) is None:
        logger.warning("invalid_color", extra={"color": color})
        return 0
    value = int(digits, 16)
    if value >= 1 << 31:
        value -= 1 << 32
    return value


def chebyshev_xz(a: Position, b: Position) -> float:
    """Horizontal Chebyshev distance; the vertical axis is ignored."""
    return max(abs(a[0] - b[0]), abs(a[2] - b[2]))


def euclidean(a: Position, b: Position) -> float:
    return math.dist(a, b)
