"""Boundary contracts for the host game the subsystem plugs into."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from map_markers.models import Position, Waypoint
from map_markers.protocol import WaypointRequest


class InputAction(str, Enum):
    """World input actions the host reports to subscribers."""

    PRIMARY_INTERACT = "primary_interact"
    ATTACK = "attack"
    SNEAK = "sneak"


InputCallback = Callable[[InputAction, bool], None]


@dataclass(frozen=True, slots=True)
class BlockSelection:
    block_id: int
    position: Position


@dataclass(frozen=True, slots=True)
class EntitySelection:
    code: str
    position: Position


class ServerPlayer(Protocol):
    player_uid: str

    @property
    def position(self) -> Position: ...


class ClientChannel(Protocol):
    def send(self, request: WaypointRequest) -> None:
        """Fire-and-forget delivery toward the server."""


class ServerChannel(Protocol):
    def set_message_handler(self, handler: Callable[[ServerPlayer, WaypointRequest], None]) -> None:
        """Install the callback invoked once per received request."""


class ClientApi(Protocol):
    """What the client side needs from the host."""

    def block_codes(self) -> Sequence[str | None]:
        """Block codes indexed by per-session block id."""

    def entity_codes(self) -> Iterable[str]:
        """All registered entity type codes."""

    def current_block_selection(self) -> BlockSelection | None: ...

    def current_entity_selection(self) -> EntitySelection | None: ...

    def subscribe_input(self, callback: InputCallback) -> None: ...

    def open_client_channel(self, name: str) -> ClientChannel: ...


class MapLayer(Protocol):
    """Server-side owner of the shared waypoint collection."""

    waypoints: list[Waypoint]

    def notify_waypoints_changed(self, player: ServerPlayer) -> None:
        """Resend the waypoint list to the player's connection."""

    def rebuild_rendered_components(self) -> None:
        """Rebuild map components after a removal."""


class ServerApi(Protocol):
    def find_waypoint_map_layer(self) -> MapLayer | None: ...

    def open_server_channel(self, name: str) -> ServerChannel: ...
