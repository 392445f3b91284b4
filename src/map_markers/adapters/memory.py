"""In-process host implementations used for local tooling and tests."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field

from map_markers.adapters.host import (
    BlockSelection,
    EntitySelection,
    InputAction,
    InputCallback,
    ServerPlayer,
)
from map_markers.errors import ProtocolDecodeError
from map_markers.models import Position, Waypoint
from map_markers.protocol import WaypointRequest, decode_request, encode_request

logger = logging.getLogger("map_markers.adapters.memory")

MessageHandler = Callable[[ServerPlayer, WaypointRequest], None]


@dataclass(slots=True)
class LocalPlayer:
    player_uid: str
    position: Position = (0.0, 0.0, 0.0)


@dataclass(slots=True)
class InMemoryMapLayer:
    """Waypoint collection that records the notifications it receives."""

    waypoints: list[Waypoint] = field(default_factory=list)
    notified: list[str] = field(default_factory=list)
    rebuilds: int = 0

    def notify_waypoints_changed(self, player: ServerPlayer) -> None:
        self.notified.append(player.player_uid)

    def rebuild_rendered_components(self) -> None:
        self.rebuilds += 1


class LoopbackChannel:
    """Client and server ends of one connection, joined in-process.

    Requests are encoded on send and decoded on delivery. A malformed payload or
    a failing handler is logged and does not stop later deliveries.
    """

    def __init__(self, player: ServerPlayer) -> None:
        self._player = player
        self._handler: MessageHandler | None = None
        self.dropped = 0

    def set_message_handler(self, handler: MessageHandler) -> None:
        self._handler = handler

    def send(self, request: WaypointRequest) -> None:
        self.deliver(encode_request(request))

    def deliver(self, payload: bytes) -> None:
        try:
            request = decode_request(payload)
        except ProtocolDecodeError:
            self.dropped += 1
            logger.warning(
                "message_decode_failed",
                exc_info=True,
                extra={"player_uid": self._player.player_uid, "size": len(payload)},
            )
            return

        if self._handler is None:
            self.dropped += 1
            return

        try:
            self._handler(self._player, request)
        except Exception:  # noqa: BLE001 - one bad message must not stop the connection.
            logger.exception("message_handler_failed", extra={"player_uid": self._player.player_uid})


@dataclass(slots=True)
class LocalClientApi:
    """Client host backed by plain lists; selections are set directly by callers."""

    blocks: Sequence[str | None] = ()
    entities: Iterable[str] = ()
    channel: LoopbackChannel | None = None
    block_selection: BlockSelection | None = None
    entity_selection: EntitySelection | None = None
    subscribers: list[InputCallback] = field(default_factory=list)

    def block_codes(self) -> Sequence[str | None]:
        return self.blocks

    def entity_codes(self) -> Iterable[str]:
        return self.entities

    def current_block_selection(self) -> BlockSelection | None:
        return self.block_selection

    def current_entity_selection(self) -> EntitySelection | None:
        return self.entity_selection

    def subscribe_input(self, callback: InputCallback) -> None:
        self.subscribers.append(callback)

    def open_client_channel(self, name: str) -> LoopbackChannel:
        if self.channel is None:
            raise RuntimeError(f"No loopback channel configured for {name!r}")
        return self.channel

    def press(self, action: InputAction, on: bool = True) -> None:
        for callback in self.subscribers:
            callback(action, on)


@dataclass(slots=True)
class LocalServerApi:
    map_layer: InMemoryMapLayer | None = None
    channel: LoopbackChannel | None = None

    def find_waypoint_map_layer(self) -> InMemoryMapLayer | None:
        return self.map_layer

    def open_server_channel(self, name: str) -> LoopbackChannel:
        if self.channel is None:
            raise RuntimeError(f"No loopback channel configured for {name!r}")
        return self.channel
