"""Server-side authority over the shared waypoint collection."""

from __future__ import annotations

import logging
import threading

from map_markers.adapters.host import MapLayer, ServerApi, ServerPlayer
from map_markers.models import Appearance, Position, Waypoint, chebyshev_xz, euclidean, hex_to_int
from map_markers.protocol import WaypointRequest


class WaypointAuthority:
    """Single writer of the waypoint collection.

    Requests are deduplicated against the requesting player's own waypoints: a
    request is dropped when an existing waypoint with the same title, icon and
    colour lies strictly within the request's coverage radius (horizontal
    Chebyshev distance).
    """

    def __init__(self, server_api: ServerApi, *, logger: logging.Logger | None = None) -> None:
        self._server_api = server_api
        self._map_layer: MapLayer | None = None
        self._lock = threading.RLock()
        self._logger = logger or logging.getLogger("map_markers.authority")

    def handle_request(self, player: ServerPlayer, request: WaypointRequest) -> Waypoint | None:
        """Message handler for received requests; returns the inserted waypoint, if any."""
        return self.add_waypoint(player, request.position, request.appearance)

    def add_waypoint(self, player: ServerPlayer, position: Position, appearance: Appearance) -> Waypoint | None:
        color = hex_to_int(appearance.color)
        with self._lock:
            layer = self._resolve_map_layer()
            if layer is None:
                self._logger.debug("map_layer_unavailable", extra={"player_uid": player.player_uid})
                return None

            duplicate = self._find_duplicate(layer, player, position, appearance, color)
            if duplicate is not None:
                self._logger.debug(
                    "waypoint_duplicate",
                    extra={"player_uid": player.player_uid, "title": appearance.title, "existing": duplicate.position},
                )
                return None

            waypoint = Waypoint(
                position=(float(position[0]), float(position[1]), float(position[2])),
                title=appearance.title,
                icon=appearance.icon,
                color=color,
                pinned=appearance.pinned,
                owning_player_uid=player.player_uid,
            )
            layer.waypoints.append(waypoint)

        self._logger.info(
            "waypoint_added",
            extra={"player_uid": player.player_uid, "title": waypoint.title, "position": waypoint.position},
        )
        layer.notify_waypoints_changed(player)
        return waypoint

    def delete_closest_waypoint(self, player: ServerPlayer) -> Waypoint | None:
        """Remove the player's waypoint nearest to their current position."""
        with self._lock:
            layer = self._resolve_map_layer()
            if layer is None:
                return None

            origin = player.position
            owned = [wp for wp in layer.waypoints if wp.owning_player_uid == player.player_uid]
            if not owned:
                return None
            closest = min(owned, key=lambda wp: euclidean(origin, wp.position))
            layer.waypoints.remove(closest)

        self._logger.info(
            "waypoint_removed",
            extra={"player_uid": player.player_uid, "title": closest.title, "position": closest.position},
        )
        layer.rebuild_rendered_components()
        layer.notify_waypoints_changed(player)
        return closest

    def _resolve_map_layer(self) -> MapLayer | None:
        if self._map_layer is None:
            self._map_layer = self._server_api.find_waypoint_map_layer()
        return self._map_layer

    @staticmethod
    def _find_duplicate(
        layer: MapLayer,
        player: ServerPlayer,
        position: Position,
        appearance: Appearance,
        color: int,
    ) -> Waypoint | None:
        for waypoint in layer.waypoints:
            if waypoint.owning_player_uid != player.player_uid:
                continue
            if (
                chebyshev_xz(waypoint.position, position) < appearance.coverage_radius
                and waypoint.title == appearance.title
                and waypoint.icon == appearance.icon
                and waypoint.color == color
            ):
                return waypoint
        return None
