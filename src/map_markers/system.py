"""Host lifecycle wiring for the map markers subsystem."""

from __future__ import annotations

import logging
from pathlib import Path

from map_markers.adapters.host import ClientApi, ServerApi, ServerPlayer
from map_markers.authority import WaypointAuthority
from map_markers.compiler import CompiledTables, compile_tables
from map_markers.config import Settings, settings as default_settings
from map_markers.detector import InteractionDetector
from map_markers.models import Waypoint
from map_markers.rules import load_waypoints_config


class MapMarkersSystem:
    """Entry points the host calls while starting each side of a session."""

    def __init__(self, *, settings: Settings | None = None, rules_path: str | Path | None = None) -> None:
        self._settings = settings or default_settings
        self._rules_path = Path(rules_path) if rules_path is not None else self._settings.rules_path
        self._logger = logging.getLogger("map_markers.system")
        self.detector: InteractionDetector | None = None
        self.authority: WaypointAuthority | None = None
        self.tables = CompiledTables()

    def start_client_side(self, client_api: ClientApi) -> InteractionDetector:
        channel = client_api.open_client_channel(self._settings.channel_name)
        self.detector = InteractionDetector(client_api, channel, tables=self.tables)
        client_api.subscribe_input(self.detector.on_input)
        return self.detector

    def start_server_side(self, server_api: ServerApi) -> WaypointAuthority:
        self.authority = WaypointAuthority(server_api)
        server_api.open_server_channel(self._settings.channel_name).set_message_handler(
            self.authority.handle_request
        )
        return self.authority

    def assets_finalize(self, client_api: ClientApi) -> CompiledTables:
        """Load rules and compile lookup tables once the taxonomy is complete."""
        config = load_waypoints_config(self._rules_path)
        if config is None:
            self._logger.warning("rules_unavailable", extra={"path": str(self._rules_path)})
            return self.tables

        self.tables = compile_tables(
            config,
            block_codes=client_api.block_codes(),
            entity_codes=client_api.entity_codes(),
        )
        if self.detector is not None:
            self.detector.install_tables(self.tables)
        return self.tables

    def delete_closest_waypoint(self, player: ServerPlayer) -> Waypoint | None:
        if self.authority is None:
            return None
        return self.authority.delete_closest_waypoint(player)
