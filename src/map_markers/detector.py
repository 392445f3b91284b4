"""Client-side detection of interactions that should place a waypoint."""

from __future__ import annotations

import logging

from map_markers.adapters.host import ClientApi, ClientChannel, InputAction
from map_markers.compiler import CompiledTables
from map_markers.protocol import WaypointRequest
from map_markers.wildcard import code_path


class InteractionDetector:
    """Turns primary-interact presses on known targets into waypoint requests.

    Only observes input; the host's handling of the event is never changed.
    A block under the cursor takes priority over a creature under the cursor.
    """

    def __init__(
        self,
        client_api: ClientApi,
        channel: ClientChannel | None = None,
        *,
        tables: CompiledTables | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._client_api = client_api
        self._channel = channel
        self._tables = tables or CompiledTables()
        self._logger = logger or logging.getLogger("map_markers.detector")
        self._active: dict[InputAction, bool] = {}

    @property
    def tables(self) -> CompiledTables:
        return self._tables

    def install_tables(self, tables: CompiledTables) -> None:
        self._tables = tables

    def on_input(self, action: InputAction, on: bool) -> None:
        was_active = self._active.get(action, False)
        self._active[action] = on
        if action != InputAction.PRIMARY_INTERACT or not on or was_active:
            return

        request = self.resolve_target()
        if request is None or self._channel is None:
            return

        self._logger.debug(
            "waypoint_requested",
            extra={"title": request.appearance.title, "position": request.position},
        )
        self._channel.send(request)

    def resolve_target(self) -> WaypointRequest | None:
        """Build a request for the current target, or None on a lookup miss."""
        block = self._client_api.current_block_selection()
        if block is not None:
            appearance = self._tables.blocks.get(block.block_id)
            if appearance is not None:
                return WaypointRequest(position=block.position, appearance=appearance)

        entity = self._client_api.current_entity_selection()
        if entity is not None:
            appearance = self._tables.entities.get(code_path(entity.code))
            if appearance is not None:
                return WaypointRequest(position=entity.position, appearance=appearance)

        return None
