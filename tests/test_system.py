import json
from pathlib import Path

from map_markers import MapMarkersSystem
from map_markers.adapters import (
    BlockSelection,
    InMemoryMapLayer,
    InputAction,
    LocalClientApi,
    LocalPlayer,
    LocalServerApi,
    LoopbackChannel,
)
from map_markers.models import Appearance
from map_markers.protocol import WaypointRequest

BLOCK_CODES = ["air", None, "stone", None, None, None, None, "ore-copper"]


def _session(tmp_path: Path, rules: dict | str | None = None):
    rules_path = tmp_path / "waypoints.json"
    if rules is None:
        rules = {"waypoints": [{"title": "Ore", "icon": "star", "color": "#FF0000", "coverage": 5, "blocks": ["ore-*"]}]}
    rules_path.write_text(rules if isinstance(rules, str) else json.dumps(rules), encoding="utf-8")

    player = LocalPlayer("player-1")
    channel = LoopbackChannel(player)
    layer = InMemoryMapLayer()
    client = LocalClientApi(blocks=BLOCK_CODES, entities=["game:wolf-male"], channel=channel)
    server = LocalServerApi(map_layer=layer, channel=channel)

    system = MapMarkersSystem(rules_path=rules_path)
    system.start_server_side(server)
    system.start_client_side(client)
    tables = system.assets_finalize(client)
    return system, client, channel, layer, player, tables


def _interact(client: LocalClientApi, position) -> None:
    client.block_selection = BlockSelection(7, position)
    client.press(InputAction.PRIMARY_INTERACT, True)
    client.press(InputAction.PRIMARY_INTERACT, False)


def test_ore_scenario_end_to_end(tmp_path: Path) -> None:
    _, client, _, layer, _, tables = _session(tmp_path)

    assert dict(tables.blocks) == {
        7: Appearance(title="Ore", icon="star", color="#FF0000", pinned=False, coverage_radius=5.0)
    }

    _interact(client, (10.0, 0.0, 20.0))
    _interact(client, (12.0, 0.0, 21.0))
    _interact(client, (20.0, 0.0, 20.0))

    assert [wp.position for wp in layer.waypoints] == [(10.0, 0.0, 20.0), (20.0, 0.0, 20.0)]
    assert all(wp.title == "Ore" and wp.color == 0xFF0000 for wp in layer.waypoints)
    assert all(wp.owning_player_uid == "player-1" for wp in layer.waypoints)
    assert layer.notified == ["player-1", "player-1"]


def test_malformed_message_does_not_break_later_messages(tmp_path: Path) -> None:
    _, client, channel, layer, _, _ = _session(tmp_path)

    channel.deliver(b"garbage")
    _interact(client, (0.0, 0.0, 0.0))

    assert channel.dropped == 1
    assert len(layer.waypoints) == 1


def test_failing_handler_is_isolated() -> None:
    channel = LoopbackChannel(LocalPlayer("p"))
    calls = []

    def _handler(sender, request) -> None:
        calls.append(request)
        if len(calls) == 1:
            raise RuntimeError("boom")

    channel.set_message_handler(_handler)
    request = WaypointRequest((0.0, 0.0, 0.0), Appearance(title="Ore"))

    channel.send(request)
    channel.send(request)

    assert calls == [request, request]


def test_broken_rule_file_leaves_tables_empty(tmp_path: Path) -> None:
    _, client, _, layer, _, tables = _session(tmp_path, rules="{broken")

    _interact(client, (0.0, 0.0, 0.0))

    assert len(tables.blocks) == 0
    assert len(tables.entities) == 0
    assert layer.waypoints == []


def test_delete_closest_waypoint_through_system(tmp_path: Path) -> None:
    system, client, _, layer, player, _ = _session(tmp_path)
    _interact(client, (3.0, 0.0, 3.0))
    _interact(client, (40.0, 0.0, 40.0))

    removed = system.delete_closest_waypoint(player)

    assert removed is not None
    assert removed.position == (3.0, 0.0, 3.0)
    assert len(layer.waypoints) == 1
    assert layer.rebuilds == 1


def test_tables_compiled_before_client_start_reach_the_detector(tmp_path: Path) -> None:
    rules_path = tmp_path / "waypoints.json"
    rules_path.write_text(json.dumps({"waypoints": [{"title": "Wolf", "entities": ["wolf-*"]}]}), encoding="utf-8")
    client = LocalClientApi(entities=["game:wolf-male"], channel=LoopbackChannel(LocalPlayer("p")))

    system = MapMarkersSystem(rules_path=rules_path)
    system.assets_finalize(client)
    detector = system.start_client_side(client)

    assert detector.tables.entities["wolf-male"].title == "Wolf"


def test_invalid_utf8_rule_file_does_not_break_session_start(tmp_path: Path) -> None:
    rules_path = tmp_path / "waypoints.json"
    rules_path.write_bytes(b'{"waypoints": [{"title": "\xff\xfe", "blocks": ["ore-*"]}]}')
    client = LocalClientApi(blocks=BLOCK_CODES, channel=LoopbackChannel(LocalPlayer("p")))

    tables = MapMarkersSystem(rules_path=rules_path).assets_finalize(client)

    assert len(tables.blocks) == 0
    assert len(tables.entities) == 0
