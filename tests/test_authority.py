import threading

import pytest

from map_markers.adapters import InMemoryMapLayer, LocalPlayer, LocalServerApi
from map_markers.authority import WaypointAuthority
from map_markers.models import Appearance

T = Appearance(title="T", icon="I", color="#0000CC", coverage_radius=5.0)


def _authority(layer: InMemoryMapLayer | None = None) -> tuple[WaypointAuthority, InMemoryMapLayer]:
    layer = layer if layer is not None else InMemoryMapLayer()
    return WaypointAuthority(LocalServerApi(map_layer=layer)), layer


@pytest.mark.parametrize(
    ("x", "z", "discarded"),
    [
        (0.0, 0.0, True),
        (4.99, 0.0, True),
        (3.0, -4.5, True),
        (5.0, 0.0, False),
        (0.0, -5.0, False),
        (5.0, 5.0, False),
    ],
)
def test_dedup_radius_is_strict(x: float, z: float, discarded: bool) -> None:
    authority, layer = _authority()
    player = LocalPlayer("p")
    authority.add_waypoint(player, (0.0, 0.0, 0.0), T)

    result = authority.add_waypoint(player, (x, 0.0, z), T)

    assert (result is None) is discarded
    assert len(layer.waypoints) == (1 if discarded else 2)


def test_dedup_ignores_vertical_distance() -> None:
    authority, layer = _authority()
    player = LocalPlayer("p")
    authority.add_waypoint(player, (0.0, 0.0, 0.0), T)
    authority.add_waypoint(player, (1.0, 250.0, 1.0), T)

    assert len(layer.waypoints) == 1


def test_other_players_waypoints_never_suppress_a_request() -> None:
    authority, layer = _authority()
    authority.add_waypoint(LocalPlayer("p"), (0.0, 0.0, 0.0), T)

    inserted = authority.add_waypoint(LocalPlayer("q"), (0.0, 0.0, 0.0), T)

    assert inserted is not None
    assert inserted.owning_player_uid == "q"
    assert [wp.owning_player_uid for wp in layer.waypoints] == ["p", "q"]


@pytest.mark.parametrize(
    "changed",
    [
        Appearance(title="Other", icon="I", color="#0000CC", coverage_radius=5.0),
        Appearance(title="T", icon="other", color="#0000CC", coverage_radius=5.0),
        Appearance(title="T", icon="I", color="#00CC00", coverage_radius=5.0),
    ],
    ids=["title", "icon", "color"],
)
def test_any_differing_field_makes_request_distinct(changed: Appearance) -> None:
    authority, layer = _authority()
    player = LocalPlayer("p")
    authority.add_waypoint(player, (0.0, 0.0, 0.0), T)

    assert authority.add_waypoint(player, (1.0, 0.0, 1.0), changed) is not None
    assert len(layer.waypoints) == 2


def test_inserted_waypoint_carries_request_properties_and_notifies() -> None:
    authority, layer = _authority()
    pinned = Appearance(title="Ore", icon="star", color="#FF0000", pinned=True, coverage_radius=5.0)

    waypoint = authority.add_waypoint(LocalPlayer("p"), (10, 0, 20), pinned)

    assert waypoint is not None
    assert waypoint.position == (10.0, 0.0, 20.0)
    assert waypoint.color == 0xFF0000
    assert waypoint.pinned is True
    assert layer.notified == ["p"]


def test_duplicate_does_not_notify() -> None:
    authority, layer = _authority()
    player = LocalPlayer("p")
    authority.add_waypoint(player, (0.0, 0.0, 0.0), T)
    authority.add_waypoint(player, (1.0, 0.0, 0.0), T)

    assert layer.notified == ["p"]


def test_missing_map_layer_is_a_silent_noop_until_it_appears() -> None:
    server = LocalServerApi(map_layer=None)
    authority = WaypointAuthority(server)

    assert authority.add_waypoint(LocalPlayer("p"), (0.0, 0.0, 0.0), T) is None

    server.map_layer = InMemoryMapLayer()
    assert authority.add_waypoint(LocalPlayer("p"), (0.0, 0.0, 0.0), T) is not None
    assert len(server.map_layer.waypoints) == 1


def test_delete_closest_removes_nearest_owned_waypoint() -> None:
    authority, layer = _authority()
    player = LocalPlayer("p", position=(0.0, 0.0, 0.0))
    authority.add_waypoint(player, (50.0, 0.0, 0.0), T)
    authority.add_waypoint(player, (10.0, 0.0, 10.0), T)
    authority.add_waypoint(LocalPlayer("q"), (1.0, 0.0, 1.0), T)

    removed = authority.delete_closest_waypoint(player)

    assert removed is not None
    assert removed.position == (10.0, 0.0, 10.0)
    assert [wp.position for wp in layer.waypoints] == [(50.0, 0.0, 0.0), (1.0, 0.0, 1.0)]
    assert layer.rebuilds == 1
    assert layer.notified[-1] == "p"


def test_delete_closest_without_waypoints_does_nothing() -> None:
    authority, layer = _authority()

    assert authority.delete_closest_waypoint(LocalPlayer("p")) is None
    assert layer.rebuilds == 0


def test_concurrent_identical_requests_insert_once() -> None:
    authority, layer = _authority()
    player = LocalPlayer("p")
    barrier = threading.Barrier(8)

    def _worker() -> None:
        barrier.wait()
        authority.add_waypoint(player, (0.0, 0.0, 0.0), T)

    threads = [threading.Thread(target=_worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=5)

    assert len(layer.waypoints) == 1
