"""Automatic map waypoints for configured blocks and creatures."""

from map_markers.models import Appearance, Waypoint
from map_markers.protocol import WaypointRequest, decode_request, encode_request
from map_markers.system import MapMarkersSystem

__all__ = [
    "Appearance",
    "MapMarkersSystem",
    "Waypoint",
    "WaypointRequest",
    "decode_request",
    "encode_request",
]
