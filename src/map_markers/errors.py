"""Exception hierarchy for the map markers subsystem."""


class MapMarkersError(RuntimeError):
    """Base error for map marker failures."""


class RulesConfigError(MapMarkersError):
    """Raised when a waypoint rule file cannot be read or validated."""


class ProtocolDecodeError(MapMarkersError, ValueError):
    """Raised when a waypoint request payload is malformed or truncated."""
