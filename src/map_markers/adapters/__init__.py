"""Host game adapters (collaborator contracts and in-process implementations)."""

from .host import (
    BlockSelection,
    ClientApi,
    ClientChannel,
    EntitySelection,
    InputAction,
    MapLayer,
    ServerApi,
    ServerChannel,
    ServerPlayer,
)
from .memory import InMemoryMapLayer, LocalClientApi, LocalPlayer, LocalServerApi, LoopbackChannel

__all__ = [
    "BlockSelection",
    "ClientApi",
    "ClientChannel",
    "EntitySelection",
    "InMemoryMapLayer",
    "InputAction",
    "LocalClientApi",
    "LocalPlayer",
    "LocalServerApi",
    "LoopbackChannel",
    "MapLayer",
    "ServerApi",
    "ServerChannel",
    "ServerPlayer",
]
