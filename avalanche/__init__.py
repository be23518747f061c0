"""Avalanche forecast helpers with lazy server imports to avoid runpy warnings.

`avalanche.server` is not imported at package import time, so starting the
server with `python -m avalanche.server` from another process stays quiet.
"""

from importlib import import_module

from .caic import CAICClient, CAICError, ResolutionTimeout, TransportError, find_area_containing_point
from .client import MCPClientError, MCPStdIOClient
from .geometry import (
    Coordinate,
    point_in_bounding_box,
    point_in_multi_polygon,
    point_in_polygon,
    point_in_ring,
)

__all__ = [
    "CAICClient",
    "CAICError",
    "TransportError",
    "ResolutionTimeout",
    "find_area_containing_point",
    "Coordinate",
    "point_in_bounding_box",
    "point_in_ring",
    "point_in_polygon",
    "point_in_multi_polygon",
    "MCPStdIOClient",
    "MCPClientError",
    "mcp",
    "geocode",
    "get_avalanche_info",
    "get_tool_specs",
    "run_server",
]

# Attributes provided by the server module, imported only on first access.
_server_attrs = {
    "mcp",
    "geocode",
    "get_avalanche_info",
    "get_tool_specs",
    "run_server",
}


def _load_server():
    return import_module(".server", __package__)


def __getattr__(name: str):
    if name in _server_attrs:
        return getattr(_load_server(), name)
    raise AttributeError(f"module {__name__} has no attribute {name}")


def __dir__():
    return sorted(list(globals().keys()) + list(_server_attrs))
