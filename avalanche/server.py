import os
import logging

from .caic import CAICError, create_caic_client
from .formatting import format_product
from .geocoding import geocode_location
from .models import PRODUCT_TYPES

logger = logging.getLogger("avalanche.server")

# A small registry to export tool metadata (server-first source of truth)
_TOOL_SPECS: list[dict] = []
# Functions (and args/kwargs for mcp.tool) waiting for the MCP server to exist.
_REGISTERED_FUNCS: list[tuple] = []

# The MCP instance is created lazily via `get_mcp()` / `register_tools_with_mcp()`.
mcp = None


def get_mcp():
    """Lazily initialize and return the FastMCP server instance."""
    global mcp
    if mcp is not None:
        return mcp
    from mcp.server.fastmcp import FastMCP
    mcp = FastMCP("avalanche")
    return mcp


def register_tools_with_mcp():
    """Register all previously-decorated functions with the MCP instance."""
    m = get_mcp()
    for fn, args, kwargs in _REGISTERED_FUNCS:
        m.tool(*args, **kwargs)(fn)


def tool(*args, schema: dict | None = None, **kwargs):
    """Record tool metadata without initializing MCP.

    Use as `@tool(schema={...})`. The function itself is returned unchanged and
    is handed to FastMCP when `register_tools_with_mcp()` runs.
    """
    def decorator(fn):
        spec = {
            "name": fn.__name__,
            "description": (fn.__doc__ or "").strip(),
            "input_schema": schema or {},
        }
        _TOOL_SPECS.append(spec)
        _REGISTERED_FUNCS.append((fn, args, kwargs))
        setattr(fn, "__tool_spec__", spec)
        return fn
    return decorator


def get_tool_specs() -> list[dict]:
    """Return a copy of the registered tool specs."""
    return [dict(s) for s in _TOOL_SPECS]


def export_tools_json(path: str = "tools.json") -> None:
    """Write the exported tool metadata to a JSON file."""
    import json
    with open(path, "w", encoding="utf-8") as fh:
        json.dump(get_tool_specs(), fh, indent=2)


GOOGLE_API_KEY = os.environ.get("GOOGLE_GEOCODING_API_KEY")
NOT_FOUND_MESSAGE = "No forecast available for this location."

caic_client = create_caic_client()


@tool(schema={
    "type": "object",
    "properties": {
        "location": {
            "type": "string",
            "description": "The location to geocode, e.g. 'Berthoud Pass' or 'Rocky Mountain National Park'",
        },
    },
    "required": ["location"],
    "additionalProperties": False,
})
async def geocode(location: str) -> str:
    """Convert a location name to latitude/longitude coordinates. Biased toward Colorado results.

    Use this tool when you need coordinates for a location name.
    """
    if not GOOGLE_API_KEY:
        return "Google Geocoding API key is not set. Please set the GOOGLE_GEOCODING_API_KEY environment variable."

    try:
        result = await geocode_location(location, GOOGLE_API_KEY)
    except Exception as e:
        logger.exception(f"[Geocoding] Google API failed: {e}")
        return f"Geocoding error: {str(e)}"

    if result is None:
        return f"Unable to find location '{location}'."

    return f"""
Location: {result.display_name}
Latitude: {result.latitude}
Longitude: {result.longitude}
"""


@tool(schema={
    "type": "object",
    "properties": {
        "product_type": {
            "type": "string",
            "enum": list(PRODUCT_TYPES),
            "description": "The type of avalanche product to fetch",
        },
        "latitude": {"type": "number", "description": "Latitude of the location"},
        "longitude": {"type": "number", "description": "Longitude of the location"},
    },
    "required": ["product_type", "latitude", "longitude"],
    "additionalProperties": False,
})
async def get_avalanche_info(product_type: str, latitude: float, longitude: float) -> str:
    """Fetch avalanche forecast, regional discussion, or special product for a given location.

    Requires latitude/longitude - use the geocode tool first if you only have a location name.
    """
    if product_type not in PRODUCT_TYPES:
        return f"Unknown product type '{product_type}'. Use one of: {', '.join(PRODUCT_TYPES)}."

    try:
        product = await caic_client.fetch_forecast_for_location(product_type, latitude, longitude)
    except CAICError as e:
        logger.exception(f"[CAIC API Error] {e}")
        return f"Unable to fetch avalanche information: {e}"

    if product is None:
        return NOT_FOUND_MESSAGE

    if product.type != product_type:
        return "Unexpected product type"

    return format_product(product)


def run_server(transport: str = "stdio") -> None:
    """Run the MCP server (convenience wrapper)."""
    register_tools_with_mcp()
    get_mcp().run(transport=transport)


if __name__ == "__main__":
    from .logs import attach_file_handler, log_path
    # Everything under the "avalanche" logger goes to the server log file
    attach_file_handler(logging.getLogger("avalanche"), log_path("avalanche_server.log"))
    run_server()
