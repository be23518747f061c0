import logging
from typing import NamedTuple, Optional

import httpx

logger = logging.getLogger("avalanche.geocoding")

GOOGLE_GEOCODE_URL = "https://maps.googleapis.com/maps/api/geocode/json"
# Bias every lookup toward Colorado
COLORADO_COMPONENTS = "administrative_area:CO|country:US"


class GeocodeResult(NamedTuple):
    latitude: float
    longitude: float
    display_name: str


async def geocode_location(
    location: str,
    api_key: str,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Optional[GeocodeResult]:
    """Convert a location name to coordinates using the Google Geocoding API.

    Returns None when the request fails or Google has no match.
    """
    params = {
        "address": location,
        "components": COLORADO_COMPONENTS,
        "key": api_key,
    }
    async with httpx.AsyncClient(transport=transport, follow_redirects=True) as client:
        response = await client.get(GOOGLE_GEOCODE_URL, params=params, timeout=10.0)

    if not response.is_success:
        logger.warning(f"[Geocoding] Google API answered {response.status_code} for '{location}'")
        return None

    data = response.json()
    status = data.get("status")
    if status != "OK" or not data.get("results"):
        logger.info(f"[Geocoding] No result for '{location}' (status {status})")
        return None

    result = data["results"][0]
    coords = result["geometry"]["location"]
    address = result.get("formatted_address", location)
    logger.info(f"[Geocoding] Google API found: {address}")
    return GeocodeResult(coords["lat"], coords["lng"], address)
