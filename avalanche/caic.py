"""Client for the Colorado Avalanche Information Center (CAIC) Avid API.

Fetches forecast areas and products, and resolves a coordinate to the product
published for the forecast area containing it.

Usage:
    client = CAICClient()
    forecast = await client.fetch_forecast_for_location(
        "avalancheforecast", 39.6433, -106.3781  # Vail area
    )
"""

import asyncio
import logging
import os
from typing import Any, Iterable, Optional, Union
from urllib.parse import urlencode

import httpx

from .geometry import Coordinate, point_in_bounding_box, point_in_multi_polygon
from .models import (
    PRODUCT_TYPES,
    AvalancheForecast,
    Feature,
    FeatureCollection,
    ProductType,
    RegionalDiscussion,
    SpecialProduct,
    parse_forecast_record,
)

logger = logging.getLogger("avalanche.caic")

CAIC_API_BASE = os.environ.get("CAIC_API_BASE", "https://avalanche.state.co.us/api-proxy/avid")
CAIC_TIMEOUT = float(os.environ.get("CAIC_TIMEOUT", "30"))
USER_AGENT = "avalanche-chat/1.0"

AnyProduct = Union[AvalancheForecast, RegionalDiscussion, SpecialProduct]


class CAICError(Exception):
    pass


class TransportError(CAICError):
    """An upstream request failed or answered with a non-success status.

    ``status`` is None when no HTTP response was received at all.
    """

    def __init__(self, message: str, status: Optional[int] = None, status_text: str = ""):
        super().__init__(message)
        self.status = status
        self.status_text = status_text


class ResolutionTimeout(CAICError):
    pass


def filter_by_product_type(products: Iterable[AnyProduct], product_type: ProductType) -> list[AnyProduct]:
    """Keep only the products of the requested type.

    The products endpoint always returns every type mixed together.
    """
    return [p for p in products if p.type == product_type]


def find_area_containing_point(latitude: float, longitude: float, areas: FeatureCollection) -> Optional[Feature]:
    """Return the first area, in collection order, whose geometry contains the point."""
    point = Coordinate(latitude, longitude)
    for feature in areas.features:
        if not point_in_bounding_box(point, feature.bbox):
            continue
        if point_in_multi_polygon(point, feature.geometry.coordinates):
            return feature
    return None


class CAICClient:
    """Stateless CAIC API client. Every call goes to the network.

    Args:
        base_url: Proxy endpoint in front of the Avid API
        timeout: Per-request timeout in seconds
        transport: Optional httpx transport, mainly for tests
    """

    def __init__(
        self,
        base_url: str = CAIC_API_BASE,
        timeout: float = CAIC_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url
        self.timeout = timeout
        self.transport = transport

    def build_url(self, path: str) -> str:
        """Wrap an Avid API path in the proxy's ``_api_proxy_uri`` parameter."""
        return f"{self.base_url}?{urlencode({'_api_proxy_uri': path})}"

    async def _get_json(self, path: str, what: str) -> Any:
        url = self.build_url(path)
        headers = {"User-Agent": USER_AGENT, "Accept": "application/json"}
        try:
            async with httpx.AsyncClient(
                transport=self.transport, follow_redirects=True, timeout=self.timeout
            ) as client:
                response = await client.get(url, headers=headers)
        except httpx.TimeoutException as e:
            raise ResolutionTimeout(f"Timed out fetching {what}") from e
        except httpx.RequestError as e:
            raise TransportError(f"Failed to fetch {what}: {e}", status_text=str(e)) from e

        if not response.is_success:
            raise TransportError(
                f"Failed to fetch {what}: {response.status_code} {response.reason_phrase}",
                status=response.status_code,
                status_text=response.reason_phrase,
            )
        return response.json()

    async def get_areas(self, product_type: ProductType, include_expired: bool = True) -> FeatureCollection:
        """Fetch the GeoJSON forecast areas for a product type."""
        params = urlencode({"productType": product_type, "includeExpired": str(include_expired).lower()})
        data = await self._get_json(f"/products/all/area?{params}", "areas")
        return FeatureCollection.model_validate(data)

    async def get_products(self, include_expired: bool = True) -> list[AnyProduct]:
        """Fetch every published product (forecasts, discussions, special products)."""
        params = urlencode({"includeExpired": str(include_expired).lower()})
        data = await self._get_json(f"/products/all?{params}", "products")
        products = []
        for item in data:
            if item.get("type") not in PRODUCT_TYPES:
                logger.debug(f"[CAIC] Skipping product with unknown type {item.get('type')!r}")
                continue
            products.append(parse_forecast_record(item))
        return products

    async def fetch_forecast_for_product(self, product_type: ProductType) -> list[AnyProduct]:
        products = await self.get_products()
        return filter_by_product_type(products, product_type)

    async def fetch_forecast_for_location(
        self,
        product_type: ProductType,
        latitude: float,
        longitude: float,
        timeout: Optional[float] = None,
    ) -> Optional[AnyProduct]:
        """Fetch the product of the given type covering a location.

        Args:
            product_type: The type of product to fetch
            latitude: Latitude of the location
            longitude: Longitude of the location
            timeout: Overall deadline in seconds for both upstream fetches

        Returns:
            The matching product, or None if the location is outside every
            forecast area or its area has no product of that type.

        Raises:
            TransportError: either fetch failed
            ResolutionTimeout: the deadline passed before both fetches finished
        """
        try:
            areas, products = await asyncio.wait_for(self._fetch_areas_and_products(product_type), timeout)
        except asyncio.TimeoutError as e:
            raise ResolutionTimeout(f"Timed out resolving {product_type} after {timeout}s") from e

        area = find_area_containing_point(latitude, longitude, areas)
        if area is None:
            logger.info(f"[CAIC] ({latitude}, {longitude}) is outside all {product_type} areas")
            return None

        product = next((p for p in products if p.area_id == area.area_id), None)
        if product is None:
            logger.info(f"[CAIC] Area {area.area_id} has no current {product_type}")
        return product

    async def _fetch_areas_and_products(self, product_type: ProductType) -> tuple[FeatureCollection, list[AnyProduct]]:
        areas_task = asyncio.ensure_future(self.get_areas(product_type))
        products_task = asyncio.ensure_future(self.fetch_forecast_for_product(product_type))
        try:
            areas, products = await asyncio.gather(areas_task, products_task)
        except BaseException:
            # gather leaves the sibling running when one task fails
            areas_task.cancel()
            products_task.cancel()
            raise
        return areas, products


def create_caic_client() -> CAICClient:
    return CAICClient()
