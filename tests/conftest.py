"""Shared pytest fixtures for the avalanche tests.

Upstream HTTP is never touched: CAIC and Google responses are served by
``httpx.MockTransport`` handlers built here.
"""

import os
import tempfile

# Log files from module-level handlers land in a scratch directory
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="avalanche-logs-"))

import httpx
import pytest

VAIL = (39.6433, -106.3781)


def square(min_lng, min_lat, max_lng, max_lat):
    return [[min_lng, min_lat], [max_lng, min_lat], [max_lng, max_lat], [min_lng, max_lat]]


def make_feature(area_id, polygons, bbox=None):
    """Build an area feature the way the areas endpoint returns it."""
    if bbox is None:
        points = [p for polygon in polygons for ring in polygon for p in ring]
        lngs = [p[0] for p in points]
        lats = [p[1] for p in points]
        bbox = [min(lngs), min(lats), max(lngs), max(lats)]
    return {
        "id": area_id,
        "type": "Feature",
        "bbox": bbox,
        "geometry": {"type": "MultiPolygon", "coordinates": polygons},
        "properties": {"id": area_id, "centroid": [(bbox[0] + bbox[2]) / 2, (bbox[1] + bbox[3]) / 2]},
    }


def feature_collection(*features):
    return {"type": "FeatureCollection", "features": list(features)}


def avalanche_forecast(record_id, area_id, **extra):
    record = {
        "id": record_id,
        "type": "avalancheforecast",
        "areaId": area_id,
        "publicName": "Vail & Summit County",
        "forecaster": "Test Forecaster",
        "issueDateTime": "2025-01-10T23:30:00Z",
        "expiryDateTime": "2025-01-11T23:30:00Z",
        "dangerRatings": {"days": [
            {"position": 1, "alp": "considerable", "tln": "moderate", "btl": "low", "date": "2025-01-11"},
        ]},
    }
    record.update(extra)
    return record


def regional_discussion(record_id, area_id, **extra):
    record = {
        "id": record_id,
        "type": "regionaldiscussion",
        "areaId": area_id,
        "title": "Statewide Discussion",
        "message": "A weak layer persists near the ground.",
        "issueDateTime": "2025-01-10T16:00:00Z",
    }
    record.update(extra)
    return record


def special_product(record_id, area_id, **extra):
    record = {
        "id": record_id,
        "type": "specialproduct",
        "areaId": area_id,
        "title": "Avalanche Warning",
        "specialProductType": "warning",
        "issueDateTime": "2025-01-10T06:00:00Z",
    }
    record.update(extra)
    return record


class FakeCAIC:
    """Serves canned areas/products responses and records every request."""

    def __init__(self, areas=None, products=None, areas_status=200, products_status=200):
        self.areas = areas if areas is not None else feature_collection()
        self.products = products if products is not None else []
        self.areas_status = areas_status
        self.products_status = products_status
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.params["_api_proxy_uri"]
        if path.startswith("/products/all/area"):
            return httpx.Response(self.areas_status, json=self.areas)
        if path.startswith("/products/all"):
            return httpx.Response(self.products_status, json=self.products)
        return httpx.Response(404)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


@pytest.fixture
def vail_feature():
    return make_feature("vail-area", [[square(-106.6, 39.4, -106.1, 39.9)]])


@pytest.fixture
def aspen_feature():
    return make_feature("aspen-area", [[square(-107.2, 38.9, -106.7, 39.3)]])
