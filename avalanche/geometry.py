"""Point-in-polygon helpers for GeoJSON-style coordinates.

Coordinates follow GeoJSON ordering: every position is ``[lng, lat]``.
A ring is treated as closed whether or not its last point repeats the first.
"""

from typing import NamedTuple, Sequence

Position = Sequence[float]
Ring = Sequence[Position]
Polygon = Sequence[Ring]
MultiPolygon = Sequence[Polygon]


class Coordinate(NamedTuple):
    latitude: float
    longitude: float


def point_in_bounding_box(point: Coordinate, bbox: Sequence[float]) -> bool:
    """Quick bounding box check for early rejection.

    Args:
        point: The point to test
        bbox: Bounding box as [minLng, minLat, maxLng, maxLat]
    """
    min_lng, min_lat, max_lng, max_lat = bbox
    return min_lng <= point.longitude <= max_lng and min_lat <= point.latitude <= max_lat


def point_in_ring(point: Coordinate, ring: Ring) -> bool:
    """Even-odd ray casting: count edges crossed by a ray going east from the point."""
    lat, lng = point.latitude, point.longitude
    inside = False
    n = len(ring)
    j = n - 1
    for i in range(n):
        xi, yi = ring[i][0], ring[i][1]
        xj, yj = ring[j][0], ring[j][1]
        if (yi > lat) != (yj > lat) and lng < (xj - xi) * (lat - yi) / (yj - yi) + xi:
            inside = not inside
        j = i
    return inside


def point_in_polygon(point: Coordinate, polygon: Polygon) -> bool:
    """Inside the outer ring and outside every hole."""
    if not polygon or not point_in_ring(point, polygon[0]):
        return False
    return not any(point_in_ring(point, hole) for hole in polygon[1:])


def point_in_multi_polygon(point: Coordinate, multipolygon: MultiPolygon) -> bool:
    return any(point_in_polygon(point, polygon) for polygon in multipolygon)
