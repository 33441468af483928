from __future__ import annotations

import math
from typing import List, Sequence, Tuple

import numpy as np

from errors import GeometryError
from models import GeoPoint


Coordinate = Tuple[float, float]

EARTH_RADIUS_M = 6371_000


def haversine_distance_meters(origin: Coordinate, target: Coordinate) -> float:
    """Calculate great-circle distance between two WGS84 coordinates in meters."""
    lat1, lon1 = origin
    lat2, lon2 = target

    # convert decimal degrees to radians
    lat1_rad, lon1_rad, lat2_rad, lon2_rad = map(math.radians, [lat1, lon1, lat2, lon2])

    d_lat = lat2_rad - lat1_rad
    d_lon = lon2_rad - lon1_rad

    a = math.sin(d_lat / 2) ** 2 + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(d_lon / 2) ** 2
    a = min(1.0, a)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    distance = EARTH_RADIUS_M * c
    if math.isnan(distance):
        raise GeometryError(f"distance between {origin} and {target} is not a number")
    return distance


def point_distance(a: GeoPoint, b: GeoPoint) -> float:
    if a == b:
        return 0.0
    return haversine_distance_meters(a.to_tuple(), b.to_tuple())


def haversine_many(origin: Coordinate, targets: np.ndarray) -> np.ndarray:
    """Vectorised great-circle distance from one coordinate to an (N, 2) lat/lng array."""
    if len(targets) == 0:
        return np.zeros(0)

    lat1, lon1 = np.radians(origin[0]), np.radians(origin[1])
    lat2 = np.radians(targets[:, 0])
    lon2 = np.radians(targets[:, 1])

    a = np.sin((lat2 - lat1) / 2) ** 2 + np.cos(lat1) * np.cos(lat2) * np.sin((lon2 - lon1) / 2) ** 2
    a = np.clip(a, 0.0, 1.0)
    distances = EARTH_RADIUS_M * 2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a))
    if np.isnan(distances).any():
        raise GeometryError(f"distance from {origin} produced NaN values")
    return distances


def coordinate_array(points: Sequence[GeoPoint]) -> np.ndarray:
    return np.array([p.to_tuple() for p in points], dtype=float).reshape(-1, 2)


def route_length(route: Sequence[GeoPoint]) -> float:
    return sum(point_distance(a, b) for a, b in zip(route, route[1:]))


def _interpolate(a: GeoPoint, b: GeoPoint, fraction: float) -> GeoPoint:
    return GeoPoint(a.lat + (b.lat - a.lat) * fraction, a.lng + (b.lng - a.lng) * fraction)


def sample_route(route: Sequence[GeoPoint], step_m: float) -> List[Tuple[float, GeoPoint]]:
    """Sample a polyline every ``step_m`` meters of arc length.

    Every original vertex is part of the result so that sharp turns are not
    skipped. Returns ``(arc_length, point)`` pairs sorted by arc length; points
    sharing an arc length (zero-length segments) appear once.
    """
    if len(route) < 2:
        raise GeometryError("a route needs at least 2 points")
    if not (math.isfinite(step_m) and step_m > 0):
        raise GeometryError(f"sample step {step_m} must be a positive number")

    samples: List[Tuple[float, GeoPoint]] = [(0.0, route[0])]
    travelled = 0.0
    next_mark = step_m

    for a, b in zip(route, route[1:]):
        seg_len = point_distance(a, b)
        seg_end = travelled + seg_len
        while seg_len > 0 and next_mark < seg_end:
            samples.append((next_mark, _interpolate(a, b, (next_mark - travelled) / seg_len)))
            next_mark += step_m
        samples.append((seg_end, b))
        travelled = seg_end

    samples.sort(key=lambda item: item[0])
    unique: List[Tuple[float, GeoPoint]] = []
    for arc, point in samples:
        if unique and math.isclose(arc, unique[-1][0], rel_tol=0.0, abs_tol=1e-9):
            continue
        unique.append((arc, point))
    return unique
