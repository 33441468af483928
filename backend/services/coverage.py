"""Coverage of population centroids by stations.

Coverage is computed in two steps: ``ReachIndex.reach`` finds every centroid
within the catchment threshold of a position together with its reachability
distance, and ``apportion`` splits each centroid's weight over the stations
that reach it. The placement search reuses both steps directly.
"""
from __future__ import annotations

import logging
import math
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

import numpy as np

from errors import ValidationError
from models import Centroid, GeoPoint, Method, Routing, Station
from services.geospatial import coordinate_array, haversine_many, point_distance
from services.layers import Layer

log = logging.getLogger(__name__)

# centroid index -> reachability distance in meters
Reach = Dict[int, float]


@dataclass(frozen=True)
class CoveredCentroid:
    centroid: Centroid
    distance: float
    weight: float

    def to_dict(self) -> dict:
        return {
            "lat": self.centroid.position.lat,
            "lng": self.centroid.position.lng,
            "distance": self.distance,
            "weight": self.weight,
        }


class CoverageMap:
    """Station id -> covered centroids, in input station order."""

    def __init__(self, entries: Optional[Dict[str, List[CoveredCentroid]]] = None) -> None:
        self._entries: Dict[str, List[CoveredCentroid]] = dict(entries or {})

    def __getitem__(self, station_id: str) -> List[CoveredCentroid]:
        return self._entries[station_id]

    def __contains__(self, station_id: object) -> bool:
        return station_id in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CoverageMap):
            return NotImplemented
        return list(self._entries.items()) == list(other._entries.items())

    def items(self):
        return self._entries.items()

    def station_weight(self, station_id: str) -> float:
        return math.fsum(entry.weight for entry in self._entries.get(station_id, []))

    def total_weight(self) -> float:
        return math.fsum(entry.weight for entries in self._entries.values() for entry in entries)

    def to_dict(self) -> dict:
        return {
            station_id: [entry.to_dict() for entry in entries]
            for station_id, entries in self._entries.items()
        }


class ReachIndex:
    """Reachability queries from arbitrary positions into one layer."""

    def __init__(self, layer: Layer, routing: Routing, threshold_m: float) -> None:
        if not (math.isfinite(threshold_m) and threshold_m > 0):
            raise ValidationError(f"catchment threshold {threshold_m} must be a positive number")
        self.layer = layer
        self.routing = Routing(routing)
        self.threshold_m = threshold_m
        self._coords = coordinate_array([c.position for c in layer.centroids])
        self._snapped: Dict[int, Optional[Tuple[tuple, float]]] = {}

    def reach(self, position: GeoPoint) -> Reach:
        direct = haversine_many(position.to_tuple(), self._coords)
        # network distances are never shorter than direct ones
        candidates = np.flatnonzero(direct <= self.threshold_m)
        if self.routing is Routing.DIRECT:
            return {int(i): float(direct[i]) for i in candidates}

        streets = self.layer.streets
        snapped = streets.nearest_node(position)
        lengths: Dict[tuple, float] = {}
        connector = math.inf
        if snapped is not None:
            node, connector = snapped
            lengths = streets.distances_from(node, cutoff=self.threshold_m - connector)

        result: Reach = {}
        for i in candidates:
            index = int(i)
            if direct[index] == 0.0:
                result[index] = 0.0
                continue
            target = self._snap_centroid(index)
            if target is None or target[0] not in lengths:
                continue
            distance = connector + lengths[target[0]] + target[1]
            if distance <= self.threshold_m:
                result[index] = distance
        return result

    def distance(self, a: GeoPoint, b: GeoPoint) -> float:
        """Point-to-point distance in this index's routing mode; ``inf`` if unreachable."""
        direct = point_distance(a, b)
        if self.routing is Routing.DIRECT or direct == 0.0:
            return direct

        streets = self.layer.streets
        start, end = streets.nearest_node(a), streets.nearest_node(b)
        if start is None or end is None:
            return math.inf
        path = streets.path_length(start[0], end[0])
        if path is None:
            return math.inf
        return start[1] + path + end[1]

    def _snap_centroid(self, index: int) -> Optional[Tuple[tuple, float]]:
        if index not in self._snapped:
            self._snapped[index] = self.layer.streets.nearest_node(self.layer.centroids[index].position)
        return self._snapped[index]


def relative_shares(weight: float, covering: Sequence[Tuple[int, float]]) -> Dict[int, float]:
    at_station = [s for s, d in covering if d == 0.0]
    if at_station:
        share = weight / len(at_station)
        return {s: (share if s in at_station else 0.0) for s, _ in covering}

    inverse = [1.0 / d for _, d in covering]
    total = math.fsum(inverse)
    shares: Dict[int, float] = {}
    for (s, _), inv in zip(covering[:-1], inverse[:-1]):
        shares[s] = weight * inv / total
    # the last share takes the remainder so the shares add up to the weight
    shares[covering[-1][0]] = max(0.0, weight - math.fsum(shares.values()))
    return shares


def absolute_shares(
    weight: float, covering: Sequence[Tuple[int, float]], stations: Sequence[Station]
) -> Dict[int, float]:
    winner = min(covering, key=lambda item: (item[1], stations[item[0]].id))[0]
    return {winner: weight}


def apportion(
    stations: Sequence[Station],
    reaches: Sequence[Reach],
    layer: Layer,
    method: Method,
) -> CoverageMap:
    """Split every reached centroid's weight over the stations reaching it."""
    method = Method(method)
    covering: Dict[int, List[Tuple[int, float]]] = defaultdict(list)
    for s, reach in enumerate(reaches):
        for c, distance in reach.items():
            covering[c].append((s, distance))

    shares: Dict[Tuple[int, int], float] = {}
    for c, cover in covering.items():
        weight = layer.centroids[c].weight
        if method is Method.RELATIVE:
            station_shares = relative_shares(weight, cover)
        else:
            station_shares = absolute_shares(weight, cover, stations)
        for s, share in station_shares.items():
            shares[(s, c)] = share

    entries: Dict[str, List[CoveredCentroid]] = {}
    for s, station in enumerate(stations):
        entries[station.id] = [
            CoveredCentroid(layer.centroids[c], reaches[s][c], shares[(s, c)])
            for c in sorted(reaches[s])
            if (s, c) in shares
        ]
    return CoverageMap(entries)


def check_unique_ids(stations: Sequence[Station]) -> None:
    seen = set()
    for station in stations:
        if station.id in seen:
            raise ValidationError(f"station id '{station.id}' is used more than once")
        seen.add(station.id)


def compute_coverage(
    stations: Sequence[Station],
    layer: Layer,
    method: Method,
    routing: Routing,
    threshold_m: float,
) -> CoverageMap:
    check_unique_ids(stations)
    index = ReachIndex(layer, routing, threshold_m)
    log.debug(
        "coverage for %d stations over %d centroids (%s, %s, %.0fm)",
        len(stations), len(layer.centroids), Method(method).value, index.routing.value, threshold_m,
    )
    reaches = [index.reach(station.position) for station in stations]
    return apportion(stations, reaches, layer, method)
