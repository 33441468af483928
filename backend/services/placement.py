"""Search a proposed route for the best position of one new station.

The route is sampled at a fixed arc-length step (plus every vertex). Each
sample that keeps the separation distance to all existing stations is scored
by the weight the new station would take over, using the same apportionment
as the coverage calculation. The first sample with the highest score wins.
"""
from __future__ import annotations

import logging
import math
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from errors import GeometryError, ValidationError
from models import GeoPoint, Method, Routing, Station
from services.coverage import (
    CoverageMap,
    ReachIndex,
    absolute_shares,
    apportion,
    check_unique_ids,
    relative_shares,
)
from services.geospatial import point_distance, route_length, sample_route
from services.layers import Layer

log = logging.getLogger(__name__)

CANDIDATE_ID = "candidate"


@dataclass(frozen=True)
class OptimalStationResult:
    feasible: bool
    station: Optional[Station] = None
    score: float = 0.0
    coverage: Optional[CoverageMap] = None
    arc_length: Optional[float] = None
    reason: Optional[str] = None

    @property
    def position(self) -> Optional[GeoPoint]:
        return self.station.position if self.station else None

    @classmethod
    def infeasible(cls, reason: str) -> "OptimalStationResult":
        return cls(feasible=False, reason=reason)

    def to_dict(self) -> dict:
        if not self.feasible:
            return {"feasible": False, "reason": self.reason}
        return {
            "feasible": True,
            "station": {"id": self.station.id, **self.station.position.to_dict()},
            "position": self.station.position.to_dict(),
            "arc_length": self.arc_length,
            "score": self.score,
            "coverage": self.coverage.to_dict(),
        }


def candidate_id(existing: Sequence[Station]) -> str:
    taken = {station.id for station in existing}
    name, suffix = CANDIDATE_ID, 1
    while name in taken:
        name = f"{CANDIDATE_ID}-{suffix}"
        suffix += 1
    return name


def _candidate_score(
    reach: Dict[int, float],
    existing_cover: Dict[int, List[Tuple[int, float]]],
    stations: Sequence[Station],
    layer: Layer,
    method: Method,
) -> float:
    position = len(stations) - 1
    shares = []
    for c in sorted(reach):
        cover = existing_cover.get(c, []) + [(position, reach[c])]
        weight = layer.centroids[c].weight
        if method is Method.RELATIVE:
            station_shares = relative_shares(weight, cover)
        else:
            station_shares = absolute_shares(weight, cover, stations)
        shares.append(station_shares.get(position, 0.0))
    return math.fsum(shares)


def _separation(index: ReachIndex, a: GeoPoint, b: GeoPoint) -> float:
    """Network distance between two points, or the direct one where no street path exists."""
    d = index.distance(a, b)
    if math.isinf(d):
        return point_distance(a, b)
    return d


def find_optimal_station(
    route: Sequence[GeoPoint],
    separation_distance: float,
    layer: Layer,
    existing_stations: Sequence[Station],
    method: Method,
    routing: Routing,
    *,
    threshold_m: float,
    step_m: float,
) -> OptimalStationResult:
    if len(route) < 2:
        raise GeometryError("a route needs at least 2 points")
    if not (math.isfinite(separation_distance) and separation_distance >= 0):
        raise ValidationError(f"separation distance {separation_distance} must be a non-negative number")
    check_unique_ids(existing_stations)
    method = Method(method)

    if route_length(route) == 0.0:
        return OptimalStationResult.infeasible("route has zero length")

    index = ReachIndex(layer, routing, threshold_m)
    existing_reaches = [index.reach(station.position) for station in existing_stations]
    existing_cover: Dict[int, List[Tuple[int, float]]] = defaultdict(list)
    for s, reach in enumerate(existing_reaches):
        for c, distance in reach.items():
            existing_cover[c].append((s, distance))

    new_id = candidate_id(existing_stations)
    samples = sample_route(route, step_m)
    log.debug("searching %d route samples against %d stations", len(samples), len(existing_stations))

    best: Optional[Tuple[float, Station, Dict[int, float]]] = None
    best_score = -math.inf
    for arc, point in samples:
        if any(_separation(index, point, s.position) < separation_distance for s in existing_stations):
            continue
        candidate = Station(id=new_id, position=point)
        reach = index.reach(point)
        stations = list(existing_stations) + [candidate]
        score = _candidate_score(reach, existing_cover, stations, layer, method)
        if score > best_score:
            best_score = score
            best = (arc, candidate, reach)

    if best is None:
        return OptimalStationResult.infeasible(
            f"no feasible location: every sampled point is closer than "
            f"{separation_distance:g} m to an existing station"
        )

    arc, candidate, reach = best
    stations = list(existing_stations) + [candidate]
    coverage = apportion(stations, existing_reaches + [reach], layer, method)
    return OptimalStationResult(
        feasible=True,
        station=candidate,
        score=coverage.station_weight(candidate.id),
        coverage=coverage,
        arc_length=arc,
    )
