"""Reduce per-category coverage into inhabitant totals."""
import math
from typing import Dict, Iterable, Optional, Tuple

from models import LayerType
from services.coverage import CoverageMap


class InhabitantsMap:
    """Category -> covered inhabitants, with a per-station breakdown.

    Categories are independent population facets, so totals are only summed
    across categories through ``grand_total``.
    """

    def __init__(self) -> None:
        self.totals: Dict[str, float] = {}
        self.stations: Dict[str, Dict[str, float]] = {}

    def add(self, category: str, coverage: CoverageMap) -> None:
        breakdown = self.stations.setdefault(category, {})
        for station_id, _ in coverage.items():
            breakdown[station_id] = breakdown.get(station_id, 0.0) + coverage.station_weight(station_id)
        self.totals[category] = math.fsum(breakdown.values())

    def total(self, category: str) -> float:
        return self.totals.get(category, 0.0)

    def grand_total(self) -> float:
        return math.fsum(self.totals.values())

    def to_dict(self) -> dict:
        return {"inhabitants": dict(self.totals), "stations": {k: dict(v) for k, v in self.stations.items()}}


def _label(category: Optional[LayerType]) -> str:
    if category is None:
        return "untyped"
    return LayerType(category).value


def aggregate(coverage_by_category: Iterable[Tuple[Optional[LayerType], CoverageMap]]) -> InhabitantsMap:
    inhabitants = InhabitantsMap()
    for category, coverage in coverage_by_category:
        inhabitants.add(_label(category), coverage)
    return inhabitants
