# backend/models.py
import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from errors import DataError, GeometryError, ValidationError


# ---------- Selectors ----------
class Method(str, Enum):
    RELATIVE = "relative"
    ABSOLUTE = "absolute"


class Routing(str, Enum):
    OSM = "osm"
    DIRECT = "direct"


class LayerType(str, Enum):
    RESIDENTIAL = "residential"
    WORK = "work"
    SCHOOL = "school"
    SHOPPING = "shopping"
    OTHER = "other"


# ---------- GeoPoint ----------
@dataclass(frozen=True)
class GeoPoint:
    lat: float
    lng: float

    def __post_init__(self) -> None:
        if not (math.isfinite(self.lat) and math.isfinite(self.lng)):
            raise GeometryError(f"non-finite coordinate ({self.lat}, {self.lng})")
        if not -90.0 <= self.lat <= 90.0:
            raise GeometryError(f"latitude {self.lat} outside [-90, 90]")
        if not -180.0 <= self.lng <= 180.0:
            raise GeometryError(f"longitude {self.lng} outside [-180, 180]")

    def to_tuple(self) -> Tuple[float, float]:
        return (self.lat, self.lng)

    def to_dict(self) -> dict:
        return {"lat": self.lat, "lng": self.lng}


# ---------- Station ----------
@dataclass(frozen=True)
class Station:
    id: str
    position: GeoPoint
    name: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.id:
            raise ValidationError("station id must not be empty")


# ---------- Centroid ----------
@dataclass(frozen=True)
class Centroid:
    position: GeoPoint
    weight: float
    layer_type: LayerType

    def __post_init__(self) -> None:
        if not math.isfinite(self.weight) or self.weight < 0:
            raise DataError(f"centroid weight {self.weight} must be a non-negative number")
