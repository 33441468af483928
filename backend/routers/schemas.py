from typing import List, Optional

from pydantic import BaseModel, Field

from models import GeoPoint, Method, Routing, Station


class Point(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)

    def to_geo(self) -> GeoPoint:
        return GeoPoint(self.lat, self.lng)


class StationIn(BaseModel):
    id: str = Field(..., min_length=1)
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    name: Optional[str] = None

    def to_station(self) -> Station:
        return Station(id=self.id, position=GeoPoint(self.lat, self.lng), name=self.name)


class StationInfoRequest(BaseModel):
    stations: List[StationIn] = Field(..., min_length=1)
    # catchment radius for this request, meters
    separation_distance: Optional[int] = Field(None, ge=100, le=10000)
    method: Optional[Method] = None
    routing: Optional[Routing] = None


class CoverageInfoRequest(BaseModel):
    stations: List[StationIn] = Field(..., min_length=1)
    separation_distance: Optional[int] = Field(None, ge=100, le=10000)
    method: Optional[Method] = None


class FindStationRequest(BaseModel):
    stations: List[StationIn] = Field(..., min_length=1)
    route: List[Point] = Field(..., min_length=2)
    separation_distance: Optional[int] = Field(None, ge=100, le=10000)
    method: Optional[Method] = None
    routing: Optional[Routing] = None
