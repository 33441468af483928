"""Read-only loader for layer files in the layer cache directory.

Every ``*.json`` file in the directory holds one layer::

    {"id": "...", "name": "...", "type": "residential",
     "centroids": [{"lat": .., "lng": .., "weight": ..}],
     "streets": {"nodes": [{"id": .., "lat": .., "lng": ..}],
                 "edges": [{"source": .., "target": .., "length": ..}]}}

Files are loaded in filename order so the store is the same on every start.
"""
import logging
from pathlib import Path
from typing import List, Optional, Union

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from errors import DataError, OLPError
from models import Centroid, GeoPoint, LayerType
from services.layers import Layer, LayerStore
from services.streets import StreetNetwork

log = logging.getLogger(__name__)

NodeId = Union[int, str]


class CentroidRecord(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    weight: float = Field(..., ge=0)


class StreetNodeRecord(BaseModel):
    id: NodeId
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class StreetEdgeRecord(BaseModel):
    source: NodeId
    target: NodeId
    length: Optional[float] = Field(None, ge=0)


class StreetsRecord(BaseModel):
    nodes: List[StreetNodeRecord] = Field(default_factory=list)
    edges: List[StreetEdgeRecord] = Field(default_factory=list)


class LayerRecord(BaseModel):
    id: str
    name: str
    type: LayerType
    centroids: List[CentroidRecord] = Field(default_factory=list)
    streets: StreetsRecord = Field(default_factory=StreetsRecord)

    def to_layer(self) -> Layer:
        centroids = tuple(
            Centroid(GeoPoint(c.lat, c.lng), c.weight, self.type) for c in self.centroids
        )
        nodes = {node.id: GeoPoint(node.lat, node.lng) for node in self.streets.nodes}
        for edge in self.streets.edges:
            for end in (edge.source, edge.target):
                if end not in nodes:
                    raise DataError(f"layer '{self.id}': edge references unknown node {end!r}")
        streets = StreetNetwork.from_edges(
            nodes, ((e.source, e.target, e.length) for e in self.streets.edges)
        )
        return Layer(id=self.id, name=self.name, layer_type=self.type, centroids=centroids, streets=streets)


def load_layer_file(path: Path) -> Layer:
    try:
        record = LayerRecord.model_validate_json(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise DataError(f"could not read {path}: {exc}") from exc
    except PydanticValidationError as exc:
        raise DataError(f"invalid layer file {path}: {exc.error_count()} errors", details=str(exc)) from exc

    try:
        return record.to_layer()
    except OLPError as exc:
        raise DataError(f"invalid layer file {path}: {exc.message}") from exc


def load_layers(path: Path) -> LayerStore:
    path = Path(path)
    if not path.is_dir():
        raise DataError(f"layer directory {path} does not exist")

    layers = [load_layer_file(file) for file in sorted(path.glob("*.json"))]
    log.info("Loaded %d layers from %s", len(layers), path)
    return LayerStore.from_layers(layers)
