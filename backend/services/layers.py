"""Layer store and the merge views built on top of it.

Layers and stores are immutable. Merging builds new composite layers and
never touches the source layers, so concurrent requests may merge the same
snapshot without coordination.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from models import Centroid, LayerType
from services.streets import StreetNetwork

log = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class Layer:
    id: str
    name: str
    layer_type: Optional[LayerType]
    centroids: Tuple[Centroid, ...] = ()
    streets: StreetNetwork = field(default_factory=StreetNetwork)

    @property
    def inhabitants(self) -> float:
        return sum(c.weight for c in self.centroids)

    def summary(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.layer_type.value if self.layer_type else None,
            "centroids": len(self.centroids),
            "inhabitants": self.inhabitants,
            "street_nodes": self.streets.node_count,
            "street_edges": self.streets.edge_count,
        }


def empty_layer(layer_type: Optional[LayerType] = None) -> Layer:
    return Layer(id="empty", name="empty", layer_type=layer_type)


def merge_layers(layers: Sequence[Layer], layer_id: str = "merged", name: Optional[str] = None) -> Layer:
    """Concatenate centroids and union street networks of ``layers`` in order.

    Centroids sharing a coordinate are kept as separate entries. The result
    carries the common layer type, or ``None`` when types differ.
    """
    if not layers:
        return empty_layer()

    types = {layer.layer_type for layer in layers}
    layer_type = types.pop() if len(types) == 1 else None
    centroids = tuple(c for layer in layers for c in layer.centroids)
    streets = StreetNetwork.union(layer.streets for layer in layers)
    return Layer(
        id=layer_id,
        name=name or "+".join(layer.name for layer in layers),
        layer_type=layer_type,
        centroids=centroids,
        streets=streets,
    )


@dataclass(frozen=True)
class LayerStore:
    layers: Tuple[Layer, ...] = ()

    @classmethod
    def from_layers(cls, layers: Iterable[Layer]) -> "LayerStore":
        return cls(tuple(layers))

    def is_empty(self) -> bool:
        return not self.layers

    def by_type(self) -> Dict[Optional[LayerType], List[Layer]]:
        """Group layers by type, in order of first appearance."""
        grouped: Dict[Optional[LayerType], List[Layer]] = {}
        for layer in self.layers:
            grouped.setdefault(layer.layer_type, []).append(layer)
        return grouped


def merge_by_category(store: LayerStore) -> List[Tuple[LayerType, Layer]]:
    merged = []
    for layer_type, layers in store.by_type().items():
        label = layer_type.value if layer_type else "untyped"
        merged.append((layer_type, merge_layers(layers, layer_id=f"merged-{label}", name=label)))
    return merged


def merge_all(store: LayerStore) -> Layer:
    return merge_layers(store.layers, layer_id="merged-all", name="all")


class LayerStoreHolder:
    """Shared reference to the current store snapshot.

    Readers take one snapshot per request and use it throughout; a reload
    swaps in a whole new store instead of mutating the current one.
    """

    def __init__(self, store: Optional[LayerStore] = None, loaded: bool = False) -> None:
        self._lock = threading.Lock()
        self._store = store if store is not None else LayerStore()
        self._loaded = loaded

    def snapshot(self) -> LayerStore:
        with self._lock:
            return self._store

    @property
    def loaded(self) -> bool:
        with self._lock:
            return self._loaded

    def replace(self, store: LayerStore, loaded: bool = True) -> None:
        with self._lock:
            self._store = store
            self._loaded = loaded
        log.info("Layer store replaced: %d layers", len(store.layers))
