"""Street network graph used for network routing.

Nodes are keyed by their ``(lat, lng)`` coordinate so that networks loaded
from different layers union by coordinate identity. Edge ``length`` is in
meters and never shorter than the great-circle distance between its ends,
which keeps network distances at or above direct distances.
"""
from __future__ import annotations

import logging
import math
from typing import Dict, Iterable, Mapping, Optional, Tuple

import networkx as nx

from errors import DataError
from models import GeoPoint
from services.geospatial import coordinate_array, haversine_distance_meters, haversine_many

log = logging.getLogger(__name__)

NodeKey = Tuple[float, float]


class StreetNetwork:
    def __init__(self, graph: Optional[nx.Graph] = None) -> None:
        graph = graph if graph is not None else nx.Graph()
        self._graph = nx.freeze(graph)
        self._keys = list(self._graph.nodes)
        self._coords = coordinate_array([GeoPoint(*key) for key in self._keys])

    @classmethod
    def from_edges(
        cls,
        nodes: Mapping[object, GeoPoint],
        edges: Iterable[Tuple[object, object, Optional[float]]],
    ) -> "StreetNetwork":
        """Build a network from node ids and ``(source, target, length)`` edges.

        A missing length is replaced by the geodesic length of the segment.
        """
        graph = nx.Graph()
        for point in nodes.values():
            graph.add_node(point.to_tuple())
        for source, target, length in edges:
            _add_edge(graph, nodes[source].to_tuple(), nodes[target].to_tuple(), length)
        return cls(graph)

    @classmethod
    def union(cls, networks: Iterable["StreetNetwork"]) -> "StreetNetwork":
        graph = nx.Graph()
        count = 0
        for network in networks:
            graph.add_nodes_from(network._graph.nodes)
            for u, v, data in network._graph.edges(data=True):
                _add_edge(graph, u, v, data["length"])
            count += 1
        log.debug("united %d street networks into %d nodes", count, graph.number_of_nodes())
        return cls(graph)

    @property
    def node_count(self) -> int:
        return self._graph.number_of_nodes()

    @property
    def edge_count(self) -> int:
        return self._graph.number_of_edges()

    def is_empty(self) -> bool:
        return self.node_count == 0

    def nodes(self) -> list:
        return list(self._keys)

    def edges(self) -> list:
        return [(*sorted((u, v)), data["length"]) for u, v, data in self._graph.edges(data=True)]

    def nearest_node(self, point: GeoPoint) -> Optional[Tuple[NodeKey, float]]:
        """Return the closest node and the off-network connector length to it."""
        if self.is_empty():
            return None
        distances = haversine_many(point.to_tuple(), self._coords)
        index = int(distances.argmin())
        return self._keys[index], float(distances[index])

    def distances_from(self, node: NodeKey, cutoff: Optional[float] = None) -> Dict[NodeKey, float]:
        """Shortest-path length from ``node`` to every node within ``cutoff`` meters."""
        if cutoff is not None and cutoff < 0:
            return {}
        return nx.single_source_dijkstra_path_length(self._graph, node, cutoff=cutoff, weight="length")

    def path_length(self, source: NodeKey, target: NodeKey) -> Optional[float]:
        try:
            return nx.shortest_path_length(self._graph, source, target, weight="length")
        except (nx.NetworkXNoPath, nx.NodeNotFound):
            return None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, StreetNetwork):
            return NotImplemented
        return set(self._keys) == set(other._keys) and sorted(self.edges()) == sorted(other.edges())


def _add_edge(graph: nx.Graph, u: NodeKey, v: NodeKey, length: Optional[float]) -> None:
    if u == v:
        return
    geodesic = haversine_distance_meters(u, v)
    if length is not None and not math.isfinite(length):
        raise DataError(f"street segment {u} -> {v} has invalid length {length}")
    length = geodesic if length is None else max(float(length), geodesic)
    existing = graph.get_edge_data(u, v)
    if existing is not None and existing["length"] <= length:
        return
    graph.add_edge(u, v, length=length)
