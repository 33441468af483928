# backend/services/overpass.py
import logging
import time
from typing import Dict, List, Tuple

import requests

from errors import NetworkError
from models import GeoPoint
from services.streets import StreetNetwork

log = logging.getLogger(__name__)

# Mehrere Overpass Endpoints
OVERPASS_URLS = [
    "https://overpass-api.de/api/interpreter",
    "https://overpass.kumi.systems/api/interpreter",
    "https://overpass.openstreetmap.ru/api/interpreter",
]

DEFAULT_TIMEOUT = 90
DEFAULT_RETRIES = 2

# streets a pedestrian can use to reach a station
WALKABLE_HIGHWAYS = (
    "primary|secondary|tertiary|unclassified|residential|living_street|service|"
    "pedestrian|footway|path|steps|cycleway|track"
)


class OverpassError(NetworkError):
    label = "Overpass error"


def _post_overpass(query: str, timeout: int = DEFAULT_TIMEOUT):
    """
    Try multiple Overpass servers with retries.
    Returns parsed JSON.
    """
    last_err = None

    for base in OVERPASS_URLS:
        for attempt in range(DEFAULT_RETRIES + 1):
            try:
                r = requests.post(base, data={"data": query}, timeout=timeout)
                r.raise_for_status()
                return r.json()
            except (requests.RequestException, ValueError) as e:
                last_err = e
                log.warning("Overpass request to %s failed (attempt %d): %s", base, attempt + 1, e)
                # backoff
                time.sleep(1.0 + attempt * 1.5)

    raise OverpassError(f"Overpass failed after retries. Last error: {last_err}")


def _bbox_clause(sw_lat: float, sw_lng: float, ne_lat: float, ne_lng: float) -> str:
    return f"({sw_lat},{sw_lng},{ne_lat},{ne_lng})"


def street_query(sw_lat: float, sw_lng: float, ne_lat: float, ne_lng: float) -> str:
    bbox = _bbox_clause(sw_lat, sw_lng, ne_lat, ne_lng)
    return f"""
    [out:json][timeout:60];
    way["highway"~"^({WALKABLE_HIGHWAYS})$"]{bbox};
    (._;>;);
    out body;
    """


def parse_street_elements(elements: List[dict]) -> Tuple[Dict[int, GeoPoint], List[Tuple[int, int, None]]]:
    nodes: Dict[int, GeoPoint] = {}
    edges: List[Tuple[int, int, None]] = []
    for element in elements:
        if element.get("type") == "node":
            nodes[element["id"]] = GeoPoint(float(element["lat"]), float(element["lon"]))

    for element in elements:
        if element.get("type") != "way":
            continue
        way_nodes = [n for n in element.get("nodes", []) if n in nodes]
        edges.extend((a, b, None) for a, b in zip(way_nodes, way_nodes[1:]))
    return nodes, edges


def fetch_street_network(sw_lat: float, sw_lng: float, ne_lat: float, ne_lng: float) -> StreetNetwork:
    data = _post_overpass(street_query(sw_lat, sw_lng, ne_lat, ne_lng))
    nodes, edges = parse_street_elements(data.get("elements", []))
    # only nodes that belong to at least one street segment
    used = {n for a, b, _ in edges for n in (a, b)}
    network = StreetNetwork.from_edges({k: v for k, v in nodes.items() if k in used}, edges)
    log.info("Fetched street network: %d nodes, %d edges", network.node_count, network.edge_count)
    return network
