import os
import sys

import pytest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from models import Centroid, GeoPoint, LayerType, Station
from services.layers import Layer, LayerStore
from services.streets import StreetNetwork


def make_layer(layer_id, layer_type, centroids, streets=None, name=None):
    """Build a layer from ``(lat, lng, weight)`` tuples."""

    return Layer(
        id=layer_id,
        name=name or layer_id,
        layer_type=layer_type,
        centroids=tuple(Centroid(GeoPoint(lat, lng), weight, layer_type) for lat, lng, weight in centroids),
        streets=streets or StreetNetwork(),
    )


def make_streets(points, edges):
    """Street network from a list of ``(lat, lng)`` points and index pairs."""

    nodes = {i: GeoPoint(lat, lng) for i, (lat, lng) in enumerate(points)}
    return StreetNetwork.from_edges(nodes, [(a, b, None) for a, b in edges])


def station(station_id, lat, lng):
    return Station(id=station_id, position=GeoPoint(lat, lng))


@pytest.fixture()
def vienna_layer():
    return make_layer(
        "vienna-residents",
        LayerType.RESIDENTIAL,
        [(48.2083, 16.3739, 10), (48.2090, 16.3750, 5), (48.3000, 16.5000, 20)],
    )


@pytest.fixture()
def street_line():
    """Street along lat 48.2082 with nodes ~74 m apart, plus a detached stub to the north."""

    points = [
        (48.2082, 16.3738),
        (48.2082, 16.3748),
        (48.2082, 16.3758),
        (48.2092, 16.3738),
        (48.2092, 16.3739),
    ]
    return make_streets(points, [(0, 1), (1, 2), (3, 4)])


@pytest.fixture()
def layer_store(vienna_layer):
    work = make_layer("vienna-work", LayerType.WORK, [(48.2084, 16.3740, 40), (48.2500, 16.4000, 7)])
    more_residents = make_layer("vienna-residents-2", LayerType.RESIDENTIAL, [(48.2082, 16.3738, 3)])
    return LayerStore.from_layers([vienna_layer, work, more_residents])
