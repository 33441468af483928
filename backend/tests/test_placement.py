import pytest

from errors import GeometryError
from models import GeoPoint, LayerType, Method, Routing
from services.geospatial import point_distance
from services.placement import find_optimal_station

from conftest import make_layer, make_streets, station

# straight route along lat 48.2, roughly 1 km long
START = GeoPoint(48.2, 16.37)
END = GeoPoint(48.2, 16.37 + 0.01349)
MID_LNG = 16.37 + 0.01349 / 2


def _search(route, layer, existing, method=Method.RELATIVE, routing=Routing.DIRECT, **kwargs):
    kwargs.setdefault("threshold_m", 100)
    kwargs.setdefault("step_m", 25)
    separation = kwargs.pop("separation", 300)
    return find_optimal_station(route, separation, layer, existing, method, routing, **kwargs)


@pytest.fixture()
def midpoint_cluster():
    offsets = [-0.0006, -0.0003, 0.0, 0.0003, 0.0006]  # roughly +-45 m
    return make_layer("cluster", LayerType.RESIDENTIAL, [(48.2, MID_LNG + o, 20) for o in offsets])


def test_best_station_lands_near_the_cluster(midpoint_cluster):
    existing = [station("s1", START.lat, START.lng)]

    result = _search([START, END], midpoint_cluster, existing)

    assert result.feasible
    assert result.score == pytest.approx(100)
    assert abs(result.arc_length - 500) <= 60
    assert point_distance(result.position, START) >= 300
    assert result.coverage.station_weight(result.station.id) == pytest.approx(100)
    assert list(result.coverage) == ["s1", "candidate"]


def test_zero_length_route_is_infeasible(midpoint_cluster):
    result = _search([START, START, START], midpoint_cluster, [station("s1", 48.3, 16.5)])

    assert not result.feasible
    assert result.position is None
    assert "zero length" in result.reason
    assert result.to_dict() == {"feasible": False, "reason": result.reason}


def test_every_sample_too_close_is_infeasible(midpoint_cluster):
    short_route = [START, GeoPoint(48.2, 16.372)]  # ~150 m

    result = _search(short_route, midpoint_cluster, [station("s1", START.lat, START.lng)])

    assert not result.feasible
    assert result.reason.startswith("no feasible location")


def test_separation_is_respected_for_every_existing_station(midpoint_cluster):
    existing = [station("s1", START.lat, START.lng), station("s2", 48.2, MID_LNG)]

    result = _search([START, END], midpoint_cluster, existing, separation=250)

    assert result.feasible
    for other in existing:
        assert point_distance(result.position, other.position) >= 250


def test_ties_go_to_the_earliest_sample():
    layer = make_layer("empty", LayerType.RESIDENTIAL, [])

    result = _search([START, END], layer, [station("s1", START.lat, START.lng)])

    assert result.score == 0
    assert 300 <= result.arc_length <= 325


def test_claimed_weight_only_counts_what_the_candidate_takes(midpoint_cluster):
    # an existing station sits on the middle centroid
    existing = [station("mid", 48.2, MID_LNG)]

    result = _search([START, END], midpoint_cluster, existing, method=Method.RELATIVE, separation=100)

    assert result.feasible
    assert 0 < result.score < 100
    assert result.coverage.station_weight("mid") + result.score == pytest.approx(100)


def test_search_is_deterministic(midpoint_cluster):
    existing = [station("s1", START.lat, START.lng)]

    first = _search([START, END], midpoint_cluster, existing)
    second = _search([START, END], midpoint_cluster, existing)

    assert first.to_dict() == second.to_dict()


def test_network_search_uses_streets():
    street = make_streets([(48.2, 16.37 + i * 0.001) for i in range(14)], [(i, i + 1) for i in range(13)])
    layer = make_layer("r", LayerType.RESIDENTIAL, [(48.2, 16.378, 50)], streets=street)

    result = _search([START, END], layer, [station("s1", START.lat, START.lng)], routing=Routing.OSM)

    assert result.feasible
    assert result.score == pytest.approx(50)
    assert point_distance(result.position, GeoPoint(48.2, 16.378)) <= 100


def test_candidate_id_does_not_clash(midpoint_cluster):
    existing = [station("candidate", START.lat, START.lng)]

    result = _search([START, END], midpoint_cluster, existing)

    assert result.station.id == "candidate-1"


def test_route_needs_two_points(midpoint_cluster):
    with pytest.raises(GeometryError):
        _search([START], midpoint_cluster, [])


def test_network_search_without_streets_keeps_direct_separation():
    layer = make_layer("r", LayerType.RESIDENTIAL, [(48.2, 16.378, 50)])
    existing = [station("s1", START.lat, START.lng)]

    result = _search([START, END], layer, existing, routing=Routing.OSM, threshold_m=300)

    assert result.feasible
    assert point_distance(result.position, START) >= 300


def test_station_on_detached_street_keeps_direct_separation():
    main = [(48.2, 16.3705 + i * 0.001) for i in range(14)]
    stub = [(48.2001, 16.37), (48.2001, 16.3701)]
    streets = make_streets(main + stub, [(i, i + 1) for i in range(13)] + [(14, 15)])
    layer = make_layer("r", LayerType.RESIDENTIAL, [], streets=streets)
    existing = [station("s1", START.lat, START.lng)]

    result = _search([START, END], layer, existing, routing=Routing.OSM, threshold_m=300)

    assert result.feasible
    assert point_distance(result.position, START) >= 300
