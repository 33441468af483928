import pytest
from fastapi.testclient import TestClient

from errors import ValidationError
from main import app
from models import Method, Routing
from routers.coverage import coverage_info
from routers.layers import list_layers
from routers.schemas import CoverageInfoRequest, FindStationRequest, StationInfoRequest
from routers.stations import find_station, station_info
from services.layers import LayerStore
from state import get_layers


@pytest.fixture()
def client(layer_store):
    app.dependency_overrides[get_layers] = lambda: layer_store
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_station_info_reports_each_layer_type(layer_store):
    payload = StationInfoRequest(
        stations=[{"id": "s1", "lat": 48.2082, "lng": 16.3738, "name": "Stephansplatz"}],
        routing=Routing.DIRECT,
    )

    data = station_info(payload, layer_store)

    assert data["inhabitants"] == {"residential": pytest.approx(18), "work": pytest.approx(40)}
    assert data["stations"]["work"] == {"s1": pytest.approx(40)}


def test_station_info_radius_override(layer_store):
    payload = StationInfoRequest(
        stations=[{"id": "s1", "lat": 48.2082, "lng": 16.3738}],
        separation_distance=100,
        method=Method.ABSOLUTE,
        routing=Routing.DIRECT,
    )

    data = station_info(payload, layer_store)

    # the 5-inhabitant centroid ~126 m away drops out
    assert data["inhabitants"]["residential"] == pytest.approx(13)


def test_station_info_on_empty_store():
    payload = StationInfoRequest(stations=[{"id": "s1", "lat": 48.2, "lng": 16.3}])

    assert station_info(payload, LayerStore()) == {"inhabitants": {}, "stations": {}}


def test_station_info_rejects_duplicate_ids(layer_store):
    payload = StationInfoRequest(
        stations=[{"id": "s1", "lat": 48.2, "lng": 16.3}, {"id": "s1", "lat": 48.21, "lng": 16.3}],
        routing=Routing.DIRECT,
    )

    with pytest.raises(ValidationError):
        station_info(payload, layer_store)


def test_coverage_info_lists_covered_centroids(layer_store):
    payload = CoverageInfoRequest(stations=[{"id": "s1", "lat": 48.2082, "lng": 16.3738}])

    data = coverage_info(Routing.DIRECT, payload, layer_store)

    assert set(data) == {"residential", "work"}
    covered = data["residential"]["s1"]
    assert [entry["weight"] for entry in covered] == [pytest.approx(10), pytest.approx(5), pytest.approx(3)]
    assert covered[2] == {"lat": 48.2082, "lng": 16.3738, "distance": 0.0, "weight": 3}


def test_find_station_returns_position_and_coverage(layer_store):
    payload = FindStationRequest(
        stations=[{"id": "s1", "lat": 48.2500, "lng": 16.4000}],
        route=[{"lat": 48.2070, "lng": 16.3738}, {"lat": 48.2100, "lng": 16.3738}],
        routing=Routing.DIRECT,
    )

    data = find_station(payload, layer_store)

    assert data["feasible"] is True
    assert data["score"] > 0
    assert set(data["coverage"]) == {"s1", "candidate"}
    assert data["station"]["id"] == "candidate"


def test_find_station_infeasible_marker(layer_store):
    payload = FindStationRequest(
        stations=[{"id": "s1", "lat": 48.2082, "lng": 16.3738}],
        route=[{"lat": 48.2082, "lng": 16.3738}, {"lat": 48.2083, "lng": 16.3738}],
        routing=Routing.DIRECT,
    )

    data = find_station(payload, layer_store)

    assert data["feasible"] is False
    assert "no feasible location" in data["reason"]


def test_layers_listing(layer_store):
    layers = list_layers(layer_store)

    assert [layer["id"] for layer in layers] == ["vienna-residents", "vienna-work", "vienna-residents-2"]
    assert layers[0]["inhabitants"] == 35
    assert layers[1]["type"] == "work"


def test_health_and_readiness(client):
    health = client.get("/health").json()

    assert health["status"] == "healthy"
    assert "version" in health
    assert client.get("/ready").status_code in (200, 503)


def test_invalid_request_maps_to_validation_error(client):
    response = client.post("/api/v1/station-info", json={"stations": []})

    assert response.status_code == 400
    assert response.json()["error"] == "VALIDATION_ERROR"


def test_out_of_range_separation_distance_is_rejected(client):
    response = client.post(
        "/api/v1/station-info",
        json={"stations": [{"id": "s1", "lat": 48.2, "lng": 16.3}], "separation_distance": 50},
    )

    assert response.status_code == 400


def test_duplicate_station_ids_map_to_bad_request(client):
    response = client.post(
        "/api/v1/coverage-info/direct",
        json={"stations": [{"id": "a", "lat": 48.2, "lng": 16.3}, {"id": "a", "lat": 48.3, "lng": 16.3}]},
    )

    assert response.status_code == 400
    assert "used more than once" in response.json()["message"]


def test_station_info_over_http(client):
    response = client.post(
        "/api/v1/station-info",
        json={"stations": [{"id": "s1", "lat": 48.2082, "lng": 16.3738}], "routing": "direct"},
    )

    assert response.status_code == 200
    assert response.json()["inhabitants"]["work"] == pytest.approx(40)


def test_unknown_endpoint(client):
    response = client.get("/api/v1/does-not-exist")

    assert response.status_code == 404
    assert response.json()["error"] == "NOT_FOUND"
