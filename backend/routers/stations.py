import logging

from fastapi import APIRouter, Depends

from config import CATCHMENT_RADIUS_M, SAMPLE_STEP_M, SEPARATION_DISTANCE_M
from routers.schemas import FindStationRequest, StationInfoRequest
from services.coverage import compute_coverage
from services.layers import LayerStore, merge_all, merge_by_category
from services.placement import find_optimal_station
from services.population import aggregate
from state import get_layers, resolve_method, resolve_routing

log = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/v1",
    tags=["stations"],
)


@router.post("/station-info")
def station_info(payload: StationInfoRequest, layers: LayerStore = Depends(get_layers)):
    """Covered inhabitants per layer type for the given stations."""

    stations = [s.to_station() for s in payload.stations]
    method = resolve_method(payload.method)
    routing = resolve_routing(payload.routing)
    radius = float(payload.separation_distance or CATCHMENT_RADIUS_M)

    coverage_info = []
    for layer_type, layer in merge_by_category(layers):
        log.debug("calculating for layer type: %s", layer.name)
        coverage_info.append((layer_type, compute_coverage(stations, layer, method, routing, radius)))

    return aggregate(coverage_info).to_dict()


@router.post("/find-station")
def find_station(payload: FindStationRequest, layers: LayerStore = Depends(get_layers)):
    """Best position for one more station along the proposed route."""

    layer = merge_all(layers)
    result = find_optimal_station(
        [p.to_geo() for p in payload.route],
        float(payload.separation_distance or SEPARATION_DISTANCE_M),
        layer,
        [s.to_station() for s in payload.stations],
        resolve_method(payload.method),
        resolve_routing(payload.routing),
        threshold_m=CATCHMENT_RADIUS_M,
        step_m=SAMPLE_STEP_M,
    )
    if not result.feasible:
        log.info("No station position found: %s", result.reason)
    return result.to_dict()
