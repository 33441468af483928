from fastapi import APIRouter, Depends

from config import CATCHMENT_RADIUS_M
from models import Routing
from routers.schemas import CoverageInfoRequest
from services.coverage import compute_coverage
from services.layers import LayerStore, merge_by_category
from state import get_layers, resolve_method

router = APIRouter(prefix="/api/v1", tags=["coverage"])


@router.post("/coverage-info/{routing}")
def coverage_info(routing: Routing, payload: CoverageInfoRequest, layers: LayerStore = Depends(get_layers)):
    """Raw per-station coverage, one map per layer type."""

    stations = [s.to_station() for s in payload.stations]
    method = resolve_method(payload.method)
    radius = float(payload.separation_distance or CATCHMENT_RADIUS_M)

    result = {}
    for _, layer in merge_by_category(layers):
        coverage = compute_coverage(stations, layer, method, routing, radius)
        result[layer.name] = coverage.to_dict()
    return result
