from fastapi import APIRouter, Depends

from services.layers import LayerStore
from state import get_layers

router = APIRouter(prefix="/api/v1", tags=["layers"])


@router.get("/layers")
def list_layers(layers: LayerStore = Depends(get_layers)):
    return [layer.summary() for layer in layers.layers]
