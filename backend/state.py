# backend/state.py
import logging

from config import DEFAULT_METHOD, DEFAULT_ROUTING, LAYERS_DIR
from errors import ConfigError, DataError
from models import Method, Routing
from services.layers import LayerStore, LayerStoreHolder
from services.persistence import load_layers

log = logging.getLogger(__name__)

layer_holder = LayerStoreHolder()


def load_layer_store(path=LAYERS_DIR) -> None:
    """Load layers once at startup; fall back to an empty store on failure."""

    try:
        store = load_layers(path)
    except DataError as exc:
        log.warning("Failed to load layers from %s: %s. Using empty layers.", path, exc)
        layer_holder.replace(LayerStore(), loaded=True)
        return
    log.info("Layers loaded successfully from %s", path)
    layer_holder.replace(store, loaded=True)


def get_layers() -> LayerStore:
    """Request dependency: one consistent store snapshot per request."""

    return layer_holder.snapshot()


def resolve_method(method=None) -> Method:
    try:
        return Method(method or DEFAULT_METHOD)
    except ValueError as exc:
        raise ConfigError(f"unknown method '{method or DEFAULT_METHOD}'") from exc


def resolve_routing(routing=None) -> Routing:
    try:
        return Routing(routing or DEFAULT_ROUTING)
    except ValueError as exc:
        raise ConfigError(f"unknown routing '{routing or DEFAULT_ROUTING}'") from exc
