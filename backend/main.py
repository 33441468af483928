# main.py
import logging
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import CORS_ORIGINS, LOG_LEVEL, VERSION
from errors import register_error_handlers
from routers.coverage import router as coverage_router
from routers.layers import router as layers_router
from routers.stations import router as stations_router
from state import layer_holder, load_layer_store

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
log = logging.getLogger("openlineplanner")

log.info("Starting OpenLinePlanner backend v%s", VERSION)
load_layer_store()

app = FastAPI(title="OpenLinePlanner", version=VERSION)
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)
register_error_handlers(app)

app.include_router(stations_router)
app.include_router(coverage_router)
app.include_router(layers_router)


@app.get("/health")
def health():
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": VERSION,
    }


@app.get("/ready")
def readiness():
    if layer_holder.loaded:
        return {"status": "ready", "layers_loaded": True}
    return JSONResponse(status_code=503, content={"status": "not_ready", "layers_loaded": False})


@app.exception_handler(404)
async def not_found(request: Request, exc):
    return JSONResponse(status_code=404, content={"error": "NOT_FOUND", "message": "Endpoint not found"})
