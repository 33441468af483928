# backend/config.py
import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

VERSION = "0.3.0"

CACHE_DIR = Path(os.getenv("OLP_CACHE_DIR", "./cache/"))
LAYERS_DIR = CACHE_DIR / "layers"

# Engine defaults, overridable per request
CATCHMENT_RADIUS_M = float(os.getenv("OLP_CATCHMENT_RADIUS_M", "300"))
SEPARATION_DISTANCE_M = float(os.getenv("OLP_SEPARATION_DISTANCE_M", "300"))
SAMPLE_STEP_M = float(os.getenv("OLP_SAMPLE_STEP_M", "25"))
DEFAULT_METHOD = os.getenv("OLP_DEFAULT_METHOD", "relative").strip().lower()
DEFAULT_ROUTING = os.getenv("OLP_DEFAULT_ROUTING", "osm").strip().lower()

LOG_LEVEL = os.getenv("OLP_LOG_LEVEL", "INFO").upper()
CORS_ORIGINS = [
    origin.strip() for origin in os.getenv("OLP_CORS_ORIGINS", "*").split(",") if origin.strip()
]
