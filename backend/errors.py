"""Error types shared by the engine and the HTTP layer."""
import logging
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

log = logging.getLogger(__name__)


class OLPError(Exception):
    status_code = 500
    error_type = "INTERNAL_ERROR"
    label = "Internal error"

    def __init__(self, message: str, details: Optional[Any] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        return f"{self.label}: {self.message}"

    def to_dict(self) -> dict:
        payload = {
            "error": self.error_type,
            "message": str(self),
            "code": str(self.status_code),
        }
        if self.details is not None:
            payload["details"] = self.details
        return payload


class GeometryError(OLPError):
    """Degenerate or out-of-domain coordinates reached the engine."""

    error_type = "GEOMETRY_ERROR"
    label = "Geometry error"


class ValidationError(OLPError):
    status_code = 400
    error_type = "VALIDATION_ERROR"
    label = "Validation error"


class ConfigError(OLPError):
    status_code = 503
    error_type = "CONFIG_ERROR"
    label = "Configuration error"


class DataError(OLPError):
    status_code = 503
    error_type = "DATA_ERROR"
    label = "Data error"


class NetworkError(OLPError):
    status_code = 502
    error_type = "NETWORK_ERROR"
    label = "Network error"


class NotFound(OLPError):
    status_code = 404
    error_type = "NOT_FOUND"
    label = "Not found"


class BadRequest(OLPError):
    status_code = 400
    error_type = "BAD_REQUEST"
    label = "Bad request"


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(OLPError)
    async def handle_olp_error(request: Request, exc: OLPError):
        log.error("Request failed: %s %s - %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        error = ValidationError("Invalid request", details=jsonable_errors(exc))
        log.error("Request failed: %s %s - %s", request.method, request.url.path, error)
        return JSONResponse(status_code=error.status_code, content=error.to_dict())


def jsonable_errors(exc: RequestValidationError) -> list:
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "")}
        for err in exc.errors()
    ]
