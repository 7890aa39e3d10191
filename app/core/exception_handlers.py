"""Centralized exception handlers for the FastAPI app.

Register with register_exception_handlers(app). Maps domain and framework
exceptions to HTTP responses (SRP, OCP for adding new handlers).
"""

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import get_settings
from app.domain.exceptions import PlatformException
from app.infrastructure.exceptions import BackendError, TenantScopeError

logger = logging.getLogger(__name__)

# Map domain error_code to HTTP status
_ERROR_CODE_STATUS: dict[str, int] = {
    "UNAUTHENTICATED": 401,
    "PERMISSION_DENIED": 403,
    "INVALID_ARGUMENT": 400,
    "NOT_FOUND": 404,
    "ALREADY_EXISTS": 409,
    "FAILED_PRECONDITION": 412,
    "INTERNAL": 500,
}


def _platform_exception_handler(request: Request, exc: PlatformException) -> JSONResponse:
    """Return JSON from PlatformException.to_dict() with appropriate status code."""
    status = _ERROR_CODE_STATUS.get(exc.error_code, 400)
    if status >= 500:
        logger.error("%s: %s %s", exc.error_code, exc.message, exc.details)
    return JSONResponse(status_code=status, content=exc.to_dict())


def _tenant_scope_handler(request: Request, exc: TenantScopeError) -> JSONResponse:
    """A write or read crossed a tenant boundary."""
    logger.warning("Tenant scope violation on %s: %s", request.url.path, exc)
    return JSONResponse(
        status_code=403,
        content={
            "error": "PERMISSION_DENIED",
            "message": "Cannot access data of another tenant",
            "details": {},
        },
    )


def _backend_exception_handler(request: Request, exc: BackendError) -> JSONResponse:
    """A backing service failed outside any saga; detail only when debug is True."""
    logger.exception("Backend failure on %s", request.url.path)
    message: Any = str(exc) if get_settings().debug else "Backing service failure"
    return JSONResponse(
        status_code=500,
        content={"error": "INTERNAL", "message": message, "details": {}},
    )


def _validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Return 422 with validation error details."""
    return JSONResponse(
        status_code=422,
        content={
            "error": "INVALID_ARGUMENT",
            "message": "Request validation failed",
            "details": jsonable_errors(exc),
        },
    )


def jsonable_errors(exc: RequestValidationError) -> list[dict[str, Any]]:
    """Validation errors without the raw input (may contain passwords)."""
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
        for err in exc.errors()
    ]


def _http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Return JSON for Starlette HTTP exceptions (status + detail)."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": "HTTP_ERROR", "message": exc.detail},
    )


def _generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Return 500; include detail only when debug is True."""
    logger.exception("Unhandled exception: %s", exc)
    settings = get_settings()
    detail: Any = str(exc) if settings.debug else "Internal server error"
    return JSONResponse(
        status_code=500,
        content={"error": "INTERNAL", "message": detail},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers on the FastAPI app.

    Call once after creating the app. Handlers: PlatformException (and
    subclasses), TenantScopeError, BackendError, RequestValidationError,
    StarletteHTTPException, generic Exception.
    """
    app.add_exception_handler(PlatformException, _platform_exception_handler)
    app.add_exception_handler(TenantScopeError, _tenant_scope_handler)
    app.add_exception_handler(BackendError, _backend_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(Exception, _generic_exception_handler)
