# core/exceptions.py
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from datetime import datetime, timezone
from typing import Dict, Any

from core.logging import logger


class StorefrontException(Exception):
    """Base exception for the storefront application"""

    def __init__(
        self,
        detail: str,
        status_code: int = 500,
        error_code: str = "STOREFRONT_ERROR",
        metadata: Dict[str, Any] = None
    ):
        self.detail = detail
        self.status_code = status_code
        self.error_code = error_code
        self.metadata = metadata or {}
        super().__init__(detail)


class ValidationError(StorefrontException):
    """Validation related errors"""

    def __init__(self, detail: str, field: str = None):
        super().__init__(
            detail=detail,
            status_code=400,
            error_code="VALIDATION_ERROR",
            metadata={"field": field} if field else None
        )


class InvalidJSONError(StorefrontException):
    """Request body is not parseable JSON"""

    def __init__(self, detail: str = "Malformed JSON in request body"):
        super().__init__(
            detail=detail,
            status_code=400,
            error_code="INVALID_JSON"
        )


class NotFoundError(StorefrontException):
    """Resource not found errors"""

    def __init__(self, detail: str = "Resource not found", resource: str = None):
        super().__init__(
            detail=detail,
            status_code=404,
            error_code="NOT_FOUND_ERROR",
            metadata={"resource": resource} if resource else None
        )


class ConflictError(StorefrontException):
    """Resource conflict errors"""

    def __init__(self, detail: str = "Resource conflict", resource: str = None):
        super().__init__(
            detail=detail,
            status_code=409,
            error_code="CONFLICT_ERROR",
            metadata={"resource": resource} if resource else None
        )


class ServiceUnavailableError(StorefrontException):
    """Service unavailable errors"""

    def __init__(self, detail: str = "Service temporarily unavailable", service: str = None):
        super().__init__(
            detail=detail,
            status_code=503,
            error_code="SERVICE_UNAVAILABLE_ERROR",
            metadata={"service": service} if service else None
        )


class ExternalServiceError(StorefrontException):
    """External service integration errors"""

    def __init__(self, detail: str, service: str, upstream_status: int = None):
        super().__init__(
            detail=detail,
            status_code=502,
            error_code="EXTERNAL_SERVICE_ERROR",
            metadata={
                "service": service,
                "upstream_status": upstream_status
            }
        )


def create_error_response(code: str, message: Any, metadata: Dict[str, Any] = None) -> Dict[str, Any]:
    """Create standardized error response"""

    response = {
        "success": False,
        "error": {
            "code": code,
            "message": message,
            "timestamp": datetime.now(timezone.utc).isoformat()
        }
    }

    if metadata:
        response["error"]["metadata"] = metadata

    return response


def _debug_enabled(request: Request) -> bool:
    settings = getattr(request.app.state, "settings", None)
    return bool(settings and settings.debug)


def _count_error(request: Request, error_type: str) -> None:
    metrics = getattr(request.app.state, "metrics", None)
    if metrics is not None:
        metrics.errors.labels(type=error_type).inc()


async def handle_storefront_exception(request: Request, exc: StorefrontException) -> JSONResponse:
    """Handle application exceptions"""

    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        "Storefront exception occurred",
        error_code=exc.error_code,
        detail=exc.detail,
        status_code=exc.status_code,
        method=request.method,
        path=request.url.path,
        metadata=exc.metadata
    )

    _count_error(request, exc.error_code.lower())

    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(exc.error_code, exc.detail, exc.metadata)
    )


async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Handle HTTP exceptions raised by routing or by handlers"""

    if exc.status_code == 404:
        return await handle_storefront_exception(
            request, NotFoundError(detail=f"Cannot {request.method} {request.url.path}")
        )

    logger.warning(
        "HTTP exception occurred",
        status_code=exc.status_code,
        detail=exc.detail,
        path=request.url.path
    )

    _count_error(request, "http_error")

    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response("HTTP_ERROR", exc.detail),
        headers=getattr(exc, "headers", None)
    )


async def handle_validation_exception(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle request body/parameter validation failures"""

    errors = exc.errors()
    if any(err.get("type") == "json_invalid" for err in errors):
        return await handle_storefront_exception(request, InvalidJSONError())

    logger.warning(
        "Request validation failed",
        path=request.url.path,
        error_count=len(errors)
    )

    _count_error(request, "validation_error")

    return JSONResponse(
        status_code=422,
        content=create_error_response(
            "VALIDATION_ERROR",
            "Request validation failed",
            {
                "errors": [
                    {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
                    for err in errors
                ]
            },
        )
    )


async def handle_general_exception(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions; never re-raises"""

    debug = _debug_enabled(request)

    logger.error(
        "Unhandled exception occurred",
        error=str(exc),
        error_type=type(exc).__name__,
        method=request.method,
        path=request.url.path,
        exc_info=exc
    )

    _count_error(request, "unhandled_exception")

    # Don't expose internal errors in production
    response_data = create_error_response(
        "INTERNAL_ERROR", str(exc) if debug else "Internal server error"
    )
    if debug:
        response_data["error"]["debug"] = {"exception_type": type(exc).__name__}

    return JSONResponse(status_code=500, content=response_data)
