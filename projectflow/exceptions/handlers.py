"""
Exception handlers for the application.
"""
import logging
from typing import Any, Dict

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from projectflow.exceptions import ServiceError, ValidationError
from projectflow.monitoring import get_request_id

logger = logging.getLogger(__name__)


def _error_body(request: Request, error: str, detail: Any, request_id: str) -> Dict[str, Any]:
    return {
        "error": error,
        "detail": detail,
        "path": request.url.path,
        "method": request.method,
        "request_id": request_id,
    }


async def service_exception_handler(request: Request, exc: ServiceError) -> JSONResponse:
    """
    Render ServiceError subclasses with their status code.
    Server-side failures are logged with traceback, client errors as warnings.
    """
    request_id = get_request_id() or '-'
    extra = {
        "request_id": request_id,
        "method": request.method,
        "path": request.url.path,
        "error_type": type(exc).__name__,
    }
    if exc.status_code >= 500:
        logger.error(
            f"{type(exc).__name__} in {request.method} {request.url.path}: {exc.message}",
            exc_info=exc.original_error or exc,
            extra=extra,
        )
        detail = exc.message
        if exc.status_code == 500:
            detail = "A database operation failed. Please try again or contact support if the issue persists."
    else:
        logger.warning(
            f"{type(exc).__name__} in {request.method} {request.url.path}: {exc.message}",
            extra=extra,
        )
        detail = exc.message

    content = _error_body(request, type(exc).__name__, detail, request_id)
    if isinstance(exc, ValidationError):
        content["violations"] = exc.context.get("violations", [])
    return JSONResponse(status_code=exc.status_code, content=content)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Handle request validation errors with clear messages.
    """
    request_id = get_request_id() or '-'
    errors = []
    for error in exc.errors():
        field = " -> ".join(str(loc) for loc in error["loc"])
        errors.append(f"{field}: {error['msg']}")

    logger.warning(
        f"Validation error in {request.method} {request.url.path}: {', '.join(errors)}",
        extra={"request_id": request_id}
    )
    content = _error_body(request, "Validation error", "One or more fields failed validation", request_id)
    content["errors"] = errors
    return JSONResponse(status_code=422, content=content)


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Global exception handler for unhandled exceptions.
    """
    request_id = get_request_id() or '-'
    logger.error(
        f"Unhandled exception in {request.method} {request.url.path}: {str(exc)}",
        exc_info=True,
        extra={"request_id": request_id, "exception_type": type(exc).__name__}
    )
    return JSONResponse(
        status_code=500,
        content=_error_body(
            request,
            "Internal server error",
            "An unexpected error occurred. Please try again or contact support if the issue persists.",
            request_id,
        ),
    )


def setup_exception_handlers(app):
    """
    Register exception handlers with the FastAPI app.
    """
    app.add_exception_handler(ServiceError, service_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)
