# guestpost/core/error_handlers.py
import logging

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from guestpost.core.config import settings
from guestpost.core.errors import InternalServerError, ValidationError
from guestpost.core.responses import ApiResponse

logger = logging.getLogger(__name__)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    data = None
    if isinstance(exc, ValidationError):
        data = {"errors": exc.errors}
    if isinstance(exc, InternalServerError):
        logger.error("%s %s failed: %s (cause: %s)", request.method, request.url.path, exc.detail, exc.cause)
        if settings.DEBUG and exc.cause is not None:
            data = {"cause": str(exc.cause)}
    return ApiResponse.error(str(exc.detail), exc.status_code, data)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = []
    for err in exc.errors():
        field = ".".join(str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path", "form"))
        errors.append({field or "request": err.get("msg")})
    message = "Validation failed: " + "; ".join(f"{k}: {v}" for e in errors for k, v in e.items())
    logger.warning("Validation errors on %s: %s", request.url.path, errors)
    return ApiResponse.error(message, status.HTTP_400_BAD_REQUEST, {"errors": errors})


async def generic_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    data = {"cause": str(exc)} if settings.DEBUG else None
    return ApiResponse.error("Internal server error", status.HTTP_500_INTERNAL_SERVER_ERROR, data)
