"""
Custom exception classes.

Represent gateway-level failures. Each carries the HTTP status and the
message placed in the ``{"error": ...}`` response envelope.
"""

import logging
from typing import Optional
from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .headers import cors_headers

logger = logging.getLogger(__name__)


class GatewayError(Exception):
    """Base exception class for the gateway."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal Server Error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class AuthorizationError(GatewayError):
    """Missing/incorrect client secret, or missing bearer token on a protected function."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized"


class ForbiddenOriginError(GatewayError):
    """Preflight from an origin that is not allow-listed."""

    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Forbidden"

    def __init__(self, origin: str):
        self.origin = origin
        super().__init__()


class BadRequestError(GatewayError):
    """Malformed or incomplete request payload."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Bad Request"


class RouteNotFoundError(GatewayError):
    """Path outside the allowed prefixes."""

    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not Found"


class MethodNotAllowedError(GatewayError):
    """Verb not supported by a method-restricted route."""

    status_code = status.HTTP_405_METHOD_NOT_ALLOWED
    default_message = "Method not allowed"


class UpstreamError(GatewayError):
    """
    Transport failure while contacting the backend or a third-party API.

    The cause is kept for server-side logging and never reflected to the caller.
    """

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal Server Error"

    def __init__(self, target: str, cause: Exception, message: Optional[str] = None):
        self.target = target
        self.cause = cause
        super().__init__(message)


class CacheWriteError(GatewayError):
    """Failure to persist a cache entry. Logged and dropped, never returned."""

    def __init__(self, key: str, cause: Exception):
        self.key = key
        self.cause = cause
        super().__init__(f"Failed to store cache entry for {key}: {cause}")


# ===========================================
# Exception Handlers
# ===========================================


def error_response(request: Request, status_code: int, content: dict) -> JSONResponse:
    """JSON error envelope carrying the CORS grant of the request's origin."""
    allowed_origins = getattr(getattr(request.app.state, "config", None), "allowed_origins", ())
    headers = cors_headers(request.headers.get("origin"), request.method, allowed_origins)
    return JSONResponse(status_code=status_code, content=content, headers=headers)


async def gateway_exception_handler(request: Request, exc: GatewayError):
    """
    Handler for GatewayError and its subclasses.
    """
    if isinstance(exc, UpstreamError):
        logger.error(
            f"Upstream call failed: {exc.target}",
            exc_info=exc.cause,
            extra={
                "path": request.url.path,
                "method": request.method,
                "error_type": type(exc.cause).__name__,
                "error_detail": str(exc.cause),
            },
        )
    elif isinstance(exc, ForbiddenOriginError):
        logger.warning(f"Preflight rejected for origin: {exc.origin}")

    return error_response(request, exc.status_code, {"error": exc.message})


async def global_exception_handler(request: Request, exc: Exception):
    """
    Catch-all handler for unhandled exceptions.
    """
    logger.error(
        f"Global exception handler caught: {exc}",
        exc_info=True,
        extra={
            "path": request.url.path,
            "method": request.method,
        },
    )

    return error_response(
        request, status.HTTP_500_INTERNAL_SERVER_ERROR, {"error": "Internal Server Error"}
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """
    Handler for HTTPException.
    """
    return error_response(request, exc.status_code, {"error": exc.detail})


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Handler for validation errors.
    """
    return error_response(
        request,
        422,
        {"error": "Validation Error", "details": str(exc.errors())},
    )
