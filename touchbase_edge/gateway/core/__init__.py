"""
Core logic package.

Provides the header policy and the gateway exception taxonomy.
"""

from .exceptions import (
    AuthorizationError,
    BadRequestError,
    CacheWriteError,
    ForbiddenOriginError,
    GatewayError,
    MethodNotAllowedError,
    RouteNotFoundError,
    UpstreamError,
)
from .headers import cors_headers, resolve_origin, security_headers

__all__ = [
    "AuthorizationError",
    "BadRequestError",
    "CacheWriteError",
    "ForbiddenOriginError",
    "GatewayError",
    "MethodNotAllowedError",
    "RouteNotFoundError",
    "UpstreamError",
    "cors_headers",
    "resolve_origin",
    "security_headers",
]
