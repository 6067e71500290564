"""
Touchbase Edge Gateway - reverse proxy in front of the backend data service

Validates origins and the shared client secret, allow-lists backend routes,
injects backend credentials, hardens response headers and caches successful
GET reads for a short freshness window.

Run with: uvicorn touchbase_edge.gateway.main:create_app --factory
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional
import logging

from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse, Response
from pydantic import ValidationError

from .api.deps import (
    ChatProxyDep,
    ClientSecretDep,
    ConfigDep,
    ProcessorDep,
    TokenExchangerDep,
)
from .config import GatewayConfig, load_config
from .core.exceptions import (
    BadRequestError,
    ForbiddenOriginError,
    MethodNotAllowedError,
    UpstreamError,
)
from .core.headers import cors_headers, resolve_origin
from .core.logging_config import setup_logging
from .exceptions import register_exception_handlers
from .lifecycle import manage_lifespan
from .middleware import request_context_middleware
from .models import TokenExchangeRequest
from .services.response_cache import CacheStore

logger = logging.getLogger("gateway.main")

PROXY_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD"]

router = APIRouter()


# ===========================================
# Endpoint definitions.
# ===========================================


@router.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}


@router.api_route("/api/openrouter", methods=PROXY_METHODS)
async def chat_completion_proxy(
    request: Request, _: ClientSecretDep, chat_proxy: ChatProxyDep
):
    """Forward a chat-completion request with the server-held API key."""
    if request.method != "POST":
        raise MethodNotAllowedError()
    return await chat_proxy.forward(request)


@router.api_route("/oauth/google/token", methods=PROXY_METHODS)
async def google_token_exchange(
    request: Request, _: ClientSecretDep, config: ConfigDep, exchanger: TokenExchangerDep
):
    """Exchange a Google authorization code for tokens."""
    if request.method != "POST":
        raise MethodNotAllowedError()

    try:
        payload = TokenExchangeRequest.model_validate(await request.json())
    except (ValueError, ValidationError) as e:
        raise BadRequestError("Missing required parameters") from e

    cors = cors_headers(request.headers.get("origin"), request.method, config.allowed_origins)
    upstream = await exchanger.exchange(payload)
    if upstream.is_error:
        return JSONResponse(
            status_code=upstream.status_code,
            content={"error": "Token exchange failed", "details": upstream.text},
            headers=cors,
        )

    try:
        tokens = upstream.json()
    except ValueError as e:
        raise UpstreamError(config.GOOGLE_TOKEN_URL, e)
    return JSONResponse(content=tokens, headers=cors)


@router.options("/{path:path}")
async def preflight(request: Request, config: ConfigDep):
    """
    CORS preflight.

    Answered before any secret check; an Origin outside the allow-list is refused.
    """
    origin = request.headers.get("origin")
    if origin and resolve_origin(origin, config.allowed_origins) is None:
        raise ForbiddenOriginError(origin)
    return Response(status_code=200, headers=cors_headers(origin, "OPTIONS", config.allowed_origins))


@router.api_route("/{path:path}", methods=PROXY_METHODS)
async def gateway_handler(request: Request, _: ClientSecretDep, processor: ProcessorDep):
    """
    Catch-all route: classify, inject credentials and forward to the backend.

    The client secret is verified via DI before this runs.
    """
    return await processor.process_request(request)


# ===========================================
# Application factory
# ===========================================


def create_app(
    gateway_config: Optional[GatewayConfig] = None, cache_store: Optional[CacheStore] = None
) -> FastAPI:
    """
    Build the gateway application.

    Args:
        gateway_config: Loaded from the environment when omitted
        cache_store: Defaults to an in-memory TTL store sized from config
    """
    gateway_config = gateway_config or load_config()
    setup_logging(gateway_config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        async with manage_lifespan(app, gateway_config, cache_store):
            yield

    app = FastAPI(
        title="Touchbase Edge Gateway",
        version="1.0.0",
        lifespan=lifespan,
        root_path=gateway_config.root_path,
    )
    # Set before startup so error handlers can compute CORS headers at any time.
    app.state.config = gateway_config

    app.middleware("http")(request_context_middleware)
    register_exception_handlers(app)
    app.include_router(router)

    return app


if __name__ == "__main__":
    import uvicorn

    cfg = load_config()
    host, _, port = cfg.UVICORN_BIND_ADDR.rpartition(":")
    uvicorn.run(create_app(cfg), host=host, port=int(port))
