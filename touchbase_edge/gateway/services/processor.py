"""
Gateway Request Processor - Service Layer

Standardizes the flow: classify -> inject credentials -> cache lookup ->
forward -> cache store -> hardened response.
"""

import logging
import time
from typing import Dict, Optional
from urllib.parse import quote

import httpx
from fastapi import Request
from starlette.responses import Response

from touchbase_edge.common.core.request_context import get_request_id

from ..config import GatewayConfig
from ..core.exceptions import CacheWriteError, RouteNotFoundError
from ..core.headers import cors_headers, security_headers
from ..models import CacheEntry, OutboundRequest, PathClass
from .credentials import CredentialInjector
from .forwarder import Forwarder, merge_headers, raw_header_items, streaming_response
from .response_cache import CacheStore
from .route_table import RouteTable

logger = logging.getLogger("gateway.processor")

CACHE_STATUS_HEADER = "X-Cache"
BODYLESS_METHODS = frozenset({"GET", "HEAD"})


def backend_url(base_url: str, path: str, query: str) -> str:
    """Rewrite path and raw query against the backend base URL."""
    url = f"{base_url.rstrip('/')}{path}"
    if query:
        url = f"{url}?{query}"
    return url


def request_path(request: Request) -> str:
    """
    Percent-decoded path as the server received it.

    request.url re-parses this string, so a decoded "%3F" there would split
    the path and turn its tail into a query.
    """
    return request.scope["path"]


def raw_path(request: Request) -> str:
    """Path exactly as sent by the caller, percent escapes intact."""
    raw = request.scope.get("raw_path")
    if raw:
        return raw.decode("latin-1")
    return quote(request.scope["path"])


def raw_query(request: Request) -> str:
    return request.scope.get("query_string", b"").decode("latin-1")


class GatewayRequestProcessor:
    """
    Orchestrates the forwarding lifecycle of a passthrough or function request.

    Authorization by client secret happens before this runs (see api.deps).
    """

    def __init__(
        self,
        config: GatewayConfig,
        route_table: RouteTable,
        injector: CredentialInjector,
        forwarder: Forwarder,
        cache_store: CacheStore,
    ):
        self.config = config
        self.route_table = route_table
        self.injector = injector
        self.forwarder = forwarder
        self.cache_store = cache_store

    def prepare(self, request: Request) -> OutboundRequest:
        """
        Raises:
            RouteNotFoundError: path outside the allowed prefixes
            AuthorizationError: protected function without bearer token
        """
        path_class = self.route_table.classify(request_path(request))
        if path_class is PathClass.REJECTED:
            raise RouteNotFoundError()

        inbound = raw_header_items(request.headers.raw)
        request_id = get_request_id()
        if request_id and "x-request-id" not in request.headers:
            inbound.append(("X-Request-Id", request_id))

        return self.injector.prepare(
            request.method,
            backend_url(self.config.BACKEND_URL, raw_path(request), raw_query(request)),
            inbound,
            path_class,
        )

    def response_headers(self, request: Request, path_class: PathClass) -> Dict[str, str]:
        headers = cors_headers(
            request.headers.get("origin"), request.method, self.config.allowed_origins
        )
        if not path_class.is_function:
            headers.update(security_headers())
        return headers

    async def process_request(self, request: Request) -> Response:
        outbound = self.prepare(request)
        headers = self.response_headers(request, outbound.path_class)

        if request.method != "GET":
            upstream = await self.forwarder.send(outbound, content=self._request_body(request))
            return self.forwarder.relay(upstream, headers)

        cache_key = self.cache_key(request)
        cached = await self._lookup(cache_key)
        if cached is not None:
            logger.info(f"Cache hit for: {request_path(request)}")
            headers[CACHE_STATUS_HEADER] = "HIT"
            return streaming_response(
                _single_chunk(cached.body),
                status_code=cached.status_code,
                headers=merge_headers(cached.headers, headers),
            )

        upstream = await self.forwarder.send(outbound)
        logger.info(f"Cache miss for: {request_path(request)}")
        if upstream.status_code != 200:
            return self.forwarder.relay(upstream, headers)

        headers["Cache-Control"] = f"s-maxage={self.config.CACHE_TTL_SECONDS}"
        headers[CACHE_STATUS_HEADER] = "MISS"

        async def store(response: httpx.Response, body: bytes) -> None:
            await self._store(cache_key, response, body)

        return self.forwarder.relay(
            upstream, headers, on_body=store, max_body_bytes=self.config.CACHE_MAX_BODY_BYTES
        )

    @staticmethod
    def cache_key(request: Request) -> str:
        """Full request URL, built from the raw path and query so distinct targets never share a key."""
        return backend_url(
            f"{request.url.scheme}://{request.url.netloc}", raw_path(request), raw_query(request)
        )

    @staticmethod
    def _request_body(request: Request):
        if request.method in BODYLESS_METHODS:
            return None
        if "content-length" in request.headers or "transfer-encoding" in request.headers:
            return request.stream()
        return None

    async def _lookup(self, key: str) -> Optional[CacheEntry]:
        try:
            return await self.cache_store.get(key)
        except Exception as e:
            logger.warning(f"Cache lookup failed, treating as miss: {e}", extra={"cache_key": key})
            return None

    async def _store(self, key: str, response: httpx.Response, body: bytes) -> None:
        entry = CacheEntry(
            status_code=response.status_code,
            headers=merge_headers(raw_header_items(response.headers.raw), {}),
            body=body,
            stored_at=time.time(),
        )
        try:
            await self.cache_store.put(key, entry)
        except Exception as e:
            error = CacheWriteError(key, e)
            logger.error(
                error.message,
                exc_info=e,
                extra={"cache_key": key, "error_type": type(e).__name__},
            )


async def _single_chunk(body: bytes):
    yield body
