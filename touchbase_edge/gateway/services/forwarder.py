"""
Forwarder: sends prepared requests upstream and relays the streamed response.
"""

import logging
from typing import AsyncIterator, Awaitable, Callable, Dict, Iterable, List, Optional, Tuple, Union

import httpx
from starlette.background import BackgroundTask
from starlette.responses import StreamingResponse

from ..core.exceptions import UpstreamError
from ..core.headers import HOP_BY_HOP_HEADERS
from ..models import OutboundRequest

logger = logging.getLogger("gateway.forwarder")

BodyCallback = Callable[[httpx.Response, bytes], Awaitable[None]]


def raw_header_items(raw: Iterable[Tuple[bytes, bytes]]) -> List[Tuple[str, str]]:
    """Header pairs exactly as received; latin-1 round-trips arbitrary bytes."""
    return [(name.decode("latin-1"), value.decode("latin-1")) for name, value in raw]


def merge_headers(
    upstream: Iterable[Tuple[str, str]], overrides: Dict[str, str]
) -> List[Tuple[str, str]]:
    """
    Keep upstream headers in order (repeated names included), minus hop-by-hop
    ones and any name present in overrides, then append the overrides.
    """
    replaced = {name.lower() for name in overrides}
    merged = [
        (name, value)
        for name, value in upstream
        if name.lower() not in HOP_BY_HOP_HEADERS and name.lower() not in replaced
    ]
    merged.extend(overrides.items())
    return merged


def streaming_response(
    body: AsyncIterator[bytes],
    status_code: int,
    headers: List[Tuple[str, str]],
    background: Optional[BackgroundTask] = None,
) -> StreamingResponse:
    response = StreamingResponse(body, status_code=status_code, background=background)
    # Assigned raw so repeated headers (e.g. Set-Cookie) survive.
    response.raw_headers = [
        (name.lower().encode("latin-1"), value.encode("latin-1")) for name, value in headers
    ]
    return response


class _BodyRecorder:
    """Copies streamed chunks up to a size limit."""

    def __init__(self, limit: int):
        self.limit = limit
        self.chunks: List[bytes] = []
        self.size = 0
        self.overflow = False
        self.complete = False

    def feed(self, chunk: bytes) -> None:
        if self.overflow:
            return
        self.size += len(chunk)
        if self.size > self.limit:
            self.overflow = True
            self.chunks.clear()
            return
        self.chunks.append(chunk)

    @property
    def body(self) -> Optional[bytes]:
        if self.complete and not self.overflow:
            return b"".join(self.chunks)
        return None


class Forwarder:
    """
    Issues outbound requests on the shared client.

    Responses are relayed chunk by chunk, never buffered whole; the upstream
    connection is released once the body has been sent.
    """

    def __init__(self, client: httpx.AsyncClient):
        self.client = client

    async def send(
        self,
        outbound: OutboundRequest,
        content: Optional[Union[bytes, AsyncIterator[bytes]]] = None,
        error_message: Optional[str] = None,
    ) -> httpx.Response:
        """
        Send the request and return the response with its body still unread.

        Raises:
            UpstreamError: on any transport failure (connect, timeout, protocol)
        """
        request = self.client.build_request(
            outbound.method, outbound.url, headers=outbound.headers, content=content
        )
        try:
            return await self.client.send(request, stream=True)
        except httpx.HTTPError as e:
            raise UpstreamError(outbound.url, e, message=error_message) from e

    def relay(
        self,
        upstream: httpx.Response,
        headers: Dict[str, str],
        on_body: Optional[BodyCallback] = None,
        max_body_bytes: int = 0,
    ) -> StreamingResponse:
        """
        Stream an upstream response back to the caller.

        Args:
            upstream: Response returned by send()
            headers: Headers layered over the upstream ones (CORS, security, cache)
            on_body: Awaited with the full body after the response has been sent,
                only when it was streamed completely and fits in max_body_bytes
            max_body_bytes: Capture limit for on_body
        """
        recorder = _BodyRecorder(max_body_bytes) if on_body else None

        async def body() -> AsyncIterator[bytes]:
            try:
                async for chunk in upstream.aiter_raw():
                    if recorder:
                        recorder.feed(chunk)
                    yield chunk
                if recorder:
                    recorder.complete = True
            except httpx.HTTPError as e:
                # Headers are already sent; the caller sees a truncated body.
                logger.error(
                    f"Upstream stream interrupted: {upstream.request.url}",
                    extra={"error_type": type(e).__name__, "error_detail": str(e)},
                )
            finally:
                await upstream.aclose()

        async def after_response() -> None:
            await upstream.aclose()
            if recorder and recorder.body is not None:
                await on_body(upstream, recorder.body)

        return streaming_response(
            body(),
            status_code=upstream.status_code,
            headers=merge_headers(raw_header_items(upstream.headers.raw), headers),
            background=BackgroundTask(after_response),
        )
