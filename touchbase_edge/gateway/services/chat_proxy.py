"""
Chat-completion proxy.

Forwards browser chat requests to the third-party completion API with the
server-held key, so the key never reaches the client.
"""

import logging

import httpx
from fastapi import Request
from starlette.responses import Response

from ..core.headers import cors_headers
from ..models import OutboundRequest
from .forwarder import Forwarder

logger = logging.getLogger("gateway.chat_proxy")


class ChatCompletionProxy:
    def __init__(self, forwarder: Forwarder, url: str, api_key: str, allowed_origins):
        self.forwarder = forwarder
        self.url = url
        self.api_key = api_key
        self.allowed_origins = allowed_origins

    async def forward(self, request: Request) -> Response:
        outbound = OutboundRequest(
            method="POST",
            url=self.url,
            headers=httpx.Headers(
                {
                    "Content-Type": "application/json",
                    "Authorization": f"Bearer {self.api_key}",
                }
            ),
        )
        # Buffered: completion requests are small and some providers reject chunked uploads.
        body = await request.body()
        upstream = await self.forwarder.send(
            outbound, content=body, error_message="OpenRouter API error"
        )
        logger.info(f"Chat completion relayed with status {upstream.status_code}")
        return self.forwarder.relay(
            upstream,
            cors_headers(request.headers.get("origin"), request.method, self.allowed_origins),
        )
