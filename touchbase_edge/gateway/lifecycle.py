"""
Where: touchbase_edge/gateway/lifecycle.py
What: Gateway startup/shutdown orchestration for shared resources.
Why: Keep main.py focused on app assembly while preserving lifecycle behavior.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI

from touchbase_edge.common.core.http_client import HttpClientFactory

from .config import GatewayConfig
from .services.chat_proxy import ChatCompletionProxy
from .services.credentials import CredentialInjector
from .services.forwarder import Forwarder
from .services.processor import GatewayRequestProcessor
from .services.response_cache import CacheStore, InMemoryCacheStore
from .services.route_table import RouteTable
from .services.token_exchange import GoogleTokenExchanger

logger = logging.getLogger("gateway.main")


@asynccontextmanager
async def manage_lifespan(
    app: FastAPI, gateway_config: GatewayConfig, cache_store: Optional[CacheStore] = None
) -> AsyncIterator[None]:
    """Manage application lifecycle."""
    factory = HttpClientFactory(gateway_config)
    client = factory.create_async_client(timeout=gateway_config.UPSTREAM_TIMEOUT)

    try:
        route_table = RouteTable.from_config(gateway_config)
        forwarder = Forwarder(client)

        if cache_store is None:
            cache_store = InMemoryCacheStore(
                ttl_seconds=gateway_config.CACHE_TTL_SECONDS,
                max_size=gateway_config.CACHE_MAX_ENTRIES,
            )

        chat_proxy = None
        if gateway_config.OPENROUTER_API_KEY:
            chat_proxy = ChatCompletionProxy(
                forwarder,
                gateway_config.OPENROUTER_URL,
                gateway_config.OPENROUTER_API_KEY,
                gateway_config.allowed_origins,
            )
        else:
            logger.info("OPENROUTER_API_KEY not set; chat-completion proxy disabled.")

        token_exchanger = None
        if gateway_config.oauth_enabled:
            token_exchanger = GoogleTokenExchanger(
                client,
                gateway_config.GOOGLE_TOKEN_URL,
                gateway_config.GOOGLE_CLIENT_ID,
                gateway_config.GOOGLE_CLIENT_SECRET,
            )

        app.state.http_client = client
        app.state.route_table = route_table
        app.state.cache_store = cache_store
        app.state.processor = GatewayRequestProcessor(
            gateway_config,
            route_table,
            CredentialInjector(gateway_config.ANON_KEY, gateway_config.SERVICE_ROLE_KEY),
            forwarder,
            cache_store,
        )
        app.state.chat_proxy = chat_proxy
        app.state.token_exchanger = token_exchanger

        logger.info(
            "Gateway initialized with shared resources.",
            extra={"backend_url": gateway_config.BACKEND_URL},
        )
        yield
    finally:
        logger.info("Gateway shutting down, closing http client.")
        await client.aclose()
