"""
Dependency Injection for Gateway API.

Manage request handler dependencies using FastAPI Depends.
"""

import hmac
from typing import Annotated, Optional

from fastapi import Depends, Header, Request

from ..config import GatewayConfig
from ..core.exceptions import AuthorizationError, RouteNotFoundError
from ..services.chat_proxy import ChatCompletionProxy
from ..services.processor import GatewayRequestProcessor, request_path
from ..services.route_table import RouteTable
from ..services.token_exchange import GoogleTokenExchanger


# ==========================================
# 1. Service Accessors
# ==========================================


def get_config(request: Request) -> GatewayConfig:
    return request.app.state.config


def get_route_table(request: Request) -> RouteTable:
    return request.app.state.route_table


def get_processor(request: Request) -> GatewayRequestProcessor:
    return request.app.state.processor


def get_chat_proxy(request: Request) -> ChatCompletionProxy:
    proxy = request.app.state.chat_proxy
    if proxy is None:
        raise RouteNotFoundError()
    return proxy


def get_token_exchanger(request: Request) -> GoogleTokenExchanger:
    exchanger = request.app.state.token_exchanger
    if exchanger is None:
        raise RouteNotFoundError()
    return exchanger


# Service Dependency Type Aliases
ConfigDep = Annotated[GatewayConfig, Depends(get_config)]
RouteTableDep = Annotated[RouteTable, Depends(get_route_table)]
ProcessorDep = Annotated[GatewayRequestProcessor, Depends(get_processor)]
ChatProxyDep = Annotated[ChatCompletionProxy, Depends(get_chat_proxy)]
TokenExchangerDep = Annotated[GoogleTokenExchanger, Depends(get_token_exchanger)]


# ==========================================
# 2. Logic Dependencies (Verification)
# ==========================================


async def verify_client_secret(
    request: Request,
    config: ConfigDep,
    route_table: RouteTableDep,
    x_client_secret: Optional[str] = Header(None),
) -> None:
    """
    Check the pre-shared client secret.

    Public endpoints are exempt. Runs before any routing or forwarding, so a
    rejected request never reaches the backend or the cache.

    Raises:
        AuthorizationError: 401 when the secret is missing or wrong
    """
    if route_table.is_public(request_path(request)):
        return

    if not x_client_secret or not hmac.compare_digest(
        x_client_secret.encode("utf-8"), config.CLIENT_SECRET.encode("utf-8")
    ):
        raise AuthorizationError()


# Logic Dependency Type Aliases
ClientSecretDep = Annotated[None, Depends(verify_client_secret)]
