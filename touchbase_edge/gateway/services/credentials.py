"""
Credential injection.

Turns the inbound header multimap into the outbound one: strips the client
secret and hop-by-hop headers, sets the backend API key and picks the bearer
credential for the path class.
"""

import logging
from typing import Iterable, Tuple

import httpx

from ..core.exceptions import AuthorizationError
from ..core.headers import HOP_BY_HOP_HEADERS
from ..models import OutboundCredential, OutboundRequest, PathClass

logger = logging.getLogger("gateway.credentials")

CLIENT_SECRET_HEADER = "x-client-secret"
API_KEY_HEADER = "apikey"


class CredentialInjector:
    def __init__(self, anon_key: str, service_role_key: str):
        self._anon_key = anon_key
        self._service_role_key = service_role_key

    def build_headers(
        self, inbound: Iterable[Tuple[str, str]], path_class: PathClass
    ) -> Tuple[httpx.Headers, OutboundCredential]:
        """
        Build outbound headers for a classified request.

        Args:
            inbound: Raw (name, value) pairs of the incoming request, in order
            path_class: Result of the route table

        Returns:
            (headers, credential) where credential names the Authorization source

        Raises:
            AuthorizationError: protected function called without a bearer token
        """
        headers = httpx.Headers(
            [
                (name, value)
                for name, value in inbound
                if name.lower() not in HOP_BY_HOP_HEADERS and name.lower() != CLIENT_SECRET_HEADER
            ]
        )
        caller_auth = headers.get("authorization")

        if path_class is PathClass.SERVICE_FUNCTION:
            headers["Authorization"] = f"Bearer {self._service_role_key}"
            credential = OutboundCredential.SERVICE_ROLE_KEY
        elif path_class is PathClass.PROTECTED_FUNCTION:
            if not caller_auth:
                raise AuthorizationError("Unauthorized - No token provided")
            credential = OutboundCredential.CALLER_TOKEN
        elif caller_auth:
            credential = OutboundCredential.CALLER_TOKEN
        else:
            headers["Authorization"] = f"Bearer {self._anon_key}"
            credential = OutboundCredential.ANONYMOUS_KEY

        headers[API_KEY_HEADER] = self._anon_key
        return headers, credential

    def prepare(
        self,
        method: str,
        url: str,
        inbound: Iterable[Tuple[str, str]],
        path_class: PathClass,
    ) -> OutboundRequest:
        headers, credential = self.build_headers(inbound, path_class)
        logger.debug(f"Prepared {method} {url} ({path_class.value}, {credential.value})")
        return OutboundRequest(
            method=method,
            url=url,
            headers=headers,
            path_class=path_class,
            credential=credential,
        )
