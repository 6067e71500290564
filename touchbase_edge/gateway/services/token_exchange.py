"""
Google OAuth token exchange.

Trades an authorization code for tokens using the server-held client secret.
"""

import logging

import httpx

from ..core.exceptions import UpstreamError
from ..models import TokenExchangeRequest

logger = logging.getLogger("gateway.token_exchange")


class GoogleTokenExchanger:
    def __init__(
        self, client: httpx.AsyncClient, token_url: str, client_id: str, client_secret: str
    ):
        self.client = client
        self.token_url = token_url
        self.client_id = client_id
        self.client_secret = client_secret

    async def exchange(self, payload: TokenExchangeRequest) -> httpx.Response:
        """
        Post an authorization_code grant to the token endpoint.

        Returns:
            The token endpoint response, successful or not

        Raises:
            UpstreamError: on transport failure
        """
        try:
            response = await self.client.post(
                self.token_url,
                data={
                    "code": payload.code,
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                    "redirect_uri": payload.redirect_uri,
                    "grant_type": "authorization_code",
                },
            )
        except httpx.HTTPError as e:
            raise UpstreamError(self.token_url, e) from e

        if response.is_error:
            logger.error(
                f"Token exchange failed with status {response.status_code}",
                extra={"status": response.status_code},
            )
        return response
