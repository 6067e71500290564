"""
Pydantic models for the OAuth token exchange route.
"""

from pydantic import BaseModel, Field


class TokenExchangeRequest(BaseModel):
    """Authorization code handed over by the browser after the consent screen."""

    code: str = Field(..., min_length=1)
    redirect_uri: str = Field(..., min_length=1)
