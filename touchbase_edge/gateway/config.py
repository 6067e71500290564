"""
Gateway configuration definition.

Loads configuration from environment variables and provides a Pydantic model.
Uses pydantic-settings for type safety and defaults.

The configuration is loaded once at startup (see ``load_config``) and handed to
the application factory; request handlers read it from ``app.state``.
"""

import sys
from typing import Tuple

from pydantic import Field, model_validator

from touchbase_edge.common.core.config import BaseAppConfig

DEFAULT_ALLOWED_ORIGINS = ",".join(
    [
        "https://touchbase.site",
        "https://touchbase-git-staging-ajiteshgogois-projects.vercel.app",
        "http://localhost:5173",
        "http://localhost:3000",
    ]
)


def _split_csv(value: str) -> Tuple[str, ...]:
    return tuple(item.strip() for item in value.split(",") if item.strip())


class GatewayConfig(BaseAppConfig):
    """
    Configuration management for the Edge Gateway service.
    """

    # Server settings
    UVICORN_BIND_ADDR: str = Field(default="0.0.0.0:8000", description="Listen address")

    # Backend service (secrets, required from env)
    BACKEND_URL: str = Field(..., description="Backend data service base URL")
    ANON_KEY: str = Field(..., description="Anonymous (row-level secured) backend key")
    SERVICE_ROLE_KEY: str = Field(..., description="Service-role (elevated) backend key")
    CLIENT_SECRET: str = Field(..., min_length=1, description="Shared gateway secret")

    # CORS
    ALLOWED_ORIGINS: str = Field(
        default=DEFAULT_ALLOWED_ORIGINS, description="Comma-separated allow-listed origins"
    )

    # Routing
    PUBLIC_ENDPOINTS: str = Field(
        default="/functions/v1/get-user-stats",
        description="Comma-separated function paths exempt from the client secret",
    )
    SERVICE_ENDPOINTS: str = Field(
        default="/functions/v1/get-admin-stats",
        description="Comma-separated function paths forwarded with the service-role key",
    )

    # Chat-completion proxy
    OPENROUTER_API_KEY: str = Field(default="", description="Server-held chat API key")
    OPENROUTER_URL: str = Field(
        default="https://openrouter.ai/api/v1/chat/completions",
        description="Chat-completion endpoint",
    )

    # Google OAuth token exchange (disabled when GOOGLE_CLIENT_ID is empty)
    GOOGLE_CLIENT_ID: str = Field(default="", description="Google OAuth client id")
    GOOGLE_CLIENT_SECRET: str = Field(default="", description="Google OAuth client secret")
    GOOGLE_TOKEN_URL: str = Field(
        default="https://oauth2.googleapis.com/token", description="Google token endpoint"
    )

    # Upstream calls
    UPSTREAM_TIMEOUT: float = Field(default=30.0, description="Upstream call timeout (seconds)")

    # Edge cache
    CACHE_TTL_SECONDS: int = Field(default=60, description="Freshness window (seconds)")
    CACHE_MAX_ENTRIES: int = Field(default=1024, description="Max cached responses")
    CACHE_MAX_BODY_BYTES: int = Field(
        default=1024 * 1024, description="Responses larger than this are not cached"
    )

    # FastAPI settings
    root_path: str = Field(default="", description="API root path (for proxy)")

    # model_config is inherited

    @property
    def allowed_origins(self) -> Tuple[str, ...]:
        return _split_csv(self.ALLOWED_ORIGINS)

    @property
    def public_endpoints(self) -> Tuple[str, ...]:
        return _split_csv(self.PUBLIC_ENDPOINTS)

    @property
    def service_endpoints(self) -> Tuple[str, ...]:
        return _split_csv(self.SERVICE_ENDPOINTS)

    @property
    def oauth_enabled(self) -> bool:
        return bool(self.GOOGLE_CLIENT_ID)

    @model_validator(mode="after")
    def _check_endpoint_lists(self) -> "GatewayConfig":
        overlap = set(self.public_endpoints) & set(self.service_endpoints)
        if overlap:
            raise ValueError(
                f"Paths cannot be both public and service endpoints: {sorted(overlap)}"
            )
        return self


def load_config() -> GatewayConfig:
    """
    Load config from the environment.
    pydantic-settings reads environment variables during instantiation.
    """
    try:
        return GatewayConfig()
    except Exception as e:
        # Default to failing fast when required secrets are missing.
        sys.stderr.write(f"Failed to load configuration: {e}\n")
        raise
