import os

import pytest
import respx
from fastapi.testclient import TestClient

# Set required variables before anything builds a GatewayConfig from the environment.
os.environ.setdefault("BACKEND_URL", "https://backend.test")
os.environ.setdefault("ANON_KEY", "test-anon-key")
os.environ.setdefault("SERVICE_ROLE_KEY", "test-service-role-key")
os.environ.setdefault("CLIENT_SECRET", "test-client-secret")

from touchbase_edge.gateway.config import GatewayConfig
from touchbase_edge.gateway.main import create_app
from touchbase_edge.gateway.services.response_cache import InMemoryCacheStore

BACKEND_URL = "https://backend.test"
ANON_KEY = "test-anon-key"
SERVICE_ROLE_KEY = "test-service-role-key"
CLIENT_SECRET = "test-client-secret"
OPENROUTER_URL = "https://chat.test/api/v1/chat/completions"
GOOGLE_TOKEN_URL = "https://oauth.test/token"
ALLOWED_ORIGIN = "https://touchbase.site"


class FakeClock:
    """Manually advanced monotonic clock for cache expiry tests."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_config(**overrides) -> GatewayConfig:
    values = dict(
        BACKEND_URL=BACKEND_URL,
        ANON_KEY=ANON_KEY,
        SERVICE_ROLE_KEY=SERVICE_ROLE_KEY,
        CLIENT_SECRET=CLIENT_SECRET,
        ALLOWED_ORIGINS=f"{ALLOWED_ORIGIN},http://localhost:5173",
        OPENROUTER_API_KEY="test-openrouter-key",
        OPENROUTER_URL=OPENROUTER_URL,
        GOOGLE_CLIENT_ID="test-google-client",
        GOOGLE_CLIENT_SECRET="test-google-secret",
        GOOGLE_TOKEN_URL=GOOGLE_TOKEN_URL,
        LOG_CONFIG_PATH="/nonexistent/gateway_log.yaml",
    )
    values.update(overrides)
    return GatewayConfig(_env_file=None, **values)


@pytest.fixture
def gateway_config() -> GatewayConfig:
    return make_config()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache_store(clock) -> InMemoryCacheStore:
    return InMemoryCacheStore(ttl_seconds=60, max_size=128, timer=clock)


@pytest.fixture
def backend():
    """respx router standing in for the backend service."""
    with respx.mock(base_url=BACKEND_URL, assert_all_called=False) as router:
        yield router


@pytest.fixture
def client(gateway_config, cache_store):
    app = create_app(gateway_config, cache_store=cache_store)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def secret_headers():
    return {"X-Client-Secret": CLIENT_SECRET}
