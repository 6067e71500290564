"""
Where: touchbase_edge/gateway/tests/test_config_defaults.py
What: Validate GatewayConfig defaults and list parsing.
Why: Keep routing and cache defaults stable as environment defaults evolve.
"""

import pytest
from pydantic import ValidationError

from touchbase_edge.gateway.config import GatewayConfig


def _set_required_env(monkeypatch) -> None:
    monkeypatch.setenv("BACKEND_URL", "https://backend.test")
    monkeypatch.setenv("ANON_KEY", "anon")
    monkeypatch.setenv("SERVICE_ROLE_KEY", "service")
    monkeypatch.setenv("CLIENT_SECRET", "secret")


def test_defaults(monkeypatch):
    _set_required_env(monkeypatch)
    for name in ("ALLOWED_ORIGINS", "PUBLIC_ENDPOINTS", "SERVICE_ENDPOINTS", "CACHE_TTL_SECONDS"):
        monkeypatch.delenv(name, raising=False)

    config = GatewayConfig(_env_file=None)

    assert config.CACHE_TTL_SECONDS == 60
    assert config.UPSTREAM_TIMEOUT == 30.0
    assert config.public_endpoints == ("/functions/v1/get-user-stats",)
    assert config.service_endpoints == ("/functions/v1/get-admin-stats",)
    assert "https://touchbase.site" in config.allowed_origins
    assert config.oauth_enabled is False


def test_comma_separated_lists_are_trimmed(monkeypatch):
    _set_required_env(monkeypatch)
    monkeypatch.setenv("ALLOWED_ORIGINS", " https://a.example , https://b.example,,")

    config = GatewayConfig(_env_file=None)

    assert config.allowed_origins == ("https://a.example", "https://b.example")


def test_missing_secret_fails_fast(monkeypatch):
    _set_required_env(monkeypatch)
    monkeypatch.delenv("CLIENT_SECRET")

    with pytest.raises(ValidationError):
        GatewayConfig(_env_file=None)


def test_overlapping_public_and_service_endpoints_fail(monkeypatch):
    _set_required_env(monkeypatch)
    monkeypatch.setenv("PUBLIC_ENDPOINTS", "/functions/v1/stats")
    monkeypatch.setenv("SERVICE_ENDPOINTS", "/functions/v1/stats,/functions/v1/admin")

    with pytest.raises(ValidationError, match="both public and service"):
        GatewayConfig(_env_file=None)
