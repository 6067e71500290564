import json

import httpx
import pytest
import respx
from fastapi.testclient import TestClient
from httpx import Response
from urllib.parse import parse_qs

from touchbase_edge.gateway.core.exceptions import BadRequestError
from touchbase_edge.gateway.main import create_app, google_token_exchange

from .conftest import ALLOWED_ORIGIN, GOOGLE_TOKEN_URL, make_config


@pytest.fixture
def google():
    with respx.mock(assert_all_called=False) as router:
        yield router


def test_code_is_exchanged_for_tokens(client, google, secret_headers):
    route = google.post(GOOGLE_TOKEN_URL).mock(
        return_value=Response(200, json={"access_token": "at", "refresh_token": "rt"})
    )

    response = client.post(
        "/oauth/google/token",
        headers={**secret_headers, "Origin": ALLOWED_ORIGIN},
        json={"code": "auth-code", "redirect_uri": "https://touchbase.site/callback"},
    )

    assert response.status_code == 200
    assert response.json() == {"access_token": "at", "refresh_token": "rt"}
    assert response.headers["access-control-allow-origin"] == ALLOWED_ORIGIN

    form = parse_qs(route.calls.last.request.content.decode())
    assert form["code"] == ["auth-code"]
    assert form["grant_type"] == ["authorization_code"]
    assert form["client_id"] == ["test-google-client"]
    assert form["client_secret"] == ["test-google-secret"]
    assert form["redirect_uri"] == ["https://touchbase.site/callback"]


@pytest.mark.parametrize("payload", [{}, {"code": "c"}, {"redirect_uri": "u"}, {"code": ""}])
def test_missing_parameters(client, google, secret_headers, payload):
    route = google.post(GOOGLE_TOKEN_URL).mock(return_value=Response(200, json={}))

    response = client.post("/oauth/google/token", headers=secret_headers, json=payload)

    assert response.status_code == 400
    assert response.json() == {"error": "Missing required parameters"}
    assert route.call_count == 0


def test_invalid_json_body(client, google, secret_headers):
    response = client.post(
        "/oauth/google/token",
        headers={**secret_headers, "Content-Type": "application/json"},
        content=b"not json",
    )

    assert response.status_code == 400


def test_upstream_rejection_is_relayed(client, google, secret_headers):
    google.post(GOOGLE_TOKEN_URL).mock(return_value=Response(400, text="invalid_grant"))

    response = client.post(
        "/oauth/google/token",
        headers=secret_headers,
        json={"code": "expired", "redirect_uri": "https://touchbase.site/callback"},
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Token exchange failed", "details": "invalid_grant"}


def test_transport_failure(client, google, secret_headers):
    google.post(GOOGLE_TOKEN_URL).mock(side_effect=httpx.ConnectError("down"))

    response = client.post(
        "/oauth/google/token",
        headers=secret_headers,
        json={"code": "c", "redirect_uri": "u"},
    )

    assert response.status_code == 500
    assert response.json() == {"error": "Internal Server Error"}


def test_requires_client_secret(client, google):
    response = client.post("/oauth/google/token", json={"code": "c", "redirect_uri": "u"})

    assert response.status_code == 401


def test_wrong_method(client, secret_headers):
    response = client.get("/oauth/google/token", headers=secret_headers)

    assert response.status_code == 405


def test_disabled_without_client_id(secret_headers):
    app = create_app(make_config(GOOGLE_CLIENT_ID=""))

    with TestClient(app) as test_client:
        response = test_client.post(
            "/oauth/google/token", headers=secret_headers, json={"code": "c", "redirect_uri": "u"}
        )

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_malformed_body_error_keeps_its_cause(gateway_config):
    class UnreadableRequest:
        method = "POST"
        headers = {}

        async def json(self):
            raise json.JSONDecodeError("Expecting value", "", 0)

    with pytest.raises(BadRequestError) as exc_info:
        await google_token_exchange(UnreadableRequest(), None, gateway_config, None)

    assert exc_info.value.message == "Missing required parameters"
    assert isinstance(exc_info.value.__cause__, json.JSONDecodeError)
