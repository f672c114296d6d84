"""Shared fixtures for the test suite."""

import base64
import json
from typing import Any, Callable, Dict, Optional, Tuple, Union

import httpx
import pytest

from oidc_pilot.config import Settings

ISSUER = "https://idp.example.com/us-east-1_TEST"
AUTH_DOMAIN = "https://auth.example.com"
AUTHORIZATION_ENDPOINT = f"{AUTH_DOMAIN}/oauth2/authorize"
TOKEN_ENDPOINT = f"{AUTH_DOMAIN}/oauth2/token"
USERINFO_ENDPOINT = f"{AUTH_DOMAIN}/oauth2/userInfo"
END_SESSION_ENDPOINT = f"{AUTH_DOMAIN}/logout"
JWKS_URI = f"{ISSUER}/.well-known/jwks.json"
DISCOVERY_URL = f"{ISSUER}/.well-known/openid-configuration"

ProviderResponse = Union[httpx.Response, Exception]


def encode_raw(raw: bytes) -> str:
    """Base64url-encode bytes without padding."""
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def encode_segment(obj: Any) -> str:
    """Base64url-encode a JSON value without padding."""
    return encode_raw(json.dumps(obj).encode("utf-8"))


def make_token(claims: Dict[str, Any], header: Optional[Dict[str, Any]] = None) -> str:
    """Build a compact JWT with an opaque signature segment."""
    header = header or {"alg": "RS256", "kid": "test-key"}
    return f"{encode_segment(header)}.{encode_segment(claims)}.c2lnbmF0dXJl"


def make_settings(**overrides: Any) -> Settings:
    values = {
        "issuer": ISSUER,
        "authorization_endpoint": AUTHORIZATION_ENDPOINT,
        "token_endpoint": TOKEN_ENDPOINT,
        "userinfo_endpoint": USERINFO_ENDPOINT,
        "end_session_endpoint": END_SESSION_ENDPOINT,
        "jwks_uri": JWKS_URI,
        "client_id": "test-client-id",
        "client_secret": "test-client-secret",
        "session_secret_key": "test-session-secret",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def provider_transport(
    overrides: Optional[Dict[Tuple[str, str], ProviderResponse]] = None,
) -> httpx.MockTransport:
    """
    Mock transport answering like a healthy provider.

    Keys are (method, url); values are a response to return or an
    exception to raise in place of the default.
    """
    responses: Dict[Tuple[str, str], ProviderResponse] = {
        ("GET", DISCOVERY_URL): httpx.Response(
            200, json={"issuer": ISSUER, "jwks_uri": JWKS_URI}
        ),
        ("GET", JWKS_URI): httpx.Response(
            200, json={"keys": [{"kid": "key-1"}, {"kid": "key-2"}]}
        ),
        ("HEAD", AUTHORIZATION_ENDPOINT): httpx.Response(302),
        ("OPTIONS", TOKEN_ENDPOINT): httpx.Response(405),
        ("GET", AUTH_DOMAIN): httpx.Response(404, text="Not Found"),
    }
    responses.update(overrides or {})

    def handler(request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        # A bare origin may be rendered with or without the root slash
        response = responses.get((request.method, url))
        if response is None:
            response = responses.get((request.method, url.rstrip("/")))
        if response is None:
            raise AssertionError(f"unexpected request {request.method} {url}")
        if isinstance(response, Exception):
            raise response
        return response

    return httpx.MockTransport(handler)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def token_factory() -> Callable[..., str]:
    return make_token
