"""
OAuth2/OIDC client registration using Authlib.

The authorization code exchange, nonce/state handling and ID token
signature check all happen inside Authlib; this module only wires the
configured provider endpoints into it.
"""

import logging
from typing import Optional
from urllib.parse import quote, urlencode

from authlib.integrations.starlette_client import OAuth, StarletteOAuth2App

from oidc_pilot.config import Settings, get_settings

logger = logging.getLogger(__name__)

PROVIDER_NAME = "cognito"

_oauth: Optional[OAuth] = None


def create_oauth(settings: Settings) -> OAuth:
    """
    Create an Authlib OAuth registry with the identity provider registered.

    Endpoints are passed explicitly rather than discovered at startup, so
    the app still starts when the provider is unreachable (diagnostics can
    then report why).
    """
    oauth = OAuth()
    oauth.register(
        name=PROVIDER_NAME,
        client_id=settings.client_id,
        client_secret=settings.client_secret,
        authorize_url=settings.authorization_endpoint,
        access_token_url=settings.token_endpoint,
        client_kwargs={"scope": " ".join(settings.scopes_list)},
        # Remaining keyword arguments become the provider metadata Authlib
        # uses to validate the ID token and call UserInfo.
        issuer=settings.issuer,
        jwks_uri=settings.jwks_uri,
        userinfo_endpoint=settings.userinfo_endpoint,
        end_session_endpoint=settings.end_session_endpoint,
    )
    logger.info(f"Registered OIDC provider '{PROVIDER_NAME}' for issuer {settings.issuer}")
    return oauth


def get_oauth_client() -> StarletteOAuth2App:
    """
    Get the registered provider client (created once per process).

    Returns:
        StarletteOAuth2App: The Authlib client for the identity provider
    """
    global _oauth
    if _oauth is None:
        _oauth = create_oauth(get_settings())
    return _oauth.create_client(PROVIDER_NAME)


def build_logout_url(settings: Settings, post_logout_redirect_uri: str) -> str:
    """
    Build the provider end-session URL used for single logout.

    Format: {end_session_endpoint}?client_id={id}&logout_uri={uri}
    """
    params = {
        "client_id": settings.client_id or "",
        "logout_uri": post_logout_redirect_uri,
    }
    return f"{settings.end_session_endpoint}?{urlencode(params, quote_via=quote)}"
