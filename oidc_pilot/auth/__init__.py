"""Authentication package initialization."""

from .dependencies import (
    SessionError,
    TokenSessionStore,
    clear_token_session,
    diagnostics_access,
    get_session_store,
    get_token_session,
    require_session,
    store_token_session,
)
from .oauth import PROVIDER_NAME, build_logout_url, get_oauth_client

__all__ = [
    "PROVIDER_NAME",
    "SessionError",
    "TokenSessionStore",
    "build_logout_url",
    "clear_token_session",
    "diagnostics_access",
    "get_oauth_client",
    "get_session_store",
    "get_token_session",
    "require_session",
    "store_token_session",
]
