"""
Session dependencies for FastAPI.

The session cookie managed by Starlette's SessionMiddleware only carries a
random session id. Tokens captured at sign-in are kept server side in a
TokenSessionStore, because provider tokens together easily exceed the 4 KB
browser cookie limit. These helpers read and write that state and protect
routes that need a signed-in user.
"""

import logging
import secrets
from typing import Any, Dict, Optional

from fastapi import Depends, HTTPException, Request, status
from pydantic import ValidationError

from oidc_pilot.config import Settings, get_settings
from oidc_pilot.models.session import TokenSession

logger = logging.getLogger(__name__)

SESSION_ID_KEY = "session_id"


class SessionError(Exception):
    """Raised when stored session data cannot be read back."""
    pass


class TokenSessionStore:
    """
    In-process store of signed-in sessions keyed by session id.

    Entries live until logout or process restart.
    """

    def __init__(self) -> None:
        self._sessions: Dict[str, Dict[str, Any]] = {}

    def save(self, token_session: TokenSession) -> str:
        """Store a session under a new random id and return the id."""
        session_id = secrets.token_urlsafe(32)
        self._sessions[session_id] = token_session.model_dump(mode="json")
        return session_id

    def get(self, session_id: str) -> Optional[Dict[str, Any]]:
        return self._sessions.get(session_id)

    def delete(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)


# Global store instance (singleton pattern)
_session_store: Optional[TokenSessionStore] = None


def get_session_store() -> TokenSessionStore:
    """
    Get or create the process-wide session store.

    Returns:
        TokenSessionStore: The store holding signed-in sessions
    """
    global _session_store
    if _session_store is None:
        _session_store = TokenSessionStore()
    return _session_store


def load_token_session(data: Dict[str, Any]) -> TokenSession:
    """
    Rebuild a TokenSession from stored session data.

    Raises:
        SessionError: If the stored data does not describe a session
    """
    try:
        return TokenSession.model_validate(data)
    except ValidationError as e:
        raise SessionError(f"Stored session is invalid: {e.error_count()} error(s)") from e


def store_token_session(request: Request, token_session: TokenSession) -> str:
    """
    Save the session server side and point the session cookie at it.

    Any session the cookie referred to before is dropped.

    Returns:
        The new session id
    """
    store = get_session_store()
    previous = request.session.get(SESSION_ID_KEY)
    if previous:
        store.delete(previous)

    session_id = store.save(token_session)
    request.session[SESSION_ID_KEY] = session_id
    return session_id


def clear_token_session(request: Request) -> None:
    """Remove all local session state, server side and in the cookie."""
    session_id = request.session.get(SESSION_ID_KEY)
    if session_id:
        get_session_store().delete(session_id)
    request.session.clear()


async def get_token_session(request: Request) -> Optional[TokenSession]:
    """
    Dependency returning the current session, if any.

    Unknown session ids and unreadable session data are discarded and
    treated as signed out.
    """
    session_id = request.session.get(SESSION_ID_KEY)
    if not session_id:
        return None

    store = get_session_store()
    data = store.get(session_id)
    if data is None:
        logger.info("Session id not found in store, treating as signed out")
        request.session.pop(SESSION_ID_KEY, None)
        return None

    try:
        return load_token_session(data)
    except SessionError as e:
        logger.warning(f"Discarding session: {e}")
        store.delete(session_id)
        request.session.pop(SESSION_ID_KEY, None)
        return None


async def require_session(
    token_session: Optional[TokenSession] = Depends(get_token_session),
) -> TokenSession:
    """
    Dependency requiring a signed-in, unexpired session.

    Unauthenticated users are redirected to the home page.

    Raises:
        HTTPException: 303 redirect to "/" when there is no valid session
    """
    if token_session is None or not token_session.is_authenticated:
        logger.info("No valid session, redirecting to home page")
        raise HTTPException(
            status_code=status.HTTP_303_SEE_OTHER,
            detail="Authentication required",
            headers={"Location": "/"},
        )
    return token_session


async def diagnostics_access(
    settings: Settings = Depends(get_settings),
    token_session: Optional[TokenSession] = Depends(get_token_session),
) -> None:
    """
    Dependency guarding the diagnostics report.

    Open by default; requires a session when DIAGNOSTICS_REQUIRE_AUTH is set.
    """
    if not settings.diagnostics_require_auth:
        return
    await require_session(token_session)
