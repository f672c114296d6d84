"""
Session models for signed-in users.
"""

import time
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class SessionUser(BaseModel):
    """
    Represents the signed-in user as returned by the identity provider.
    """

    id: str = Field(..., description="Unique user identifier (sub claim)")
    name: Optional[str] = Field(None, description="Display name, falls back to email")
    email: Optional[str] = Field(None, description="User's email address (if available)")
    image: Optional[str] = Field(None, description="Profile picture URL")

    @classmethod
    def from_profile(cls, profile: Dict[str, Any], fallback_id: str = "unknown") -> "SessionUser":
        """
        Create SessionUser from ID token claims or a UserInfo response.

        Args:
            profile: Claims describing the user
            fallback_id: Identifier used when the profile has no sub claim

        Returns:
            SessionUser instance
        """
        return cls(
            id=profile.get("sub") or fallback_id,
            name=profile.get("name") or profile.get("email"),
            email=profile.get("email"),
            image=profile.get("picture"),
        )


class TokenSession(BaseModel):
    """
    Tokens and user profile captured at sign-in.

    Held in the server-side session store and read back on each request
    for display. Nothing here has been verified by this application beyond what
    the auth library did during the code exchange.
    """

    access_token: Optional[str] = None
    id_token: Optional[str] = None
    refresh_token: Optional[str] = None
    token_type: Optional[str] = None
    expires_at: Optional[int] = Field(None, description="Expiry instant in epoch seconds")
    user: Optional[SessionUser] = None
    userinfo: Dict[str, Any] = Field(
        default_factory=dict,
        description="Profile claims returned by the provider at sign-in",
    )

    @classmethod
    def from_token_response(cls, token: Dict[str, Any]) -> "TokenSession":
        """
        Create TokenSession from the auth library's token response.

        Args:
            token: Token response (access_token, id_token, refresh_token,
                expires_at, userinfo)

        Returns:
            TokenSession instance
        """
        userinfo = dict(token.get("userinfo") or {})

        expires_at = token.get("expires_at")
        if expires_at is None and token.get("expires_in") is not None:
            expires_at = int(time.time()) + int(token["expires_in"])

        user = SessionUser.from_profile(userinfo) if userinfo else None

        return cls(
            access_token=token.get("access_token"),
            id_token=token.get("id_token"),
            refresh_token=token.get("refresh_token"),
            token_type=token.get("token_type"),
            expires_at=int(expires_at) if expires_at is not None else None,
            user=user,
            userinfo=userinfo,
        )

    def is_valid(self, now: Optional[float] = None) -> bool:
        """
        Check if the session is still within its expiry.

        A session without an expiry instant is assumed valid.
        """
        if self.expires_at is None:
            return True
        current = int(now if now is not None else time.time())
        return current < self.expires_at

    def seconds_remaining(self, now: Optional[float] = None) -> Optional[int]:
        """Seconds until expiry, never negative, or None if unknown."""
        if self.expires_at is None:
            return None
        current = int(now if now is not None else time.time())
        return max(0, self.expires_at - current)

    @property
    def is_authenticated(self) -> bool:
        """Check if a user is present and the session has not expired."""
        return self.user is not None and self.is_valid()
