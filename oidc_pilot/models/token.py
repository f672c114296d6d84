"""
Models describing decoded tokens for display.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class DecodeResult(BaseModel):
    """
    Outcome of decoding a single token segment.

    Either ``ok`` is True and ``value`` holds the decoded JSON object, or
    ``ok`` is False and ``error`` describes what went wrong.
    """

    ok: bool
    value: Optional[Dict[str, Any]] = None
    error: Optional[str] = None

    @classmethod
    def success(cls, value: Dict[str, Any]) -> "DecodeResult":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: str) -> "DecodeResult":
        return cls(ok=False, error=error)


class TokenStructure(BaseModel):
    """Result of a structural check on a compact JWT."""

    is_valid: bool = Field(..., description="True when no structural errors were found")
    errors: List[str] = Field(default_factory=list, description="Errors in the order found")


class ExpiryState(BaseModel):
    """
    Time remaining until a token expires.

    Computed from the current clock on every call; never stored.
    """

    total: int = Field(0, description="Total seconds remaining")
    days: int = 0
    hours: int = 0
    minutes: int = 0
    seconds: int = 0
    is_expired: bool = True
    is_expiring_soon: bool = Field(False, description="Less than five minutes remaining")

    @classmethod
    def expired(cls) -> "ExpiryState":
        return cls()


class TokenMetadata(BaseModel):
    """Commonly inspected registered claims, formatted for reading."""

    issuer: Optional[Any] = None
    subject: Optional[Any] = None
    audience: Optional[Any] = None
    token_use: Optional[Any] = None
    issued_at: str = "N/A"
    expires_at: str = "N/A"
    time_remaining: str = "Expired"
    expiry: ExpiryState = Field(default_factory=ExpiryState.expired)


class TokenInspection(BaseModel):
    """Everything the dashboard shows about one token."""

    raw: Optional[str] = None
    header: Optional[Dict[str, Any]] = None
    claims: Optional[Dict[str, Any]] = None
    claims_json: Optional[str] = Field(None, description="Claims as indented JSON for display")
    claim_count: int = 0
    highlighted_claims: Dict[str, Any] = Field(default_factory=dict)
    structure: TokenStructure
    metadata: TokenMetadata


class TokenDecodeRequest(BaseModel):
    """Body of a request to inspect an arbitrary token."""

    token: Optional[str] = Field(None, description="Compact JWT to decode (not verified)")
