"""
Token utilities for parsing, decoding and formatting JWTs for display.

IMPORTANT: These functions are for DISPLAY ONLY and do NOT perform
cryptographic verification. Never use the results for access decisions.
"""

import json
import logging
import math
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from jose.utils import base64url_decode

from oidc_pilot.models.token import (
    DecodeResult,
    ExpiryState,
    TokenInspection,
    TokenMetadata,
    TokenStructure,
)

logger = logging.getLogger(__name__)

HEADER_SEGMENT = 0
PAYLOAD_SEGMENT = 1

EXPIRING_SOON_SECONDS = 300

HIGHLIGHT_CLAIMS = ("email", "sub", "cognito:groups", "groups")

_SECONDS_PER_DAY = 60 * 60 * 24
_SECONDS_PER_HOUR = 60 * 60


def decode_segment(token: Optional[str], index: int) -> DecodeResult:
    """
    Decode one segment of a compact JWT into a JSON object.

    Args:
        token: The JWT token string (header.payload.signature)
        index: Segment to decode (0 for header, 1 for payload)

    Returns:
        DecodeResult describing the decoded object or the failure
    """
    if not token:
        return DecodeResult.failure("Token is empty")

    parts = token.split(".")
    if len(parts) != 3:
        return DecodeResult.failure(f"Expected 3 segments, found {len(parts)}")

    # URL-safe alphabet to standard base64
    segment = parts[index].replace("-", "+").replace("_", "/")

    try:
        raw = base64url_decode(segment.encode("ascii"))
        value = json.loads(
            raw.decode("utf-8"), parse_float=_parse_json_float, parse_constant=str
        )
    except ValueError as e:
        return DecodeResult.failure(f"Invalid segment encoding: {e}")

    if not isinstance(value, dict):
        return DecodeResult.failure(f"Segment is JSON {type(value).__name__}, not an object")

    return DecodeResult.success(value)


def decode_jwt(token: Optional[str]) -> Optional[Dict[str, Any]]:
    """
    Decode the JWT payload without verifying it.

    Args:
        token: The JWT token string

    Returns:
        Decoded payload claims, or None if the token cannot be decoded
    """
    result = decode_segment(token, PAYLOAD_SEGMENT)
    if not result.ok:
        if token:
            logger.warning(f"Error decoding JWT payload: {result.error}")
        return None
    return result.value


def decode_jwt_header(token: Optional[str]) -> Optional[Dict[str, Any]]:
    """
    Decode the JWT header without verifying it.

    Args:
        token: The JWT token string

    Returns:
        Decoded header, or None if the token cannot be decoded
    """
    result = decode_segment(token, HEADER_SEGMENT)
    if not result.ok:
        if token:
            logger.warning(f"Error decoding JWT header: {result.error}")
        return None
    return result.value


def extract_claims(token: Optional[str]) -> Optional[Dict[str, Any]]:
    """Extract claims from a JWT token (unverified)."""
    return decode_jwt(token)


def validate_token_structure(token: Any) -> TokenStructure:
    """
    Validate JWT token structure.

    Checks segment count, then independently whether the header and the
    payload decode.

    Args:
        token: The JWT token string

    Returns:
        TokenStructure with validation result and any errors
    """
    errors = []

    if not token:
        errors.append("Token is null or undefined")
        return TokenStructure(is_valid=False, errors=errors)

    if not isinstance(token, str):
        errors.append("Token must be a string")
        return TokenStructure(is_valid=False, errors=errors)

    parts = token.split(".")
    if len(parts) != 3:
        errors.append(
            f"Token must have 3 parts (header.payload.signature), found {len(parts)}"
        )
        return TokenStructure(is_valid=False, errors=errors)

    if not decode_segment(token, HEADER_SEGMENT).ok:
        errors.append("Failed to decode token header")

    if not decode_segment(token, PAYLOAD_SEGMENT).ok:
        errors.append("Failed to decode token payload")

    return TokenStructure(is_valid=not errors, errors=errors)


def get_time_remaining(exp: Optional[float], now: Optional[float] = None) -> ExpiryState:
    """
    Calculate time remaining until token expiration.

    Args:
        exp: Expiration timestamp in seconds (the exp claim)
        now: Current time in epoch seconds; defaults to the wall clock

    Returns:
        ExpiryState with time remaining in various units
    """
    if not exp:
        return ExpiryState.expired()

    current = now if now is not None else time.time()
    try:
        total = math.floor(exp - current)
    except (OverflowError, ValueError):
        # inf, nan or an integer too large for a float
        return ExpiryState.expired()

    if total <= 0:
        return ExpiryState.expired()

    return ExpiryState(
        total=total,
        days=total // _SECONDS_PER_DAY,
        hours=(total % _SECONDS_PER_DAY) // _SECONDS_PER_HOUR,
        minutes=(total % _SECONDS_PER_HOUR) // 60,
        seconds=total % 60,
        is_expired=False,
        is_expiring_soon=total < EXPIRING_SOON_SECONDS,
    )


def format_time_remaining(exp: Optional[float], now: Optional[float] = None) -> str:
    """
    Format time remaining as a compact string like "2h 30m 15s" or "Expired".

    Zero-valued units are left out, but seconds are always shown when no
    other unit was.
    """
    remaining = get_time_remaining(exp, now=now)

    if remaining.is_expired:
        return "Expired"

    parts = []
    if remaining.days > 0:
        parts.append(f"{remaining.days}d")
    if remaining.hours > 0:
        parts.append(f"{remaining.hours}h")
    if remaining.minutes > 0:
        parts.append(f"{remaining.minutes}m")
    if remaining.seconds > 0 or not parts:
        parts.append(f"{remaining.seconds}s")

    return " ".join(parts)


def format_timestamp(timestamp: Optional[float]) -> str:
    """
    Format a Unix timestamp (seconds) as a readable UTC date string.

    Returns "N/A" when no timestamp is given and "Invalid Date" when the
    value is out of range.
    """
    if not timestamp:
        return "N/A"

    try:
        date = datetime.fromtimestamp(timestamp, tz=timezone.utc)
    except (OverflowError, OSError, ValueError, TypeError):
        return "Invalid Date"

    return f"{date:%b} {date.day}, {date.year}, {date:%I:%M:%S %p} UTC"


def pretty_print_json(obj: Any, indent: int = 2) -> str:
    """Pretty print JSON with indentation."""
    try:
        return json.dumps(obj, indent=indent)
    except (TypeError, ValueError):
        return "Error formatting JSON"


def inspect_token(token: Optional[str], now: Optional[float] = None) -> TokenInspection:
    """
    Collect everything shown about a token on the dashboard.

    Never raises for malformed input; the structure field carries the errors.
    """
    header = decode_jwt_header(token)
    claims = extract_claims(token)

    if claims is None:
        return TokenInspection(
            raw=token,
            header=header,
            structure=validate_token_structure(token),
            metadata=TokenMetadata(),
        )

    sorted_claims = dict(sorted(claims.items()))
    exp = _timestamp_claim(claims.get("exp"))
    iat = _timestamp_claim(claims.get("iat"))

    metadata = TokenMetadata(
        issuer=claims.get("iss"),
        subject=claims.get("sub"),
        # Cognito access tokens carry client_id instead of aud
        audience=claims.get("aud", claims.get("client_id")),
        token_use=claims.get("token_use"),
        issued_at=format_timestamp(iat),
        expires_at=format_timestamp(exp),
        time_remaining=format_time_remaining(exp, now=now),
        expiry=get_time_remaining(exp, now=now),
    )

    return TokenInspection(
        raw=token,
        header=header,
        claims=sorted_claims,
        claims_json=pretty_print_json(sorted_claims),
        claim_count=len(claims),
        highlighted_claims={key: claims[key] for key in HIGHLIGHT_CLAIMS if key in claims},
        structure=validate_token_structure(token),
        metadata=metadata,
    )


def _timestamp_claim(value: Any) -> Optional[float]:
    """Return a numeric date claim, or None if it is not a finite number."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    try:
        return value if math.isfinite(value) else None
    except OverflowError:
        return None


def _parse_json_float(literal: str) -> Any:
    # Numbers that overflow a float stay as their JSON text so they can
    # still be displayed and serialized
    value = float(literal)
    return value if math.isfinite(value) else literal
