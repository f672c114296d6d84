"""Models package initialization."""

from .diagnostics import (
    ConfigurationEcho,
    DiagnosticReport,
    DiagnosticSummary,
    OverallStatus,
    Priority,
    ProbeResult,
    Recommendation,
)
from .session import SessionUser, TokenSession
from .token import (
    DecodeResult,
    ExpiryState,
    TokenDecodeRequest,
    TokenInspection,
    TokenMetadata,
    TokenStructure,
)

__all__ = [
    "ConfigurationEcho",
    "DecodeResult",
    "DiagnosticReport",
    "DiagnosticSummary",
    "ExpiryState",
    "OverallStatus",
    "Priority",
    "ProbeResult",
    "Recommendation",
    "SessionUser",
    "TokenDecodeRequest",
    "TokenInspection",
    "TokenMetadata",
    "TokenSession",
    "TokenStructure",
]
