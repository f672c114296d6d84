"""Provider diagnostics package initialization."""

from .probe import EndpointDiagnostics, build_authorization_url, run_diagnostics

__all__ = ["EndpointDiagnostics", "build_authorization_url", "run_diagnostics"]
