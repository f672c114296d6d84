"""
Configuration management for the application using Pydantic Settings.
Implements singleton pattern to ensure single instance throughout the application.
"""

import secrets
from functools import lru_cache
from typing import List, Optional
from urllib.parse import urlsplit

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Provider endpoints default to the pilot Cognito User Pool. They are public
    OIDC discovery values and may be overridden per environment.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application settings
    app_name: str = Field(default="OIDC Pilot", description="Application name")
    app_version: str = Field(default="0.1.0", description="Application version")
    debug: bool = Field(default=False, description="Debug mode")

    # Server settings
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, description="Server port")

    session_secret_key: str = Field(
        default_factory=lambda: secrets.token_urlsafe(32),
        description="Key used to sign the session cookie. Random per process if not set",
    )

    # Identity provider endpoints
    issuer: str = Field(
        default="https://cognito-idp.us-east-1.amazonaws.com/us-east-1_8KX012Qnq",
        description="OIDC issuer URL",
    )
    authorization_endpoint: str = Field(
        default="https://us-east-18kx012qnq.auth.us-east-1.amazoncognito.com/oauth2/authorize",
        description="OAuth2 authorization endpoint (hosted UI)",
    )
    token_endpoint: str = Field(
        default="https://us-east-18kx012qnq.auth.us-east-1.amazoncognito.com/oauth2/token",
        description="OAuth2 token endpoint",
    )
    userinfo_endpoint: str = Field(
        default="https://us-east-18kx012qnq.auth.us-east-1.amazoncognito.com/oauth2/userInfo",
        description="OIDC UserInfo endpoint",
    )
    end_session_endpoint: str = Field(
        default="https://us-east-18kx012qnq.auth.us-east-1.amazoncognito.com/logout",
        description="End session (logout) endpoint used for single logout",
    )
    jwks_uri: str = Field(
        default=(
            "https://cognito-idp.us-east-1.amazonaws.com/us-east-1_8KX012Qnq/.well-known/jwks.json"
        ),
        description="JSON Web Key Set URI",
    )

    # Client registration
    client_id: Optional[str] = Field(
        default=None,
        description="App client ID. Diagnostics report a CRITICAL issue when missing",
    )
    client_secret: Optional[str] = Field(default=None, description="App client secret")

    scopes: str = Field(
        default="openid email phone profile",
        description="Space-separated scopes requested during login",
    )
    redirect_uri: str = Field(
        default="http://localhost:8000/api/auth/callback/cognito",
        description="Callback URI registered with the app client",
    )
    post_logout_redirect_uri: Optional[str] = Field(
        default=None,
        description="Where the provider sends the user after logout. Defaults to the app origin",
    )

    # Diagnostics
    probe_timeout: float = Field(
        default=10.0,
        description="Timeout in seconds for each diagnostic HTTP probe",
    )
    diagnostics_require_auth: bool = Field(
        default=False,
        description="Require a signed-in session to view the diagnostics report",
    )

    # CORS settings
    cors_origins: str = Field(
        default="http://localhost:3000,http://localhost:8000",
        description="Comma-separated list of allowed CORS origins",
    )

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse comma-separated CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @field_validator("client_id", "client_secret", "post_logout_redirect_uri")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        """Treat empty values from the environment as not set."""
        if v is None or v.strip() == "":
            return None
        return v.strip()

    @field_validator("issuer")
    @classmethod
    def validate_issuer(cls, v: str) -> str:
        """Validate issuer is not empty and drop any trailing slash."""
        if not v or v.strip() == "":
            raise ValueError("issuer must be provided")
        return v.strip().rstrip("/")

    @field_validator("probe_timeout")
    @classmethod
    def validate_probe_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("probe_timeout must be positive")
        return v

    @property
    def openid_config_url(self) -> str:
        """Get the OpenID configuration document URL."""
        return f"{self.issuer}/.well-known/openid-configuration"

    @property
    def scopes_list(self) -> List[str]:
        """Get requested scopes as a list."""
        return [scope.strip() for scope in self.scopes.split() if scope.strip()]

    @property
    def authorization_origin(self) -> str:
        """Origin (scheme://host[:port]) of the authorization endpoint."""
        parts = urlsplit(self.authorization_endpoint)
        return f"{parts.scheme}://{parts.netloc}"


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings instance (singleton pattern using lru_cache).

    Returns:
        Settings: The application settings instance
    """
    return Settings()
