"""
Main FastAPI application: OIDC sign-in and token inspection harness.

This is a throwaway test harness. It shows raw and decoded tokens so an
operator can check which claims the identity provider passes through.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

import httpx
from authlib.integrations.starlette_client import OAuthError, StarletteOAuth2App
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.middleware.sessions import SessionMiddleware

from oidc_pilot.auth import (
    build_logout_url,
    clear_token_session,
    diagnostics_access,
    get_oauth_client,
    get_token_session,
    require_session,
    store_token_session,
)
from oidc_pilot.auth.token_utils import format_time_remaining, format_timestamp, inspect_token
from oidc_pilot.config import Settings, get_settings
from oidc_pilot.diagnostics import run_diagnostics
from oidc_pilot.models import TokenDecodeRequest, TokenSession

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager for startup and shutdown events.
    """
    logger.info("Starting up application...")
    logger.info(f"Issuer: {settings.issuer}")
    logger.info(f"Client ID: {'SET' if settings.client_id else 'NOT SET'}")
    logger.info(f"Redirect URI: {settings.redirect_uri}")
    if not settings.client_id:
        logger.warning("CLIENT_ID is not set; sign-in will not work until it is configured")

    yield

    logger.info("Application shutdown complete")


def get_probe_transport() -> Optional[httpx.AsyncBaseTransport]:
    """HTTP transport for diagnostic probes; None uses the network."""
    return None


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="OIDC Authorization Code flow test harness with token and claim inspection",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

app.add_middleware(
    SessionMiddleware,
    secret_key=settings.session_secret_key,
    same_site="lax",
    https_only=False,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/", tags=["Health"])
async def root(token_session: Optional[TokenSession] = Depends(get_token_session)):
    """
    Home - public access. Shows whether a user is signed in.
    """
    authenticated = token_session is not None and token_session.is_authenticated
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "authenticated": authenticated,
        "user": token_session.user.model_dump() if authenticated else None,
        "links": {
            "login": "/login",
            "dashboard": "/dashboard",
            "logout": "/logout",
            "diagnostics": "/api/test/diagnostics",
        },
    }


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint - public access.
    """
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@app.get("/login", tags=["Authentication"])
async def login(
    request: Request,
    settings: Settings = Depends(get_settings),
    client: StarletteOAuth2App = Depends(get_oauth_client),
):
    """
    Start the Authorization Code flow by redirecting to the provider's hosted UI.
    """
    if not settings.client_id:
        return JSONResponse(
            status_code=503,
            content={
                "error": "Client ID is not configured",
                "detail": "Set CLIENT_ID and check /api/test/diagnostics",
            },
        )
    return await client.authorize_redirect(request, settings.redirect_uri)


@app.get("/api/auth/callback/cognito", tags=["Authentication"])
async def auth_callback(
    request: Request,
    client: StarletteOAuth2App = Depends(get_oauth_client),
):
    """
    OAuth2 callback: exchange the authorization code and store the tokens.
    """
    provider_error = request.query_params.get("error")
    if provider_error:
        description = request.query_params.get("error_description", "")
        logger.warning(f"Provider returned an error: {provider_error} - {description}")
        return JSONResponse(
            status_code=400,
            content={"error": provider_error, "detail": description},
        )

    try:
        token = await client.authorize_access_token(request)
    except OAuthError as e:
        logger.warning(f"Authorization failed: {e.error} - {e.description}")
        return JSONResponse(
            status_code=400,
            content={"error": "Authorization failed", "detail": e.description or e.error},
        )
    except httpx.HTTPError as e:
        logger.error(f"Token exchange with provider failed: {e}")
        return JSONResponse(
            status_code=502,
            content={"error": "Token exchange failed", "detail": str(e)},
        )

    token_session = TokenSession.from_token_response(token)
    store_token_session(request, token_session)

    subject = token_session.user.email or token_session.user.id if token_session.user else None
    logger.info(f"User signed in: {subject or 'unknown'}")

    return RedirectResponse(url="/dashboard", status_code=303)


@app.get("/dashboard", tags=["Inspection"])
async def dashboard(token_session: TokenSession = Depends(require_session)):
    """
    Debug dashboard: raw tokens, decoded headers and claims, and expiry details.

    Use this to compare what the ID token and access token carry and to
    check claim passthrough from upstream identity providers.
    """
    return {
        "user": token_session.user.model_dump() if token_session.user else None,
        "session": {
            "expires_at": token_session.expires_at,
            "expires_at_display": format_timestamp(token_session.expires_at),
            "time_remaining": format_time_remaining(token_session.expires_at),
            "seconds_remaining": token_session.seconds_remaining(),
            "token_type": token_session.token_type,
            "has_refresh_token": token_session.refresh_token is not None,
        },
        "tokens": {
            "id_token": inspect_token(token_session.id_token).model_dump(),
            "access_token": inspect_token(token_session.access_token).model_dump(),
        },
        "userinfo": token_session.userinfo,
    }


@app.post("/api/tokens/decode", tags=["Inspection"])
async def decode_token(body: TokenDecodeRequest):
    """
    Decode an arbitrary token for inspection. The signature is NOT verified.
    """
    return inspect_token(body.token).model_dump()


@app.get("/logout", tags=["Authentication"])
async def logout(request: Request, settings: Settings = Depends(get_settings)):
    """
    Single logout: clear the local session, then end the provider session.
    """
    clear_token_session(request)

    post_logout_redirect_uri = settings.post_logout_redirect_uri or str(request.base_url).rstrip(
        "/"
    )
    logout_url = build_logout_url(settings, post_logout_redirect_uri)
    logger.info("Local session cleared, redirecting to provider logout")

    return RedirectResponse(url=logout_url, status_code=303)


@app.get("/api/test/diagnostics", tags=["Diagnostics"])
async def diagnostics(
    _: None = Depends(diagnostics_access),
    settings: Settings = Depends(get_settings),
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_probe_transport),
):
    """
    Check connectivity to the identity provider endpoints.

    Always answers 200; the report's summary carries the verdict.
    """
    report = await run_diagnostics(settings, transport=transport)
    return report.model_dump(by_alias=True, mode="json")


@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """
    Global exception handler for unhandled exceptions.
    """
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "message": "An unexpected error occurred. Please try again later.",
        },
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "oidc_pilot.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level="info",
    )
