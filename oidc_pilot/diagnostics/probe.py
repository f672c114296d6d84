"""
Diagnostics for the identity provider endpoints.

Runs a fixed battery of independent checks against the configured provider
and aggregates them into a DiagnosticReport with recommendations.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional
from urllib.parse import quote, urlencode

import httpx

from oidc_pilot.config import Settings
from oidc_pilot.models.diagnostics import (
    ConfigurationEcho,
    DiagnosticReport,
    DiagnosticSummary,
    Priority,
    ProbeResult,
    Recommendation,
)

logger = logging.getLogger(__name__)

OIDC_DISCOVERY = "oidcDiscovery"
JWKS = "jwks"
AUTHORIZATION_ENDPOINT = "authorizationEndpoint"
TOKEN_ENDPOINT = "tokenEndpoint"
DOMAIN_REACHABILITY = "domainReachability"
OAUTH_URL_GENERATION = "oauthUrlGeneration"


class EndpointDiagnostics:
    """
    Probes the provider endpoints named in Settings.

    Every probe catches its own transport failures so one unreachable
    endpoint never prevents the others from reporting.
    """

    def __init__(
        self,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.settings = settings
        self._transport = transport

    async def run(self) -> DiagnosticReport:
        """
        Run all probes concurrently and build the report.

        Returns:
            DiagnosticReport with per-probe results, summary and recommendations
        """
        logger.info(f"Running provider diagnostics against {self.settings.issuer}")

        async with httpx.AsyncClient(
            timeout=self.settings.probe_timeout,
            follow_redirects=True,
            transport=self._transport,
        ) as client:
            discovery, jwks, authorize, token, domain = await asyncio.gather(
                self._probe_discovery(client),
                self._probe_jwks(client),
                self._probe_authorization_endpoint(client),
                self._probe_token_endpoint(client),
                self._probe_domain(client),
            )

        tests: Dict[str, ProbeResult] = {
            OIDC_DISCOVERY: discovery,
            JWKS: jwks,
            AUTHORIZATION_ENDPOINT: authorize,
            TOKEN_ENDPOINT: token,
            DOMAIN_REACHABILITY: domain,
            OAUTH_URL_GENERATION: self._check_url_generation(),
        }

        summary = DiagnosticSummary.from_results(tests)
        logger.info(
            f"Diagnostics finished: {summary.successful_tests}/{summary.total_tests} passed "
            f"({summary.overall_status.value})"
        )

        return DiagnosticReport(
            timestamp=datetime.now(timezone.utc).isoformat(),
            configuration=self._configuration_echo(),
            tests=tests,
            summary=summary,
            recommendations=build_recommendations(tests, self.settings),
        )

    def _configuration_echo(self) -> ConfigurationEcho:
        return ConfigurationEcho(
            client_id="SET" if self.settings.client_id else "NOT SET",
            client_secret="SET" if self.settings.client_secret else "NOT SET",
            issuer=self.settings.issuer,
            scopes=self.settings.scopes_list,
        )

    async def _probe_discovery(self, client: httpx.AsyncClient) -> ProbeResult:
        url = self.settings.openid_config_url
        try:
            response = await client.get(url)
            result = _result_from_response(url, response, success=response.is_success)
            if response.is_success:
                result.data = response.json()
            else:
                result.error = response.text
            return result
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
            return _failure(OIDC_DISCOVERY, url, e)

    async def _probe_jwks(self, client: httpx.AsyncClient) -> ProbeResult:
        url = self.settings.jwks_uri
        try:
            response = await client.get(url)
            result = _result_from_response(url, response, success=response.is_success)
            if response.is_success:
                document = response.json()
                keys = document.get("keys") if isinstance(document, dict) else None
                result.key_count = len(keys) if isinstance(keys, list) else 0
            else:
                result.error = response.text
            return result
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
            return _failure(JWKS, url, e)

    async def _probe_authorization_endpoint(self, client: httpx.AsyncClient) -> ProbeResult:
        url = self.settings.authorization_endpoint
        try:
            response = await client.head(url)
            return _result_from_response(
                url,
                response,
                success=response.status_code < 500,
                note="HEAD request - any non-5xx response means endpoint is reachable",
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            return _failure(AUTHORIZATION_ENDPOINT, url, e)

    async def _probe_token_endpoint(self, client: httpx.AsyncClient) -> ProbeResult:
        url = self.settings.token_endpoint
        try:
            response = await client.options(url)
            return _result_from_response(
                url,
                response,
                success=response.status_code < 500,
                note="OPTIONS request - testing endpoint availability",
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            return _failure(TOKEN_ENDPOINT, url, e)

    async def _probe_domain(self, client: httpx.AsyncClient) -> ProbeResult:
        url = self.settings.authorization_origin
        try:
            response = await client.get(url)
            # Any HTTP response at all means the domain is reachable
            return _result_from_response(
                url,
                response,
                success=True,
                note="Testing if the provider domain responds",
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            return _failure(DOMAIN_REACHABILITY, url, e)

    def _check_url_generation(self) -> ProbeResult:
        if not self.settings.client_id:
            generated = "Cannot generate - CLIENT_ID not set"
        else:
            generated = build_authorization_url(self.settings)
        return ProbeResult(
            success=bool(self.settings.client_id),
            generated_url=generated,
            note="This is the URL the login flow will redirect to",
        )


def build_authorization_url(settings: Settings) -> str:
    """
    Build the authorization redirect URL for the configured client.

    Scopes are joined with spaces and percent-encoded (spaces as %20).
    """
    params = {
        "client_id": settings.client_id or "",
        "redirect_uri": settings.redirect_uri,
        "response_type": "code",
        "scope": " ".join(settings.scopes_list),
    }
    return f"{settings.authorization_endpoint}?{urlencode(params, quote_via=quote)}"


def build_recommendations(
    tests: Dict[str, ProbeResult], settings: Settings
) -> List[Recommendation]:
    """
    Turn probe results into ordered, actionable recommendations.

    Falls back to a single INFO entry when nothing needs attention.
    """
    recommendations = []

    if not _passed(tests, OIDC_DISCOVERY):
        recommendations.append(
            Recommendation(
                priority=Priority.HIGH,
                message="OIDC Discovery endpoint is not accessible. This is a critical issue.",
                action="Verify the issuer URL is correct and the User Pool exists.",
            )
        )

    if not _passed(tests, JWKS):
        recommendations.append(
            Recommendation(
                priority=Priority.HIGH,
                message="JWKS endpoint is not accessible. Token validation will fail.",
                action="Check if the User Pool is active and the JWKS URI is correct.",
            )
        )

    if not _passed(tests, DOMAIN_REACHABILITY):
        recommendations.append(
            Recommendation(
                priority=Priority.CRITICAL,
                message="Identity provider domain is not reachable.",
                action="Check network connectivity and verify the domain name is correct.",
            )
        )

    if not settings.client_id:
        recommendations.append(
            Recommendation(
                priority=Priority.CRITICAL,
                message="Client ID is not configured.",
                action="Set CLIENT_ID in the environment or .env file.",
            )
        )

    if not recommendations:
        recommendations.append(
            Recommendation(
                priority=Priority.INFO,
                message="All technical tests passed. Configuration appears correct.",
                action=(
                    "If authentication still fails, the issue is likely in the provider's "
                    "App Client settings (Hosted UI not enabled or identity providers "
                    "not assigned)."
                ),
            )
        )

    return recommendations


async def run_diagnostics(
    settings: Settings,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> DiagnosticReport:
    """
    Run the provider diagnostics.

    Args:
        settings: Resolved application settings
        transport: Optional httpx transport (used to stub the network in tests)

    Returns:
        DiagnosticReport
    """
    return await EndpointDiagnostics(settings, transport=transport).run()


def _passed(tests: Dict[str, ProbeResult], probe_id: str) -> bool:
    result = tests.get(probe_id)
    return result is not None and result.success


def _result_from_response(
    url: str,
    response: httpx.Response,
    success: bool,
    note: Optional[str] = None,
) -> ProbeResult:
    return ProbeResult(
        url=url,
        status=response.status_code,
        status_text=response.reason_phrase,
        success=success,
        note=note,
    )


def _failure(probe_id: str, url: str, error: Exception) -> ProbeResult:
    message = str(error) or type(error).__name__
    logger.warning(f"Diagnostic probe {probe_id} failed for {url}: {message}")
    return ProbeResult(url=url, success=False, error=message)
