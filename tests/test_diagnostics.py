import httpx
import pytest

from conftest import (
    AUTH_DOMAIN,
    AUTHORIZATION_ENDPOINT,
    DISCOVERY_URL,
    JWKS_URI,
    TOKEN_ENDPOINT,
    make_settings,
    provider_transport,
)
from oidc_pilot.diagnostics import build_authorization_url, run_diagnostics
from oidc_pilot.models import OverallStatus, Priority

PROBE_IDS = {
    "oidcDiscovery",
    "jwks",
    "authorizationEndpoint",
    "tokenEndpoint",
    "domainReachability",
    "oauthUrlGeneration",
}


async def test_healthy_provider_passes(settings):
    report = await run_diagnostics(settings, transport=provider_transport())

    assert set(report.tests) == PROBE_IDS
    assert all(result.success for result in report.tests.values())
    assert report.summary.total_tests == 6
    assert report.summary.successful_tests == 6
    assert report.summary.failed_tests == 0
    assert report.summary.overall_status == OverallStatus.PASS

    assert len(report.recommendations) == 1
    assert report.recommendations[0].priority == Priority.INFO


async def test_discovery_body_is_captured(settings):
    transport = provider_transport(
        {("GET", DISCOVERY_URL): httpx.Response(200, json={"issuer": "X"})}
    )

    report = await run_diagnostics(settings, transport=transport)

    discovery = report.tests["oidcDiscovery"]
    assert discovery.success
    assert discovery.status == 200
    assert discovery.url == DISCOVERY_URL
    assert discovery.data == {"issuer": "X"}


async def test_discovery_server_error_fails(settings):
    transport = provider_transport(
        {("GET", DISCOVERY_URL): httpx.Response(503, text="Service Unavailable")}
    )

    report = await run_diagnostics(settings, transport=transport)

    discovery = report.tests["oidcDiscovery"]
    assert not discovery.success
    assert discovery.status == 503
    assert discovery.error == "Service Unavailable"
    assert discovery.data is None
    assert report.summary.overall_status == OverallStatus.PARTIAL_PASS

    assert report.recommendations[0].priority == Priority.HIGH
    assert "Discovery" in report.recommendations[0].message


async def test_discovery_invalid_json_fails(settings):
    transport = provider_transport(
        {("GET", DISCOVERY_URL): httpx.Response(200, text="<html>not json</html>")}
    )

    report = await run_diagnostics(settings, transport=transport)

    assert not report.tests["oidcDiscovery"].success
    assert report.tests["oidcDiscovery"].error


async def test_jwks_key_count(settings):
    report = await run_diagnostics(settings, transport=provider_transport())

    assert report.tests["jwks"].success
    assert report.tests["jwks"].key_count == 2


@pytest.mark.parametrize(
    "document", [{"keys": 5}, {"keys": "abc"}, {"keys": None}, {}, [{"kid": "key-1"}]]
)
async def test_jwks_without_key_list_counts_zero(settings, document):
    transport = provider_transport({("GET", JWKS_URI): httpx.Response(200, json=document)})

    report = await run_diagnostics(settings, transport=transport)

    assert report.tests["jwks"].success
    assert report.tests["jwks"].key_count == 0
    assert report.summary.overall_status == OverallStatus.PASS


async def test_jwks_failure_recommendation(settings):
    transport = provider_transport({("GET", JWKS_URI): httpx.Response(404, text="missing")})

    report = await run_diagnostics(settings, transport=transport)

    assert not report.tests["jwks"].success
    assert report.tests["jwks"].key_count is None
    assert [r.priority for r in report.recommendations] == [Priority.HIGH]
    assert "Token validation will fail" in report.recommendations[0].message


@pytest.mark.parametrize(
    "status,success",
    [(200, True), (302, True), (404, True), (499, True), (500, False), (502, False)],
)
async def test_authorization_endpoint_threshold(settings, status, success):
    transport = provider_transport(
        {("HEAD", AUTHORIZATION_ENDPOINT): httpx.Response(status)}
    )

    report = await run_diagnostics(settings, transport=transport)

    result = report.tests["authorizationEndpoint"]
    assert result.success is success
    assert result.status == status


@pytest.mark.parametrize("status,success", [(405, True), (400, True), (503, False)])
async def test_token_endpoint_uses_options(settings, status, success):
    transport = provider_transport({("OPTIONS", TOKEN_ENDPOINT): httpx.Response(status)})

    report = await run_diagnostics(settings, transport=transport)

    assert report.tests["tokenEndpoint"].success is success


async def test_domain_reachability_accepts_any_status(settings):
    transport = provider_transport({("GET", AUTH_DOMAIN): httpx.Response(500)})

    report = await run_diagnostics(settings, transport=transport)

    domain = report.tests["domainReachability"]
    assert domain.success
    assert domain.status == 500
    assert domain.url == AUTH_DOMAIN


async def test_transport_failure_is_isolated(settings):
    transport = provider_transport(
        {("GET", AUTH_DOMAIN): httpx.ConnectError("Name or service not known")}
    )

    report = await run_diagnostics(settings, transport=transport)

    domain = report.tests["domainReachability"]
    assert not domain.success
    assert domain.error == "Name or service not known"
    assert domain.status is None

    # The other probes still ran
    assert report.tests["oidcDiscovery"].success
    assert report.tests["jwks"].success
    assert report.summary.failed_tests == 1
    assert report.summary.overall_status == OverallStatus.PARTIAL_PASS
    assert [r.priority for r in report.recommendations] == [Priority.CRITICAL]


async def test_timeout_is_recorded(settings):
    transport = provider_transport(
        {("HEAD", AUTHORIZATION_ENDPOINT): httpx.ReadTimeout("timed out")}
    )

    report = await run_diagnostics(settings, transport=transport)

    assert not report.tests["authorizationEndpoint"].success
    assert report.tests["authorizationEndpoint"].error == "timed out"


async def test_missing_client_id():
    settings = make_settings(client_id=None, client_secret=None)

    report = await run_diagnostics(settings, transport=provider_transport())

    url_check = report.tests["oauthUrlGeneration"]
    assert not url_check.success
    assert url_check.generated_url == "Cannot generate - CLIENT_ID not set"
    assert report.configuration.client_id == "NOT SET"
    assert report.configuration.client_secret == "NOT SET"
    assert report.summary.overall_status == OverallStatus.PARTIAL_PASS
    assert [r.priority for r in report.recommendations] == [Priority.CRITICAL]
    assert "Client ID" in report.recommendations[0].message


async def test_recommendations_accumulate_in_order():
    settings = make_settings(client_id="")
    transport = provider_transport(
        {
            ("GET", DISCOVERY_URL): httpx.ConnectError("refused"),
            ("GET", JWKS_URI): httpx.ConnectError("refused"),
            ("GET", AUTH_DOMAIN): httpx.ConnectError("refused"),
        }
    )

    report = await run_diagnostics(settings, transport=transport)

    assert [r.priority for r in report.recommendations] == [
        Priority.HIGH,
        Priority.HIGH,
        Priority.CRITICAL,
        Priority.CRITICAL,
    ]
    assert report.summary.failed_tests == 4
    assert report.summary.successful_tests == 2


async def test_configuration_echo_masks_credentials(settings):
    report = await run_diagnostics(settings, transport=provider_transport())

    assert report.configuration.client_id == "SET"
    assert report.configuration.client_secret == "SET"
    assert report.configuration.issuer == settings.issuer
    assert report.configuration.scopes == ["openid", "email", "phone", "profile"]


async def test_report_serializes_with_camel_case(settings):
    report = await run_diagnostics(settings, transport=provider_transport())

    data = report.model_dump(by_alias=True, mode="json")

    assert data["summary"] == {
        "totalTests": 6,
        "successfulTests": 6,
        "failedTests": 0,
        "overallStatus": "PASS",
    }
    assert data["tests"]["jwks"]["keyCount"] == 2
    assert data["tests"]["authorizationEndpoint"]["statusText"] == "Found"
    assert data["configuration"]["clientSecret"] == "SET"
    assert data["recommendations"][0]["priority"] == "INFO"
    assert "timestamp" in data


def test_build_authorization_url(settings):
    url = build_authorization_url(settings)

    assert url == (
        f"{AUTHORIZATION_ENDPOINT}?client_id=test-client-id"
        "&redirect_uri=http%3A%2F%2Flocalhost%3A8000%2Fapi%2Fauth%2Fcallback%2Fcognito"
        "&response_type=code"
        "&scope=openid%20email%20phone%20profile"
    )


async def test_generated_url_matches_builder(settings):
    report = await run_diagnostics(settings, transport=provider_transport())

    assert report.tests["oauthUrlGeneration"].success
    assert report.tests["oauthUrlGeneration"].generated_url == build_authorization_url(settings)
