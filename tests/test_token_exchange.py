import json
from urllib.parse import parse_qs

import httpx
import pytest
import respx

from cloud_auth import OAuthExchangeClient
from cloud_auth.token_exchange import (
    STEP_AUTHORIZATION_CODE,
    STEP_PLATFORM_TOKEN,
    STEP_VERIFY,
)
from platform_api import PlatformClient

from conftest import API_URL, VERIFY_URL

TOKEN_URL = "https://auth.example.test/oauth2/token"
PLATFORM_TOKEN_URL = f"{API_URL}/token/"
REDIRECT_URI = "http://localhost:5375/"

SECRETS = {
    "sentry_dsn": "https://sentry.example.test/1",
    "amplitude_key": "amp-key",
}


def _client(provider, store) -> OAuthExchangeClient:
    return OAuthExchangeClient(
        provider=provider,
        store=store,
        redirect_uri=REDIRECT_URI,
        platform=PlatformClient(base_url=API_URL),
        environment="staging",
        verify_url=VERIFY_URL,
    )


def _mock_happy_path(router):
    token_route = router.post(TOKEN_URL).mock(
        return_value=httpx.Response(200, json={"id_token": "id-tok", "access_token": "access-tok"})
    )
    platform_route = router.post(PLATFORM_TOKEN_URL).mock(
        return_value=httpx.Response(200, json={"token": "platform-tok"})
    )
    verify_route = router.post(VERIFY_URL).mock(return_value=httpx.Response(200, json=SECRETS))
    return token_route, platform_route, verify_route


@pytest.mark.asyncio
async def test_successful_exchange_replaces_store_contents(provider, store):
    store.set("token", "Token stale")
    store.set("user_session", "old-session")
    store.set("leftover_field", "from previous login")
    store.calls.clear()

    with respx.mock(assert_all_called=True) as router:
        token_route, platform_route, verify_route = _mock_happy_path(router)
        result = await _client(provider, store).run("xyz")

    assert result.success is True
    assert result.step is None

    stored = store.all()
    assert set(stored) == {"token", "user_session", "sentry_dsn", "amplitude_key"}
    assert stored["token"] == "Token platform-tok"
    assert stored["user_session"] != "old-session"
    assert stored["sentry_dsn"] == SECRETS["sentry_dsn"]
    assert stored["amplitude_key"] == "amp-key"

    # reset comes before the first write
    assert store.calls[0] == ("reset",)
    assert store.calls[1:] == [
        ("set", "token"),
        ("set", "user_session"),
        ("set", "sentry_dsn"),
        ("set", "amplitude_key"),
    ]


@pytest.mark.asyncio
async def test_requests_carry_expected_parameters(provider, store):
    with respx.mock(assert_all_called=True) as router:
        token_route, platform_route, verify_route = _mock_happy_path(router)
        await _client(provider, store).run("xyz")

    form = {k: v[0] for k, v in parse_qs(token_route.calls.last.request.content.decode()).items()}
    assert form == {
        "grant_type": "authorization_code",
        "code": "xyz",
        "client_id": "client-123",
        "redirect_uri": REDIRECT_URI,
    }

    assert platform_route.calls.last.request.headers["Authorization"] == "Bearer id-tok"

    assert json.loads(verify_route.calls.last.request.content) == {
        "token": "access-tok",
        "environment": "staging",
    }


@pytest.mark.asyncio
async def test_each_login_gets_a_new_session(provider, store):
    sessions = []
    for _ in range(2):
        with respx.mock() as router:
            _mock_happy_path(router)
            await _client(provider, store).run("xyz")
        sessions.append(store.get("user_session"))

    assert sessions[0] != sessions[1]


@pytest.mark.asyncio
async def test_token_endpoint_failure_is_reported_not_raised(provider, store):
    store.set("token", "Token previous")
    store.calls.clear()

    with respx.mock(assert_all_called=False) as router:
        router.post(TOKEN_URL).mock(return_value=httpx.Response(400, json={"error": "invalid_grant"}))
        platform_route = router.post(PLATFORM_TOKEN_URL)
        result = await _client(provider, store).run("bad-code")

    assert result.success is False
    assert result.step == STEP_AUTHORIZATION_CODE
    assert "400" in result.error
    assert platform_route.call_count == 0
    assert store.calls == []
    assert store.get("token") == "Token previous"


@pytest.mark.asyncio
async def test_missing_tokens_in_response_fail_first_step(provider, store):
    with respx.mock() as router:
        router.post(TOKEN_URL).mock(return_value=httpx.Response(200, json={"access_token": "only"}))
        result = await _client(provider, store).run("xyz")

    assert result.success is False
    assert result.step == STEP_AUTHORIZATION_CODE
    assert store.calls == []


@pytest.mark.asyncio
async def test_empty_code_fails_without_network(provider, store):
    with respx.mock(assert_all_called=False) as router:
        token_route = router.post(TOKEN_URL)
        result = await _client(provider, store).run("")

    assert result.success is False
    assert result.step == STEP_AUTHORIZATION_CODE
    assert token_route.call_count == 0


@pytest.mark.asyncio
async def test_platform_token_failure(provider, store):
    with respx.mock(assert_all_called=False) as router:
        router.post(TOKEN_URL).mock(
            return_value=httpx.Response(200, json={"id_token": "id-tok", "access_token": "access-tok"})
        )
        router.post(PLATFORM_TOKEN_URL).mock(return_value=httpx.Response(401, text="unauthorized"))
        verify_route = router.post(VERIFY_URL)
        result = await _client(provider, store).run("xyz")

    assert result.success is False
    assert result.step == STEP_PLATFORM_TOKEN
    assert verify_route.call_count == 0
    assert store.calls == []


@pytest.mark.asyncio
async def test_verify_network_error(provider, store):
    with respx.mock() as router:
        router.post(TOKEN_URL).mock(
            return_value=httpx.Response(200, json={"id_token": "id-tok", "access_token": "access-tok"})
        )
        router.post(PLATFORM_TOKEN_URL).mock(return_value=httpx.Response(200, json={"token": "platform-tok"}))
        router.post(VERIFY_URL).mock(side_effect=httpx.ConnectError("connection refused"))
        result = await _client(provider, store).run("xyz")

    assert result.success is False
    assert result.step == STEP_VERIFY
    assert "connection refused" in result.error
    assert store.calls == []
