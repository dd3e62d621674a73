from __future__ import annotations

from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from devhub.domain.exceptions import IdentityProviderError
from devhub.infrastructure.clients.github_oauth_client import GithubOauthClient


def _client(handler) -> GithubOauthClient:
    return GithubOauthClient(
        client_id="client-id",
        client_secret="client-secret",
        redirect_uri="http://localhost:8000/v1/auth/github/callback",
        timeout_seconds=2.0,
        transport=httpx.MockTransport(handler),
    )


def test_authorization_url_carries_state_scope_and_signup_flag():
    client = _client(lambda request: httpx.Response(200, json={}))

    url = client.build_authorization_url(state="state-123")

    parsed = urlparse(url)
    params = parse_qs(parsed.query)
    assert parsed.netloc == "github.com"
    assert params["client_id"] == ["client-id"]
    assert params["state"] == ["state-123"]
    assert params["scope"] == ["read:user user:email"]
    assert params["allow_signup"] == ["true"]
    assert params["redirect_uri"] == ["http://localhost:8000/v1/auth/github/callback"]


def test_exchange_code_returns_access_token():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["body"] = parse_qs(request.content.decode("utf-8"))
        seen["accept"] = request.headers.get("accept")
        return httpx.Response(200, json={"access_token": "gho_abc", "token_type": "bearer"})

    token = _client(handler).exchange_code(code="code-1")

    assert token == "gho_abc"
    assert seen["url"] == "https://github.com/login/oauth/access_token"
    assert seen["body"]["code"] == ["code-1"]
    assert seen["body"]["client_secret"] == ["client-secret"]
    assert seen["accept"] == "application/json"


def test_exchange_code_error_payload_without_token_fails():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"error": "bad_verification_code"})

    with pytest.raises(IdentityProviderError, match="bad_verification_code"):
        _client(handler).exchange_code(code="expired")


def test_exchange_code_non_2xx_fails(caplog):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, text="bad gateway")

    with caplog.at_level("WARNING"):
        with pytest.raises(IdentityProviderError, match="502"):
            _client(handler).exchange_code(code="code-1")

    assert "github_oauth: non-2xx method=POST" in caplog.text


def test_timeout_is_reported_as_provider_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(IdentityProviderError, match="timed out"):
        _client(handler).exchange_code(code="code-1")


def test_fetch_profile_and_emails_send_bearer_token():
    auth_headers = []

    def handler(request: httpx.Request) -> httpx.Response:
        auth_headers.append(request.headers.get("authorization"))
        if request.url.path == "/user":
            return httpx.Response(
                200,
                json={"id": 42, "login": "octocat", "name": None, "avatar_url": "https://a/42"},
            )
        if request.url.path == "/user/emails":
            return httpx.Response(
                200,
                json=[
                    {"email": "octo@users.noreply.github.com", "primary": False, "verified": True},
                    {"email": "octo@example.com", "primary": True, "verified": True},
                ],
            )
        return httpx.Response(404)

    client = _client(handler)
    profile = client.fetch_profile(access_token="gho_abc")
    emails = client.fetch_emails(access_token="gho_abc")

    assert profile.external_id == "42"
    assert profile.login == "octocat"
    assert profile.name is None
    assert [item.email for item in emails if item.primary] == ["octo@example.com"]
    assert auth_headers == ["Bearer gho_abc", "Bearer gho_abc"]


def test_fetch_profile_incomplete_payload_fails():
    client = _client(lambda request: httpx.Response(200, json={"login": "octocat"}))

    with pytest.raises(IdentityProviderError):
        client.fetch_profile(access_token="gho_abc")
