from __future__ import annotations

from datetime import datetime, timedelta, timezone
from urllib.parse import parse_qs, urlparse

import pytest
from fastapi.testclient import TestClient

from devhub.api import deps
from devhub.api.rate_limit import limiter
from devhub.application.dto.auth import AccountOutput, BeginLoginOutput, SessionOutput
from devhub.application.use_cases.auth_common import open_session
from devhub.application.use_cases.authenticate_request import AuthenticateRequestUseCase
from devhub.application.use_cases.get_me import GetMeUseCase
from devhub.application.use_cases.initiate_checkout import InitiateCheckoutUseCase
from devhub.application.use_cases.issue_access_token import IssueAccessTokenUseCase
from devhub.application.use_cases.logout_session import LogoutSessionUseCase
from devhub.application.use_cases.process_payment_webhook import ProcessPaymentWebhookUseCase
from devhub.application.use_cases.reconcile_payment import ReconcilePaymentUseCase
from devhub.application.use_cases.revoke_account_sessions import RevokeAccountSessionsUseCase
from devhub.application.use_cases.set_account_role import SetAccountRoleUseCase
from devhub.application.use_cases.validate_session import ValidateSessionUseCase
from devhub.domain.exceptions import ExpiredStateError, NoVerifiedEmailError
from devhub.infrastructure.clients.stripe_client import StripeWebhookVerifier
from devhub.main import create_app

from fakes import (
    WEBHOOK_SECRET,
    FakeAuthPort,
    FakePaymentProvider,
    FakePurchasesPort,
    build_token_service,
    checkout_event,
    make_account,
    make_product,
    sign_payload,
)


COOKIE = "devhub_session"


class FakeLoginUseCase:
    def __init__(self, *, output: SessionOutput | None = None, error: Exception | None = None):
        self._output = output
        self._error = error
        self.commands = []

    def execute(self, command):
        self.commands.append(command)
        if self._error is not None:
            raise self._error
        return self._output


class FakeBeginLogin:
    def execute(self, command):
        return BeginLoginOutput(
            authorization_url="https://github.com/login/oauth/authorize?state=s1",
            state="s1",
        )


@pytest.fixture(autouse=True)
def reset_rate_limits():
    limiter.reset()
    yield
    limiter.reset()


@pytest.fixture
def auth_port():
    return FakeAuthPort()


@pytest.fixture
def token_port():
    return build_token_service()


@pytest.fixture
def app(auth_port, token_port):
    app = create_app(run_sweepers=False)
    app.dependency_overrides[deps.get_authenticate_request_use_case] = lambda: AuthenticateRequestUseCase(
        auth_port=auth_port,
        token_port=token_port,
        validate_session=ValidateSessionUseCase(auth_port=auth_port, token_port=token_port),
    )
    app.dependency_overrides[deps.get_get_me_use_case] = lambda: GetMeUseCase(auth_port=auth_port)
    app.dependency_overrides[deps.get_logout_session_use_case] = lambda: LogoutSessionUseCase(
        auth_port=auth_port,
        token_port=token_port,
    )
    app.dependency_overrides[deps.get_issue_access_token_use_case] = lambda: IssueAccessTokenUseCase(
        token_port=token_port,
    )
    return app


@pytest.fixture
def client(app):
    return TestClient(app)


def _login(auth_port, token_port, **account_overrides) -> str:
    account = auth_port.add_account(make_account(**account_overrides))
    output = open_session(account=account, auth_port=auth_port, token_port=token_port, user_agent=None, ip=None)
    return output.session_token


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_github_login_redirects_to_provider(app, client):
    app.dependency_overrides[deps.get_begin_login_use_case] = lambda: FakeBeginLogin()

    response = client.get("/v1/auth/github", follow_redirects=False)

    assert response.status_code == 302
    assert response.headers["location"].startswith("https://github.com/login/oauth/authorize")


def test_callback_success_sets_session_cookie(app, client):
    login = FakeLoginUseCase(
        output=SessionOutput(
            account=AccountOutput(id="acc-1", email="dev@example.com", name="Dev", avatar_url=None, role="user"),
            session_token="opaque-token",
            session_expires_at=datetime.now(timezone.utc) + timedelta(hours=24),
        )
    )
    app.dependency_overrides[deps.get_login_github_use_case] = lambda: login

    response = client.get(
        "/v1/auth/github/callback",
        params={"code": "c1", "state": "s1"},
        headers={"X-Forwarded-For": "203.0.113.5, 10.0.0.1"},
        follow_redirects=False,
    )

    assert response.status_code == 302
    location = urlparse(response.headers["location"])
    assert location.path == "/auth/success"
    assert parse_qs(location.query) == {
        "success": ["true"],
        "userId": ["acc-1"],
        "userName": ["Dev"],
        "userEmail": ["dev@example.com"],
    }
    assert "opaque-token" not in response.headers["location"]
    cookie = response.headers["set-cookie"]
    assert f"{COOKIE}=opaque-token" in cookie
    assert "HttpOnly" in cookie
    assert "samesite=lax" in cookie.lower()
    assert login.commands[0].ip == "203.0.113.5"


@pytest.mark.parametrize(
    ("error", "code"),
    [
        (ExpiredStateError("expired"), "invalid_state"),
        (NoVerifiedEmailError("none"), "no_verified_email"),
        (RuntimeError("boom"), "internal_error"),
    ],
)
def test_callback_failures_redirect_with_error_code(app, client, error, code):
    app.dependency_overrides[deps.get_login_github_use_case] = lambda: FakeLoginUseCase(error=error)

    response = client.get("/v1/auth/github/callback", params={"code": "c1", "state": "s1"}, follow_redirects=False)

    assert response.status_code == 302
    location = urlparse(response.headers["location"])
    assert location.path == "/auth/error"
    assert parse_qs(location.query) == {"error": [code]}
    assert "set-cookie" not in response.headers


def test_profile_requires_authentication(client):
    response = client.get("/v1/auth/profile")

    assert response.status_code == 401


def test_profile_with_session_cookie(client, auth_port, token_port):
    session_token = _login(auth_port, token_port)
    client.cookies.set(COOKIE, session_token)

    response = client.get("/v1/auth/profile")

    assert response.status_code == 200
    assert response.json()["user"]["email"] == "dev@example.com"
    assert response.json()["user"]["role"] == "user"


def test_profile_with_unknown_session_cookie_is_unauthorized(client):
    client.cookies.set(COOKIE, "stale-token")

    response = client.get("/v1/auth/profile")

    assert response.status_code == 401


def test_malformed_authorization_header_is_unauthorized(client):
    response = client.get("/v1/auth/profile", headers={"Authorization": "Basic abc"})

    assert response.status_code == 401


def test_bearer_token_issued_from_session_authenticates(client, auth_port, token_port):
    session_token = _login(auth_port, token_port)
    client.cookies.set(COOKIE, session_token)

    token_response = client.post("/v1/auth/token")
    client.cookies.clear()
    access_token = token_response.json()["access_token"]
    profile = client.get("/v1/auth/profile", headers={"Authorization": f"Bearer {access_token}"})

    assert token_response.status_code == 200
    assert token_response.json()["token_type"] == "bearer"
    assert profile.status_code == 200


def test_token_endpoint_requires_session_cookie(client):
    response = client.post("/v1/auth/token")

    assert response.status_code == 401


def test_logout_clears_cookie_and_invalidates_session(client, auth_port, token_port):
    session_token = _login(auth_port, token_port)
    client.cookies.set(COOKIE, session_token)

    response = client.post("/v1/auth/logout")

    assert response.status_code == 200
    assert response.json() == {"ok": True}
    assert f'{COOKIE}=""' in response.headers["set-cookie"] or "Max-Age=0" in response.headers["set-cookie"]
    client.cookies.set(COOKIE, session_token)
    assert client.get("/v1/auth/profile").status_code == 401


def test_checkout_returns_handle_and_conflicts_when_owned(app, client, auth_port, token_port):
    purchases = FakePurchasesPort([make_product()])
    app.dependency_overrides[deps.get_initiate_checkout_use_case] = lambda: InitiateCheckoutUseCase(
        auth_port=auth_port,
        purchases_port=purchases,
        payment_provider=FakePaymentProvider(),
    )
    client.cookies.set(COOKIE, _login(auth_port, token_port, id="buyer-1", email="buyer@example.com"))

    first = client.post("/v1/checkout", json={"productId": 10})
    purchases.complete_pending_purchase(
        purchase_id=first.json()["purchase_id"],
        payment_intent_id=None,
        customer_id=None,
        completed_at=datetime.now(timezone.utc),
    )
    second = client.post("/v1/checkout", json={"product_id": 10})

    assert first.status_code == 200
    body = first.json()
    assert body["sessionId"] == "cs_test_1"
    assert body["url"].endswith("cs_test_1")
    assert second.status_code == 409


def test_checkout_requires_authentication(client):
    response = client.post("/v1/checkout", json={"productId": 10})

    assert response.status_code == 401


def test_webhook_rejects_bad_signature_and_accepts_valid_one(app, client):
    purchases = FakePurchasesPort([make_product()])
    purchases.create_pending_purchase(
        buyer_id="buyer-1",
        product_id=10,
        amount_cents=1500,
        currency="usd",
        checkout_session_id="cs_test_1",
        ip=None,
        user_agent=None,
        created_at=datetime.now(timezone.utc),
    )
    app.dependency_overrides[deps.get_process_payment_webhook_use_case] = lambda: ProcessPaymentWebhookUseCase(
        verifier=StripeWebhookVerifier(webhook_secret=WEBHOOK_SECRET),
        reconcile_payment=ReconcilePaymentUseCase(purchases_port=purchases),
    )
    payload = checkout_event(metadata={"buyer_id": "buyer-1", "product_id": "10"})

    rejected = client.post(
        "/v1/payments/webhook",
        content=payload,
        headers={"Stripe-Signature": "t=1,v1=bad", "Content-Type": "application/json"},
    )
    accepted = client.post(
        "/v1/payments/webhook",
        content=payload,
        headers={"Stripe-Signature": sign_payload(payload), "Content-Type": "application/json"},
    )
    replayed = client.post(
        "/v1/payments/webhook",
        content=payload,
        headers={"Stripe-Signature": sign_payload(payload), "Content-Type": "application/json"},
    )

    assert rejected.status_code == 400
    assert accepted.status_code == 200
    assert accepted.json()["outcome"] == "completed"
    assert replayed.status_code == 200
    assert replayed.json()["outcome"] == "stale"
    assert purchases.products[10].acquisition_count == 1


def test_admin_route_forbidden_for_users(app, client, auth_port, token_port):
    app.dependency_overrides[deps.get_set_account_role_use_case] = lambda: SetAccountRoleUseCase(auth_port=auth_port)
    client.cookies.set(COOKIE, _login(auth_port, token_port))

    response = client.put("/v1/admin/accounts/acc-1/role", json={"role": "admin"})

    assert response.status_code == 403


def test_admin_can_promote_account(app, client, auth_port, token_port):
    app.dependency_overrides[deps.get_set_account_role_use_case] = lambda: SetAccountRoleUseCase(auth_port=auth_port)
    auth_port.add_account(make_account(id="user-2", email="user2@example.com"))
    client.cookies.set(COOKIE, _login(auth_port, token_port, id="admin-1", email="admin@example.com", role="admin"))

    response = client.put("/v1/admin/accounts/user-2/role", json={"role": "admin"})

    assert response.status_code == 200
    assert response.json()["user"]["role"] == "admin"


def test_admin_revoke_reports_revoked_session_count(app, client, auth_port, token_port):
    app.dependency_overrides[deps.get_revoke_account_sessions_use_case] = lambda: RevokeAccountSessionsUseCase(
        auth_port=auth_port,
    )
    target_token = _login(auth_port, token_port, id="user-2", email="user2@example.com")
    client.cookies.set(COOKIE, _login(auth_port, token_port, id="admin-1", email="admin@example.com", role="admin"))

    response = client.post("/v1/admin/accounts/user-2/sessions/revoke")

    assert response.status_code == 200
    assert response.json() == {"revoked": 1}

    client.cookies.set(COOKIE, target_token)
    assert client.get("/v1/auth/profile").status_code == 401


def test_unhandled_errors_return_generic_500(app, auth_port, token_port):
    class ExplodingUseCase:
        def execute(self, account_id):
            raise RuntimeError("database unavailable")

    app.dependency_overrides[deps.get_get_me_use_case] = lambda: ExplodingUseCase()
    client = TestClient(app, raise_server_exceptions=False)
    client.cookies.set(COOKIE, _login(auth_port, token_port))

    response = client.get("/v1/auth/profile")

    assert response.status_code == 500
    assert response.json() == {"detail": "Internal server error."}


def test_github_login_is_rate_limited_per_client_ip(app, client, monkeypatch):
    monkeypatch.setenv("RATE_LIMIT_LOGIN", "2 per minute")
    app.dependency_overrides[deps.get_begin_login_use_case] = lambda: FakeBeginLogin()

    responses = [
        client.get("/v1/auth/github", headers={"X-Forwarded-For": "198.51.100.7"}, follow_redirects=False)
        for _ in range(3)
    ]
    other_client = client.get("/v1/auth/github", headers={"X-Forwarded-For": "198.51.100.8"}, follow_redirects=False)

    assert [response.status_code for response in responses] == [302, 302, 429]
    assert responses[2].json() == {"detail": "Too many requests. Please try again later."}
    assert other_client.status_code == 302


def test_github_callback_is_rate_limited(app, client, monkeypatch):
    monkeypatch.setenv("RATE_LIMIT_CALLBACK", "1 per minute")
    app.dependency_overrides[deps.get_login_github_use_case] = lambda: FakeLoginUseCase(error=ExpiredStateError("expired"))

    first = client.get("/v1/auth/github/callback", params={"code": "c1", "state": "s1"}, follow_redirects=False)
    second = client.get("/v1/auth/github/callback", params={"code": "c1", "state": "s1"}, follow_redirects=False)

    assert first.status_code == 302
    assert second.status_code == 429


def test_checkout_is_rate_limited(app, client, auth_port, token_port, monkeypatch):
    monkeypatch.setenv("RATE_LIMIT_CHECKOUT", "1 per minute")
    app.dependency_overrides[deps.get_initiate_checkout_use_case] = lambda: InitiateCheckoutUseCase(
        auth_port=auth_port,
        purchases_port=FakePurchasesPort([make_product()]),
        payment_provider=FakePaymentProvider(),
    )
    client.cookies.set(COOKIE, _login(auth_port, token_port, id="buyer-1", email="buyer@example.com"))

    first = client.post("/v1/checkout", json={"productId": 10})
    second = client.post("/v1/checkout", json={"productId": 10})

    assert first.status_code == 200
    assert second.status_code == 429


def test_payment_webhook_is_rate_limited(app, client, monkeypatch):
    monkeypatch.setenv("RATE_LIMIT_WEBHOOK", "1 per minute")
    app.dependency_overrides[deps.get_process_payment_webhook_use_case] = lambda: ProcessPaymentWebhookUseCase(
        verifier=StripeWebhookVerifier(webhook_secret=WEBHOOK_SECRET),
        reconcile_payment=ReconcilePaymentUseCase(purchases_port=FakePurchasesPort()),
    )
    headers = {"Stripe-Signature": "t=1,v1=bad", "Content-Type": "application/json"}

    first = client.post("/v1/payments/webhook", content=checkout_event(), headers=headers)
    second = client.post("/v1/payments/webhook", content=checkout_event(), headers=headers)

    assert first.status_code == 400
    assert second.status_code == 429
