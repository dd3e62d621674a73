from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone

import pytest

from devhub.application.dto.auth import AuthenticateRequestInput
from devhub.application.use_cases.auth_common import open_session
from devhub.application.use_cases.authenticate_request import AuthenticateRequestUseCase
from devhub.application.use_cases.set_account_role import SetAccountRoleUseCase
from devhub.application.use_cases.validate_session import ValidateSessionUseCase
from devhub.domain.entities.principal import AdminPrincipal, Anonymous, UserPrincipal
from devhub.domain.exceptions import (
    AccessTokenInvalidError,
    AccountInactiveError,
    ForbiddenError,
    UnauthenticatedError,
)
from devhub.domain.services.access_policy import require_role

from fakes import FakeAuthPort, build_token_service, make_account


def _gate(auth_port, token_port=None) -> AuthenticateRequestUseCase:
    token_port = token_port or build_token_service()
    return AuthenticateRequestUseCase(
        auth_port=auth_port,
        token_port=token_port,
        validate_session=ValidateSessionUseCase(auth_port=auth_port, token_port=token_port),
    )


def test_no_credentials_is_anonymous():
    principal = _gate(FakeAuthPort()).execute(AuthenticateRequestInput(bearer_token=None, session_token=None))

    assert isinstance(principal, Anonymous)


def test_session_cookie_yields_user_principal():
    auth_port = FakeAuthPort()
    token_port = build_token_service()
    account = auth_port.add_account(make_account())
    session = open_session(account=account, auth_port=auth_port, token_port=token_port, user_agent=None, ip=None)

    principal = _gate(auth_port, token_port).execute(
        AuthenticateRequestInput(bearer_token=None, session_token=session.session_token)
    )

    assert isinstance(principal, UserPrincipal)
    assert principal.account.id == account.id


def test_bearer_token_takes_precedence_over_cookie():
    auth_port = FakeAuthPort()
    token_port = build_token_service()
    admin = auth_port.add_account(make_account(id="admin-1", email="admin@example.com", role="admin"))
    user = auth_port.add_account(make_account(id="user-1", email="user@example.com"))
    user_session = open_session(account=user, auth_port=auth_port, token_port=token_port, user_agent=None, ip=None)
    bearer, _ = token_port.create_access_token(account_id=admin.id, role="admin", now=datetime.now(timezone.utc))

    principal = _gate(auth_port, token_port).execute(
        AuthenticateRequestInput(bearer_token=bearer, session_token=user_session.session_token)
    )

    assert isinstance(principal, AdminPrincipal)
    assert principal.account.id == admin.id


def test_role_comes_from_account_not_token_claims():
    auth_port = FakeAuthPort()
    token_port = build_token_service()
    account = auth_port.add_account(make_account(role="admin"))
    bearer, _ = token_port.create_access_token(account_id=account.id, role="admin", now=datetime.now(timezone.utc))
    auth_port.accounts[account.id] = replace(account, role="user")

    principal = _gate(auth_port, token_port).execute(
        AuthenticateRequestInput(bearer_token=bearer, session_token=None)
    )

    assert isinstance(principal, UserPrincipal)
    with pytest.raises(ForbiddenError):
        require_role(principal, "admin")


def test_invalid_bearer_does_not_fall_back_to_cookie():
    auth_port = FakeAuthPort()
    token_port = build_token_service()
    account = auth_port.add_account(make_account())
    session = open_session(account=account, auth_port=auth_port, token_port=token_port, user_agent=None, ip=None)

    with pytest.raises(AccessTokenInvalidError):
        _gate(auth_port, token_port).execute(
            AuthenticateRequestInput(bearer_token="garbage", session_token=session.session_token)
        )


def test_inactive_account_is_forbidden():
    auth_port = FakeAuthPort()
    token_port = build_token_service()
    account = auth_port.add_account(make_account(is_active=False))
    bearer, _ = token_port.create_access_token(account_id=account.id, role="user", now=datetime.now(timezone.utc))

    with pytest.raises(AccountInactiveError) as exc_info:
        _gate(auth_port, token_port).execute(AuthenticateRequestInput(bearer_token=bearer, session_token=None))

    assert isinstance(exc_info.value, ForbiddenError)


def test_require_role_rejects_anonymous():
    with pytest.raises(UnauthenticatedError):
        require_role(Anonymous(), "user")


def test_admin_satisfies_user_requirement():
    account = make_account(role="admin")

    assert require_role(AdminPrincipal(account=account), "user") is account


def test_set_account_role_promotes_target():
    auth_port = FakeAuthPort()
    admin = auth_port.add_account(make_account(id="admin-1", email="admin@example.com", role="admin"))
    target = auth_port.add_account(make_account(id="user-1", email="user@example.com"))

    output = SetAccountRoleUseCase(auth_port=auth_port).execute(actor=admin, account_id=target.id, role="admin")

    assert output.role == "admin"
    assert auth_port.accounts[target.id].role == "admin"


def test_admin_cannot_demote_self():
    auth_port = FakeAuthPort()
    admin = auth_port.add_account(make_account(id="admin-1", email="admin@example.com", role="admin"))

    with pytest.raises(ForbiddenError):
        SetAccountRoleUseCase(auth_port=auth_port).execute(actor=admin, account_id=admin.id, role="user")


def test_user_cannot_change_roles():
    auth_port = FakeAuthPort()
    user = auth_port.add_account(make_account())

    with pytest.raises(ForbiddenError):
        SetAccountRoleUseCase(auth_port=auth_port).execute(actor=user, account_id=user.id, role="admin")
