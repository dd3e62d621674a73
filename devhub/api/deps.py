from __future__ import annotations

from functools import lru_cache

from fastapi import Depends, Header, HTTPException, Request

from devhub.application.dto.auth import AuthenticateRequestInput
from devhub.application.ports.state_store_port import StateStorePort
from devhub.application.use_cases.authenticate_request import AuthenticateRequestUseCase
from devhub.application.use_cases.begin_login import BeginLoginUseCase
from devhub.application.use_cases.complete_login import CompleteLoginUseCase
from devhub.application.use_cases.get_me import GetMeUseCase
from devhub.application.use_cases.get_payment_status import GetPaymentStatusUseCase
from devhub.application.use_cases.get_purchased_content import GetPurchasedContentUseCase
from devhub.application.use_cases.initiate_checkout import InitiateCheckoutUseCase
from devhub.application.use_cases.issue_access_token import IssueAccessTokenUseCase
from devhub.application.use_cases.list_purchases import ListPurchasesUseCase
from devhub.application.use_cases.login_github import LoginGithubUseCase
from devhub.application.use_cases.logout_session import LogoutSessionUseCase
from devhub.application.use_cases.process_payment_webhook import ProcessPaymentWebhookUseCase
from devhub.application.use_cases.reconcile_payment import ReconcilePaymentUseCase
from devhub.application.use_cases.resolve_account import ResolveAccountUseCase
from devhub.application.use_cases.revoke_account_sessions import RevokeAccountSessionsUseCase
from devhub.application.use_cases.set_account_role import SetAccountRoleUseCase
from devhub.application.use_cases.sweep_expired import SweepExpiredSessionsUseCase, SweepExpiredStatesUseCase
from devhub.application.use_cases.validate_session import ValidateSessionUseCase
from devhub.domain.entities.account import Account
from devhub.domain.entities.principal import Principal
from devhub.domain.exceptions import ForbiddenError, UnauthenticatedError
from devhub.domain.services.access_policy import require_role
from devhub.infrastructure.clients.github_oauth_client import GithubOauthClient
from devhub.infrastructure.clients.stripe_client import StripeClient, StripeWebhookVerifier
from devhub.infrastructure.db.engine import get_engine
from devhub.infrastructure.db.repositories.accounts_repository import SqlAccountsRepository
from devhub.infrastructure.db.repositories.purchases_repository import SqlPurchasesRepository
from devhub.infrastructure.scheduling.sweeper import PeriodicSweeper
from devhub.infrastructure.security.token_service import JwtTokenService
from devhub.infrastructure.state.memory_state_store import InMemoryStateStore
from devhub.infrastructure.state.sql_state_store import SqlStateStore
from devhub.shared.config import Settings, get_settings


def _get_db_engine():
    settings = get_settings()
    if not settings.postgres_dsn:
        raise HTTPException(status_code=500, detail="POSTGRES_DSN is required.")
    return get_engine(settings.postgres_dsn)


def _get_accounts_repository() -> SqlAccountsRepository:
    return SqlAccountsRepository(_get_db_engine())


def _get_purchases_repository() -> SqlPurchasesRepository:
    return SqlPurchasesRepository(_get_db_engine())


@lru_cache(maxsize=1)
def _get_token_service() -> JwtTokenService:
    settings = get_settings()
    if not settings.jwt_secret:
        raise HTTPException(status_code=500, detail="JWT_SECRET is required.")
    return JwtTokenService(
        jwt_secret=settings.jwt_secret,
        access_ttl_minutes=settings.jwt_access_ttl_minutes,
        issuer=settings.jwt_issuer,
        audience=settings.jwt_audience,
        session_ttl_hours=settings.session_ttl_hours,
    )


@lru_cache(maxsize=1)
def get_state_store() -> StateStorePort:
    settings = get_settings()
    if settings.state_store_backend == "db":
        return SqlStateStore(_get_db_engine(), ttl_seconds=settings.oauth_state_ttl_seconds)
    if settings.state_store_backend != "memory":
        raise HTTPException(
            status_code=500,
            detail=f"Unsupported STATE_STORE_BACKEND: {settings.state_store_backend}",
        )
    return InMemoryStateStore(ttl_seconds=settings.oauth_state_ttl_seconds)


@lru_cache(maxsize=1)
def _get_github_client() -> GithubOauthClient:
    settings = get_settings()
    if not settings.github_client_id or not settings.github_client_secret:
        raise HTTPException(status_code=500, detail="GITHUB_CLIENT_ID and GITHUB_CLIENT_SECRET are required.")
    return GithubOauthClient(
        client_id=settings.github_client_id,
        client_secret=settings.github_client_secret,
        redirect_uri=settings.github_redirect_uri,
        authorize_url=settings.github_authorize_url,
        token_url=settings.github_token_url,
        api_base=settings.github_api_base,
        timeout_seconds=settings.github_timeout_seconds,
    )


@lru_cache(maxsize=1)
def _get_stripe_client() -> StripeClient:
    settings = get_settings()
    if not settings.stripe_secret_key:
        raise HTTPException(status_code=500, detail="STRIPE_SECRET_KEY is required.")
    return StripeClient(
        secret_key=settings.stripe_secret_key,
        timeout_seconds=settings.stripe_timeout_seconds,
    )


@lru_cache(maxsize=1)
def _get_stripe_webhook_verifier() -> StripeWebhookVerifier:
    settings = get_settings()
    if not settings.stripe_webhook_secret:
        raise HTTPException(status_code=500, detail="STRIPE_WEBHOOK_SECRET is required.")
    return StripeWebhookVerifier(webhook_secret=settings.stripe_webhook_secret)


def get_begin_login_use_case() -> BeginLoginUseCase:
    return BeginLoginUseCase(
        state_store=get_state_store(),
        identity_provider=_get_github_client(),
    )


def get_login_github_use_case() -> LoginGithubUseCase:
    settings = get_settings()
    auth_port = _get_accounts_repository()
    return LoginGithubUseCase(
        complete_login=CompleteLoginUseCase(
            state_store=get_state_store(),
            identity_provider=_get_github_client(),
        ),
        resolve_account=ResolveAccountUseCase(
            auth_port=auth_port,
            admin_email_allowlist=settings.admin_email_allowlist,
        ),
        auth_port=auth_port,
        token_port=_get_token_service(),
    )


def get_logout_session_use_case() -> LogoutSessionUseCase:
    return LogoutSessionUseCase(auth_port=_get_accounts_repository(), token_port=_get_token_service())


def get_authenticate_request_use_case() -> AuthenticateRequestUseCase:
    auth_port = _get_accounts_repository()
    token_port = _get_token_service()
    return AuthenticateRequestUseCase(
        auth_port=auth_port,
        token_port=token_port,
        validate_session=ValidateSessionUseCase(auth_port=auth_port, token_port=token_port),
    )


def get_issue_access_token_use_case() -> IssueAccessTokenUseCase:
    return IssueAccessTokenUseCase(token_port=_get_token_service())


def get_get_me_use_case() -> GetMeUseCase:
    return GetMeUseCase(auth_port=_get_accounts_repository())


def get_set_account_role_use_case() -> SetAccountRoleUseCase:
    return SetAccountRoleUseCase(auth_port=_get_accounts_repository())


def get_revoke_account_sessions_use_case() -> RevokeAccountSessionsUseCase:
    return RevokeAccountSessionsUseCase(auth_port=_get_accounts_repository())


def get_initiate_checkout_use_case() -> InitiateCheckoutUseCase:
    settings = get_settings()
    return InitiateCheckoutUseCase(
        auth_port=_get_accounts_repository(),
        purchases_port=_get_purchases_repository(),
        payment_provider=_get_stripe_client(),
        checkout_expiry_minutes=settings.checkout_expiry_minutes,
    )


def get_process_payment_webhook_use_case() -> ProcessPaymentWebhookUseCase:
    return ProcessPaymentWebhookUseCase(
        verifier=_get_stripe_webhook_verifier(),
        reconcile_payment=ReconcilePaymentUseCase(purchases_port=_get_purchases_repository()),
    )


def get_payment_status_use_case() -> GetPaymentStatusUseCase:
    return GetPaymentStatusUseCase(purchases_port=_get_purchases_repository())


def get_list_purchases_use_case() -> ListPurchasesUseCase:
    return ListPurchasesUseCase(purchases_port=_get_purchases_repository())


def get_purchased_content_use_case() -> GetPurchasedContentUseCase:
    return GetPurchasedContentUseCase(purchases_port=_get_purchases_repository())


def client_ip(request: Request, x_forwarded_for: str | None = None) -> str | None:
    if x_forwarded_for:
        first = x_forwarded_for.split(",")[0].strip()
        if first:
            return first
    return request.client.host if request.client else None


def _bearer_token(authorization: str | None) -> str | None:
    if authorization is None:
        return None
    if not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Invalid authorization header.")
    token = authorization.replace("Bearer ", "", 1).strip()
    if not token:
        raise HTTPException(status_code=401, detail="Missing access token.")
    return token


def _authenticate(
    use_case: AuthenticateRequestUseCase,
    *,
    bearer_token: str | None,
    session_token: str | None,
) -> Principal:
    try:
        return use_case.execute(
            AuthenticateRequestInput(bearer_token=bearer_token, session_token=session_token)
        )
    except UnauthenticatedError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc
    except ForbiddenError as exc:
        raise HTTPException(status_code=403, detail=str(exc)) from exc


def get_principal(
    request: Request,
    authorization: str | None = Header(default=None),
    use_case: AuthenticateRequestUseCase = Depends(get_authenticate_request_use_case),
) -> Principal:
    settings = get_settings()
    return _authenticate(
        use_case,
        bearer_token=_bearer_token(authorization),
        session_token=request.cookies.get(settings.session_cookie_name),
    )


def require_user(principal: Principal = Depends(get_principal)) -> Account:
    try:
        return require_role(principal, "user")
    except UnauthenticatedError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc


def require_admin(principal: Principal = Depends(get_principal)) -> Account:
    try:
        return require_role(principal, "admin")
    except UnauthenticatedError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc
    except ForbiddenError as exc:
        raise HTTPException(status_code=403, detail=str(exc)) from exc


def require_session_account(
    request: Request,
    use_case: AuthenticateRequestUseCase = Depends(get_authenticate_request_use_case),
) -> Account:
    settings = get_settings()
    principal = _authenticate(
        use_case,
        bearer_token=None,
        session_token=request.cookies.get(settings.session_cookie_name),
    )
    try:
        return require_role(principal, "user")
    except UnauthenticatedError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc


def build_sweepers(settings: Settings) -> list[PeriodicSweeper]:
    sweepers: list[PeriodicSweeper] = []
    if settings.state_store_backend == "memory" or settings.postgres_dsn:
        states = SweepExpiredStatesUseCase(state_store=get_state_store())
        sweepers.append(
            PeriodicSweeper(
                name="oauth-states",
                interval_seconds=settings.state_sweep_interval_seconds,
                job=states.execute,
            )
        )
    if settings.postgres_dsn:
        sessions = SweepExpiredSessionsUseCase(auth_port=_get_accounts_repository())
        sweepers.append(
            PeriodicSweeper(
                name="auth-sessions",
                interval_seconds=settings.session_sweep_interval_seconds,
                job=sessions.execute,
            )
        )
    return sweepers
