import logging
from datetime import datetime, timezone
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request, Response
from fastapi.responses import RedirectResponse

from devhub.api.deps import (
    client_ip,
    get_begin_login_use_case,
    get_get_me_use_case,
    get_issue_access_token_use_case,
    get_login_github_use_case,
    get_logout_session_use_case,
    require_session_account,
    require_user,
)
from devhub.api.rate_limit import callback_limit, limiter, login_limit
from devhub.api.schemas.auth import AccessTokenResponse, AccountResponse, LogoutResponse, ProfileResponse
from devhub.application.dto.auth import BeginLoginInput, LoginGithubInput, LogoutInput
from devhub.application.use_cases.begin_login import BeginLoginUseCase
from devhub.application.use_cases.get_me import GetMeUseCase
from devhub.application.use_cases.issue_access_token import IssueAccessTokenUseCase
from devhub.application.use_cases.login_github import LoginGithubUseCase
from devhub.application.use_cases.logout_session import LogoutSessionUseCase
from devhub.domain.entities.account import Account
from devhub.domain.exceptions import (
    AccountInactiveError,
    AccountNotFoundError,
    InvalidStateError,
    NoVerifiedEmailError,
    ProviderError,
)
from devhub.shared.config import Settings, get_settings


logger = logging.getLogger(__name__)

router = APIRouter()


def _set_session_cookie(response: Response, settings: Settings, session_token: str, max_age_seconds: int) -> None:
    response.set_cookie(
        key=settings.session_cookie_name,
        value=session_token,
        httponly=True,
        samesite="lax",
        secure=settings.is_production,
        max_age=max_age_seconds,
        path="/",
    )


def _cookie_max_age_seconds(expires_at: datetime) -> int:
    now = datetime.now(timezone.utc)
    return max(int((expires_at - now).total_seconds()), 0)


def _with_query(url: str, params: dict[str, str]) -> str:
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}{urlencode(params)}"


def _error_redirect(settings: Settings, code: str) -> RedirectResponse:
    return RedirectResponse(_with_query(settings.frontend_error_url, {"error": code}), status_code=302)


@router.get("/v1/auth/github")
@limiter.limit(login_limit)
def github_login(
    request: Request,
    x_forwarded_for: str | None = Header(default=None),
    use_case: BeginLoginUseCase = Depends(get_begin_login_use_case),
):
    output = use_case.execute(BeginLoginInput(origin=client_ip(request, x_forwarded_for)))
    return RedirectResponse(output.authorization_url, status_code=302)


@router.get("/v1/auth/github/callback")
@limiter.limit(callback_limit)
def github_callback(
    request: Request,
    code: str | None = Query(default=None),
    state: str | None = Query(default=None),
    error: str | None = Query(default=None),
    user_agent: str | None = Header(default=None),
    x_forwarded_for: str | None = Header(default=None),
    use_case: LoginGithubUseCase = Depends(get_login_github_use_case),
):
    settings = get_settings()
    try:
        output = use_case.execute(
            LoginGithubInput(
                code=code,
                state=state,
                provider_error=error,
                ip=client_ip(request, x_forwarded_for),
                user_agent=user_agent,
            )
        )
    except InvalidStateError as exc:
        logger.warning("auth_callback: invalid state error=%s", exc)
        return _error_redirect(settings, "invalid_state")
    except NoVerifiedEmailError:
        return _error_redirect(settings, "no_verified_email")
    except ProviderError as exc:
        logger.warning("auth_callback: provider error=%s", exc)
        return _error_redirect(settings, "provider_error")
    except AccountInactiveError:
        return _error_redirect(settings, "account_inactive")
    except Exception:
        logger.exception("auth_callback: unexpected failure")
        return _error_redirect(settings, "internal_error")

    # Non-sensitive identifiers only.
    success_url = _with_query(
        settings.frontend_success_url,
        {
            "success": "true",
            "userId": output.account.id,
            "userName": output.account.name,
            "userEmail": output.account.email,
        },
    )
    response = RedirectResponse(success_url, status_code=302)
    _set_session_cookie(
        response,
        settings,
        output.session_token,
        max_age_seconds=_cookie_max_age_seconds(output.session_expires_at),
    )
    logger.info("auth_callback: session opened account_id=%s", output.account.id)
    return response


@router.get("/v1/auth/profile", response_model=ProfileResponse)
def get_profile(
    current_account: Account = Depends(require_user),
    use_case: GetMeUseCase = Depends(get_get_me_use_case),
):
    try:
        output = use_case.execute(current_account.id)
    except AccountNotFoundError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc
    return ProfileResponse(
        user=AccountResponse(
            id=output.id,
            email=output.email,
            name=output.name,
            avatar_url=output.avatar_url,
            role=output.role,
        )
    )


@router.api_route("/v1/auth/logout", methods=["GET", "POST"], response_model=LogoutResponse)
def logout(
    request: Request,
    response: Response,
    use_case: LogoutSessionUseCase = Depends(get_logout_session_use_case),
):
    settings = get_settings()
    session_token = request.cookies.get(settings.session_cookie_name)
    if session_token:
        use_case.execute(LogoutInput(session_token=session_token))
    response.delete_cookie(key=settings.session_cookie_name, path="/")
    return LogoutResponse(ok=True)


@router.post("/v1/auth/token", response_model=AccessTokenResponse)
def issue_access_token(
    current_account: Account = Depends(require_session_account),
    use_case: IssueAccessTokenUseCase = Depends(get_issue_access_token_use_case),
):
    output = use_case.execute(current_account)
    return AccessTokenResponse(access_token=output.access_token, expires_at=output.expires_at)
