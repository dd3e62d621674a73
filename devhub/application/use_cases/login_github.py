from __future__ import annotations

from devhub.application.dto.auth import CompleteLoginInput, LoginGithubInput, SessionOutput
from devhub.application.ports.auth_port import AuthPort
from devhub.application.ports.token_port import TokenPort
from devhub.domain.exceptions import AccountInactiveError

from .auth_common import open_session
from .complete_login import CompleteLoginUseCase
from .resolve_account import ResolveAccountUseCase


class LoginGithubUseCase:
    def __init__(
        self,
        *,
        complete_login: CompleteLoginUseCase,
        resolve_account: ResolveAccountUseCase,
        auth_port: AuthPort,
        token_port: TokenPort,
    ):
        self._complete_login = complete_login
        self._resolve_account = resolve_account
        self._auth_port = auth_port
        self._token_port = token_port

    def execute(self, command: LoginGithubInput) -> SessionOutput:
        identity = self._complete_login.execute(
            CompleteLoginInput(
                code=command.code,
                state=command.state,
                origin=command.ip,
                provider_error=command.provider_error,
            )
        )
        account = self._resolve_account.execute(identity)
        if not account.is_active:
            raise AccountInactiveError("Account is inactive.")

        return open_session(
            account=account,
            auth_port=self._auth_port,
            token_port=self._token_port,
            user_agent=command.user_agent,
            ip=command.ip,
        )
