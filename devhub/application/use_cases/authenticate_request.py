from __future__ import annotations

from devhub.application.dto.auth import AuthenticateRequestInput
from devhub.application.ports.auth_port import AuthPort
from devhub.application.ports.token_port import TokenPort
from devhub.domain.entities.principal import Anonymous, Principal, principal_for_account
from devhub.domain.exceptions import AccessTokenInvalidError, AccountInactiveError

from .validate_session import ValidateSessionUseCase


class AuthenticateRequestUseCase:
    def __init__(
        self,
        *,
        auth_port: AuthPort,
        token_port: TokenPort,
        validate_session: ValidateSessionUseCase,
    ):
        self._auth_port = auth_port
        self._token_port = token_port
        self._validate_session = validate_session

    def execute(self, command: AuthenticateRequestInput) -> Principal:
        bearer = (command.bearer_token or "").strip()
        if bearer:
            payload = self._token_port.decode_access_token(token=bearer)
            account = self._auth_port.get_account_by_id(account_id=payload.account_id)
            if account is None:
                raise AccessTokenInvalidError("Account not found for access token.")
            if not account.is_active:
                raise AccountInactiveError("Account is inactive.")
            return principal_for_account(account)

        session_token = (command.session_token or "").strip()
        if session_token:
            account = self._validate_session.execute(session_token)
            return principal_for_account(account)

        return Anonymous()
