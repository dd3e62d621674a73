from __future__ import annotations

from devhub.application.ports.auth_port import AuthPort
from devhub.application.ports.token_port import TokenPort
from devhub.domain.entities.account import Account
from devhub.domain.exceptions import AccountInactiveError, SessionInvalidError

from .auth_common import utcnow


class ValidateSessionUseCase:
    def __init__(self, *, auth_port: AuthPort, token_port: TokenPort):
        self._auth_port = auth_port
        self._token_port = token_port

    def execute(self, session_token: str) -> Account:
        token = session_token.strip()
        if not token:
            raise SessionInvalidError("Missing session token.")

        token_hash = self._token_port.hash_session_token(session_token=token)
        session = self._auth_port.get_session_by_token_hash(token_hash=token_hash)
        if session is None:
            raise SessionInvalidError("Unknown session.")
        if not session.is_valid_at(utcnow()):
            raise SessionInvalidError("Session inactive or expired.")

        account = self._auth_port.get_account_by_id(account_id=session.account_id)
        if account is None:
            raise SessionInvalidError("Account not found for session.")
        if not account.is_active:
            raise AccountInactiveError("Account is inactive.")
        return account
