from __future__ import annotations

from devhub.application.dto.auth import LogoutInput
from devhub.application.ports.auth_port import AuthPort
from devhub.application.ports.token_port import TokenPort

from .auth_common import utcnow


class LogoutSessionUseCase:
    def __init__(self, *, auth_port: AuthPort, token_port: TokenPort):
        self._auth_port = auth_port
        self._token_port = token_port

    def execute(self, command: LogoutInput) -> bool:
        token = command.session_token.strip()
        if not token:
            return False
        token_hash = self._token_port.hash_session_token(session_token=token)
        return self._auth_port.deactivate_session(token_hash=token_hash, revoked_at=utcnow())
