from __future__ import annotations

from devhub.application.dto.auth import AccessTokenOutput
from devhub.application.ports.token_port import TokenPort
from devhub.domain.entities.account import Account

from .auth_common import utcnow


class IssueAccessTokenUseCase:
    def __init__(self, *, token_port: TokenPort):
        self._token_port = token_port

    def execute(self, account: Account) -> AccessTokenOutput:
        token, expires_at = self._token_port.create_access_token(
            account_id=account.id,
            role=account.role,
            now=utcnow(),
        )
        return AccessTokenOutput(access_token=token, expires_at=expires_at)
