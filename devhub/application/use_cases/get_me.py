from __future__ import annotations

from devhub.application.dto.auth import AccountOutput
from devhub.application.ports.auth_port import AuthPort
from devhub.domain.exceptions import AccountNotFoundError

from .auth_common import build_account_output


class GetMeUseCase:
    def __init__(self, *, auth_port: AuthPort):
        self._auth_port = auth_port

    def execute(self, account_id: str) -> AccountOutput:
        account = self._auth_port.get_account_by_id(account_id=account_id)
        if account is None:
            raise AccountNotFoundError("Account not found.")
        return build_account_output(account)
