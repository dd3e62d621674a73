from __future__ import annotations

import logging

from devhub.application.ports.auth_port import AuthPort
from devhub.domain.entities.account import Account
from devhub.domain.exceptions import AccountNotFoundError, ForbiddenError

from .auth_common import utcnow


logger = logging.getLogger(__name__)


class RevokeAccountSessionsUseCase:
    def __init__(self, *, auth_port: AuthPort):
        self._auth_port = auth_port

    def execute(self, *, actor: Account, account_id: str) -> int:
        if not actor.is_admin:
            raise ForbiddenError("Admin role is required.")
        if self._auth_port.get_account_by_id(account_id=account_id) is None:
            raise AccountNotFoundError("Account not found.")

        revoked = self._auth_port.deactivate_sessions_for_account(
            account_id=account_id,
            revoked_at=utcnow(),
        )
        logger.info("revoke_sessions: actor=%s account_id=%s revoked=%s", actor.id, account_id, revoked)
        return revoked
