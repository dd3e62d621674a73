from __future__ import annotations

import logging

from devhub.application.dto.auth import AccountOutput
from devhub.application.ports.auth_port import AuthPort
from devhub.domain.entities.account import ACCOUNT_ROLES, Account
from devhub.domain.exceptions import AccountNotFoundError, ForbiddenError

from .auth_common import build_account_output, utcnow


logger = logging.getLogger(__name__)


class SetAccountRoleUseCase:
    def __init__(self, *, auth_port: AuthPort):
        self._auth_port = auth_port

    def execute(self, *, actor: Account, account_id: str, role: str) -> AccountOutput:
        if not actor.is_admin:
            raise ForbiddenError("Admin role is required.")
        if role not in ACCOUNT_ROLES:
            raise ValueError(f"Unsupported role: {role}")
        if actor.id == account_id and role != "admin":
            raise ForbiddenError("Admins cannot demote themselves.")

        target = self._auth_port.get_account_by_id(account_id=account_id)
        if target is None:
            raise AccountNotFoundError("Account not found.")
        if target.role == role:
            return build_account_output(target)

        updated = self._auth_port.update_account_role(account_id=account_id, role=role, now=utcnow())
        logger.info(
            "set_account_role: actor=%s account_id=%s role=%s",
            actor.id,
            account_id,
            role,
        )
        return build_account_output(updated)
