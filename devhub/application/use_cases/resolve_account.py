from __future__ import annotations

import logging
from uuid import uuid4

from devhub.application.ports.auth_port import AuthPort
from devhub.domain.entities.account import Account, ExternalIdentity
from devhub.domain.exceptions import EmailAlreadyExistsError

from .auth_common import normalize_email, utcnow


logger = logging.getLogger(__name__)


class ResolveAccountUseCase:
    def __init__(self, *, auth_port: AuthPort, admin_email_allowlist: tuple[str, ...] = ()):
        self._auth_port = auth_port
        self._admin_email_allowlist = frozenset(normalize_email(item) for item in admin_email_allowlist)

    def execute(self, identity: ExternalIdentity) -> Account:
        email = normalize_email(identity.email)
        now = utcnow()

        account = self._auth_port.get_account_by_email(email=email)
        if account is None:
            try:
                account = self._auth_port.create_account(
                    account_id=str(uuid4()),
                    email=email,
                    name=identity.name,
                    avatar_url=identity.avatar_url,
                    external_login=identity.login,
                    role="user",
                    created_at=now,
                )
                logger.info("resolve_account: created account_id=%s", account.id)
            except EmailAlreadyExistsError:
                # Concurrent first login for the same email won the insert.
                account = self._auth_port.get_account_by_email(email=email)
                if account is None:
                    raise
                account = self._refresh(account, identity)
        else:
            account = self._refresh(account, identity)

        if email in self._admin_email_allowlist and not account.is_admin:
            account = self._auth_port.update_account_role(account_id=account.id, role="admin", now=now)
            logger.info("resolve_account: promoted allow-listed account_id=%s", account.id)
        return account

    def _refresh(self, account: Account, identity: ExternalIdentity) -> Account:
        return self._auth_port.update_account_profile(
            account_id=account.id,
            name=identity.name,
            avatar_url=identity.avatar_url,
            external_login=identity.login,
            now=utcnow(),
        )
