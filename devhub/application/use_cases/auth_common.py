from __future__ import annotations

from datetime import datetime, timezone
from uuid import uuid4

from devhub.application.dto.auth import AccountOutput, SessionOutput
from devhub.application.ports.auth_port import AuthPort
from devhub.application.ports.token_port import TokenPort
from devhub.domain.entities.account import Account
from devhub.domain.entities.session import AuthSession


NAME_MAX_LENGTH = 100
LOGIN_MAX_LENGTH = 100
EMAIL_MAX_LENGTH = 320
AVATAR_URL_MAX_LENGTH = 500


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def clamp(value: str | None, limit: int) -> str | None:
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    return value[:limit]


def build_account_output(account: Account) -> AccountOutput:
    return AccountOutput(
        id=account.id,
        email=account.email,
        name=account.name,
        avatar_url=account.avatar_url,
        role=account.role,
    )


def open_session(
    *,
    account: Account,
    auth_port: AuthPort,
    token_port: TokenPort,
    user_agent: str | None,
    ip: str | None,
) -> SessionOutput:
    now = utcnow()
    session_token = token_port.generate_session_token()
    token_hash = token_port.hash_session_token(session_token=session_token)
    expires_at = token_port.session_expires_at(now=now)

    def _tx(tx_port: AuthPort) -> AuthSession:
        tx_port.lock_account(account_id=account.id)
        tx_port.deactivate_sessions_for_account(account_id=account.id, revoked_at=now)
        return tx_port.create_session(
            session_id=str(uuid4()),
            account_id=account.id,
            token_hash=token_hash,
            expires_at=expires_at,
            ip=clamp(ip, 45),
            user_agent=clamp(user_agent, 500),
            created_at=now,
        )

    session = auth_port.execute_in_transaction(_tx)
    return SessionOutput(
        account=build_account_output(account),
        session_token=session_token,
        session_expires_at=session.expires_at,
    )
