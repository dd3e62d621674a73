from __future__ import annotations

from typing import Any, Mapping

from devhub.domain.entities.account import Account
from devhub.domain.entities.session import AuthSession


def _as_str(value: Any) -> str:
    return str(value)


def map_row_to_account(row: Mapping[str, Any]) -> Account:
    return Account(
        id=_as_str(row["id"]),
        email=row["email"],
        name=row["name"],
        avatar_url=row.get("avatar_url"),
        external_login=row.get("external_login"),
        role=row["role"],
        is_active=bool(row["is_active"]),
        is_email_verified=bool(row["is_email_verified"]),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
        last_login_at=row.get("last_login_at"),
    )


def map_row_to_auth_session(row: Mapping[str, Any]) -> AuthSession:
    return AuthSession(
        id=_as_str(row["id"]),
        account_id=_as_str(row["account_id"]),
        token_hash=row["token_hash"],
        created_at=row["created_at"],
        expires_at=row["expires_at"],
        ip=row.get("ip"),
        user_agent=row.get("user_agent"),
        is_active=bool(row["is_active"]),
        revoked_at=row.get("revoked_at"),
    )
