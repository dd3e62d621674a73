from __future__ import annotations

from datetime import datetime
from typing import Callable, Protocol, TypeVar

from devhub.domain.entities.account import Account, AccountRole
from devhub.domain.entities.session import AuthSession


TAuthResult = TypeVar("TAuthResult")


class AuthPort(Protocol):
    def execute_in_transaction(self, fn: Callable[[AuthPort], TAuthResult]) -> TAuthResult:
        ...

    def get_account_by_id(self, *, account_id: str) -> Account | None:
        ...

    def get_account_by_email(self, *, email: str) -> Account | None:
        ...

    def create_account(
        self,
        *,
        account_id: str,
        email: str,
        name: str,
        avatar_url: str | None,
        external_login: str | None,
        role: AccountRole,
        created_at: datetime,
    ) -> Account:
        ...

    def update_account_profile(
        self,
        *,
        account_id: str,
        name: str,
        avatar_url: str | None,
        external_login: str | None,
        now: datetime,
    ) -> Account:
        ...

    def update_account_role(self, *, account_id: str, role: AccountRole, now: datetime) -> Account:
        ...

    def lock_account(self, *, account_id: str) -> None:
        ...

    def create_session(
        self,
        *,
        session_id: str,
        account_id: str,
        token_hash: str,
        expires_at: datetime,
        ip: str | None,
        user_agent: str | None,
        created_at: datetime,
    ) -> AuthSession:
        ...

    def get_session_by_token_hash(self, *, token_hash: str) -> AuthSession | None:
        ...

    def deactivate_session(self, *, token_hash: str, revoked_at: datetime) -> bool:
        ...

    def deactivate_sessions_for_account(self, *, account_id: str, revoked_at: datetime) -> int:
        ...

    def delete_stale_sessions(self, *, now: datetime) -> int:
        ...
