from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime
from typing import Callable, Iterator, TypeVar

from sqlalchemy import text
from sqlalchemy.engine import Connection
from sqlalchemy.exc import IntegrityError

from devhub.application.ports.auth_port import AuthPort
from devhub.domain.exceptions import AccountNotFoundError, EmailAlreadyExistsError
from devhub.infrastructure.db.mappers.accounts_mapper import map_row_to_account, map_row_to_auth_session


TResult = TypeVar("TResult")

_ACCOUNT_COLUMNS = """
    id, email, name, avatar_url, external_login, role, is_active, is_email_verified,
    created_at, updated_at, last_login_at
"""

_SESSION_COLUMNS = """
    id, account_id, token_hash, created_at, expires_at, ip, user_agent, is_active, revoked_at
"""


class SqlAccountsRepository(AuthPort):
    def __init__(self, engine, *, connection: Connection | None = None):
        self._engine = engine
        self._connection = connection

    @contextmanager
    def _connect(self) -> Iterator[Connection]:
        if self._connection is not None:
            yield self._connection
            return
        with self._engine.connect() as conn:
            yield conn

    @contextmanager
    def _begin(self) -> Iterator[Connection]:
        if self._connection is not None:
            yield self._connection
            return
        with self._engine.begin() as conn:
            yield conn

    def execute_in_transaction(self, fn: Callable[[AuthPort], TResult]) -> TResult:
        if self._connection is not None:
            return fn(self)
        with self._engine.begin() as conn:
            return fn(SqlAccountsRepository(self._engine, connection=conn))

    def get_account_by_id(self, *, account_id: str):
        sql = f"""
            SELECT {_ACCOUNT_COLUMNS}
            FROM public.accounts
            WHERE id = :account_id
            LIMIT 1
        """
        with self._connect() as conn:
            row = conn.execute(text(sql), {"account_id": account_id}).mappings().first()
        if row is None:
            return None
        return map_row_to_account(row)

    def get_account_by_email(self, *, email: str):
        sql = f"""
            SELECT {_ACCOUNT_COLUMNS}
            FROM public.accounts
            WHERE lower(email) = :email
            LIMIT 1
        """
        with self._connect() as conn:
            row = conn.execute(text(sql), {"email": email.lower()}).mappings().first()
        if row is None:
            return None
        return map_row_to_account(row)

    def create_account(
        self,
        *,
        account_id: str,
        email: str,
        name: str,
        avatar_url: str | None,
        external_login: str | None,
        role: str,
        created_at: datetime,
    ):
        sql = f"""
            INSERT INTO public.accounts (
                id, email, name, avatar_url, external_login, role, is_active, is_email_verified,
                created_at, updated_at, last_login_at
            ) VALUES (
                :id, :email, :name, :avatar_url, :external_login, :role, true, true,
                :created_at, :created_at, :created_at
            )
            RETURNING {_ACCOUNT_COLUMNS}
        """
        params = {
            "id": account_id,
            "email": email,
            "name": name,
            "avatar_url": avatar_url,
            "external_login": external_login,
            "role": role,
            "created_at": created_at,
        }
        try:
            with self._begin() as conn:
                row = conn.execute(text(sql), params).mappings().one()
        except IntegrityError as exc:
            raise EmailAlreadyExistsError(f"Account email already exists: {email}") from exc
        return map_row_to_account(row)

    def update_account_profile(
        self,
        *,
        account_id: str,
        name: str,
        avatar_url: str | None,
        external_login: str | None,
        now: datetime,
    ):
        sql = f"""
            UPDATE public.accounts
            SET name = :name,
                avatar_url = :avatar_url,
                external_login = :external_login,
                last_login_at = :now,
                updated_at = :now
            WHERE id = :account_id
            RETURNING {_ACCOUNT_COLUMNS}
        """
        params = {
            "account_id": account_id,
            "name": name,
            "avatar_url": avatar_url,
            "external_login": external_login,
            "now": now,
        }
        with self._begin() as conn:
            row = conn.execute(text(sql), params).mappings().first()
        if row is None:
            raise AccountNotFoundError(f"Account not found: {account_id}")
        return map_row_to_account(row)

    def update_account_role(self, *, account_id: str, role: str, now: datetime):
        sql = f"""
            UPDATE public.accounts
            SET role = :role,
                updated_at = :now
            WHERE id = :account_id
            RETURNING {_ACCOUNT_COLUMNS}
        """
        with self._begin() as conn:
            row = conn.execute(text(sql), {"account_id": account_id, "role": role, "now": now}).mappings().first()
        if row is None:
            raise AccountNotFoundError(f"Account not found: {account_id}")
        return map_row_to_account(row)

    def lock_account(self, *, account_id: str) -> None:
        sql = """
            SELECT id
            FROM public.accounts
            WHERE id = :account_id
            FOR UPDATE
        """
        with self._begin() as conn:
            conn.execute(text(sql), {"account_id": account_id})

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
    ):
        sql = f"""
            INSERT INTO public.auth_sessions (
                id, account_id, token_hash, created_at, expires_at, ip, user_agent, is_active, revoked_at
            ) VALUES (
                :id, :account_id, :token_hash, :created_at, :expires_at, :ip, :user_agent, true, NULL
            )
            RETURNING {_SESSION_COLUMNS}
        """
        params = {
            "id": session_id,
            "account_id": account_id,
            "token_hash": token_hash,
            "created_at": created_at,
            "expires_at": expires_at,
            "ip": ip,
            "user_agent": user_agent,
        }
        with self._begin() as conn:
            row = conn.execute(text(sql), params).mappings().one()
        return map_row_to_auth_session(row)

    def get_session_by_token_hash(self, *, token_hash: str):
        sql = f"""
            SELECT {_SESSION_COLUMNS}
            FROM public.auth_sessions
            WHERE token_hash = :token_hash
            LIMIT 1
        """
        with self._connect() as conn:
            row = conn.execute(text(sql), {"token_hash": token_hash}).mappings().first()
        if row is None:
            return None
        return map_row_to_auth_session(row)

    def deactivate_session(self, *, token_hash: str, revoked_at: datetime) -> bool:
        sql = """
            UPDATE public.auth_sessions
            SET is_active = false,
                revoked_at = :revoked_at
            WHERE token_hash = :token_hash
              AND is_active = true
        """
        with self._begin() as conn:
            result = conn.execute(text(sql), {"token_hash": token_hash, "revoked_at": revoked_at})
        return (result.rowcount or 0) > 0

    def deactivate_sessions_for_account(self, *, account_id: str, revoked_at: datetime) -> int:
        sql = """
            UPDATE public.auth_sessions
            SET is_active = false,
                revoked_at = :revoked_at
            WHERE account_id = :account_id
              AND is_active = true
        """
        with self._begin() as conn:
            result = conn.execute(text(sql), {"account_id": account_id, "revoked_at": revoked_at})
        return int(result.rowcount or 0)

    def delete_stale_sessions(self, *, now: datetime) -> int:
        sql = """
            DELETE FROM public.auth_sessions
            WHERE is_active = false
               OR expires_at <= :now
        """
        with self._begin() as conn:
            result = conn.execute(text(sql), {"now": now})
        return int(result.rowcount or 0)
