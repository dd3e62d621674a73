from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Literal


AccountRole = Literal["user", "admin"]

ACCOUNT_ROLES: tuple[AccountRole, ...] = ("user", "admin")


@dataclass(frozen=True)
class Account:
    id: str
    email: str
    name: str
    avatar_url: str | None
    external_login: str | None
    role: AccountRole
    is_active: bool
    is_email_verified: bool
    created_at: datetime
    updated_at: datetime
    last_login_at: datetime | None

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


@dataclass(frozen=True)
class ExternalIdentity:
    external_id: str
    login: str
    name: str
    email: str
    avatar_url: str | None
