from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class AuthSession:
    id: str
    account_id: str
    token_hash: str
    created_at: datetime
    expires_at: datetime
    ip: str | None
    user_agent: str | None
    is_active: bool
    revoked_at: datetime | None

    def is_valid_at(self, now: datetime) -> bool:
        return self.is_active and self.expires_at > now


@dataclass(frozen=True)
class StateToken:
    token: str
    issued_at: datetime
    origin: str | None
