from __future__ import annotations

from datetime import datetime
from typing import Protocol

from devhub.application.dto.auth import AccessTokenPayload


class TokenPort(Protocol):
    def create_access_token(self, *, account_id: str, role: str, now: datetime) -> tuple[str, datetime]:
        ...

    def decode_access_token(self, *, token: str) -> AccessTokenPayload:
        ...

    def generate_session_token(self) -> str:
        ...

    def hash_session_token(self, *, session_token: str) -> str:
        ...

    def session_expires_at(self, *, now: datetime) -> datetime:
        ...
