from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class AccountResponse(BaseModel):
    id: str
    email: str
    name: str
    avatar_url: str | None = None
    role: str


class ProfileResponse(BaseModel):
    user: AccountResponse


class LogoutResponse(BaseModel):
    ok: bool


class AccessTokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_at: datetime
