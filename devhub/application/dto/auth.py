from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Literal


StateRejectionReason = Literal["not_found", "expired"]


@dataclass(frozen=True)
class StateValidation:
    valid: bool
    reason: StateRejectionReason | None = None


@dataclass(frozen=True)
class ProviderProfile:
    external_id: str
    login: str
    name: str | None
    avatar_url: str | None


@dataclass(frozen=True)
class ProviderEmail:
    email: str
    primary: bool
    verified: bool


@dataclass(frozen=True)
class BeginLoginInput:
    origin: str | None


@dataclass(frozen=True)
class BeginLoginOutput:
    authorization_url: str
    state: str


@dataclass(frozen=True)
class CompleteLoginInput:
    code: str | None
    state: str | None
    origin: str | None
    provider_error: str | None = None


@dataclass(frozen=True)
class LoginGithubInput:
    code: str | None
    state: str | None
    provider_error: str | None
    ip: str | None
    user_agent: str | None


@dataclass(frozen=True)
class AccountOutput:
    id: str
    email: str
    name: str
    avatar_url: str | None
    role: str


@dataclass(frozen=True)
class SessionOutput:
    account: AccountOutput
    session_token: str
    session_expires_at: datetime


@dataclass(frozen=True)
class LogoutInput:
    session_token: str


@dataclass(frozen=True)
class AuthenticateRequestInput:
    bearer_token: str | None
    session_token: str | None


@dataclass(frozen=True)
class AccessTokenPayload:
    account_id: str
    role: str | None


@dataclass(frozen=True)
class AccessTokenOutput:
    access_token: str
    expires_at: datetime
