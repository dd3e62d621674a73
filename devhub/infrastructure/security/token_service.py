from __future__ import annotations

import hashlib
import secrets
from datetime import datetime, timedelta

import jwt

from devhub.application.dto.auth import AccessTokenPayload
from devhub.application.ports.token_port import TokenPort
from devhub.domain.exceptions import AccessTokenInvalidError


class JwtTokenService(TokenPort):
    def __init__(
        self,
        *,
        jwt_secret: str,
        access_ttl_minutes: int,
        issuer: str,
        audience: str,
        session_ttl_hours: int = 24,
    ):
        self._jwt_secret = jwt_secret
        self._access_ttl_minutes = access_ttl_minutes
        self._issuer = issuer
        self._audience = audience
        self._session_ttl_hours = session_ttl_hours

    def create_access_token(self, *, account_id: str, role: str, now: datetime) -> tuple[str, datetime]:
        exp = now + timedelta(minutes=self._access_ttl_minutes)
        payload = {
            "sub": account_id,
            "role": role,
            "type": "access",
            "iat": int(now.timestamp()),
            "exp": int(exp.timestamp()),
            "iss": self._issuer,
            "aud": self._audience,
        }
        token = jwt.encode(payload, self._jwt_secret, algorithm="HS256")
        return token, exp

    def decode_access_token(self, *, token: str) -> AccessTokenPayload:
        try:
            payload = jwt.decode(
                token,
                self._jwt_secret,
                algorithms=["HS256"],
                audience=self._audience,
                issuer=self._issuer,
                options={"require": ["sub", "exp", "iat", "iss", "aud"]},
            )
        except jwt.PyJWTError as exc:
            raise AccessTokenInvalidError("Invalid access token.") from exc

        if payload.get("type") != "access":
            raise AccessTokenInvalidError("Invalid token type.")

        account_id = payload.get("sub")
        if not account_id or not isinstance(account_id, str):
            raise AccessTokenInvalidError("Invalid token subject.")

        role = payload.get("role")
        return AccessTokenPayload(account_id=account_id, role=role if isinstance(role, str) else None)

    def generate_session_token(self) -> str:
        return secrets.token_urlsafe(32)

    def hash_session_token(self, *, session_token: str) -> str:
        return hashlib.sha256(session_token.encode("utf-8")).hexdigest()

    def session_expires_at(self, *, now: datetime) -> datetime:
        return now + timedelta(hours=self._session_ttl_hours)
