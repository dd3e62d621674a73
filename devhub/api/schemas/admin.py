from __future__ import annotations

from typing import Literal

from pydantic import BaseModel

from devhub.api.schemas.auth import AccountResponse


class SetRoleRequest(BaseModel):
    role: Literal["user", "admin"]


class SetRoleResponse(BaseModel):
    user: AccountResponse


class RevokeSessionsResponse(BaseModel):
    revoked: int
