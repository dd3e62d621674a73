from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Union

from devhub.domain.entities.account import Account


@dataclass(frozen=True)
class Anonymous:
    kind: Literal["anonymous"] = "anonymous"


@dataclass(frozen=True)
class UserPrincipal:
    account: Account
    kind: Literal["user"] = "user"


@dataclass(frozen=True)
class AdminPrincipal:
    account: Account
    kind: Literal["admin"] = "admin"


Principal = Union[Anonymous, UserPrincipal, AdminPrincipal]


def principal_for_account(account: Account) -> Principal:
    if account.is_admin:
        return AdminPrincipal(account=account)
    return UserPrincipal(account=account)
