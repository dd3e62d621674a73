from __future__ import annotations

from devhub.domain.entities.account import Account, AccountRole
from devhub.domain.entities.principal import AdminPrincipal, Anonymous, Principal
from devhub.domain.exceptions import ForbiddenError, UnauthenticatedError


def require_role(principal: Principal, role: AccountRole) -> Account:
    if isinstance(principal, Anonymous):
        raise UnauthenticatedError("Authentication required.")
    if role == "admin" and not isinstance(principal, AdminPrincipal):
        raise ForbiddenError("Admin role is required.")
    return principal.account
