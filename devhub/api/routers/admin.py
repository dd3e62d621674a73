from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from devhub.api.deps import get_revoke_account_sessions_use_case, get_set_account_role_use_case, require_admin
from devhub.api.schemas.admin import RevokeSessionsResponse, SetRoleRequest, SetRoleResponse
from devhub.api.schemas.auth import AccountResponse
from devhub.application.use_cases.revoke_account_sessions import RevokeAccountSessionsUseCase
from devhub.application.use_cases.set_account_role import SetAccountRoleUseCase
from devhub.domain.entities.account import Account
from devhub.domain.exceptions import AccountNotFoundError, ForbiddenError


router = APIRouter()


@router.put("/v1/admin/accounts/{account_id}/role", response_model=SetRoleResponse)
def set_account_role(
    account_id: str,
    req: SetRoleRequest,
    admin: Account = Depends(require_admin),
    use_case: SetAccountRoleUseCase = Depends(get_set_account_role_use_case),
):
    try:
        output = use_case.execute(actor=admin, account_id=account_id, role=req.role)
    except AccountNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ForbiddenError as exc:
        raise HTTPException(status_code=403, detail=str(exc)) from exc

    return SetRoleResponse(
        user=AccountResponse(
            id=output.id,
            email=output.email,
            name=output.name,
            avatar_url=output.avatar_url,
            role=output.role,
        )
    )


@router.post("/v1/admin/accounts/{account_id}/sessions/revoke", response_model=RevokeSessionsResponse)
def revoke_account_sessions(
    account_id: str,
    admin: Account = Depends(require_admin),
    use_case: RevokeAccountSessionsUseCase = Depends(get_revoke_account_sessions_use_case),
):
    try:
        revoked = use_case.execute(actor=admin, account_id=account_id)
    except AccountNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ForbiddenError as exc:
        raise HTTPException(status_code=403, detail=str(exc)) from exc
    return RevokeSessionsResponse(revoked=revoked)
