from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from devhub.api.deps import get_list_purchases_use_case, get_purchased_content_use_case, require_user
from devhub.api.schemas.billing import PurchasedContentResponse, PurchaseHistoryItemResponse
from devhub.application.use_cases.get_purchased_content import GetPurchasedContentUseCase
from devhub.application.use_cases.list_purchases import ListPurchasesUseCase
from devhub.domain.entities.account import Account
from devhub.domain.exceptions import ForbiddenError, ProductNotFoundError, PurchaseNotFoundError


router = APIRouter()


@router.get("/v1/purchases", response_model=list[PurchaseHistoryItemResponse])
def list_purchases(
    current_account: Account = Depends(require_user),
    use_case: ListPurchasesUseCase = Depends(get_list_purchases_use_case),
):
    items = use_case.execute(buyer_id=current_account.id)
    return [
        PurchaseHistoryItemResponse(
            purchase_id=item.purchase_id,
            product_id=item.product_id,
            product_name=item.product_name,
            amount_cents=item.amount_cents,
            currency=item.currency,
            status=item.status,
            created_at=item.created_at,
            completed_at=item.completed_at,
        )
        for item in items
    ]


@router.get("/v1/purchases/{purchase_id}/content", response_model=PurchasedContentResponse)
def get_purchased_content(
    purchase_id: int,
    current_account: Account = Depends(require_user),
    use_case: GetPurchasedContentUseCase = Depends(get_purchased_content_use_case),
):
    try:
        output = use_case.execute(buyer_id=current_account.id, purchase_id=purchase_id)
    except (PurchaseNotFoundError, ProductNotFoundError) as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ForbiddenError as exc:
        raise HTTPException(status_code=403, detail=str(exc)) from exc

    return PurchasedContentResponse(
        purchase_id=output.purchase_id,
        product_id=output.product_id,
        product_name=output.product_name,
        workflow_json=output.workflow_json,
    )
