import logging

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request
from fastapi.concurrency import run_in_threadpool

from devhub.api.deps import (
    client_ip,
    get_initiate_checkout_use_case,
    get_payment_status_use_case,
    get_process_payment_webhook_use_case,
    require_user,
)
from devhub.api.rate_limit import checkout_limit, limiter, webhook_limit
from devhub.api.schemas.billing import (
    CheckoutRequest,
    CheckoutResponse,
    PaymentStatusResponse,
    PaymentWebhookResponse,
)
from devhub.application.dto.billing import InitiateCheckoutInput, PaymentWebhookInput
from devhub.application.use_cases.get_payment_status import GetPaymentStatusUseCase
from devhub.application.use_cases.initiate_checkout import InitiateCheckoutUseCase
from devhub.application.use_cases.process_payment_webhook import ProcessPaymentWebhookUseCase
from devhub.domain.entities.account import Account
from devhub.domain.exceptions import (
    AccountNotFoundError,
    AlreadyOwnedError,
    BillingError,
    PaymentProviderError,
    PurchaseNotFoundError,
    SignatureInvalidError,
)
from devhub.shared.config import get_settings


logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/v1/checkout", response_model=CheckoutResponse)
@limiter.limit(checkout_limit)
def create_checkout(
    req: CheckoutRequest,
    request: Request,
    user_agent: str | None = Header(default=None),
    x_forwarded_for: str | None = Header(default=None),
    current_account: Account = Depends(require_user),
    use_case: InitiateCheckoutUseCase = Depends(get_initiate_checkout_use_case),
):
    settings = get_settings()
    if not settings.stripe_success_url or not settings.stripe_cancel_url:
        raise HTTPException(
            status_code=500,
            detail="STRIPE_SUCCESS_URL and STRIPE_CANCEL_URL are required.",
        )
    try:
        output = use_case.execute(
            InitiateCheckoutInput(
                buyer_id=current_account.id,
                product_id=req.product_id,
                ip=client_ip(request, x_forwarded_for),
                user_agent=user_agent,
                success_url=settings.stripe_success_url,
                cancel_url=settings.stripe_cancel_url,
            )
        )
    except AlreadyOwnedError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except AccountNotFoundError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc
    except BillingError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except PaymentProviderError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc

    return CheckoutResponse(url=output.url, session_id=output.session_id, purchase_id=output.purchase_id)


@router.post("/v1/payments/webhook", response_model=PaymentWebhookResponse)
@limiter.limit(webhook_limit)
async def payment_webhook(
    request: Request,
    stripe_signature: str | None = Header(default=None, alias="Stripe-Signature"),
    use_case: ProcessPaymentWebhookUseCase = Depends(get_process_payment_webhook_use_case),
):
    payload = await request.body()
    try:
        output = await run_in_threadpool(
            use_case.execute,
            PaymentWebhookInput(
                signature=stripe_signature or "",
                payload=payload,
            ),
        )
    except SignatureInvalidError as exc:
        logger.warning(
            "payment_webhook: rejected signature content_length=%s has_signature=%s",
            len(payload),
            bool(stripe_signature),
        )
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    return PaymentWebhookResponse(event_type=output.event_type, outcome=output.outcome)


@router.get("/v1/checkout/verify", response_model=PaymentStatusResponse)
def verify_payment(
    session_id: str = Query(..., min_length=1),
    current_account: Account = Depends(require_user),
    use_case: GetPaymentStatusUseCase = Depends(get_payment_status_use_case),
):
    try:
        output = use_case.execute(buyer_id=current_account.id, checkout_session_id=session_id)
    except PurchaseNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc

    return PaymentStatusResponse(
        purchase_id=output.purchase_id,
        product_id=output.product_id,
        status=output.status,
        amount_cents=output.amount_cents,
        currency=output.currency,
        created_at=output.created_at,
        completed_at=output.completed_at,
    )
