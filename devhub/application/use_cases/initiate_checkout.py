from __future__ import annotations

import logging
from datetime import timedelta

from devhub.application.dto.billing import CheckoutHandle, CheckoutSessionRequest, InitiateCheckoutInput
from devhub.application.ports.auth_port import AuthPort
from devhub.application.ports.payment_provider_port import PaymentProviderPort
from devhub.application.ports.purchases_port import PurchasesPort
from devhub.domain.exceptions import (
    AccountNotFoundError,
    AlreadyOwnedError,
    ProductNotFoundError,
    ProductNotPurchasableError,
    SelfPurchaseError,
)
from devhub.domain.services.purchase_rules import is_purchasable

from .auth_common import clamp, utcnow


logger = logging.getLogger(__name__)


class InitiateCheckoutUseCase:
    def __init__(
        self,
        *,
        auth_port: AuthPort,
        purchases_port: PurchasesPort,
        payment_provider: PaymentProviderPort,
        checkout_expiry_minutes: int = 30,
    ):
        self._auth_port = auth_port
        self._purchases_port = purchases_port
        self._payment_provider = payment_provider
        self._checkout_expiry_minutes = checkout_expiry_minutes

    def execute(self, command: InitiateCheckoutInput) -> CheckoutHandle:
        buyer = self._auth_port.get_account_by_id(account_id=command.buyer_id)
        if buyer is None:
            raise AccountNotFoundError("Buyer not found.")

        product = self._purchases_port.get_product_by_id(product_id=command.product_id)
        if product is None:
            raise ProductNotFoundError("Product not found.")
        if not is_purchasable(product):
            raise ProductNotPurchasableError("Product is not available for purchase.")
        if product.creator_id == buyer.id:
            raise SelfPurchaseError("Creators cannot purchase their own products.")

        owned = self._purchases_port.get_completed_purchase(buyer_id=buyer.id, product_id=product.id)
        if owned is not None:
            raise AlreadyOwnedError("Product already purchased.")

        now = utcnow()
        result = self._payment_provider.create_checkout_session(
            request=CheckoutSessionRequest(
                buyer_id=buyer.id,
                buyer_email=buyer.email,
                product_id=product.id,
                product_name=product.name,
                amount_cents=product.price_cents,
                currency=product.currency,
                external_price_id=product.external_price_id,
                success_url=command.success_url,
                cancel_url=command.cancel_url,
                expires_at=now + timedelta(minutes=self._checkout_expiry_minutes),
            )
        )

        purchase = self._purchases_port.create_pending_purchase(
            buyer_id=buyer.id,
            product_id=product.id,
            amount_cents=product.price_cents,
            currency=product.currency,
            checkout_session_id=result.id,
            ip=clamp(command.ip, 45),
            user_agent=clamp(command.user_agent, 500),
            created_at=now,
        )
        logger.info(
            "checkout: pending purchase_id=%s buyer_id=%s product_id=%s session=%s",
            purchase.id,
            buyer.id,
            product.id,
            result.id,
        )
        return CheckoutHandle(url=result.url, session_id=result.id, purchase_id=purchase.id)
