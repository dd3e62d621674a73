from __future__ import annotations

from devhub.application.dto.billing import PaymentStatusOutput
from devhub.application.ports.purchases_port import PurchasesPort
from devhub.domain.exceptions import PurchaseNotFoundError


class GetPaymentStatusUseCase:
    def __init__(self, *, purchases_port: PurchasesPort):
        self._purchases_port = purchases_port

    def execute(self, *, buyer_id: str, checkout_session_id: str) -> PaymentStatusOutput:
        purchase = self._purchases_port.get_purchase_by_checkout_session_id(
            checkout_session_id=checkout_session_id,
        )
        if purchase is None or purchase.buyer_id != buyer_id:
            raise PurchaseNotFoundError("Purchase not found.")
        return PaymentStatusOutput(
            purchase_id=purchase.id,
            product_id=purchase.product_id,
            status=purchase.status,
            amount_cents=purchase.amount_cents,
            currency=purchase.currency,
            created_at=purchase.created_at,
            completed_at=purchase.completed_at,
        )
