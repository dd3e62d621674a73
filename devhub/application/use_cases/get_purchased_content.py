from __future__ import annotations

from devhub.application.dto.billing import PurchasedContentOutput
from devhub.application.ports.purchases_port import PurchasesPort
from devhub.domain.exceptions import ForbiddenError, ProductNotFoundError, PurchaseNotFoundError

from .verify_ownership import VerifyOwnershipUseCase


class GetPurchasedContentUseCase:
    def __init__(self, *, purchases_port: PurchasesPort):
        self._purchases_port = purchases_port
        self._verify_ownership = VerifyOwnershipUseCase(purchases_port=purchases_port)

    def execute(self, *, buyer_id: str, purchase_id: int) -> PurchasedContentOutput:
        purchase = self._purchases_port.get_purchase_by_id(purchase_id=purchase_id)
        if purchase is None or purchase.buyer_id != buyer_id:
            raise PurchaseNotFoundError("Purchase not found.")
        if not self._verify_ownership.execute(buyer_id=buyer_id, purchase_id=purchase_id):
            raise ForbiddenError("Purchase is not completed.")

        product = self._purchases_port.get_product_by_id(product_id=purchase.product_id)
        if product is None:
            raise ProductNotFoundError("Product not found.")
        return PurchasedContentOutput(
            purchase_id=purchase.id,
            product_id=product.id,
            product_name=product.name,
            workflow_json=product.workflow_json,
        )
