from __future__ import annotations

from devhub.application.ports.purchases_port import PurchasesPort
from devhub.domain.services.purchase_rules import grants_access


class VerifyOwnershipUseCase:
    def __init__(self, *, purchases_port: PurchasesPort):
        self._purchases_port = purchases_port

    def execute(self, *, buyer_id: str, purchase_id: int) -> bool:
        purchase = self._purchases_port.get_purchase_by_id(purchase_id=purchase_id)
        return grants_access(purchase, buyer_id=buyer_id)
