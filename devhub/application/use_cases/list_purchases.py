from __future__ import annotations

from devhub.application.dto.billing import PurchaseHistoryItem
from devhub.application.ports.purchases_port import PurchasesPort


class ListPurchasesUseCase:
    def __init__(self, *, purchases_port: PurchasesPort):
        self._purchases_port = purchases_port

    def execute(self, *, buyer_id: str) -> list[PurchaseHistoryItem]:
        return self._purchases_port.list_purchases_for_buyer(buyer_id=buyer_id)
