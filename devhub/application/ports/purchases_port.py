from __future__ import annotations

from datetime import datetime
from typing import Protocol

from devhub.application.dto.billing import PurchaseHistoryItem
from devhub.domain.entities.purchase import Product, Purchase


class PurchasesPort(Protocol):
    def get_product_by_id(self, *, product_id: int) -> Product | None:
        ...

    def get_completed_purchase(self, *, buyer_id: str, product_id: int) -> Purchase | None:
        ...

    def get_purchase_by_id(self, *, purchase_id: int) -> Purchase | None:
        ...

    def get_purchase_by_checkout_session_id(self, *, checkout_session_id: str) -> Purchase | None:
        ...

    def create_pending_purchase(
        self,
        *,
        buyer_id: str,
        product_id: int,
        amount_cents: int,
        currency: str,
        checkout_session_id: str,
        ip: str | None,
        user_agent: str | None,
        created_at: datetime,
    ) -> Purchase:
        ...

    def complete_pending_purchase(
        self,
        *,
        purchase_id: int,
        payment_intent_id: str | None,
        customer_id: str | None,
        completed_at: datetime,
    ) -> Purchase | None:
        ...

    def fail_pending_purchase(self, *, purchase_id: int) -> Purchase | None:
        ...

    def list_purchases_for_buyer(self, *, buyer_id: str) -> list[PurchaseHistoryItem]:
        ...
