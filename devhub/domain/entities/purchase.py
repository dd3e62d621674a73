from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Literal


PurchaseStatus = Literal["pending", "completed", "failed", "refunded"]

ProductStatus = Literal["draft", "published", "rejected", "archived"]


@dataclass(frozen=True)
class Product:
    id: int
    name: str
    price_cents: int
    currency: str
    creator_id: str
    status: ProductStatus
    external_price_id: str | None
    acquisition_count: int
    workflow_json: Any = None


@dataclass(frozen=True)
class Purchase:
    id: int
    buyer_id: str
    product_id: int
    amount_cents: int
    currency: str
    status: PurchaseStatus
    checkout_session_id: str | None
    payment_intent_id: str | None
    customer_id: str | None
    ip: str | None
    user_agent: str | None
    created_at: datetime
    completed_at: datetime | None
