from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, Field


class CheckoutRequest(BaseModel):
    product_id: int = Field(..., gt=0, validation_alias=AliasChoices("product_id", "productId"))


class CheckoutResponse(BaseModel):
    url: str
    session_id: str = Field(..., serialization_alias="sessionId")
    purchase_id: int


class PaymentWebhookResponse(BaseModel):
    received: bool = True
    event_type: str
    outcome: str


class PaymentStatusResponse(BaseModel):
    purchase_id: int
    product_id: int
    status: str
    amount_cents: int
    currency: str
    created_at: datetime
    completed_at: datetime | None = None


class PurchaseHistoryItemResponse(BaseModel):
    purchase_id: int
    product_id: int
    product_name: str
    amount_cents: int
    currency: str
    status: str
    created_at: datetime
    completed_at: datetime | None = None


class PurchasedContentResponse(BaseModel):
    purchase_id: int
    product_id: int
    product_name: str
    workflow_json: Any = None
