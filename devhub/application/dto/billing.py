from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal


ReconcileOutcome = Literal[
    "completed",
    "failed",
    "stale",
    "conflict",
    "awaiting_payment",
    "payment_declined",
    "unknown_handle",
    "metadata_mismatch",
    "ignored",
]


@dataclass(frozen=True)
class InitiateCheckoutInput:
    buyer_id: str
    product_id: int
    ip: str | None
    user_agent: str | None
    success_url: str
    cancel_url: str


@dataclass(frozen=True)
class CheckoutHandle:
    url: str
    session_id: str
    purchase_id: int


@dataclass(frozen=True)
class CheckoutSessionResult:
    id: str
    url: str


@dataclass(frozen=True)
class CheckoutSessionRequest:
    buyer_id: str
    buyer_email: str
    product_id: int
    product_name: str
    amount_cents: int
    currency: str
    external_price_id: str | None
    success_url: str
    cancel_url: str
    expires_at: datetime


@dataclass(frozen=True)
class PaymentEvent:
    event_id: str
    event_type: str
    checkout_session_id: str | None
    payment_status: str | None
    payment_intent_id: str | None
    customer_id: str | None
    metadata: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class PaymentWebhookInput:
    signature: str
    payload: bytes


@dataclass(frozen=True)
class ReconcileOutput:
    event_type: str
    outcome: ReconcileOutcome
    purchase_id: int | None = None


@dataclass(frozen=True)
class PaymentStatusOutput:
    purchase_id: int
    product_id: int
    status: str
    amount_cents: int
    currency: str
    created_at: datetime
    completed_at: datetime | None


@dataclass(frozen=True)
class PurchaseHistoryItem:
    purchase_id: int
    product_id: int
    product_name: str
    amount_cents: int
    currency: str
    status: str
    created_at: datetime
    completed_at: datetime | None


@dataclass(frozen=True)
class PurchasedContentOutput:
    purchase_id: int
    product_id: int
    product_name: str
    workflow_json: Any
