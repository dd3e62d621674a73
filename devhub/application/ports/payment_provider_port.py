from __future__ import annotations

from typing import Protocol

from devhub.application.dto.billing import CheckoutSessionRequest, CheckoutSessionResult, PaymentEvent


class PaymentProviderPort(Protocol):
    def create_checkout_session(self, *, request: CheckoutSessionRequest) -> CheckoutSessionResult:
        ...


class PaymentWebhookVerifierPort(Protocol):
    def verify(self, *, signature: str, payload: bytes) -> PaymentEvent:
        ...
