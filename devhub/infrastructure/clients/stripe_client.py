from __future__ import annotations

import json
import logging

import stripe

from devhub.application.dto.billing import CheckoutSessionRequest, CheckoutSessionResult, PaymentEvent
from devhub.application.ports.payment_provider_port import PaymentProviderPort, PaymentWebhookVerifierPort
from devhub.domain.exceptions import PaymentProviderError, SignatureInvalidError


logger = logging.getLogger(__name__)

WEBHOOK_TOLERANCE_SECONDS = 300


class StripeClient(PaymentProviderPort):
    def __init__(self, *, secret_key: str, timeout_seconds: float = 10.0):
        stripe.api_key = secret_key
        stripe.max_network_retries = 0
        stripe.default_http_client = stripe.RequestsClient(timeout=timeout_seconds)

    def create_checkout_session(self, *, request: CheckoutSessionRequest) -> CheckoutSessionResult:
        metadata = {
            "buyer_id": request.buyer_id,
            "product_id": str(request.product_id),
            "amount_cents": str(request.amount_cents),
            "currency": request.currency,
        }
        if request.external_price_id:
            line_item: dict = {"price": request.external_price_id, "quantity": 1}
        else:
            line_item = {
                "price_data": {
                    "currency": request.currency,
                    "unit_amount": request.amount_cents,
                    "product_data": {"name": request.product_name},
                },
                "quantity": 1,
            }

        payload: dict = {
            "mode": "payment",
            "line_items": [line_item],
            "success_url": request.success_url,
            "cancel_url": request.cancel_url,
            "client_reference_id": request.buyer_id,
            "customer_email": request.buyer_email,
            "metadata": metadata,
            "payment_intent_data": {"metadata": metadata},
            "expires_at": int(request.expires_at.timestamp()),
        }

        try:
            session = stripe.checkout.Session.create(**payload)
        except Exception as exc:  # pragma: no cover - external API
            logger.warning("stripe_client: checkout create failed product_id=%s error=%s", request.product_id, exc)
            raise PaymentProviderError("Failed to create Stripe checkout session.") from exc

        session_id = getattr(session, "id", None)
        session_url = getattr(session, "url", None)
        if not session_id or not session_url:
            raise PaymentProviderError("Stripe checkout session response is incomplete.")

        return CheckoutSessionResult(id=str(session_id), url=str(session_url))


class StripeWebhookVerifier(PaymentWebhookVerifierPort):
    """Verifica a assinatura sobre o corpo bruto antes de qualquer parse."""

    def __init__(self, *, webhook_secret: str, tolerance_seconds: int = WEBHOOK_TOLERANCE_SECONDS):
        self._webhook_secret = webhook_secret
        self._tolerance_seconds = tolerance_seconds

    def verify(self, *, signature: str, payload: bytes) -> PaymentEvent:
        if not signature:
            raise SignatureInvalidError("Missing webhook signature header.")
        try:
            raw = payload.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise SignatureInvalidError("Webhook payload is not valid UTF-8.") from exc

        try:
            stripe.WebhookSignature.verify_header(
                raw,
                signature,
                self._webhook_secret,
                tolerance=self._tolerance_seconds,
            )
        except stripe.SignatureVerificationError as exc:
            logger.warning("stripe_webhook: signature rejected error=%s", exc)
            raise SignatureInvalidError("Invalid webhook signature.") from exc

        try:
            event = json.loads(raw)
        except ValueError as exc:
            raise SignatureInvalidError("Signed webhook payload is not valid JSON.") from exc
        if not isinstance(event, dict):
            raise SignatureInvalidError("Signed webhook payload is not an object.")
        return parse_payment_event(event)


def parse_payment_event(event: dict) -> PaymentEvent:
    event_type = str(event.get("type", ""))
    data_object = (event.get("data") or {}).get("object") or {}

    checkout_session_id = None
    payment_intent_id = _as_optional_id(data_object.get("payment_intent"))
    if event_type.startswith("checkout.session.") and data_object.get("id"):
        checkout_session_id = str(data_object["id"])
    elif event_type.startswith("payment_intent.") and data_object.get("id"):
        payment_intent_id = str(data_object["id"])

    metadata = data_object.get("metadata") or {}
    return PaymentEvent(
        event_id=str(event.get("id", "")),
        event_type=event_type,
        checkout_session_id=checkout_session_id,
        payment_status=data_object.get("payment_status"),
        payment_intent_id=payment_intent_id,
        customer_id=_as_optional_id(data_object.get("customer")),
        metadata={str(key): str(value) for key, value in metadata.items() if value is not None},
    )


def _as_optional_id(value) -> str | None:
    if value is None:
        return None
    if isinstance(value, dict):
        value = value.get("id")
    return str(value) if value else None
