from __future__ import annotations

import logging

from devhub.application.dto.billing import PaymentEvent, ReconcileOutput
from devhub.application.ports.purchases_port import PurchasesPort
from devhub.domain.entities.purchase import Purchase
from devhub.domain.exceptions import CompletedPurchaseConflictError, StaleTransitionError
from devhub.domain.services.purchase_rules import can_transition

from .auth_common import utcnow


logger = logging.getLogger(__name__)


COMPLETION_EVENTS = frozenset({"checkout.session.completed", "checkout.session.async_payment_succeeded"})

FAILURE_EVENTS = frozenset({"checkout.session.async_payment_failed", "checkout.session.expired"})

DECLINE_EVENTS = frozenset({"payment_intent.payment_failed"})


def metadata_matches(purchase: Purchase, metadata: dict[str, str]) -> bool:
    expected = {
        "buyer_id": purchase.buyer_id,
        "product_id": str(purchase.product_id),
        "amount_cents": str(purchase.amount_cents),
        "currency": purchase.currency,
    }
    for key, value in expected.items():
        if key in metadata and str(metadata[key]).lower() != value.lower():
            return False
    return True


class ReconcilePaymentUseCase:
    def __init__(self, *, purchases_port: PurchasesPort):
        self._purchases_port = purchases_port

    def execute(self, event: PaymentEvent) -> ReconcileOutput:
        if event.event_type in COMPLETION_EVENTS:
            if event.event_type == "checkout.session.completed" and event.payment_status != "paid":
                logger.info(
                    "reconcile: awaiting async payment session=%s payment_status=%s",
                    event.checkout_session_id,
                    event.payment_status,
                )
                return ReconcileOutput(event_type=event.event_type, outcome="awaiting_payment")
            target = "completed"
        elif event.event_type in FAILURE_EVENTS:
            target = "failed"
        elif event.event_type in DECLINE_EVENTS:
            # Checkout keeps the session open for another card; expiry closes the purchase.
            logger.warning(
                "reconcile: payment declined payment_intent=%s buyer_id=%s product_id=%s",
                event.payment_intent_id,
                event.metadata.get("buyer_id"),
                event.metadata.get("product_id"),
            )
            return ReconcileOutput(event_type=event.event_type, outcome="payment_declined")
        else:
            logger.debug("reconcile: ignored event_type=%s id=%s", event.event_type, event.event_id)
            return ReconcileOutput(event_type=event.event_type, outcome="ignored")

        if not event.checkout_session_id:
            logger.warning("reconcile: event without checkout session id=%s", event.event_id)
            return ReconcileOutput(event_type=event.event_type, outcome="unknown_handle")

        purchase = self._purchases_port.get_purchase_by_checkout_session_id(
            checkout_session_id=event.checkout_session_id,
        )
        if purchase is None:
            logger.warning("reconcile: unknown checkout session=%s", event.checkout_session_id)
            return ReconcileOutput(event_type=event.event_type, outcome="unknown_handle")

        if not metadata_matches(purchase, event.metadata):
            logger.warning(
                "reconcile: metadata mismatch purchase_id=%s session=%s",
                purchase.id,
                event.checkout_session_id,
            )
            return ReconcileOutput(event_type=event.event_type, outcome="metadata_mismatch", purchase_id=purchase.id)

        try:
            updated = self._transition(purchase, target, event)
        except StaleTransitionError as exc:
            logger.info("reconcile: %s", exc)
            return ReconcileOutput(event_type=event.event_type, outcome="stale", purchase_id=purchase.id)
        except CompletedPurchaseConflictError:
            self._purchases_port.fail_pending_purchase(purchase_id=purchase.id)
            logger.error(
                "reconcile: duplicate completed purchase buyer_id=%s product_id=%s purchase_id=%s "
                "payment_intent=%s needs manual refund",
                purchase.buyer_id,
                purchase.product_id,
                purchase.id,
                event.payment_intent_id,
            )
            return ReconcileOutput(event_type=event.event_type, outcome="conflict", purchase_id=purchase.id)

        logger.info("reconcile: purchase_id=%s status=%s", updated.id, updated.status)
        return ReconcileOutput(event_type=event.event_type, outcome=target, purchase_id=updated.id)

    def _transition(self, purchase: Purchase, target: str, event: PaymentEvent) -> Purchase:
        if not can_transition(purchase.status, target):
            raise StaleTransitionError(
                f"stale transition purchase_id={purchase.id} status={purchase.status} target={target}"
            )

        if target == "completed":
            updated = self._purchases_port.complete_pending_purchase(
                purchase_id=purchase.id,
                payment_intent_id=event.payment_intent_id,
                customer_id=event.customer_id,
                completed_at=utcnow(),
            )
        else:
            updated = self._purchases_port.fail_pending_purchase(purchase_id=purchase.id)

        if updated is None:
            raise StaleTransitionError(
                f"stale transition purchase_id={purchase.id} target={target} lost to concurrent delivery"
            )
        return updated
