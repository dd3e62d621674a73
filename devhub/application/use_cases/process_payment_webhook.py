from __future__ import annotations

from devhub.application.dto.billing import PaymentWebhookInput, ReconcileOutput
from devhub.application.ports.payment_provider_port import PaymentWebhookVerifierPort

from .reconcile_payment import ReconcilePaymentUseCase


class ProcessPaymentWebhookUseCase:
    def __init__(
        self,
        *,
        verifier: PaymentWebhookVerifierPort,
        reconcile_payment: ReconcilePaymentUseCase,
    ):
        self._verifier = verifier
        self._reconcile_payment = reconcile_payment

    def execute(self, command: PaymentWebhookInput) -> ReconcileOutput:
        event = self._verifier.verify(signature=command.signature, payload=command.payload)
        return self._reconcile_payment.execute(event)
