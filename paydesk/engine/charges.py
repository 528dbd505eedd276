# paydesk/engine/charges.py
from __future__ import annotations
from typing import Optional, Dict

import structlog

from paydesk.engine.customers import CustomerIdentity
from paydesk.engine.validation import NormalizedCharge
from paydesk.payments.types import PaymentProvider
from paydesk.schemas.api_models import PaymentIntentResponse

log = structlog.get_logger(__name__)


def reference_metadata(reference: Optional[str]) -> Dict[str, str]:
    # opaque to us, only echoed back for reconciliation
    return {"reference": reference} if reference else {}


class ChargeOrchestrator:
    def __init__(self, provider: PaymentProvider):
        self.provider = provider

    async def create_charge(
        self, charge: NormalizedCharge, customer: Optional[CustomerIdentity] = None
    ) -> PaymentIntentResponse:
        """
        Issue one payment-intent create and hand back its client secret untouched.
        The processor picks the payment methods offered to the payer. No retry:
        an UpstreamError from the provider propagates as is.
        """
        pi = await self.provider.create_payment_intent(
            amount=charge.amount,
            currency=charge.currency,
            customer_id=customer.id if customer else None,
            receipt_email=charge.email,
            metadata=reference_metadata(charge.reference),
        )
        log.info(
            "payment_intent.created",
            payment_intent_id=pi["id"],
            amount=charge.amount,
            currency=charge.currency,
            customer_id=customer.id if customer else None,
        )
        return PaymentIntentResponse(
            clientSecret=pi["client_secret"],
            paymentIntentId=pi["id"],
            currency=charge.currency.upper(),
            reference=charge.reference,
            status=pi.get("status"),
        )
