# paydesk/api/payments.py
from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, HTTPException

from paydesk.core.deps import get_payment_provider, get_settings_dep
from paydesk.core.settings import Settings
from paydesk.engine.charges import ChargeOrchestrator
from paydesk.engine.customers import CustomerResolver
from paydesk.engine.errors import ValidationError, UpstreamError
from paydesk.engine.validation import normalize_charge
from paydesk.schemas.api_models import PaymentIntentRequest, PaymentIntentResponse

router = APIRouter(tags=["Payments"])
log = structlog.get_logger(__name__)


@router.post("/create-payment-intent", response_model=PaymentIntentResponse)
async def create_payment_intent(
    body: PaymentIntentRequest,
    settings: Settings = Depends(get_settings_dep),
    provider = Depends(get_payment_provider),
):
    try:
        charge = normalize_charge(
            amount=body.amount,
            currency=body.currency,
            email=body.email,
            reference=body.reference,
            default_currency=settings.DEFAULT_CURRENCY,
            require_email=settings.REQUIRE_EMAIL_ON_CHARGE,
        )
    except ValidationError as e:
        log.info("payment_intent.rejected", reason=e.reason)
        raise HTTPException(status_code=400, detail=e.to_detail())

    try:
        customer = None
        if settings.ATTACH_CUSTOMER_TO_CHARGE and charge.email:
            customer = await CustomerResolver(provider).resolve(charge.email)
        return await ChargeOrchestrator(provider).create_charge(charge, customer)
    except UpstreamError as e:
        log.error("payment_intent.failed", message=str(e))
        raise HTTPException(status_code=500, detail=e.to_detail())
