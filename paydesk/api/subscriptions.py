# paydesk/api/subscriptions.py
from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, HTTPException

from paydesk.core.deps import get_payment_provider, get_settings_dep
from paydesk.core.settings import Settings
from paydesk.engine.errors import ValidationError, UpstreamError
from paydesk.engine.subscriptions import SubscriptionOrchestrator
from paydesk.schemas.api_models import SubscriptionRequest, SubscriptionResponse

router = APIRouter(tags=["Subscriptions"])
log = structlog.get_logger(__name__)


@router.post("/create-subscription", response_model=SubscriptionResponse)
async def create_subscription(
    body: SubscriptionRequest,
    settings: Settings = Depends(get_settings_dep),
    provider = Depends(get_payment_provider),
):
    engine = SubscriptionOrchestrator(provider=provider, settings=settings)
    try:
        return await engine.create_subscription(body)
    except ValidationError as e:
        log.info("subscription.rejected", reason=e.reason)
        raise HTTPException(status_code=400, detail=e.to_detail())
    except UpstreamError as e:
        # customer / subscription objects already created stay at the processor
        log.error("subscription.failed", message=str(e))
        raise HTTPException(status_code=500, detail=e.to_detail())
