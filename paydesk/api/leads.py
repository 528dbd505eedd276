# paydesk/api/leads.py
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from paydesk.core.deps import get_lead_recorder
from paydesk.engine.errors import ValidationError, LeadStorageError
from paydesk.leads.recorder import LeadRecord, LeadRecorder
from paydesk.schemas.api_models import LeadRequest, LeadSavedResponse

router = APIRouter(tags=["Leads"])


@router.post("/save-lead", response_model=LeadSavedResponse)
async def save_lead(
    body: LeadRequest,
    recorder: LeadRecorder = Depends(get_lead_recorder),
):
    """
    Append one outcome line (success, failure, abandonment) reported by the client.
    Independent of the charge/subscription calls; duplicates are written as sent.
    """
    try:
        lead = LeadRecord(
            email=body.email,
            status=body.status,
            amount=body.amount,
            confirmationId=body.confirmationId,
            failureReason=body.failureReason,
            reference=body.reference,
        )
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.to_detail())

    try:
        await recorder.record(lead)
    except LeadStorageError as e:
        raise HTTPException(status_code=500, detail=e.to_detail())
    return LeadSavedResponse(ok=True)
