# paydesk/api/health.py
from fastapi import APIRouter, Depends

from paydesk.core.deps import get_settings_dep
from paydesk.core.settings import Settings
from paydesk.schemas.api_models import DebugEnvResponse, HealthResponse

router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthResponse)
def health(settings: Settings = Depends(get_settings_dep)):
    # only whether a key is set, never the key
    return HealthResponse(processorConfigured=settings.processor_configured)


@router.get("/debug-env", response_model=DebugEnvResponse, include_in_schema=False)
def debug_env(settings: Settings = Depends(get_settings_dep)):
    """Older checkout pages read `stripeKeySet`; same answer as /health."""
    return DebugEnvResponse(
        processorConfigured=settings.processor_configured,
        stripeKeySet=settings.processor_configured,
    )
