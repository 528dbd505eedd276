# paydesk/main.py
from __future__ import annotations
import os
import sys
from typing import Optional

import structlog
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from paydesk.core.deps import build_payment_provider
from paydesk.core.logger import setup_logging
from paydesk.core.settings import Settings, get_settings
from paydesk.engine.errors import StartupError
from paydesk.leads.recorder import LeadRecorder
from paydesk.payments.types import PaymentProvider
from paydesk.api import (
    payments,
    subscriptions,
    leads,
    health,
)

log = structlog.get_logger(__name__)


def _csv_or_star(value: str) -> list[str]:
    return ["*"] if value == "*" else [v.strip() for v in value.split(",")]


def create_app(
    settings: Optional[Settings] = None,
    payments_provider: Optional[PaymentProvider] = None,
    lead_recorder: Optional[LeadRecorder] = None,
) -> FastAPI:
    """
    Build the application around one settings object.
    Tests pass their own settings / provider / recorder; the process entry
    point lets get_settings() read the environment.
    """
    settings = settings or get_settings()
    setup_logging(settings)

    app = FastAPI(title=settings.APP_NAME, version="1.0.0")
    app.state.settings = settings
    app.state.payments = payments_provider or build_payment_provider(settings)
    app.state.leads = lead_recorder or LeadRecorder(settings.LEADS_CSV_PATH)

    # --- CORS ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_csv_or_star(settings.CORS_ORIGINS),
        allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
        allow_methods=_csv_or_star(settings.CORS_ALLOW_METHODS),
        allow_headers=_csv_or_star(settings.CORS_ALLOW_HEADERS),
    )

    # --- Routers ---
    app.include_router(payments.router)
    app.include_router(subscriptions.router)
    app.include_router(leads.router)
    app.include_router(health.router)

    # --- Static checkout pages (mounted last so API routes win) ---
    if settings.STATIC_DIR and os.path.isdir(settings.STATIC_DIR):
        app.mount("/", StaticFiles(directory=settings.STATIC_DIR, html=True), name="static")

    log.info(
        "app.configured",
        backend=settings.PAYMENTS_BACKEND,
        processor_configured=settings.processor_configured,
        confirm_mode=settings.SUBSCRIPTION_CONFIRM_MODE,
    )
    return app


def run() -> None:
    """Console entry point: refuses to serve when the processor key is missing."""
    try:
        settings = get_settings()
    except StartupError as e:
        # logging is not configured yet
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    app = create_app(settings)
    log.info("server.starting", host=settings.HOST, port=settings.PORT)
    # log_config=None keeps uvicorn on the handler installed by setup_logging
    uvicorn.run(
        app,
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
        log_config=None,
    )


if __name__ == "__main__":
    run()
