# paydesk/core/deps.py
from fastapi import Request
from paydesk.core.settings import Settings
from paydesk.leads.recorder import LeadRecorder
from paydesk.payments.types import PaymentProvider
from paydesk.payments.stripe_provider import StripePaymentProvider
from paydesk.payments.fake_provider import FakePaymentProvider


def build_payment_provider(settings: Settings) -> PaymentProvider:
    if settings.PAYMENTS_BACKEND == "fake":
        return FakePaymentProvider()
    return StripePaymentProvider(
        api_key=settings.STRIPE_SECRET_KEY,
        timeout_seconds=settings.STRIPE_TIMEOUT_SECONDS,
    )


# Everything below is built once in create_app() and hung on app.state;
# FastAPI calls these per request and gets the same instances back.

def get_settings_dep(request: Request) -> Settings:
    return request.app.state.settings


def get_payment_provider(request: Request) -> PaymentProvider:
    return request.app.state.payments


def get_lead_recorder(request: Request) -> LeadRecorder:
    return request.app.state.leads
