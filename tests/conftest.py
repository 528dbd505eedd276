"""Shared fixtures: settings without .env, the in-memory provider and a test client."""

import pytest
from fastapi.testclient import TestClient

from paydesk.core.settings import Settings
from paydesk.leads.recorder import LeadRecorder
from paydesk.main import create_app
from paydesk.payments.fake_provider import FakePaymentProvider


def make_settings(**overrides) -> Settings:
    values = {
        "PAYMENTS_BACKEND": "fake",
        "STRIPE_SECRET_KEY": "",
        "STATIC_DIR": "",
        "LOG_LEVEL": "WARNING",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings_factory(tmp_path):
    def _make(**overrides):
        overrides.setdefault("LEADS_CSV_PATH", str(tmp_path / "leads.csv"))
        return make_settings(**overrides)

    return _make


@pytest.fixture
def settings(tmp_path):
    return make_settings(LEADS_CSV_PATH=str(tmp_path / "leads.csv"))


@pytest.fixture
def fake():
    return FakePaymentProvider()


@pytest.fixture
def leads_path(settings):
    return settings.LEADS_CSV_PATH


@pytest.fixture
def make_client(fake, tmp_path):
    """Build a TestClient around the fake provider with per-test setting overrides."""

    def _make(**overrides):
        overrides.setdefault("LEADS_CSV_PATH", str(tmp_path / "leads.csv"))
        s = make_settings(**overrides)
        app = create_app(s, payments_provider=fake, lead_recorder=LeadRecorder(s.LEADS_CSV_PATH))
        return TestClient(app)

    return _make


@pytest.fixture
def client(make_client):
    return make_client()
