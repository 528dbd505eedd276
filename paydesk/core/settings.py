# paydesk/core/settings.py
from __future__ import annotations
from functools import lru_cache
from typing import Literal
from pydantic_settings import BaseSettings
from pydantic import field_validator, ConfigDict

from paydesk.engine.errors import StartupError

# Fixed allow-list; not configurable per deployment.
ALLOWED_CURRENCIES = frozenset({"usd", "gbp", "eur"})


class Settings(BaseSettings):
    # --- App ---
    APP_NAME: str = "Payment Orchestration Service"
    ENV: Literal["development", "staging", "production"] = "development"
    LOG_LEVEL: str = "INFO"
    HOST: str = "0.0.0.0"
    PORT: int = 4242

    # --- HTTP / CORS ---
    CORS_ORIGINS: str = "*"  # comma-separated list or "*"
    CORS_ALLOW_CREDENTIALS: bool = False
    CORS_ALLOW_METHODS: str = "*"   # comma-separated or "*"
    CORS_ALLOW_HEADERS: str = "*"   # comma-separated or "*"
    STATIC_DIR: str = "public"

    # --- Payments ---
    PAYMENTS_BACKEND: Literal["fake", "stripe"] = "stripe"
    STRIPE_SECRET_KEY: str = ""         # required if PAYMENTS_BACKEND=stripe
    STRIPE_TIMEOUT_SECONDS: float = 30.0

    # --- Orchestration options (per deployment) ---
    DEFAULT_CURRENCY: str = "usd"
    REQUIRE_EMAIL_ON_CHARGE: bool = True
    ATTACH_CUSTOMER_TO_CHARGE: bool = False
    SUBSCRIPTION_CONFIRM_MODE: Literal["client", "server"] = "client"

    # --- Leads ---
    LEADS_CSV_PATH: str = "leads.csv"

    model_config = ConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    @property
    def DEV_MODE(self) -> bool:
        return self.ENV == "development"

    @property
    def processor_configured(self) -> bool:
        return bool(self.STRIPE_SECRET_KEY)

    @field_validator("CORS_ORIGINS", "CORS_ALLOW_METHODS", "CORS_ALLOW_HEADERS")
    @classmethod
    def _norm_csv(cls, v: str) -> str:
        return ",".join([piece.strip() for piece in v.split(",")]) if v else v

    @field_validator("DEFAULT_CURRENCY")
    @classmethod
    def _allowed_default_currency(cls, v: str) -> str:
        v = (v or "").strip().lower()
        if v not in ALLOWED_CURRENCIES:
            raise ValueError(f"DEFAULT_CURRENCY must be one of {sorted(ALLOWED_CURRENCIES)}")
        return v

    def validate_payments(self) -> None:
        if self.PAYMENTS_BACKEND == "stripe" and not self.STRIPE_SECRET_KEY:
            raise StartupError("STRIPE_SECRET_KEY is required when PAYMENTS_BACKEND=stripe")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Build and check the process-wide settings once.
    Raises StartupError when the processor credential is missing.
    """
    settings = Settings()
    # cross-field check, the credential only matters for the real backend
    settings.validate_payments()
    return settings
