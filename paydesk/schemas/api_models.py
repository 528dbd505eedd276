from __future__ import annotations

from typing import Optional, Any
from pydantic import BaseModel, ConfigDict, Field, AliasChoices


# Request bodies are loose. Type and range checks live in
# paydesk.engine.validation and report InvalidAmount / InvalidCurrency /
# InvalidEmail / InvalidPrice / InvalidInterval, never a generic 422.


# -------------------------
# One-time charges
# -------------------------
class PaymentIntentRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    amount: Optional[Any] = None        # minor units, e.g. cents
    currency: Optional[Any] = None      # defaults to DEFAULT_CURRENCY
    email: Optional[Any] = None
    reference: Optional[Any] = None     # opaque, stored as processor metadata


class PaymentIntentResponse(BaseModel):
    clientSecret: str
    paymentIntentId: Optional[str] = None
    currency: str                       # upper-case, e.g. "USD"
    reference: Optional[str] = None
    status: Optional[str] = None


# -------------------------
# Subscriptions
# -------------------------
class SubscriptionRequest(BaseModel):
    """
    Either `priceId` (existing recurring price) or the dynamic fields
    (`amount`, `currency`, `interval`, `productName`) must be given.
    `paymentMethodId` switches to server-side confirmation.
    """
    model_config = ConfigDict(extra="ignore")

    email: Optional[Any] = None
    priceId: Optional[Any] = Field(None, validation_alias=AliasChoices("priceId", "price_id"))
    amount: Optional[Any] = Field(None, validation_alias=AliasChoices("amount", "unitAmount"))
    currency: Optional[Any] = None
    interval: Optional[Any] = None      # day | week | month | year; month when absent
    productName: Optional[Any] = None
    paymentMethodType: Optional[Any] = None
    paymentMethodId: Optional[Any] = None
    reference: Optional[Any] = None


class SubscriptionResponse(BaseModel):
    subscriptionId: str
    clientSecret: Optional[str] = None  # None once confirmed server-side with nothing left to do
    status: str
    reference: Optional[str] = None


# -------------------------
# Leads
# -------------------------
class LeadRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    email: Optional[Any] = None
    status: Optional[Any] = None        # free-text outcome tag: succeeded, failed, abandoned...
    amount: Optional[Any] = None
    confirmationId: Optional[Any] = Field(None, validation_alias=AliasChoices("confirmationId", "pi"))
    failureReason: Optional[Any] = Field(None, validation_alias=AliasChoices("failureReason", "reason"))
    reference: Optional[Any] = None


class LeadSavedResponse(BaseModel):
    ok: bool = True


# -------------------------
# Health
# -------------------------
class HealthResponse(BaseModel):
    processorConfigured: bool


class DebugEnvResponse(HealthResponse):
    stripeKeySet: bool
