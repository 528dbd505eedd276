from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Optional

import structlog

from paydesk.core.settings import Settings
from paydesk.engine.charges import reference_metadata
from paydesk.engine.confirmation import build_confirmation
from paydesk.engine.customers import CustomerResolver
from paydesk.engine.errors import ValidationError
from paydesk.engine.validation import (
    validate_amount,
    validate_currency,
    validate_email,
    normalize_reference,
)
from paydesk.payments.types import PaymentProvider
from paydesk.schemas.api_models import SubscriptionRequest, SubscriptionResponse

log = structlog.get_logger(__name__)

DEFAULT_INTERVAL = "month"
DEFAULT_PRODUCT_NAME = "Subscription"
_INTERVALS = {"day", "week", "month", "year"}
_INTERVAL_ALIASES = {"daily": "day", "weekly": "week", "monthly": "month", "annual": "year", "yearly": "year"}


@dataclass(frozen=True)
class DynamicPrice:
    unit_amount: int
    currency: str
    interval: str
    product_name: str


def _optional_text(value: Any, *, field: str, reason: str) -> Optional[str]:
    """None or blank means absent; anything that is not a string is rejected."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"'{field}' must be a string", reason=reason)
    return value.strip() or None


def _normalize_interval(interval: Any) -> str:
    key = _optional_text(interval, field="interval", reason="InvalidInterval")
    if key is None:
        return DEFAULT_INTERVAL
    key = _INTERVAL_ALIASES.get(key.lower(), key.lower())
    if key not in _INTERVALS:
        raise ValidationError(f"Unsupported interval '{interval}'", reason="InvalidInterval")
    return key


class SubscriptionOrchestrator:
    """
    Creates a subscription in incomplete-payment mode against either an
    existing price (`priceId`) or a price synthesized for this subscription
    only (`amount` / `currency` / `interval` / `productName`).

    Confirmation:
    - client (default): the first invoice's client secret goes back to the
      caller, status stays `incomplete` until the browser confirms.
    - server: only when `paymentMethodId` is supplied and
      SUBSCRIPTION_CONFIRM_MODE=server; the method is attached, made the
      invoice default and the first payment is confirmed before returning.

    Nothing is rolled back if a later processor call fails; customers and
    subscriptions already created stay inspectable at the processor.
    """

    def __init__(self, provider: PaymentProvider, settings: Settings):
        self.provider = provider
        self.settings = settings
        self.customers = CustomerResolver(provider)

    # ---------------- validation ----------------

    def _dynamic_price(self, body: SubscriptionRequest, price_id: Optional[str]) -> Optional[DynamicPrice]:
        if price_id:
            return None
        if body.amount is None:
            raise ValidationError(
                "Either priceId or amount/currency/interval is required", reason="MissingPrice"
            )
        product_name = _optional_text(body.productName, field="productName", reason="InvalidProductName")
        return DynamicPrice(
            unit_amount=validate_amount(body.amount),
            currency=validate_currency(body.currency, default=self.settings.DEFAULT_CURRENCY),
            interval=_normalize_interval(body.interval),
            product_name=product_name or DEFAULT_PRODUCT_NAME,
        )

    def _confirm_mode(self, payment_method_id: Optional[str]) -> str:
        if not payment_method_id:
            return "client"
        if self.settings.SUBSCRIPTION_CONFIRM_MODE != "server":
            raise ValidationError(
                "Server-side confirmation is disabled; confirm with the client secret instead",
                reason="ServerConfirmationDisabled",
            )
        return "server"

    # ---------------- public operation ----------------

    async def create_subscription(self, body: SubscriptionRequest) -> SubscriptionResponse:
        """
        1) Validate everything before any processor call
        2) Find-or-create customer
        3) Strategy prepare (server: attach + default method)
        4) Resolve price (existing id or synthesized)
        5) Create subscription (default_incomplete)
        6) Strategy finalize (client secret or confirmed status)
        """
        price_id = _optional_text(body.priceId, field="priceId", reason="InvalidPrice")
        dynamic = self._dynamic_price(body, price_id)
        pm_id = _optional_text(body.paymentMethodId, field="paymentMethodId", reason="InvalidPaymentMethod")
        pm_type = _optional_text(body.paymentMethodType, field="paymentMethodType", reason="InvalidPaymentMethod")
        mode = self._confirm_mode(pm_id)
        # a payment method needs a customer we can find again
        email = validate_email(body.email, required=(mode == "server"))
        reference = normalize_reference(body.reference)
        strategy = build_confirmation(mode)

        customer = await self.customers.resolve(email)

        default_pm = await strategy.prepare(
            self.provider, customer_id=customer.id, payment_method_id=pm_id
        )

        if dynamic:
            price_id = await self.provider.create_price(
                unit_amount=dynamic.unit_amount,
                currency=dynamic.currency,
                interval=dynamic.interval,
                product_name=dynamic.product_name,
            )

        sub = await self.provider.create_subscription(
            customer_id=customer.id,
            price_id=price_id,
            payment_method_types=[pm_type] if pm_type else None,
            default_payment_method=default_pm,
            metadata=reference_metadata(reference),
        )
        log.info(
            "subscription.created",
            subscription_id=sub["id"],
            customer_id=customer.id,
            price_id=price_id,
            dynamic_price=dynamic is not None,
            confirm_mode=mode,
        )

        result = await strategy.finalize(
            self.provider, subscription=sub, payment_method_id=pm_id
        )
        if mode == "server":
            log.info("subscription.confirmed", subscription_id=sub["id"], status=result.status)

        return SubscriptionResponse(
            subscriptionId=sub["id"],
            clientSecret=result.client_secret,
            status=result.status,
            reference=reference,
        )
