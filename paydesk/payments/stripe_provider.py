from __future__ import annotations
from functools import partial
from typing import Optional, Dict, Any, List, Callable
import stripe
import structlog
from fastapi.concurrency import run_in_threadpool

from paydesk.engine.errors import UpstreamError

log = structlog.get_logger(__name__)


def _payment_intent_dict(pi: Any) -> Optional[Dict[str, Any]]:
    if not pi:
        return None
    if isinstance(pi, str):
        # not expanded
        return {"id": pi, "client_secret": None, "status": None}
    return {
        "id": pi.id,
        "client_secret": getattr(pi, "client_secret", None),
        "status": getattr(pi, "status", None),
    }


class StripePaymentProvider:
    """
    Stripe-backed PaymentProvider.

    The SDK is blocking, so every call runs in the threadpool and the request
    task suspends until it completes. The API key is passed per call; retries
    are disabled and the HTTP timeout is bounded.
    """

    def __init__(self, api_key: str, timeout_seconds: float = 30.0):
        self.api_key = api_key
        stripe.max_network_retries = 0
        stripe.default_http_client = stripe.RequestsClient(timeout=timeout_seconds)

    async def _call(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        try:
            return await run_in_threadpool(partial(fn, *args, api_key=self.api_key, **kwargs))
        except stripe.StripeError as e:
            message = getattr(e, "user_message", None) or str(e)
            log.warning("upstream.error", call=getattr(fn, "__qualname__", str(fn)), message=message)
            raise UpstreamError(message) from e

    # --- customers ---
    async def find_customer_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        res = await self._call(stripe.Customer.list, email=email, limit=1)
        if res and len(res.data) > 0:
            c = res.data[0]
            return {"id": c.id, "email": getattr(c, "email", None)}
        return None

    async def create_customer(self, *, email: Optional[str]) -> Dict[str, Any]:
        params: Dict[str, Any] = {}
        if email:
            params["email"] = email
        c = await self._call(stripe.Customer.create, **params)
        return {"id": c.id, "email": getattr(c, "email", None)}

    # --- one-time charges ---
    async def create_payment_intent(
        self,
        *,
        amount: int,
        currency: str,
        customer_id: Optional[str] = None,
        receipt_email: Optional[str] = None,
        metadata: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "amount": amount,
            "currency": currency,
            "automatic_payment_methods": {"enabled": True},
            "metadata": metadata or {},
        }
        if customer_id:
            params["customer"] = customer_id
        if receipt_email:
            params["receipt_email"] = receipt_email
        pi = await self._call(stripe.PaymentIntent.create, **params)
        return _payment_intent_dict(pi)

    async def confirm_payment_intent(self, *, payment_intent_id: str, payment_method_id: str) -> Dict[str, Any]:
        pi = await self._call(stripe.PaymentIntent.confirm, payment_intent_id, payment_method=payment_method_id)
        return _payment_intent_dict(pi)

    # --- payment methods ---
    async def attach_payment_method(self, *, payment_method_id: str, customer_id: str) -> None:
        await self._call(stripe.PaymentMethod.attach, payment_method_id, customer=customer_id)

    async def set_default_payment_method(self, *, customer_id: str, payment_method_id: str) -> None:
        await self._call(
            stripe.Customer.modify,
            customer_id,
            invoice_settings={"default_payment_method": payment_method_id},
        )

    # --- subscriptions ---
    async def create_price(self, *, unit_amount: int, currency: str, interval: str, product_name: str) -> str:
        # Price scoped to a single subscription; the product is created inline
        price = await self._call(
            stripe.Price.create,
            unit_amount=unit_amount,
            currency=currency,
            recurring={"interval": interval},
            product_data={"name": product_name},
        )
        return price.id

    async def create_subscription(
        self,
        *,
        customer_id: str,
        price_id: str,
        payment_method_types: Optional[List[str]] = None,
        default_payment_method: Optional[str] = None,
        metadata: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        payment_settings: Dict[str, Any] = {"save_default_payment_method": "on_subscription"}
        if payment_method_types:
            payment_settings["payment_method_types"] = payment_method_types
        params: Dict[str, Any] = dict(
            customer=customer_id,
            items=[{"price": price_id}],
            payment_behavior="default_incomplete",
            payment_settings=payment_settings,
            metadata=metadata or {},
            expand=["latest_invoice.payment_intent"],
        )
        if default_payment_method:
            params["default_payment_method"] = default_payment_method
        sub = await self._call(stripe.Subscription.create, **params)

        invoice = getattr(sub, "latest_invoice", None)
        pi = getattr(invoice, "payment_intent", None) if invoice and not isinstance(invoice, str) else None
        return {
            "id": sub.id,
            "status": sub.status,
            "customer": sub.customer,
            "payment_intent": _payment_intent_dict(pi),
        }
