# paydesk/payments/fake_provider.py
from __future__ import annotations
from typing import Optional, Dict, Any, List, Tuple

from paydesk.engine.errors import UpstreamError


class FakePaymentProvider:
    """
    In-memory, protocol-compliant fake for tests/local runs.
    Mirrors the signatures in paydesk.payments.types.PaymentProvider.

    - Customers: stored by id; lookup by exact email returns the first match.
    - Payment intents: created in `requires_payment_method`; confirm with a
      method id moves them to `succeeded` (or `requires_action` for ids in
      `requires_action_methods`).
    - Every call is appended to `calls` as (name, kwargs) so tests can assert
      on counts and order.
    - `fail_on` maps a call name to an error message; that call raises
      UpstreamError with it.
    """

    def __init__(self):
        # cus_id -> {id, email}
        self.customers: Dict[str, Dict[str, Any]] = {}
        # pi_id -> {id, client_secret, status, amount, currency, ...}
        self.payment_intents: Dict[str, Dict[str, Any]] = {}
        # price_id -> {unit_amount, currency, interval, product_name}
        self.prices: Dict[str, Dict[str, Any]] = {}
        # sub_id -> dict
        self.subscriptions: Dict[str, Dict[str, Any]] = {}
        # pm_id -> customer id
        self.attached_methods: Dict[str, str] = {}
        self.default_methods: Dict[str, str] = {}
        self.requires_action_methods: set = set()
        self.fail_on: Dict[str, str] = {}
        self.calls: List[Tuple[str, Dict[str, Any]]] = []
        # simple counters
        self._counter: int = 0

    # ----------------------- helpers -----------------------

    def _next(self, prefix: str) -> str:
        self._counter += 1
        return f"{prefix}_test_{self._counter}"

    def _record(self, name: str, **kwargs: Any) -> None:
        self.calls.append((name, kwargs))
        if name in self.fail_on:
            raise UpstreamError(self.fail_on[name])

    def call_names(self) -> List[str]:
        return [name for name, _ in self.calls]

    def _new_intent(self, *, amount: int, currency: str, customer_id: Optional[str], metadata: Optional[Dict[str, str]]) -> Dict[str, Any]:
        pid = self._next("pi")
        pi = {
            "id": pid,
            "client_secret": f"{pid}_secret_fake",
            "status": "requires_payment_method",
            "amount": amount,
            "currency": currency,
            "customer": customer_id,
            "metadata": dict(metadata or {}),
        }
        self.payment_intents[pid] = pi
        return pi

    @staticmethod
    def _public(pi: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        if not pi:
            return None
        return {"id": pi["id"], "client_secret": pi["client_secret"], "status": pi["status"]}

    # --------------------- customers -----------------------

    async def find_customer_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        self._record("find_customer_by_email", email=email)
        for entry in self.customers.values():
            if entry.get("email") == email:
                return dict(entry)
        return None

    async def create_customer(self, *, email: Optional[str]) -> Dict[str, Any]:
        self._record("create_customer", email=email)
        cid = self._next("cus")
        self.customers[cid] = {"id": cid, "email": email}
        return dict(self.customers[cid])

    # ------------------- one-time charges ------------------

    async def create_payment_intent(
        self,
        *,
        amount: int,
        currency: str,
        customer_id: Optional[str] = None,
        receipt_email: Optional[str] = None,
        metadata: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        self._record(
            "create_payment_intent",
            amount=amount,
            currency=currency,
            customer_id=customer_id,
            receipt_email=receipt_email,
            metadata=dict(metadata or {}),
        )
        pi = self._new_intent(amount=amount, currency=currency, customer_id=customer_id, metadata=metadata)
        return self._public(pi)

    async def confirm_payment_intent(self, *, payment_intent_id: str, payment_method_id: str) -> Dict[str, Any]:
        self._record("confirm_payment_intent", payment_intent_id=payment_intent_id, payment_method_id=payment_method_id)
        pi = self.payment_intents[payment_intent_id]
        pi["status"] = "requires_action" if payment_method_id in self.requires_action_methods else "succeeded"
        return self._public(pi)

    # -------------------- payment methods ------------------

    async def attach_payment_method(self, *, payment_method_id: str, customer_id: str) -> None:
        self._record("attach_payment_method", payment_method_id=payment_method_id, customer_id=customer_id)
        self.attached_methods[payment_method_id] = customer_id

    async def set_default_payment_method(self, *, customer_id: str, payment_method_id: str) -> None:
        self._record("set_default_payment_method", customer_id=customer_id, payment_method_id=payment_method_id)
        self.default_methods[customer_id] = payment_method_id

    # ------------------- subscriptions ---------------------

    async def create_price(self, *, unit_amount: int, currency: str, interval: str, product_name: str) -> str:
        self._record(
            "create_price",
            unit_amount=unit_amount,
            currency=currency,
            interval=interval,
            product_name=product_name,
        )
        pid = self._next("price")
        self.prices[pid] = {
            "unit_amount": unit_amount,
            "currency": currency,
            "interval": interval,
            "product_name": product_name,
        }
        return pid

    async def create_subscription(
        self,
        *,
        customer_id: str,
        price_id: str,
        payment_method_types: Optional[List[str]] = None,
        default_payment_method: Optional[str] = None,
        metadata: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        self._record(
            "create_subscription",
            customer_id=customer_id,
            price_id=price_id,
            payment_method_types=payment_method_types,
            default_payment_method=default_payment_method,
            metadata=dict(metadata or {}),
        )
        price = self.prices.get(price_id) or {"unit_amount": 1000, "currency": "usd"}
        pi = None
        if price["unit_amount"] > 0:
            pi = self._new_intent(
                amount=price["unit_amount"],
                currency=price["currency"],
                customer_id=customer_id,
                metadata=metadata,
            )
        sid = self._next("sub")
        sub = {
            "id": sid,
            "status": "incomplete" if pi else "active",
            "customer": customer_id,
            "items": {"data": [{"price": price_id, "quantity": 1}]},
            "metadata": dict(metadata or {}),
            "payment_intent_id": pi["id"] if pi else None,
        }
        self.subscriptions[sid] = sub
        return {
            "id": sid,
            "status": sub["status"],
            "customer": customer_id,
            "payment_intent": self._public(pi),
        }
