# paydesk/payments/types.py
from __future__ import annotations
from typing import Protocol, Optional, Dict, Any, List


class PaymentProvider(Protocol):
    # --- customers ---
    async def find_customer_by_email(self, email: str) -> Optional[Dict[str, Any]]: ...
    async def create_customer(self, *, email: Optional[str]) -> Dict[str, Any]: ...

    # --- one-time charges ---
    async def create_payment_intent(
        self, *, amount: int, currency: str, customer_id: Optional[str],
        receipt_email: Optional[str], metadata: Optional[Dict[str, str]] = None
    ) -> Dict[str, Any]: ...

    async def confirm_payment_intent(self, *, payment_intent_id: str, payment_method_id: str) -> Dict[str, Any]: ...

    # --- payment methods ---
    async def attach_payment_method(self, *, payment_method_id: str, customer_id: str) -> None: ...
    async def set_default_payment_method(self, *, customer_id: str, payment_method_id: str) -> None: ...

    # --- subscriptions ---
    async def create_price(
        self, *, unit_amount: int, currency: str, interval: str, product_name: str
    ) -> str: ...

    async def create_subscription(
        self, *, customer_id: str, price_id: str,
        payment_method_types: Optional[List[str]],
        default_payment_method: Optional[str],
        metadata: Optional[Dict[str, str]] = None
    ) -> Dict[str, Any]: ...
