from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Optional, Type, Any

from paydesk.payments.types import PaymentProvider


@dataclass(frozen=True)
class ConfirmationResult:
    status: str
    client_secret: Optional[str]


class ConfirmationStrategy(ABC):
    @abstractmethod
    async def prepare(
        self, provider: PaymentProvider, *, customer_id: str, payment_method_id: Optional[str]
    ) -> Optional[str]:
        """
        Runs before the subscription is created.
        Returns the payment method to use as the subscription default, if any.
        """
        raise NotImplementedError

    @abstractmethod
    async def finalize(
        self, provider: PaymentProvider, *, subscription: Dict[str, Any], payment_method_id: Optional[str]
    ) -> ConfirmationResult:
        """
        Runs after the subscription is created; decides what the caller gets back.
        """
        raise NotImplementedError


class ClientConfirmation(ConfirmationStrategy):
    """The browser confirms the first invoice's payment with the client secret."""

    async def prepare(self, provider, *, customer_id, payment_method_id):
        return None

    async def finalize(self, provider, *, subscription, payment_method_id):
        pi = subscription.get("payment_intent") or {}
        return ConfirmationResult(status=subscription["status"], client_secret=pi.get("client_secret"))


class ServerConfirmation(ConfirmationStrategy):
    """
    Attach the supplied method, make it the invoice default, then confirm the
    first payment here. The returned status is the payment's terminal state.
    """

    async def prepare(self, provider, *, customer_id, payment_method_id):
        await provider.attach_payment_method(payment_method_id=payment_method_id, customer_id=customer_id)
        await provider.set_default_payment_method(customer_id=customer_id, payment_method_id=payment_method_id)
        return payment_method_id

    async def finalize(self, provider, *, subscription, payment_method_id):
        pi = subscription.get("payment_intent")
        if not pi or not pi.get("id"):
            # nothing to charge on the first invoice
            return ConfirmationResult(status=subscription["status"], client_secret=None)
        confirmed = await provider.confirm_payment_intent(
            payment_intent_id=pi["id"], payment_method_id=payment_method_id
        )
        status = confirmed.get("status") or subscription["status"]
        # 3DS and friends still need the browser
        secret = confirmed.get("client_secret") if status == "requires_action" else None
        return ConfirmationResult(status=status, client_secret=secret)


CONFIRMATION: Dict[str, Type[ConfirmationStrategy]] = {
    "client": ClientConfirmation,
    "server": ServerConfirmation,
}


def build_confirmation(mode: str) -> ConfirmationStrategy:
    cls = CONFIRMATION.get(mode) or ClientConfirmation
    return cls()
