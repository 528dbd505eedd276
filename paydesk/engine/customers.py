# paydesk/engine/customers.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

import structlog

from paydesk.payments.types import PaymentProvider

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CustomerIdentity:
    id: str
    email: Optional[str] = None


class CustomerResolver:
    """
    Find-or-create a processor customer for one request.

    The lookup and the create are two separate processor calls with no lock
    between them: two concurrent first requests for the same email can both
    miss and both create, leaving duplicate customers at the processor. That
    is accepted; the processor stays the source of truth and nothing is kept
    locally.
    """

    def __init__(self, provider: PaymentProvider):
        self.provider = provider

    async def resolve(self, email: Optional[str] = None) -> CustomerIdentity:
        if email:
            found = await self.provider.find_customer_by_email(email)
            if found:
                log.info("customer.reused", customer_id=found["id"])
                return CustomerIdentity(id=found["id"], email=found.get("email") or email)

        created = await self.provider.create_customer(email=email)
        log.info("customer.created", customer_id=created["id"], anonymous=email is None)
        return CustomerIdentity(id=created["id"], email=created.get("email") or email)
