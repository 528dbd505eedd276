# paydesk/engine/validation.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Optional, AbstractSet

from paydesk.core.settings import ALLOWED_CURRENCIES
from paydesk.engine.errors import ValidationError


@dataclass(frozen=True)
class NormalizedCharge:
    amount: int             # minor units (cents)
    currency: str           # lower-case allow-listed code
    email: Optional[str] = None
    reference: Optional[str] = None


def validate_amount(amount: Any) -> int:
    # bool is an int subclass; "true" is not an amount
    if amount is None or isinstance(amount, bool):
        raise ValidationError("Invalid amount", reason="InvalidAmount")
    if isinstance(amount, float):
        if not amount.is_integer():
            raise ValidationError("Amount must be a whole number of minor units", reason="InvalidAmount")
        amount = int(amount)
    if not isinstance(amount, int):
        raise ValidationError("Invalid amount", reason="InvalidAmount")
    if amount <= 0:
        raise ValidationError("Amount must be greater than zero", reason="InvalidAmount")
    return amount


def validate_currency(
    currency: Any,
    *,
    default: str,
    allowed: AbstractSet[str] = ALLOWED_CURRENCIES,
) -> str:
    """
    Lower-cases and allow-list checks a currency code.
    Absent or blank currency falls back to `default`; an unlisted one is never accepted.
    """
    if currency is None or (isinstance(currency, str) and not currency.strip()):
        currency = default
    if not isinstance(currency, str):
        raise ValidationError("Invalid currency", reason="InvalidCurrency")
    code = currency.strip().lower()
    if code not in allowed:
        raise ValidationError(f"Unsupported currency '{currency}'", reason="InvalidCurrency")
    return code


def validate_email(email: Any, *, required: bool) -> Optional[str]:
    if email is None or email == "":
        if required:
            raise ValidationError("Invalid email", reason="InvalidEmail")
        return None
    if not isinstance(email, str) or not email.strip() or "@" not in email:
        raise ValidationError("Invalid email", reason="InvalidEmail")
    return email.strip()


def normalize_reference(reference: Any) -> Optional[str]:
    if reference is None or reference == "":
        return None
    return str(reference)


def normalize_charge(
    *,
    amount: Any,
    currency: Any,
    email: Any = None,
    reference: Any = None,
    default_currency: str,
    require_email: bool,
) -> NormalizedCharge:
    """Pure: returns the normalized charge or raises ValidationError."""
    return NormalizedCharge(
        amount=validate_amount(amount),
        currency=validate_currency(currency, default=default_currency),
        email=validate_email(email, required=require_email),
        reference=normalize_reference(reference),
    )
