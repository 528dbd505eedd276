"""Unit tests for amount / currency / email normalization."""

import pytest

from paydesk.engine.errors import ValidationError
from paydesk.engine.validation import (
    normalize_charge,
    validate_amount,
    validate_currency,
    validate_email,
)


@pytest.mark.parametrize("amount", [None, 0, -1, -1000, "1000", "abc", True, 10.5, [], {}])
def test_invalid_amounts_rejected(amount):
    with pytest.raises(ValidationError) as exc:
        validate_amount(amount)
    assert exc.value.reason == "InvalidAmount"


def test_integral_float_amount_is_converted():
    assert validate_amount(1000.0) == 1000
    assert isinstance(validate_amount(1000.0), int)


def test_currency_is_lower_cased():
    assert validate_currency("USD", default="usd") == "usd"
    assert validate_currency(" Gbp ", default="usd") == "gbp"


def test_missing_currency_uses_default():
    assert validate_currency(None, default="eur") == "eur"
    assert validate_currency("", default="eur") == "eur"


@pytest.mark.parametrize("currency", ["jpy", "US", "dollars", 840, ["usd"]])
def test_unlisted_currency_rejected(currency):
    with pytest.raises(ValidationError) as exc:
        validate_currency(currency, default="usd")
    assert exc.value.reason == "InvalidCurrency"


def test_email_rules():
    assert validate_email("a@b.com", required=True) == "a@b.com"
    assert validate_email(None, required=False) is None
    for bad in (None, "", "no-at-sign", 42, "   "):
        with pytest.raises(ValidationError) as exc:
            validate_email(bad, required=True)
        assert exc.value.reason == "InvalidEmail"


def test_optional_email_still_checked_when_present():
    with pytest.raises(ValidationError):
        validate_email("not-an-email", required=False)


def test_normalize_charge():
    charge = normalize_charge(
        amount=1000,
        currency="EUR",
        email="a@b.com",
        reference=12345,
        default_currency="usd",
        require_email=True,
    )
    assert charge.amount == 1000
    assert charge.currency == "eur"
    assert charge.email == "a@b.com"
    assert charge.reference == "12345"
