"""Subscription orchestration: price shapes, customer reuse and confirmation paths."""

import pytest

from paydesk.engine.errors import UpstreamError, ValidationError
from paydesk.engine.subscriptions import SubscriptionOrchestrator
from paydesk.schemas.api_models import SubscriptionRequest


@pytest.fixture
def engine(fake, settings):
    return SubscriptionOrchestrator(provider=fake, settings=settings)


@pytest.fixture
def server_engine(fake, settings_factory):
    return SubscriptionOrchestrator(provider=fake, settings=settings_factory(SUBSCRIPTION_CONFIRM_MODE="server"))


def _req(**kw):
    return SubscriptionRequest.model_validate(kw)


async def test_dynamic_price_new_customer(engine, fake):
    res = await engine.create_subscription(
        _req(email="new@b.com", amount=500, currency="eur", interval="month")
    )

    names = fake.call_names()
    assert names.count("create_customer") == 1
    assert names.count("create_subscription") == 1
    assert names.index("create_customer") < names.index("create_subscription")
    assert names == ["find_customer_by_email", "create_customer", "create_price", "create_subscription"]

    price_call = fake.calls[2][1]
    assert price_call == {
        "unit_amount": 500,
        "currency": "eur",
        "interval": "month",
        "product_name": "Subscription",
    }
    assert res.status == "incomplete"
    assert res.clientSecret
    assert res.subscriptionId in fake.subscriptions


async def test_existing_customer_is_reused(engine, fake):
    existing = await fake.create_customer(email="known@b.com")
    fake.calls.clear()

    await engine.create_subscription(_req(email="known@b.com", priceId="price_basic"))

    assert fake.call_names() == ["find_customer_by_email", "create_subscription"]
    assert fake.calls[1][1]["customer_id"] == existing["id"]
    assert len(fake.customers) == 1


async def test_reference_priced_skips_price_creation(engine, fake):
    res = await engine.create_subscription(_req(email="a@b.com", priceId="price_basic", reference="camp-9"))

    assert "create_price" not in fake.call_names()
    sub_call = fake.calls[-1][1]
    assert sub_call["price_id"] == "price_basic"
    assert sub_call["metadata"] == {"reference": "camp-9"}
    assert res.reference == "camp-9"


async def test_anonymous_customer_without_email(engine, fake):
    await engine.create_subscription(_req(priceId="price_basic"))
    assert fake.call_names() == ["create_customer", "create_subscription"]
    assert fake.calls[0][1] == {"email": None}


async def test_interval_defaults_to_month(engine, fake):
    await engine.create_subscription(_req(email="a@b.com", amount=900))
    price_call = dict(fake.calls)["create_price"]
    assert price_call["interval"] == "month"
    assert price_call["currency"] == "usd"


async def test_interval_aliases(engine, fake):
    await engine.create_subscription(_req(email="a@b.com", amount=9900, currency="gbp", interval="annual", productName="Pro"))
    price_call = dict(fake.calls)["create_price"]
    assert price_call["interval"] == "year"
    assert price_call["product_name"] == "Pro"


async def test_payment_method_type_is_forwarded(engine, fake):
    await engine.create_subscription(_req(email="a@b.com", priceId="price_basic", paymentMethodType="sepa_debit"))
    assert fake.calls[-1][1]["payment_method_types"] == ["sepa_debit"]


@pytest.mark.parametrize(
    "body, reason",
    [
        ({"email": "a@b.com"}, "MissingPrice"),
        ({"email": "a@b.com", "amount": 0}, "InvalidAmount"),
        ({"email": "a@b.com", "amount": 500, "currency": "jpy"}, "InvalidCurrency"),
        ({"email": "a@b.com", "amount": 500, "interval": "fortnight"}, "InvalidInterval"),
        ({"email": "nope", "priceId": "price_basic"}, "InvalidEmail"),
        ({"email": "a@b.com", "amount": 500, "interval": 3}, "InvalidInterval"),
        ({"email": "a@b.com", "priceId": 123}, "InvalidPrice"),
        ({"email": "a@b.com", "priceId": ["price_basic"]}, "InvalidPrice"),
        ({"email": "a@b.com", "priceId": "   "}, "MissingPrice"),
        ({"email": "a@b.com", "amount": 500, "productName": {"name": "Club"}}, "InvalidProductName"),
        ({"email": "a@b.com", "priceId": "price_basic", "paymentMethodId": 42}, "InvalidPaymentMethod"),
        ({"email": "a@b.com", "priceId": "price_basic", "paymentMethodType": True}, "InvalidPaymentMethod"),
    ],
)
async def test_validation_happens_before_any_call(engine, fake, body, reason):
    with pytest.raises(ValidationError) as exc:
        await engine.create_subscription(_req(**body))
    assert exc.value.reason == reason
    assert fake.calls == []


async def test_server_confirmation_disabled_in_client_mode(engine, fake):
    with pytest.raises(ValidationError) as exc:
        await engine.create_subscription(_req(email="a@b.com", priceId="price_basic", paymentMethodId="pm_card_visa"))
    assert exc.value.reason == "ServerConfirmationDisabled"
    assert fake.calls == []


async def test_server_confirmation_path(server_engine, fake):
    res = await server_engine.create_subscription(
        _req(email="a@b.com", amount=1500, currency="usd", paymentMethodId="pm_card_visa")
    )

    assert fake.call_names() == [
        "find_customer_by_email",
        "create_customer",
        "attach_payment_method",
        "set_default_payment_method",
        "create_price",
        "create_subscription",
        "confirm_payment_intent",
    ]
    customer_id = next(iter(fake.customers))
    assert fake.attached_methods["pm_card_visa"] == customer_id
    assert fake.default_methods[customer_id] == "pm_card_visa"
    assert dict(fake.calls)["create_subscription"]["default_payment_method"] == "pm_card_visa"
    assert res.status == "succeeded"
    assert res.clientSecret is None


async def test_server_confirmation_needing_action_returns_secret(server_engine, fake):
    fake.requires_action_methods.add("pm_3ds")
    res = await server_engine.create_subscription(
        _req(email="a@b.com", priceId="price_basic", paymentMethodId="pm_3ds")
    )
    assert res.status == "requires_action"
    assert res.clientSecret


async def test_server_confirmation_without_charge(server_engine, fake):
    fake.prices["price_free"] = {"unit_amount": 0, "currency": "usd"}
    res = await server_engine.create_subscription(
        _req(email="a@b.com", priceId="price_free", paymentMethodId="pm_card_visa")
    )
    assert "confirm_payment_intent" not in fake.call_names()
    assert res.status == "active"


async def test_server_confirmation_requires_email(server_engine, fake):
    with pytest.raises(ValidationError) as exc:
        await server_engine.create_subscription(_req(priceId="price_basic", paymentMethodId="pm_card_visa"))
    assert exc.value.reason == "InvalidEmail"
    assert fake.calls == []


async def test_upstream_failure_leaves_customer_in_place(engine, fake):
    fake.fail_on["create_subscription"] = "No such price: 'price_gone'"
    with pytest.raises(UpstreamError) as exc:
        await engine.create_subscription(_req(email="a@b.com", priceId="price_gone"))

    assert str(exc.value) == "No such price: 'price_gone'"
    # no rollback
    assert len(fake.customers) == 1


def test_endpoint_success(client, fake):
    res = client.post(
        "/create-subscription",
        json={"email": "a@b.com", "amount": 500, "currency": "eur", "interval": "month"},
    )
    assert res.status_code == 200
    body = res.json()
    assert body["status"] == "incomplete"
    assert body["clientSecret"]
    assert body["subscriptionId"].startswith("sub_")


def test_endpoint_validation_error(client, fake):
    res = client.post("/create-subscription", json={"email": "a@b.com"})
    assert res.status_code == 400
    assert res.json()["detail"]["type"] == "MissingPrice"


def test_endpoint_upstream_error(client, fake):
    fake.fail_on["find_customer_by_email"] = "Invalid API Key provided"
    res = client.post("/create-subscription", json={"email": "a@b.com", "priceId": "price_basic"})
    assert res.status_code == 500
    assert res.json()["detail"] == {"type": "UpstreamError", "message": "Invalid API Key provided"}


@pytest.mark.parametrize(
    "body, reason",
    [
        ({"email": "a@b.com", "amount": 500, "interval": 3}, "InvalidInterval"),
        ({"email": "a@b.com", "priceId": 123}, "InvalidPrice"),
    ],
)
def test_endpoint_rejects_non_string_fields_with_typed_detail(client, fake, body, reason):
    res = client.post("/create-subscription", json=body)
    assert res.status_code == 400
    assert res.json()["detail"]["type"] == reason
    assert fake.calls == []
