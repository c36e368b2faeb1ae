from __future__ import annotations

import hashlib
import hmac
import json
import time

import pytest
import stripe

from backend.app.billing import BillingProviderError, StripeBillingGateway, WebhookSignatureError
from backend.app.billing.gateway import (
    checkout_session_from_payload,
    event_from_payload,
    subscription_from_payload,
)
from backend.app.entitlements import PlanKey

WEBHOOK_SECRET = "whsec_test"


def _signed(payload: dict, secret: str = WEBHOOK_SECRET) -> tuple:
    body = json.dumps(payload)
    timestamp = int(time.time())
    digest = hmac.new(secret.encode(), f"{timestamp}.{body}".encode(), hashlib.sha256).hexdigest()
    return body.encode(), f"t={timestamp},v1={digest}"


def _subscription_payload(**overrides) -> dict:
    payload = {
        "id": "sub_1",
        "object": "subscription",
        "status": "active",
        "customer": "cus_1",
        "metadata": {"user_id": "u1", "plan": "pro"},
        "items": {"object": "list", "data": [{"id": "si_1", "price": {"id": "price_pro"}}]},
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def gateway() -> StripeBillingGateway:
    return StripeBillingGateway(secret_key="sk_test", webhook_secret=WEBHOOK_SECRET)


def test_subscription_from_payload_reads_price_and_metadata() -> None:
    snapshot = subscription_from_payload(_subscription_payload())

    assert snapshot.id == "sub_1"
    assert snapshot.customer_id == "cus_1"
    assert snapshot.price_id == "price_pro"
    assert snapshot.metadata == {"user_id": "u1", "plan": "pro"}
    assert snapshot.is_canceled is False


def test_checkout_session_with_expanded_subscription() -> None:
    session = checkout_session_from_payload(
        {
            "id": "cs_1",
            "customer": {"id": "cus_1"},
            "subscription": _subscription_payload(),
            "metadata": {"userId": "u1"},
        }
    )

    assert session.customer_id == "cus_1"
    assert session.subscription_id == "sub_1"
    assert session.subscription is not None
    assert session.subscription.price_id == "price_pro"


def test_event_from_payload_for_subscription_deleted() -> None:
    event = event_from_payload(
        {
            "id": "evt_1",
            "type": "customer.subscription.deleted",
            "data": {"object": _subscription_payload(status="canceled")},
        }
    )

    assert event.subscription_id == "sub_1"
    assert event.customer_id == "cus_1"
    assert event.metadata["user_id"] == "u1"
    assert event.subscription.is_canceled is True


def test_event_from_payload_for_unknown_type() -> None:
    event = event_from_payload({"id": "evt_2", "type": "invoice.paid", "data": {"object": {"id": "in_1"}}})

    assert event.type == "invoice.paid"
    assert event.event_type is None


def test_parse_event_verifies_signature(gateway: StripeBillingGateway) -> None:
    body, signature = _signed(
        {
            "id": "evt_1",
            "object": "event",
            "type": "checkout.session.completed",
            "data": {
                "object": {
                    "id": "cs_1",
                    "object": "checkout.session",
                    "customer": "cus_1",
                    "subscription": "sub_1",
                    "metadata": {"user_id": "u1", "plan": "pro"},
                }
            },
        }
    )

    event = gateway.parse_event(body, signature)

    assert event.type == "checkout.session.completed"
    assert event.session_id == "cs_1"
    assert event.subscription_id == "sub_1"
    assert event.metadata == {"user_id": "u1", "plan": "pro"}


def test_parse_event_rejects_tampered_body(gateway: StripeBillingGateway) -> None:
    body, signature = _signed({"id": "evt_1", "object": "event", "type": "invoice.paid", "data": {"object": {}}})
    tampered = body.replace(b"invoice.paid", b"checkout.session.completed")

    with pytest.raises(WebhookSignatureError):
        gateway.parse_event(tampered, signature)


def test_parse_event_requires_signature_header(gateway: StripeBillingGateway) -> None:
    with pytest.raises(WebhookSignatureError):
        gateway.parse_event(b"{}", None)


def test_parse_event_requires_configured_secret() -> None:
    gateway = StripeBillingGateway(secret_key="sk_test", webhook_secret="")

    with pytest.raises(WebhookSignatureError):
        gateway.parse_event(b"{}", "t=1,v1=abc")


def test_missing_remote_subscription_is_flagged(gateway: StripeBillingGateway, monkeypatch) -> None:
    def fake_retrieve(subscription_id, **kwargs):
        raise stripe.InvalidRequestError(
            f"No such subscription: '{subscription_id}'",
            "id",
            code="resource_missing",
            http_status=404,
        )

    monkeypatch.setattr(stripe.Subscription, "retrieve", fake_retrieve)

    with pytest.raises(BillingProviderError) as exc:
        gateway.retrieve_subscription("sub_gone")

    assert exc.value.not_found is True
    assert exc.value.code == "resource_missing"


def test_other_provider_errors_are_not_not_found(gateway: StripeBillingGateway, monkeypatch) -> None:
    def fake_cancel(subscription_id, **kwargs):
        raise stripe.APIConnectionError("network down")

    monkeypatch.setattr(stripe.Subscription, "cancel", fake_cancel)

    with pytest.raises(BillingProviderError) as exc:
        gateway.cancel_subscription("sub_1")

    assert exc.value.not_found is False


def test_checkout_session_sends_plan_metadata(gateway: StripeBillingGateway, monkeypatch) -> None:
    captured = {}

    def fake_create(**params):
        captured.update(params)
        return {"id": "cs_1", "url": "https://checkout.test/cs_1", "metadata": params["metadata"]}

    monkeypatch.setattr(stripe.checkout.Session, "create", fake_create)

    session = gateway.create_checkout_session(
        user_id="u1",
        plan=PlanKey.PRO,
        price_id=None,
        unit_amount=2990,
        currency="brl",
        product_name="Pro plan",
        success_url="https://shop.test/ok",
        cancel_url="https://shop.test/cancel",
    )

    assert session.url == "https://checkout.test/cs_1"
    assert captured["api_key"] == "sk_test"
    assert captured["mode"] == "subscription"
    assert captured["metadata"] == {"user_id": "u1", "plan": "pro"}
    assert captured["subscription_data"] == {"metadata": {"user_id": "u1", "plan": "pro"}}
    line_item = captured["line_items"][0]
    assert line_item["price_data"]["unit_amount"] == 2990
    assert line_item["price_data"]["recurring"] == {"interval": "month"}
