"""Stripe adapter; the rest of the application never sees ``stripe`` types."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Mapping, Optional, Protocol

import stripe

from ..entitlements.models import PlanKey
from .models import BillingEvent, CheckoutSessionSnapshot, SubscriptionSnapshot

logger = logging.getLogger("billing")


class BillingProviderError(Exception):
    """A failed provider call; ``not_found`` marks a missing remote resource."""

    def __init__(self, message: str, *, not_found: bool = False, code: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.not_found = not_found
        self.code = code


class WebhookSignatureError(Exception):
    """The webhook payload or its signature could not be verified."""


class BillingGateway(Protocol):
    def parse_event(self, payload: bytes, signature: Optional[str]) -> BillingEvent:
        ...

    def create_checkout_session(
        self,
        *,
        user_id: str,
        plan: PlanKey,
        price_id: Optional[str],
        unit_amount: int,
        currency: str,
        product_name: str,
        success_url: str,
        cancel_url: str,
        customer_email: Optional[str] = None,
    ) -> CheckoutSessionSnapshot:
        ...

    def retrieve_checkout_session(
        self, session_id: str, *, expand_subscription: bool = False
    ) -> CheckoutSessionSnapshot:
        ...

    def retrieve_subscription(self, subscription_id: str) -> SubscriptionSnapshot:
        ...

    def list_active_subscriptions(self, customer_id: str) -> List[SubscriptionSnapshot]:
        ...

    def cancel_subscription(self, subscription_id: str) -> SubscriptionSnapshot:
        ...


def _as_mapping(obj: Any) -> Mapping[str, Any]:
    if obj is None:
        return {}
    if isinstance(obj, Mapping):
        return obj
    to_dict = getattr(obj, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    return {}


def _ref_id(value: Any) -> Optional[str]:
    """Return the id of a field that is either an id string or an expanded object."""

    if value is None:
        return None
    if isinstance(value, str):
        return value or None
    identifier = _as_mapping(value).get("id")
    return str(identifier) if identifier else None


def _metadata(value: Any) -> Dict[str, str]:
    return {str(key): str(item) for key, item in _as_mapping(value).items() if item is not None}


def subscription_from_payload(data: Any) -> SubscriptionSnapshot:
    payload = _as_mapping(data)
    items = _as_mapping(payload.get("items")).get("data") or []
    price_id = None
    if items:
        price_id = _ref_id(_as_mapping(items[0]).get("price"))
    return SubscriptionSnapshot(
        id=str(payload.get("id")),
        status=str(payload.get("status") or "active"),
        customer_id=_ref_id(payload.get("customer")),
        price_id=price_id,
        metadata=_metadata(payload.get("metadata")),
    )


def checkout_session_from_payload(data: Any) -> CheckoutSessionSnapshot:
    payload = _as_mapping(data)
    raw_subscription = payload.get("subscription")
    expanded = None
    if raw_subscription is not None and not isinstance(raw_subscription, str):
        expanded = subscription_from_payload(raw_subscription)
    return CheckoutSessionSnapshot(
        id=str(payload.get("id")),
        url=payload.get("url"),
        status=payload.get("status"),
        payment_status=payload.get("payment_status"),
        customer_id=_ref_id(payload.get("customer")),
        subscription_id=_ref_id(raw_subscription),
        subscription=expanded,
        metadata=_metadata(payload.get("metadata")),
    )


def event_from_payload(event: Any) -> BillingEvent:
    payload = _as_mapping(event)
    event_type = str(payload.get("type") or "")
    obj = _as_mapping(_as_mapping(payload.get("data")).get("object"))
    if event_type.startswith("customer.subscription."):
        subscription = subscription_from_payload(obj)
        return BillingEvent(
            id=payload.get("id"),
            type=event_type,
            metadata=subscription.metadata,
            customer_id=subscription.customer_id,
            subscription_id=subscription.id,
            subscription=subscription,
        )
    if event_type.startswith("checkout.session."):
        session = checkout_session_from_payload(obj)
        return BillingEvent(
            id=payload.get("id"),
            type=event_type,
            metadata=session.metadata,
            customer_id=session.customer_id,
            session_id=session.id,
            subscription_id=session.subscription_id,
            subscription=session.subscription,
        )
    return BillingEvent(id=payload.get("id"), type=event_type, metadata=_metadata(obj.get("metadata")))


class StripeBillingGateway:
    """Calls Stripe with a per-instance API key instead of the module global."""

    def __init__(self, *, secret_key: str, webhook_secret: str) -> None:
        self._secret_key = secret_key
        self._webhook_secret = webhook_secret

    @contextmanager
    def _provider_call(self, operation: str, **context: Any) -> Iterator[None]:
        try:
            yield
        except stripe.StripeError as exc:
            code = getattr(exc, "code", None)
            not_found = code == "resource_missing" or getattr(exc, "http_status", None) == 404
            logger.error(
                "Stripe call failed",
                extra={"stripe_operation": operation, "stripe_code": code, "error": str(exc), **context},
            )
            message = getattr(exc, "user_message", None) or str(exc) or "Billing provider error"
            raise BillingProviderError(message, not_found=not_found, code=code) from exc

    def parse_event(self, payload: bytes, signature: Optional[str]) -> BillingEvent:
        if not signature:
            raise WebhookSignatureError("Missing Stripe-Signature header")
        if not self._webhook_secret:
            raise WebhookSignatureError("Webhook secret is not configured")
        try:
            event = stripe.Webhook.construct_event(payload, signature, self._webhook_secret)
        except ValueError as exc:
            raise WebhookSignatureError("Invalid webhook payload") from exc
        except stripe.SignatureVerificationError as exc:
            raise WebhookSignatureError("Invalid webhook signature") from exc
        return event_from_payload(event)

    def create_checkout_session(
        self,
        *,
        user_id: str,
        plan: PlanKey,
        price_id: Optional[str],
        unit_amount: int,
        currency: str,
        product_name: str,
        success_url: str,
        cancel_url: str,
        customer_email: Optional[str] = None,
    ) -> CheckoutSessionSnapshot:
        metadata = {"user_id": user_id, "plan": plan.value}
        if price_id:
            line_item: Dict[str, Any] = {"price": price_id, "quantity": 1}
        else:
            line_item = {
                "price_data": {
                    "currency": currency,
                    "product_data": {"name": product_name},
                    "recurring": {"interval": "month"},
                    "unit_amount": unit_amount,
                },
                "quantity": 1,
            }
        params: Dict[str, Any] = {
            "mode": "subscription",
            "line_items": [line_item],
            "success_url": success_url,
            "cancel_url": cancel_url,
            "client_reference_id": user_id,
            "metadata": metadata,
            "subscription_data": {"metadata": metadata},
        }
        if customer_email:
            params["customer_email"] = customer_email
        with self._provider_call("checkout.create", user_id=user_id):
            session = stripe.checkout.Session.create(api_key=self._secret_key, **params)
        return checkout_session_from_payload(session)

    def retrieve_checkout_session(
        self, session_id: str, *, expand_subscription: bool = False
    ) -> CheckoutSessionSnapshot:
        expand = ["subscription"] if expand_subscription else []
        with self._provider_call("checkout.retrieve", session_id=session_id):
            session = stripe.checkout.Session.retrieve(session_id, expand=expand, api_key=self._secret_key)
        return checkout_session_from_payload(session)

    def retrieve_subscription(self, subscription_id: str) -> SubscriptionSnapshot:
        with self._provider_call("subscription.retrieve", subscription_id=subscription_id):
            subscription = stripe.Subscription.retrieve(subscription_id, api_key=self._secret_key)
        return subscription_from_payload(subscription)

    def list_active_subscriptions(self, customer_id: str) -> List[SubscriptionSnapshot]:
        with self._provider_call("subscription.list", customer_id=customer_id):
            result = stripe.Subscription.list(
                customer=customer_id, status="active", limit=10, api_key=self._secret_key
            )
        return [subscription_from_payload(item) for item in _as_mapping(result).get("data") or []]

    def cancel_subscription(self, subscription_id: str) -> SubscriptionSnapshot:
        with self._provider_call("subscription.cancel", subscription_id=subscription_id):
            subscription = stripe.Subscription.cancel(subscription_id, api_key=self._secret_key)
        return subscription_from_payload(subscription)


__all__ = [
    "BillingGateway",
    "BillingProviderError",
    "StripeBillingGateway",
    "WebhookSignatureError",
    "checkout_session_from_payload",
    "event_from_payload",
    "subscription_from_payload",
]
