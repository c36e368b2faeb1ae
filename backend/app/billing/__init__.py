"""Subscription billing domain package."""
from .gateway import BillingGateway, BillingProviderError, StripeBillingGateway, WebhookSignatureError
from .models import (
    BillingEvent,
    BillingEventType,
    CancellationResult,
    CheckoutSessionSnapshot,
    ReconcileOutcome,
    ReconcileResult,
    SubscriptionSnapshot,
)
from .service import CheckoutService, SubscriptionReconciler

__all__ = [
    "BillingEvent",
    "BillingEventType",
    "BillingGateway",
    "BillingProviderError",
    "CancellationResult",
    "CheckoutService",
    "CheckoutSessionSnapshot",
    "ReconcileOutcome",
    "ReconcileResult",
    "StripeBillingGateway",
    "SubscriptionReconciler",
    "SubscriptionSnapshot",
    "WebhookSignatureError",
]
