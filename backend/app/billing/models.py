"""Domain models for subscription billing."""
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..entitlements.models import PlanKey

# Subscription statuses after which the provider will not bill again.
TERMINAL_SUBSCRIPTION_STATUSES = frozenset({"canceled", "incomplete_expired"})


class BillingEventType(str, Enum):
    """Webhook event types that drive plan reconciliation."""

    CHECKOUT_COMPLETED = "checkout.session.completed"
    SUBSCRIPTION_CREATED = "customer.subscription.created"
    SUBSCRIPTION_UPDATED = "customer.subscription.updated"
    SUBSCRIPTION_DELETED = "customer.subscription.deleted"


class ReconcileOutcome(str, Enum):
    APPLIED = "applied"
    OBSERVED = "observed"
    UNRESOLVED = "unresolved"
    IGNORED = "ignored"


def metadata_user_id(metadata: Mapping[str, str]) -> Optional[str]:
    # Sessions created by older clients used ``userId``.
    value = metadata.get("user_id") or metadata.get("userId")
    return str(value) if value else None


class SubscriptionSnapshot(BaseModel):
    """Provider subscription state as seen at one point in time."""

    id: str
    status: str = "active"
    customer_id: Optional[str] = None
    price_id: Optional[str] = None
    metadata: Dict[str, str] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)

    @property
    def is_canceled(self) -> bool:
        return self.status in TERMINAL_SUBSCRIPTION_STATUSES


class CheckoutSessionSnapshot(BaseModel):
    id: str
    url: Optional[str] = None
    status: Optional[str] = None
    payment_status: Optional[str] = None
    customer_id: Optional[str] = None
    subscription_id: Optional[str] = None
    subscription: Optional[SubscriptionSnapshot] = None
    metadata: Dict[str, str] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)


class BillingEvent(BaseModel):
    """A verified webhook event reduced to what reconciliation needs.

    ``metadata`` is the event object's own metadata; for subscription events
    ``subscription`` is the object itself.
    """

    id: Optional[str] = None
    type: str
    metadata: Dict[str, str] = Field(default_factory=dict)
    customer_id: Optional[str] = None
    session_id: Optional[str] = None
    subscription_id: Optional[str] = None
    subscription: Optional[SubscriptionSnapshot] = None

    model_config = ConfigDict(frozen=True)

    @property
    def event_type(self) -> Optional[BillingEventType]:
        try:
            return BillingEventType(self.type)
        except ValueError:
            return None


class ReconcileResult(BaseModel):
    event_type: str
    outcome: ReconcileOutcome
    user_id: Optional[str] = None
    plan: Optional[PlanKey] = None

    model_config = ConfigDict(frozen=True)


class CancellationResult(BaseModel):
    plan: PlanKey = PlanKey.FREE
    message: str
    canceled_at: Optional[datetime] = None
    already_reconciled: bool = False

    model_config = ConfigDict(frozen=True)


__all__ = [
    "BillingEvent",
    "BillingEventType",
    "CancellationResult",
    "CheckoutSessionSnapshot",
    "ReconcileOutcome",
    "ReconcileResult",
    "SubscriptionSnapshot",
    "TERMINAL_SUBSCRIPTION_STATUSES",
    "metadata_user_id",
]
