"""Subscription reconciliation and checkout against the billing provider.

Every transition is a last-write-wins assignment keyed by ``user_id``, so a
replayed or reordered webhook converges on the same profile state.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, Dict, Mapping, Optional, Protocol

from ..entitlements import PlanKey, get_plan_definition, parse_plan
from ..errors import ExternalProviderError, NotFound, ValidationError
from ..profiles.models import UserProfile
from .gateway import BillingGateway, BillingProviderError
from .models import (
    BillingEvent,
    BillingEventType,
    CancellationResult,
    CheckoutSessionSnapshot,
    ReconcileOutcome,
    ReconcileResult,
    SubscriptionSnapshot,
    metadata_user_id,
)

logger = logging.getLogger("billing")

PROVIDER_NAME = "stripe"
SETTLED_PAYMENT_STATUSES = frozenset({"paid", "no_payment_required"})


class BillingProfileStore(Protocol):
    def get(self, user_id: str) -> Optional[UserProfile]:
        ...

    def update(self, user_id: str, fields: Mapping[str, object]) -> UserProfile:
        ...

    def find_by_billing_customer(self, customer_id: str) -> Optional[UserProfile]:
        ...


@dataclass
class SubscriptionReconciler:
    """Applies billing lifecycle events and user cancellations to profiles."""

    profiles: BillingProfileStore
    gateway: BillingGateway
    price_plans: Mapping[str, PlanKey] = field(default_factory=dict)
    fallback_plan: PlanKey = PlanKey.PRO
    clock: Callable[[], datetime] = field(default=lambda: datetime.now(timezone.utc))

    # Webhook events -----------------------------------------------------

    def handle_event(self, event: BillingEvent) -> ReconcileResult:
        logger.info("Billing event received type=%s id=%s", event.type, event.id)
        handlers = {
            BillingEventType.CHECKOUT_COMPLETED: self._on_checkout_completed,
            BillingEventType.SUBSCRIPTION_CREATED: self._on_subscription_created,
            BillingEventType.SUBSCRIPTION_UPDATED: self._on_subscription_updated,
            BillingEventType.SUBSCRIPTION_DELETED: self._on_subscription_deleted,
        }
        handler = handlers.get(event.event_type)
        if handler is None:
            logger.info("Ignoring unhandled billing event type %s", event.type)
            return ReconcileResult(event_type=event.type, outcome=ReconcileOutcome.IGNORED)
        return handler(event)

    def resolve_plan(
        self,
        event_metadata: Mapping[str, str],
        subscription: Optional[SubscriptionSnapshot],
    ) -> PlanKey:
        """Event metadata, then subscription metadata, then price id, then the fallback."""

        plan = parse_plan(event_metadata.get("plan"))
        if plan is None and subscription is not None:
            plan = parse_plan(subscription.metadata.get("plan"))
            if plan is None and subscription.price_id:
                plan = self.price_plans.get(subscription.price_id)
        if plan is None:
            logger.warning(
                "Could not identify plan for subscription %s; defaulting to %s",
                subscription.id if subscription else None,
                self.fallback_plan.value,
            )
            plan = self.fallback_plan
        return plan

    def _lookup_subscription(self, subscription_id: str) -> Optional[SubscriptionSnapshot]:
        try:
            return self.gateway.retrieve_subscription(subscription_id)
        except BillingProviderError as exc:
            logger.warning("Could not retrieve subscription %s: %s", subscription_id, exc.message)
            return None

    def _resolve_checkout_subscription(self, event: BillingEvent) -> Optional[SubscriptionSnapshot]:
        if event.subscription is not None:
            return event.subscription
        if event.subscription_id:
            subscription = self._lookup_subscription(event.subscription_id)
            if subscription is not None:
                return subscription

        customer_id = event.customer_id
        if event.session_id:
            session: Optional[CheckoutSessionSnapshot]
            try:
                session = self.gateway.retrieve_checkout_session(event.session_id, expand_subscription=True)
            except BillingProviderError as exc:
                logger.warning("Could not re-fetch checkout session %s: %s", event.session_id, exc.message)
                session = None
            if session is not None:
                if session.subscription is not None:
                    return session.subscription
                if session.subscription_id:
                    subscription = self._lookup_subscription(session.subscription_id)
                    if subscription is not None:
                        return subscription
                customer_id = customer_id or session.customer_id

        if customer_id:
            try:
                active = self.gateway.list_active_subscriptions(customer_id)
            except BillingProviderError as exc:
                logger.warning("Could not list subscriptions for customer %s: %s", customer_id, exc.message)
                active = []
            if active:
                return active[0]
        return None

    def _apply(self, user_id: str, fields: Dict[str, object], event: BillingEvent) -> ReconcileResult:
        try:
            self.profiles.update(user_id, fields)
        except NotFound:
            logger.warning("Billing event %s references unknown user %s", event.type, user_id)
            return ReconcileResult(event_type=event.type, outcome=ReconcileOutcome.UNRESOLVED, user_id=user_id)
        plan = fields.get("plan")
        logger.info("Billing state for %s set to plan=%s", user_id, getattr(plan, "value", plan))
        return ReconcileResult(
            event_type=event.type,
            outcome=ReconcileOutcome.APPLIED,
            user_id=user_id,
            plan=plan if isinstance(plan, PlanKey) else None,
        )

    def _on_checkout_completed(self, event: BillingEvent) -> ReconcileResult:
        subscription = self._resolve_checkout_subscription(event)
        user_id = metadata_user_id(event.metadata)
        if user_id is None and subscription is not None:
            user_id = metadata_user_id(subscription.metadata)
        if user_id is None:
            logger.warning("Checkout %s completed without a user id in metadata", event.session_id)
            return ReconcileResult(event_type=event.type, outcome=ReconcileOutcome.UNRESOLVED)

        fields: Dict[str, object] = {"plan": self.resolve_plan(event.metadata, subscription)}
        customer_id = event.customer_id or (subscription.customer_id if subscription else None)
        if customer_id:
            fields["billing_customer_id"] = customer_id
        if subscription is not None:
            fields["billing_subscription_id"] = subscription.id
        return self._apply(user_id, fields, event)

    def _on_subscription_created(self, event: BillingEvent) -> ReconcileResult:
        subscription = event.subscription
        user_id = metadata_user_id(event.metadata)
        if subscription is None or user_id is None:
            logger.info("Subscription %s created without a user id; waiting for checkout", event.subscription_id)
            return ReconcileResult(event_type=event.type, outcome=ReconcileOutcome.UNRESOLVED)
        if subscription.is_canceled:
            logger.info("Subscription %s is already %s; not granting a plan", subscription.id, subscription.status)
            return ReconcileResult(event_type=event.type, outcome=ReconcileOutcome.OBSERVED, user_id=user_id)

        fields: Dict[str, object] = {
            "plan": self.resolve_plan({}, subscription),
            "billing_subscription_id": subscription.id,
        }
        if subscription.customer_id:
            fields["billing_customer_id"] = subscription.customer_id
        return self._apply(user_id, fields, event)

    def _on_subscription_updated(self, event: BillingEvent) -> ReconcileResult:
        status = event.subscription.status if event.subscription else None
        logger.info("Subscription %s updated status=%s", event.subscription_id, status)
        return ReconcileResult(
            event_type=event.type,
            outcome=ReconcileOutcome.OBSERVED,
            user_id=metadata_user_id(event.metadata),
        )

    def _on_subscription_deleted(self, event: BillingEvent) -> ReconcileResult:
        profile = None
        user_id = metadata_user_id(event.metadata)
        if user_id:
            profile = self.profiles.get(user_id)
        if profile is None and event.customer_id:
            profile = self.profiles.find_by_billing_customer(event.customer_id)
        if profile is None:
            logger.warning(
                "Dropping deletion of subscription %s: no user for metadata=%s customer=%s",
                event.subscription_id,
                user_id,
                event.customer_id,
            )
            return ReconcileResult(event_type=event.type, outcome=ReconcileOutcome.UNRESOLVED)

        current = profile.billing_subscription_id
        if current and event.subscription_id and current != event.subscription_id:
            logger.info(
                "Ignoring deletion of stale subscription %s; %s is current for %s",
                event.subscription_id,
                current,
                profile.id,
            )
            return ReconcileResult(event_type=event.type, outcome=ReconcileOutcome.OBSERVED, user_id=profile.id)
        return self._apply(profile.id, {"plan": PlanKey.FREE, "billing_subscription_id": None}, event)

    # User-initiated flows ----------------------------------------------

    def _profile(self, user_id: str) -> UserProfile:
        profile = self.profiles.get(user_id)
        if profile is None:
            raise NotFound("profile")
        return profile

    def _downgrade(self, user_id: str) -> None:
        self.profiles.update(user_id, {"plan": PlanKey.FREE, "billing_subscription_id": None})

    def cancel(self, user_id: str) -> CancellationResult:
        """Cancel immediately; local state changes only after the provider agrees."""

        profile = self._profile(user_id)
        if not profile.plan.is_paid:
            raise ValidationError("You are already on the free plan.", field="plan")

        subscription_id = profile.billing_subscription_id
        if not subscription_id:
            logger.warning("User %s has no subscription id; downgrading locally", user_id)
            self._downgrade(user_id)
            return CancellationResult(message="Your plan was changed to Free.", already_reconciled=True)

        try:
            subscription = self.gateway.retrieve_subscription(subscription_id)
            if subscription.is_canceled:
                self._downgrade(user_id)
                return CancellationResult(message="Your plan was changed to Free.", already_reconciled=True)
            self.gateway.cancel_subscription(subscription_id)
        except BillingProviderError as exc:
            if exc.not_found:
                logger.info("Subscription %s no longer exists upstream; downgrading %s", subscription_id, user_id)
                self._downgrade(user_id)
                return CancellationResult(message="Your plan was changed to Free.", already_reconciled=True)
            raise ExternalProviderError(PROVIDER_NAME, "Could not cancel the subscription. Try again later.") from exc

        self._downgrade(user_id)
        logger.info("Subscription %s canceled by %s", subscription_id, user_id)
        return CancellationResult(
            message="Subscription canceled. Your plan is now Free and you will not be charged again.",
            canceled_at=self.clock(),
        )

    def confirm_checkout(self, user_id: str, session_id: str) -> UserProfile:
        """Apply a completed checkout from the redirect page without waiting for the webhook."""

        if not session_id or not session_id.strip():
            raise ValidationError("A checkout session id is required.", field="session_id")
        try:
            session = self.gateway.retrieve_checkout_session(session_id.strip(), expand_subscription=True)
        except BillingProviderError as exc:
            if exc.not_found:
                raise NotFound("checkout session") from exc
            raise ExternalProviderError(PROVIDER_NAME, "Could not confirm the checkout session.") from exc

        if metadata_user_id(session.metadata) != user_id:
            raise NotFound("checkout session")
        if session.status != "complete" or session.payment_status not in SETTLED_PAYMENT_STATUSES:
            raise ValidationError("The checkout session has not been paid.", field="session_id")

        event = BillingEvent(
            type=BillingEventType.CHECKOUT_COMPLETED.value,
            metadata=session.metadata,
            customer_id=session.customer_id,
            session_id=session.id,
            subscription_id=session.subscription_id,
            subscription=session.subscription,
        )
        self.handle_event(event)
        return self._profile(user_id)


@dataclass
class CheckoutService:
    """Starts provider-hosted checkout for a paid plan."""

    profiles: BillingProfileStore
    gateway: BillingGateway
    app_base_url: str
    currency: str = "brl"
    price_ids: Mapping[PlanKey, str] = field(default_factory=dict)

    @property
    def success_url(self) -> str:
        return f"{self.app_base_url}/dashboard/account?checkout=success&session_id={{CHECKOUT_SESSION_ID}}"

    @property
    def cancel_url(self) -> str:
        return f"{self.app_base_url}/dashboard/account?checkout=canceled"

    def create_checkout(self, user_id: str, plan_value: str) -> CheckoutSessionSnapshot:
        plan = parse_plan(plan_value)
        if plan is None:
            raise ValidationError(f"Unknown plan '{plan_value}'.", field="plan")
        if not plan.is_paid:
            raise ValidationError("The free plan does not require checkout.", field="plan")
        profile = self.profiles.get(user_id)
        if profile is None:
            raise NotFound("profile")

        definition = get_plan_definition(plan)
        try:
            session = self.gateway.create_checkout_session(
                user_id=user_id,
                plan=plan,
                price_id=self.price_ids.get(plan),
                unit_amount=int(definition.price * Decimal(100)),
                currency=self.currency,
                product_name=f"{definition.display_name} plan",
                success_url=self.success_url,
                cancel_url=self.cancel_url,
                customer_email=profile.email,
            )
        except BillingProviderError as exc:
            raise ExternalProviderError(PROVIDER_NAME, "Could not start checkout. Try again later.") from exc
        logger.info("Checkout session %s created for %s plan=%s", session.id, user_id, plan.value)
        return session


__all__ = ["BillingProfileStore", "CheckoutService", "PROVIDER_NAME", "SubscriptionReconciler"]
