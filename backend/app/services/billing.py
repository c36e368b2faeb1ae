"""Application wiring for the billing services."""
from __future__ import annotations

from functools import lru_cache
from typing import Mapping

from backend import app_context

from ..billing import BillingGateway, CheckoutService, SubscriptionReconciler
from ..entitlements import PlanKey, build_price_plan_map


@lru_cache(maxsize=4)
def _price_plans(price_id_pro: str, price_id_premium: str) -> Mapping[str, PlanKey]:
    return build_price_plan_map(price_id_pro=price_id_pro, price_id_premium=price_id_premium)


def get_billing_gateway() -> BillingGateway:
    return app_context.get_billing_gateway()


def get_subscription_reconciler() -> SubscriptionReconciler:
    billing = app_context.get_config().billing
    return SubscriptionReconciler(
        profiles=app_context.get_profile_repository(),
        gateway=app_context.get_billing_gateway(),
        price_plans=_price_plans(billing.price_id_pro, billing.price_id_premium),
    )


def get_checkout_service() -> CheckoutService:
    config = app_context.get_config()
    price_ids = {
        plan_key: price_id
        for plan_key, price_id in (
            (PlanKey.PRO, config.billing.price_id_pro),
            (PlanKey.PREMIUM, config.billing.price_id_premium),
        )
        if price_id
    }
    return CheckoutService(
        profiles=app_context.get_profile_repository(),
        gateway=app_context.get_billing_gateway(),
        app_base_url=config.app_base_url,
        currency=config.billing.currency,
        price_ids=price_ids,
    )


__all__ = ["get_billing_gateway", "get_checkout_service", "get_subscription_reconciler"]
