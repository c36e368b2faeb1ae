"""Static plan table and the price-to-plan lookup."""
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Dict, Mapping, Optional

from .models import PlanDefinition, PlanKey

logger = logging.getLogger(__name__)


# Paid limits are bounded so "unlimited" tiers still have a ceiling.
PLAN_CATALOG: Dict[PlanKey, PlanDefinition] = {
    PlanKey.FREE: PlanDefinition(
        key=PlanKey.FREE,
        display_name="Free",
        price=Decimal("0"),
        catalogs_limit=1,
        products_per_catalog_limit=3,
        features=(
            "1 catalog",
            "3 products per catalog",
            "Custom URL",
            "No time limit",
        ),
    ),
    PlanKey.PRO: PlanDefinition(
        key=PlanKey.PRO,
        display_name="Pro",
        price=Decimal("29.90"),
        catalogs_limit=1,
        products_per_catalog_limit=100,
        features=(
            "1 catalog",
            "Unlimited products",
            "Custom URL",
            "Priority support",
        ),
    ),
    PlanKey.PREMIUM: PlanDefinition(
        key=PlanKey.PREMIUM,
        display_name="Premium",
        price=Decimal("79.90"),
        catalogs_limit=50,
        products_per_catalog_limit=100,
        features=(
            "Unlimited catalogs",
            "Unlimited products",
            "Custom URL",
            "Priority support",
        ),
    ),
}


def get_plan_definition(plan_key: PlanKey) -> PlanDefinition:
    """Return a plan definition, raising if unsupported."""

    try:
        return PLAN_CATALOG[plan_key]
    except KeyError as exc:  # pragma: no cover - guarded by static catalog
        raise KeyError(f"Unknown plan key: {plan_key}") from exc


def parse_plan(value: object) -> Optional[PlanKey]:
    """Return the plan named by ``value`` or ``None`` when it is not a plan."""

    if isinstance(value, PlanKey):
        return value
    if not isinstance(value, str):
        return None
    try:
        return PlanKey(value.strip().lower())
    except ValueError:
        return None


def build_price_plan_map(*, price_id_pro: str, price_id_premium: str) -> Mapping[str, PlanKey]:
    """Map provider price identifiers to plans, skipping unconfigured ones."""

    mapping: Dict[str, PlanKey] = {}
    for plan_key, price_id in ((PlanKey.PRO, price_id_pro), (PlanKey.PREMIUM, price_id_premium)):
        if price_id:
            mapping[price_id] = plan_key
        else:
            logger.warning("No provider price id configured for plan %s", plan_key.value)
    return mapping
