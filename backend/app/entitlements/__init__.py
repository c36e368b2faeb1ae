"""Plan catalog and entitlement models."""

from .catalog import PLAN_CATALOG, build_price_plan_map, get_plan_definition, parse_plan
from .models import EntitledResource, PlanDefinition, PlanKey, QuotaDecision

__all__ = [
    "PLAN_CATALOG",
    "EntitledResource",
    "PlanDefinition",
    "PlanKey",
    "QuotaDecision",
    "build_price_plan_map",
    "get_plan_definition",
    "parse_plan",
]
