"""Plan quota evaluation for catalog and product creation."""
from __future__ import annotations

from typing import Protocol

from ..entitlements import EntitledResource, PlanKey, QuotaDecision, get_plan_definition
from ..errors import QuotaExceeded


class PlanHolder(Protocol):
    """Anything exposing the plan a quota is evaluated against."""

    plan: PlanKey


def evaluate_quota(plan: PlanKey, resource: EntitledResource, current_count: int) -> QuotaDecision:
    """Decide whether one more ``resource`` fits in ``plan``.

    The comparison is strict: a limit of ``N`` admits creation while fewer
    than ``N`` items exist.
    """

    limit = get_plan_definition(plan).limit_for(resource)
    count = max(int(current_count), 0)
    return QuotaDecision(
        allowed=count < limit,
        limit=limit,
        current_count=count,
        plan=plan,
        resource=resource,
    )


def check_catalog_quota(profile: PlanHolder, current_count: int) -> QuotaDecision:
    return evaluate_quota(profile.plan, EntitledResource.CATALOG, current_count)


def check_product_quota(profile: PlanHolder, current_count_in_catalog: int) -> QuotaDecision:
    return evaluate_quota(profile.plan, EntitledResource.PRODUCT, current_count_in_catalog)


def assert_quota(decision: QuotaDecision) -> QuotaDecision:
    """Raise :class:`QuotaExceeded` when the decision denies creation."""

    if not decision.allowed:
        raise QuotaExceeded(
            resource=decision.resource.value,
            limit=decision.limit,
            plan=decision.plan.value,
        )
    return decision
