"""Domain models for plans and entitlement decisions."""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Tuple


class PlanKey(str, Enum):
    """Canonical identifiers for subscription plans."""

    FREE = "free"
    PRO = "pro"
    PREMIUM = "premium"

    @property
    def is_paid(self) -> bool:
        return self is not PlanKey.FREE


class EntitledResource(str, Enum):
    """Resources whose creation is limited per plan."""

    CATALOG = "catalogs"
    PRODUCT = "products per catalog"


@dataclass(frozen=True)
class PlanDefinition:
    """Static description of a plan tier and its limits."""

    key: PlanKey
    display_name: str
    price: Decimal
    catalogs_limit: int
    products_per_catalog_limit: int
    features: Tuple[str, ...] = ()

    def limit_for(self, resource: EntitledResource) -> int:
        if resource is EntitledResource.CATALOG:
            return self.catalogs_limit
        return self.products_per_catalog_limit


@dataclass(frozen=True)
class QuotaDecision:
    """Outcome of a quota check for one resource."""

    allowed: bool
    limit: int
    current_count: int
    plan: PlanKey
    resource: EntitledResource

    @property
    def remaining(self) -> int:
        return max(self.limit - self.current_count, 0)
