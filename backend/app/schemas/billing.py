"""API schemas for billing endpoints."""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..billing import CancellationResult, CheckoutSessionSnapshot
from ..entitlements import PlanDefinition, PlanKey


class PlanResponse(BaseModel):
    key: PlanKey
    name: str
    price: Decimal
    catalogs_limit: int = Field(alias="catalogsLimit")
    products_per_catalog_limit: int = Field(alias="productsPerCatalogLimit")
    features: List[str]

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_definition(cls, definition: PlanDefinition) -> "PlanResponse":
        return cls(
            key=definition.key,
            name=definition.display_name,
            price=definition.price,
            catalogs_limit=definition.catalogs_limit,
            products_per_catalog_limit=definition.products_per_catalog_limit,
            features=list(definition.features),
        )


class PlanListResponse(BaseModel):
    plans: List[PlanResponse]


class CheckoutRequest(BaseModel):
    plan: str


class CheckoutResponse(BaseModel):
    session_id: str = Field(alias="sessionId")
    url: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_session(cls, session: CheckoutSessionSnapshot) -> "CheckoutResponse":
        return cls(session_id=session.id, url=session.url)


class CheckoutConfirmRequest(BaseModel):
    session_id: str = Field(alias="sessionId")

    model_config = ConfigDict(populate_by_name=True)


class CheckoutConfirmResponse(BaseModel):
    success: bool
    plan: PlanKey


class CancelResponse(BaseModel):
    message: str
    plan: PlanKey
    canceled_at: Optional[datetime] = Field(alias="canceledAt", default=None)

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_result(cls, result: CancellationResult) -> "CancelResponse":
        return cls(message=result.message, plan=result.plan, canceled_at=result.canceled_at)


class WebhookAck(BaseModel):
    received: bool = True
