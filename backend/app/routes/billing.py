"""API routes exposing plans, checkout, cancellation and the billing webhook."""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from starlette.concurrency import run_in_threadpool

from ..billing import BillingGateway, CheckoutService, SubscriptionReconciler, WebhookSignatureError
from ..entitlements import PLAN_CATALOG
from ..identity import Identity
from ..schemas.billing import (
    CancelResponse,
    CheckoutConfirmRequest,
    CheckoutConfirmResponse,
    CheckoutRequest,
    CheckoutResponse,
    PlanListResponse,
    PlanResponse,
    WebhookAck,
)
from ..services.billing import get_billing_gateway, get_checkout_service, get_subscription_reconciler
from ..services.identity import get_current_identity

logger = logging.getLogger("billing")

router = APIRouter(prefix="/api/billing", tags=["billing"])


@router.get("/plans", response_model=PlanListResponse)
def list_plans() -> PlanListResponse:
    return PlanListResponse(plans=[PlanResponse.from_definition(d) for d in PLAN_CATALOG.values()])


@router.post("/checkout", response_model=CheckoutResponse)
def create_checkout(
    payload: CheckoutRequest,
    *,
    identity: Identity = Depends(get_current_identity),
    service: CheckoutService = Depends(get_checkout_service),
) -> CheckoutResponse:
    session = service.create_checkout(identity.user_id, payload.plan)
    return CheckoutResponse.from_session(session)


@router.post("/checkout/confirm", response_model=CheckoutConfirmResponse)
def confirm_checkout(
    payload: CheckoutConfirmRequest,
    *,
    identity: Identity = Depends(get_current_identity),
    reconciler: SubscriptionReconciler = Depends(get_subscription_reconciler),
) -> CheckoutConfirmResponse:
    profile = reconciler.confirm_checkout(identity.user_id, payload.session_id)
    return CheckoutConfirmResponse(success=True, plan=profile.plan)


@router.post("/cancel", response_model=CancelResponse)
def cancel_subscription(
    *,
    identity: Identity = Depends(get_current_identity),
    reconciler: SubscriptionReconciler = Depends(get_subscription_reconciler),
) -> CancelResponse:
    return CancelResponse.from_result(reconciler.cancel(identity.user_id))


@router.post("/webhook", response_model=WebhookAck)
async def receive_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(None, alias="Stripe-Signature"),
    *,
    gateway: BillingGateway = Depends(get_billing_gateway),
    reconciler: SubscriptionReconciler = Depends(get_subscription_reconciler),
) -> WebhookAck:
    payload = await request.body()
    try:
        event = gateway.parse_event(payload, stripe_signature)
    except WebhookSignatureError as exc:
        logger.warning("Rejected billing webhook: %s", exc)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    try:
        await run_in_threadpool(reconciler.handle_event, event)
    except Exception as exc:
        # A 5xx makes the provider redeliver; handlers are idempotent.
        logger.exception("Billing webhook %s failed", event.type)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Webhook processing failed",
        ) from exc
    return WebhookAck()
