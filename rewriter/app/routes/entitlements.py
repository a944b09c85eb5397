"""API routes exposing subscription status and usage metering."""
from __future__ import annotations

from fastapi import APIRouter, Depends

from ..entitlements import EntitlementError, EntitlementService, EntitlementStatus
from ..schemas.entitlements import ConsumeResponse, PurchaseRequest
from ..services.entitlements import get_entitlement_service

router = APIRouter(prefix="/api/entitlements", tags=["entitlements"])


@router.get("/status", response_model=EntitlementStatus)
def get_subscription_status(
    *,
    service: EntitlementService = Depends(get_entitlement_service),
) -> EntitlementStatus:
    return service.get_status()


@router.post("/purchase", response_model=EntitlementStatus)
def apply_purchase(
    payload: PurchaseRequest,
    *,
    service: EntitlementService = Depends(get_entitlement_service),
) -> EntitlementStatus:
    try:
        return service.apply_purchase(
            payload.plan_type,
            payload.stripe_customer_id,
            payload.verification_token,
        )
    except EntitlementError as exc:
        raise exc.to_http_exception() from exc


@router.post("/reset", response_model=EntitlementStatus)
def reset_subscription(
    *,
    service: EntitlementService = Depends(get_entitlement_service),
) -> EntitlementStatus:
    try:
        return service.reset_to_free()
    except EntitlementError as exc:
        raise exc.to_http_exception() from exc


@router.post("/check-validity", response_model=EntitlementStatus)
def check_subscription_validity(
    *,
    service: EntitlementService = Depends(get_entitlement_service),
) -> EntitlementStatus:
    try:
        return service.check_validity()
    except EntitlementError as exc:
        raise exc.to_http_exception() from exc


@router.post("/consume", response_model=ConsumeResponse)
def consume_conversion(
    *,
    service: EntitlementService = Depends(get_entitlement_service),
) -> ConsumeResponse:
    # Privilege comes from the stored session, never from the request.
    try:
        remaining = service.guarded_convert()
    except EntitlementError as exc:
        raise exc.to_http_exception() from exc
    return ConsumeResponse(remaining=remaining, status=service.get_status())
