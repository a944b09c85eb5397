"""Entitlement domain models, persistence and services."""

from .exceptions import EntitlementError, InvalidPlanError, QuotaExceededError, StoreError
from .models import EntitlementStatus, PlanType, SubscriptionRecord
from .catalog import PLAN_CATALOG, PlanDefinition, coerce_plan_type, get_plan_definition
from .integrity import compute_checksum, verify_checksum
from .validation import (
    INTEGRITY_VIOLATIONS,
    InactiveReason,
    SubscriptionValidation,
    days_remaining,
    inactive_reason,
    is_active,
    validate_subscription,
)
from .repository import DocumentBackend, InMemoryDocument, JsonFileDocument
from .store import EntitlementStore
from .service import EntitlementService, SessionValidator

__all__ = [
    "PLAN_CATALOG",
    "INTEGRITY_VIOLATIONS",
    "DocumentBackend",
    "EntitlementError",
    "EntitlementService",
    "EntitlementStatus",
    "EntitlementStore",
    "InMemoryDocument",
    "InactiveReason",
    "InvalidPlanError",
    "JsonFileDocument",
    "PlanDefinition",
    "PlanType",
    "QuotaExceededError",
    "SessionValidator",
    "StoreError",
    "SubscriptionRecord",
    "SubscriptionValidation",
    "coerce_plan_type",
    "compute_checksum",
    "days_remaining",
    "get_plan_definition",
    "inactive_reason",
    "is_active",
    "validate_subscription",
    "verify_checksum",
]
