"""Rules deciding whether a subscription record currently grants entitlement."""
from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from .integrity import verify_checksum
from .models import SubscriptionRecord, ensure_aware, parse_timestamp

DEFAULT_EXPIRING_SOON_DAYS = 3
_SECONDS_PER_DAY = 24 * 60 * 60


class InactiveReason(str, Enum):
    """Why a record does not grant entitlement, in evaluation order."""

    FREE_PLAN = "free_plan"
    CHECKSUM_MISMATCH = "checksum_mismatch"
    MISSING_FIELDS = "missing_fields"
    INVALID_EXPIRY = "invalid_expiry"
    EXPIRED = "expired"
    INVALID_PURCHASE_TIME = "invalid_purchase_time"
    PURCHASE_IN_FUTURE = "purchase_in_future"


# Reported through ``is_active == False`` only; the caller cannot repair tampering.
INTEGRITY_VIOLATIONS = frozenset({InactiveReason.CHECKSUM_MISMATCH, InactiveReason.MISSING_FIELDS})


def inactive_reason(record: SubscriptionRecord, now: datetime) -> Optional[InactiveReason]:
    """Return the first rule ``record`` fails at ``now``, or ``None`` if active."""

    if record.is_free:
        return InactiveReason.FREE_PLAN
    if not verify_checksum(record):
        return InactiveReason.CHECKSUM_MISMATCH
    if not record.customer_ref or not record.purchased_at:
        return InactiveReason.MISSING_FIELDS

    current = ensure_aware(now)
    expires_at = parse_timestamp(record.expires_at)
    if expires_at is None:
        return InactiveReason.INVALID_EXPIRY
    if expires_at <= current:
        return InactiveReason.EXPIRED

    purchased_at = parse_timestamp(record.purchased_at)
    if purchased_at is None:
        return InactiveReason.INVALID_PURCHASE_TIME
    # A purchase stamped after "now" means the clock was rolled back.
    if purchased_at > current:
        return InactiveReason.PURCHASE_IN_FUTURE
    return None


def is_active(record: SubscriptionRecord, now: datetime) -> bool:
    return inactive_reason(record, now) is None


def days_remaining(record: SubscriptionRecord, now: datetime) -> int:
    """Whole days left until ``expires_at``; ``0`` when missing, malformed or past."""

    expires_at = parse_timestamp(record.expires_at)
    if expires_at is None:
        return 0
    seconds = (expires_at - ensure_aware(now)).total_seconds()
    return max(0, math.floor(seconds / _SECONDS_PER_DAY))


@dataclass(frozen=True)
class SubscriptionValidation:
    """Summary used by the UI to decide between warnings and downgrades."""

    is_valid: bool
    is_expired: bool
    is_expiring_soon: bool
    days_remaining: int
    reason: Optional[InactiveReason] = None
    message: Optional[str] = None

    def to_dict(self) -> dict[str, object]:
        return {
            "is_valid": self.is_valid,
            "is_expired": self.is_expired,
            "is_expiring_soon": self.is_expiring_soon,
            "days_remaining": self.days_remaining,
            "reason": self.reason.value if self.reason else None,
            "message": self.message,
        }


def validate_subscription(
    record: SubscriptionRecord,
    now: datetime,
    *,
    expiring_soon_days: int = DEFAULT_EXPIRING_SOON_DAYS,
) -> SubscriptionValidation:
    """Classify ``record`` as free, expired/invalid, expiring soon or healthy."""

    reason = inactive_reason(record, now)
    if reason is InactiveReason.FREE_PLAN:
        return SubscriptionValidation(
            is_valid=False,
            is_expired=False,
            is_expiring_soon=False,
            days_remaining=0,
            reason=reason,
            message="Free plan",
        )
    if reason is not None:
        return SubscriptionValidation(
            is_valid=False,
            is_expired=True,
            is_expiring_soon=False,
            days_remaining=0,
            reason=reason,
            message="Subscription has expired",
        )

    remaining = days_remaining(record, now)
    expiring_soon = remaining <= expiring_soon_days
    return SubscriptionValidation(
        is_valid=True,
        is_expired=False,
        is_expiring_soon=expiring_soon,
        days_remaining=remaining,
        message=f"Subscription expires in {remaining} day(s)" if expiring_soon else None,
    )


__all__ = [
    "DEFAULT_EXPIRING_SOON_DAYS",
    "INTEGRITY_VIOLATIONS",
    "InactiveReason",
    "SubscriptionValidation",
    "days_remaining",
    "inactive_reason",
    "is_active",
    "validate_subscription",
]
