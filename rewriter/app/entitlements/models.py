"""Domain models for the local subscription record and entitlement status."""
from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PlanType(str, Enum):
    """Canonical identifiers for subscription plans."""

    FREE = "free"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an RFC-3339 timestamp, returning ``None`` when absent or malformed.

    Naive values are interpreted as UTC so they can be compared with the
    aware datetimes produced by the service clock.
    """

    if not value or not isinstance(value, str):
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    return ensure_aware(parsed)


def format_timestamp(value: datetime) -> str:
    """Render ``value`` as an RFC-3339 string in UTC."""

    return ensure_aware(value).astimezone(timezone.utc).isoformat()


def ensure_aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class SubscriptionRecord(BaseModel):
    """Persisted subscription state.

    Timestamps are kept as the raw stored strings so that a malformed value
    survives a load/save cycle unchanged and the checksum is always computed
    over exactly what is on disk.
    """

    plan_type: PlanType = PlanType.FREE
    expires_at: Optional[str] = None
    customer_ref: Optional[str] = Field(default=None, alias="stripe_customer_id")
    verification_token: Optional[str] = None
    purchased_at: Optional[str] = None
    checksum: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @field_validator("plan_type", mode="before")
    @classmethod
    def _normalize_plan(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @classmethod
    def default(cls) -> "SubscriptionRecord":
        """Return the fresh ``Free`` record used for missing or corrupt storage."""

        return cls(plan_type=PlanType.FREE)

    @property
    def is_free(self) -> bool:
        return self.plan_type == PlanType.FREE

    def to_document(self) -> dict:
        """Serialize using the on-disk key names, omitting absent fields."""

        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class EntitlementStatus(BaseModel):
    """Snapshot of entitlement and usage returned by every facade operation."""

    plan_type: PlanType
    is_active: bool
    days_remaining: int = Field(ge=0)
    expires_at: Optional[str] = None
    today_usage: int = Field(ge=0)
    max_daily_usage: int = Field(ge=0)
    is_expiring_soon: bool = False
    inactive_reason: Optional[str] = None

    model_config = ConfigDict(frozen=True)


__all__ = [
    "EntitlementStatus",
    "PlanType",
    "SubscriptionRecord",
    "ensure_aware",
    "format_timestamp",
    "parse_timestamp",
]
