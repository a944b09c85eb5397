"""API schemas for entitlement endpoints."""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..entitlements import EntitlementStatus


class PurchaseRequest(BaseModel):
    plan_type: str = Field(alias="planType")
    stripe_customer_id: str = Field(alias="stripeCustomerId", min_length=1)
    verification_token: Optional[str] = Field(alias="verificationToken", default=None)

    model_config = ConfigDict(populate_by_name=True)


class ConsumeResponse(BaseModel):
    remaining: int = Field(ge=0)
    status: EntitlementStatus

    model_config = ConfigDict(populate_by_name=True)
