"""
Entitlement error hierarchy.

Provides:
- EntitlementError: base for all failures surfaced by the entitlement core
- StoreError: the document backend could not persist a change
- InvalidPlanError: purchase of an unknown or free plan
- QuotaExceededError: the daily conversion budget is used up
"""
from __future__ import annotations

from typing import Any, ClassVar, Dict

from fastapi import HTTPException, status


class EntitlementError(Exception):
    """Base exception for entitlement and metering failures."""

    error_code: ClassVar[str] = "entitlement_error"
    status_code: ClassVar[int] = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.error_code, "message": self.message}

    def to_http_exception(self) -> HTTPException:
        return HTTPException(status_code=self.status_code, detail=self.to_dict())


class StoreError(EntitlementError):
    """Raised when the document backend fails to write; the old state stays visible."""

    error_code = "store_error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, *, operation: str = "save"):
        self.operation = operation
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {**super().to_dict(), "operation": self.operation}


class InvalidPlanError(EntitlementError):
    """Raised before any mutation when the plan is not purchasable."""

    error_code = "invalid_plan"

    def __init__(self, plan_type: object):
        self.plan_type = plan_type
        super().__init__(f"Invalid plan type: {plan_type}")

    def to_dict(self) -> Dict[str, Any]:
        return {**super().to_dict(), "plan_type": str(self.plan_type)}


class QuotaExceededError(EntitlementError):
    """
    Raised when an unprivileged caller has used the whole daily budget.

    The ledger is left untouched, so ``count`` equals ``limit`` or more.
    """

    error_code = "quota_exceeded"
    status_code = status.HTTP_429_TOO_MANY_REQUESTS

    def __init__(self, *, limit: int, count: int):
        self.limit = limit
        self.count = count
        super().__init__(f"Daily usage limit ({limit}) reached.")

    def to_dict(self) -> Dict[str, Any]:
        return {**super().to_dict(), "limit": self.limit, "count": self.count}


__all__ = [
    "EntitlementError",
    "InvalidPlanError",
    "QuotaExceededError",
    "StoreError",
]
