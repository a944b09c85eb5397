"""Facade combining subscription validation, persistence and quota metering."""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Callable, Optional, Union

from .catalog import get_plan_definition
from .models import EntitlementStatus, PlanType, SubscriptionRecord
from .store import EntitlementStore
from .validation import DEFAULT_EXPIRING_SOON_DAYS, is_active, validate_subscription

if TYPE_CHECKING:
    from ..feature_gates.quota import QuotaGuard

logger = logging.getLogger("entitlements")

SessionValidator = Callable[[datetime], bool]


def _never_authenticated(now: datetime) -> bool:
    return False


class EntitlementService:
    """The only entitlement surface the rest of the application calls.

    Mutating operations run under the store's single-writer lock so the
    read-decide-persist sequence is indivisible. ``get_status`` reads
    without locking.
    """

    def __init__(
        self,
        store: EntitlementStore,
        quota_guard: QuotaGuard,
        *,
        session_validator: Optional[SessionValidator] = None,
        clock: Optional[Callable[[], datetime]] = None,
        expiring_soon_days: int = DEFAULT_EXPIRING_SOON_DAYS,
    ) -> None:
        self._store = store
        self._quota_guard = quota_guard
        self._session_validator = session_validator or _never_authenticated
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._expiring_soon_days = max(expiring_soon_days, 0)

    @property
    def quota_guard(self) -> QuotaGuard:
        return self._quota_guard

    def get_status(self, now: Optional[datetime] = None) -> EntitlementStatus:
        current = now or self._clock()
        return self._build_status(self._store.get(), current)

    def apply_purchase(
        self,
        plan_type: Union[PlanType, str],
        customer_ref: str,
        token: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> EntitlementStatus:
        """Replace the record with a freshly signed paid subscription.

        Renewals start from ``now``; remaining days of a previous purchase
        are not carried over.
        """

        plan = get_plan_definition(plan_type)
        current = now or self._clock()
        record = EntitlementStore.create_with_checksum(
            plan.key,
            current + timedelta(days=plan.duration_days),
            customer_ref,
            token,
            current,
        )
        with self._store.exclusive():
            self._store.save(record)
            logger.info("Applied %s purchase expires_at=%s", plan.key.value, record.expires_at)
            return self._build_status(record, current)

    def reset_to_free(self, now: Optional[datetime] = None) -> EntitlementStatus:
        current = now or self._clock()
        record = SubscriptionRecord.default()
        with self._store.exclusive():
            self._store.save(record)
            logger.info("Subscription reset to free plan")
            return self._build_status(record, current)

    def check_validity(self, now: Optional[datetime] = None) -> EntitlementStatus:
        """Downgrade an expired or tampered paid record and report the result."""

        current = now or self._clock()
        with self._store.exclusive():
            record = self._store.get()
            downgraded = self._quota_guard.reset_if_expired(record, current)
            if downgraded is not None:
                self._store.save(downgraded)
                record = downgraded
            return self._build_status(record, current)

    def guarded_convert(
        self,
        is_authenticated_session: Optional[bool] = None,
        now: Optional[datetime] = None,
    ) -> int:
        """Meter one conversion, returning the unprivileged calls left today.

        Raises ``QuotaExceededError`` when an unprivileged caller has used up
        the daily budget. When ``is_authenticated_session`` is omitted the
        injected session validator decides.
        """

        current = now or self._clock()
        if is_authenticated_session is None:
            is_authenticated_session = self._session_validator(current)
        with self._store.exclusive():
            privileged = bool(is_authenticated_session) or is_active(self._store.get(), current)
            return self._quota_guard.check_and_consume(current, privileged)

    def _build_status(self, record: SubscriptionRecord, now: datetime) -> EntitlementStatus:
        validation = validate_subscription(record, now, expiring_soon_days=self._expiring_soon_days)
        usage = self._quota_guard.evaluate(now)
        return EntitlementStatus(
            plan_type=record.plan_type,
            is_active=validation.is_valid,
            days_remaining=validation.days_remaining,
            expires_at=record.expires_at,
            today_usage=usage.count,
            max_daily_usage=usage.limit,
            is_expiring_soon=validation.is_expiring_soon,
            inactive_reason=validation.reason.value if validation.reason else None,
        )


__all__ = ["EntitlementService", "SessionValidator"]
