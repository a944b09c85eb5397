"""Daily call quota enforcement backed by the entitlement store."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, tzinfo
from typing import Optional

from ..entitlements.exceptions import QuotaExceededError
from ..entitlements.models import SubscriptionRecord
from ..entitlements.store import EntitlementStore
from ..entitlements.validation import INTEGRITY_VIOLATIONS, inactive_reason

logger = logging.getLogger(__name__)


def date_key(now: datetime, tz: Optional[tzinfo] = None) -> str:
    """Return the ``YYYY-MM-DD`` ledger key for ``now``.

    With ``tz`` unset, aware datetimes are converted to the machine's local
    time and naive datetimes are taken as already local.
    """

    if tz is not None:
        local = now.astimezone(tz)
    elif now.tzinfo is not None:
        local = now.astimezone()
    else:
        local = now
    return local.strftime("%Y-%m-%d")


@dataclass(frozen=True)
class QuotaEvaluation:
    """Read-only view of today's quota position."""

    date_key: str
    limit: int
    count: int

    @property
    def remaining(self) -> int:
        return max(0, self.limit - self.count)

    @property
    def exhausted(self) -> bool:
        return self.count >= self.limit

    def to_dict(self) -> dict[str, int | str]:
        return {
            "date_key": self.date_key,
            "limit": self.limit,
            "count": self.count,
            "remaining": self.remaining,
        }


class QuotaGuard:
    """Enforces a per-calendar-day call budget for unprivileged callers."""

    def __init__(self, store: EntitlementStore, *, daily_limit: int, tz: Optional[tzinfo] = None) -> None:
        if daily_limit < 0:
            raise ValueError("daily_limit must be >= 0")
        self._store = store
        self._daily_limit = daily_limit
        self._tz = tz

    @property
    def daily_limit(self) -> int:
        return self._daily_limit

    def date_key(self, now: datetime) -> str:
        return date_key(now, self._tz)

    def evaluate(self, now: datetime) -> QuotaEvaluation:
        today = self.date_key(now)
        return QuotaEvaluation(date_key=today, limit=self._daily_limit, count=self._store.get_usage(today))

    def check_and_consume(self, now: datetime, is_privileged: bool) -> int:
        """Record one call for today and return the calls left.

        Privileged callers are never rejected but are still counted. A
        rejected call is not counted, so retrying it does not double charge.
        The increment is persisted before this returns, ahead of the caller's
        downstream action.
        """

        with self._store.exclusive():
            today = self.date_key(now)
            count = self._store.get_usage(today)
            if not is_privileged and count >= self._daily_limit:
                logger.warning(
                    "Daily quota exhausted date=%s count=%s limit=%s",
                    today,
                    count,
                    self._daily_limit,
                )
                raise QuotaExceededError(limit=self._daily_limit, count=count)

            self._store.set_usage(today, count + 1)

        remaining = max(0, self._daily_limit - count - 1)
        logger.debug(
            "Quota consumed date=%s count=%s privileged=%s remaining=%s",
            today,
            count + 1,
            is_privileged,
            remaining,
        )
        return remaining

    def reset_if_expired(self, record: SubscriptionRecord, now: datetime) -> Optional[SubscriptionRecord]:
        """Return a fresh ``Free`` record when a paid ``record`` no longer grants entitlement."""

        if record.is_free:
            return None
        reason = inactive_reason(record, now)
        if reason is None:
            return None
        if reason in INTEGRITY_VIOLATIONS:
            logger.warning("Paid subscription failed integrity check (%s); downgrading", reason.value)
        else:
            logger.info("Paid subscription inactive (%s); downgrading", reason.value)
        return SubscriptionRecord.default()


__all__ = ["QuotaEvaluation", "QuotaGuard", "date_key"]
