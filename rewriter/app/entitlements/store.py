"""Persistence of the subscription record and the daily usage ledger."""
from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, Iterator, Optional

from pydantic import ValidationError

from .exceptions import StoreError
from .integrity import compute_checksum
from .models import PlanType, SubscriptionRecord, format_timestamp
from .repository import DocumentBackend

logger = logging.getLogger(__name__)

SUBSCRIPTION_KEY = "subscription"
REQUEST_COUNT_KEY = "request_count"


class EntitlementStore:
    """Reads and writes the single entitlement document.

    Every mutation is persisted immediately. Mutating sequences that read
    before they write must run inside :meth:`exclusive` so concurrent
    callers cannot act on the same stale value. Plain reads do not lock and
    only ever observe state the backend has already saved.
    """

    def __init__(self, backend: DocumentBackend) -> None:
        self._backend = backend
        self._write_lock = threading.RLock()

    @contextmanager
    def exclusive(self) -> Iterator["EntitlementStore"]:
        """Hold the store's single-writer lock for a read-modify-write sequence."""

        with self._write_lock:
            yield self

    def get(self) -> SubscriptionRecord:
        """Return the persisted record, or a fresh ``Free`` default."""

        raw = self._backend.get(SUBSCRIPTION_KEY)
        if raw is None:
            return SubscriptionRecord.default()
        if not isinstance(raw, dict):
            logger.warning("Ignoring malformed subscription payload of type %s", type(raw).__name__)
            return SubscriptionRecord.default()
        try:
            return SubscriptionRecord.model_validate(raw)
        except ValidationError as exc:
            logger.warning("Ignoring subscription payload that fails validation: %s", exc.error_count())
            return SubscriptionRecord.default()

    def save(self, record: SubscriptionRecord) -> None:
        with self._write_lock:
            self._commit(SUBSCRIPTION_KEY, record.to_document())

    @staticmethod
    def create_with_checksum(
        plan_type: PlanType,
        expires_at: Optional[datetime],
        customer_ref: Optional[str],
        token: Optional[str],
        purchased_at: Optional[datetime],
    ) -> SubscriptionRecord:
        """Build a record with its checksum stamped over the supplied fields."""

        unsigned = SubscriptionRecord(
            plan_type=plan_type,
            expires_at=format_timestamp(expires_at) if expires_at else None,
            customer_ref=customer_ref,
            verification_token=token,
            purchased_at=format_timestamp(purchased_at) if purchased_at else None,
        )
        return unsigned.model_copy(update={"checksum": compute_checksum(unsigned)})

    def usage_ledger(self) -> Dict[str, int]:
        """Return a copy of the ledger with malformed entries dropped."""

        raw = self._backend.get(REQUEST_COUNT_KEY)
        if not isinstance(raw, dict):
            if raw is not None:
                logger.warning("Ignoring malformed request_count payload of type %s", type(raw).__name__)
            return {}
        ledger: Dict[str, int] = {}
        for key, value in raw.items():
            if isinstance(value, int) and not isinstance(value, bool) and value >= 0:
                ledger[str(key)] = value
        return ledger

    def get_usage(self, date_key: str) -> int:
        return self.usage_ledger().get(date_key, 0)

    def set_usage(self, date_key: str, count: int) -> None:
        if count < 0:
            raise ValueError("usage count must be non-negative")
        with self._write_lock:
            raw = self._backend.get(REQUEST_COUNT_KEY)
            ledger = dict(raw) if isinstance(raw, dict) else {}
            ledger[date_key] = count
            self._commit(REQUEST_COUNT_KEY, ledger)

    def _commit(self, key: str, value: Any) -> None:
        # Readers see the new value only once save() has succeeded.
        self._backend.set(key, value)
        try:
            self._backend.save()
        except (OSError, TypeError, ValueError) as exc:
            self._backend.discard()
            logger.error("Failed to persist %s: %s", key, exc)
            raise StoreError(f"Failed to persist {key}: {exc}") from exc


__all__ = ["EntitlementStore", "REQUEST_COUNT_KEY", "SUBSCRIPTION_KEY"]
