"""Checksum helpers guarding the persisted subscription record.

The digest is unkeyed: it catches accidental or naive edits of the stored
document, but anyone who knows the field layout can recompute it. It is not
a tamper-proof signature.
"""
from __future__ import annotations

import hashlib
import hmac

from .models import SubscriptionRecord

_SEPARATOR = "|"


def canonical_payload(record: SubscriptionRecord) -> str:
    """Join the checksum-covered fields in their fixed order."""

    fields = (
        record.plan_type.value,
        record.expires_at,
        record.customer_ref,
        record.verification_token,
        record.purchased_at,
    )
    return _SEPARATOR.join(value or "" for value in fields)


def compute_checksum(record: SubscriptionRecord) -> str:
    """Return the lowercase hex SHA-256 digest of the record's covered fields."""

    return hashlib.sha256(canonical_payload(record).encode("utf-8")).hexdigest()


def verify_checksum(record: SubscriptionRecord) -> bool:
    if record.is_free:
        return True
    if not record.checksum:
        return False
    expected = compute_checksum(record.model_copy(update={"checksum": None}))
    return hmac.compare_digest(record.checksum.encode("utf-8"), expected.encode("utf-8"))


__all__ = ["canonical_payload", "compute_checksum", "verify_checksum"]
