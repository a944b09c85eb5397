from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from rewriter.app.entitlements import (
    INTEGRITY_VIOLATIONS,
    EntitlementStore,
    InactiveReason,
    PlanType,
    SubscriptionRecord,
    days_remaining,
    inactive_reason,
    is_active,
    validate_subscription,
)
from rewriter.app.entitlements.integrity import compute_checksum

T = datetime(2024, 1, 1, 9, 30, tzinfo=timezone.utc)


def _signed(**overrides) -> SubscriptionRecord:
    fields = {
        "plan_type": PlanType.WEEKLY,
        "expires_at": (T + timedelta(days=7)).isoformat(),
        "customer_ref": "cus_1",
        "verification_token": "tok",
        "purchased_at": T.isoformat(),
    }
    fields.update(overrides)
    unsigned = SubscriptionRecord(**fields)
    return unsigned.model_copy(update={"checksum": compute_checksum(unsigned)})


def test_free_record_is_never_active() -> None:
    record = SubscriptionRecord(
        plan_type=PlanType.FREE,
        expires_at=(T + timedelta(days=30)).isoformat(),
        customer_ref="cus_1",
        purchased_at=T.isoformat(),
        checksum="anything",
    )

    assert is_active(record, T) is False
    assert inactive_reason(record, T) is InactiveReason.FREE_PLAN


def test_weekly_purchase_window_boundaries() -> None:
    record = EntitlementStore.create_with_checksum(PlanType.WEEKLY, T + timedelta(days=7), "cus_1", "tok", T)

    assert is_active(record, T + timedelta(days=6, hours=23)) is True
    assert is_active(record, T + timedelta(days=7)) is False
    assert is_active(record, T + timedelta(days=7, seconds=1)) is False


def test_tampered_expiry_flips_active_to_false() -> None:
    record = _signed()
    tampered = record.model_copy(update={"expires_at": (T + timedelta(days=365)).isoformat()})

    assert is_active(record, T + timedelta(days=1)) is True
    assert is_active(tampered, T + timedelta(days=1)) is False
    assert inactive_reason(tampered, T) is InactiveReason.CHECKSUM_MISMATCH
    assert inactive_reason(tampered, T) in INTEGRITY_VIOLATIONS


@pytest.mark.parametrize("missing", ["customer_ref", "purchased_at"])
def test_missing_required_fields_are_integrity_violations(missing: str) -> None:
    record = _signed(**{missing: None})

    assert inactive_reason(record, T) is InactiveReason.MISSING_FIELDS
    assert inactive_reason(record, T) in INTEGRITY_VIOLATIONS


def test_unparseable_expiry_is_inactive() -> None:
    record = _signed(expires_at="next tuesday")

    assert inactive_reason(record, T) is InactiveReason.INVALID_EXPIRY
    assert days_remaining(record, T) == 0


def test_unparseable_purchase_time_is_inactive() -> None:
    record = _signed(purchased_at="yesterday-ish")

    assert inactive_reason(record, T) is InactiveReason.INVALID_PURCHASE_TIME


def test_clock_rollback_before_purchase_is_rejected() -> None:
    record = _signed()

    assert inactive_reason(record, T - timedelta(hours=1)) is InactiveReason.PURCHASE_IN_FUTURE


def test_days_remaining_floors_whole_days() -> None:
    record = _signed()

    assert days_remaining(record, T) == 7
    assert days_remaining(record, T + timedelta(hours=1)) == 6
    assert days_remaining(record, T + timedelta(days=6, hours=23)) == 0


@pytest.mark.parametrize(
    "expires_at",
    [None, "", "not-a-date", (T - timedelta(days=3)).isoformat()],
)
def test_days_remaining_is_zero_for_missing_malformed_or_past(expires_at) -> None:
    record = SubscriptionRecord(plan_type=PlanType.MONTHLY, expires_at=expires_at)

    assert days_remaining(record, T) == 0


def test_days_remaining_accepts_zulu_suffix() -> None:
    record = SubscriptionRecord(plan_type=PlanType.MONTHLY, expires_at="2024-01-11T09:30:00.000Z")

    assert days_remaining(record, T) == 10


def test_naive_now_is_treated_as_utc() -> None:
    record = _signed()

    assert is_active(record, T.replace(tzinfo=None) + timedelta(days=1)) is True


def test_validate_subscription_reports_expiring_soon() -> None:
    record = _signed()

    healthy = validate_subscription(record, T)
    soon = validate_subscription(record, T + timedelta(days=4, hours=1))

    assert healthy.is_valid is True
    assert healthy.is_expiring_soon is False
    assert soon.is_valid is True
    assert soon.is_expiring_soon is True
    assert soon.days_remaining == 2
    assert "2 day" in (soon.message or "")


def test_validate_subscription_classifies_free_and_expired() -> None:
    free = validate_subscription(SubscriptionRecord.default(), T)
    expired = validate_subscription(_signed(), T + timedelta(days=8))

    assert free.is_valid is False
    assert free.is_expired is False
    assert free.reason is InactiveReason.FREE_PLAN
    assert expired.is_valid is False
    assert expired.is_expired is True
    assert expired.reason is InactiveReason.EXPIRED
    assert expired.to_dict()["reason"] == "expired"
