"""Entitlement configuration helpers."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import timezone, tzinfo
from pathlib import Path
from typing import Mapping, Optional
import os

EDITION_DAILY_LIMITS = {
    "standard": 20,
    "development": 5,
}


@dataclass(frozen=True)
class EntitlementConfig:
    """Configuration for local entitlement storage and quota metering."""

    usage_file: Path
    auth_file: Path
    edition: str
    daily_limit: int
    expiring_soon_days: int
    ledger_timezone: Optional[tzinfo]


def _to_int(value: Optional[str], *, default: int, name: str) -> int:
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{name} must be an integer, got {value!r}") from exc


def _to_timezone(value: Optional[str]) -> Optional[tzinfo]:
    if value is None or value.strip() == "":
        return None
    lowered = value.strip().lower()
    if lowered in {"utc", "z"}:
        return timezone.utc
    if lowered == "local":
        return None
    raise ValueError(f"REWRITER_LEDGER_TZ must be 'utc' or 'local', got {value!r}")


def load_entitlement_config(env: Optional[Mapping[str, str]] = None) -> EntitlementConfig:
    """Load :class:`EntitlementConfig` from environment variables."""

    env_mapping = os.environ if env is None else env

    data_dir = Path(env_mapping.get("REWRITER_DATA_DIR") or "~/.rewriter").expanduser()
    usage_file = Path(env_mapping.get("REWRITER_USAGE_FILE") or data_dir / "usage.json").expanduser()
    auth_file = Path(env_mapping.get("REWRITER_AUTH_FILE") or data_dir / "auth.json").expanduser()

    edition = (env_mapping.get("REWRITER_EDITION") or "standard").strip().lower()
    if edition not in EDITION_DAILY_LIMITS:
        raise ValueError(
            f"REWRITER_EDITION must be one of {sorted(EDITION_DAILY_LIMITS)}, got {edition!r}"
        )

    daily_limit = _to_int(
        env_mapping.get("REWRITER_DAILY_LIMIT"),
        default=EDITION_DAILY_LIMITS[edition],
        name="REWRITER_DAILY_LIMIT",
    )
    if daily_limit < 0:
        raise ValueError("REWRITER_DAILY_LIMIT must be non-negative")

    expiring_soon_days = max(
        0,
        _to_int(env_mapping.get("REWRITER_EXPIRING_SOON_DAYS"), default=3, name="REWRITER_EXPIRING_SOON_DAYS"),
    )

    return EntitlementConfig(
        usage_file=usage_file,
        auth_file=auth_file,
        edition=edition,
        daily_limit=daily_limit,
        expiring_soon_days=expiring_soon_days,
        ledger_timezone=_to_timezone(env_mapping.get("REWRITER_LEDGER_TZ")),
    )


__all__ = ["EDITION_DAILY_LIMITS", "EntitlementConfig", "load_entitlement_config"]
