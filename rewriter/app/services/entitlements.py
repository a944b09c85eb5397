"""Application wiring for the entitlement service."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional

from fastapi import Request

from ...config import EntitlementConfig
from ..auth import StoredSessionValidator
from ..entitlements import EntitlementService, EntitlementStore, JsonFileDocument
from ..feature_gates import QuotaGuard

logger = logging.getLogger("entitlements")


def build_entitlement_service(
    config: EntitlementConfig,
    *,
    clock: Optional[Callable[[], datetime]] = None,
) -> EntitlementService:
    """Assemble the service from file-backed documents described by ``config``."""

    store = EntitlementStore(JsonFileDocument(config.usage_file))
    quota_guard = QuotaGuard(store, daily_limit=config.daily_limit, tz=config.ledger_timezone)
    session_validator = StoredSessionValidator(JsonFileDocument(config.auth_file))
    logger.info(
        "Entitlement service configured edition=%s daily_limit=%s usage_file=%s",
        config.edition,
        config.daily_limit,
        config.usage_file,
    )
    return EntitlementService(
        store,
        quota_guard,
        session_validator=session_validator,
        clock=clock,
        expiring_soon_days=config.expiring_soon_days,
    )


def get_entitlement_service(request: Request) -> EntitlementService:
    """FastAPI dependency returning the service attached to the running app."""

    service = getattr(request.app.state, "entitlement_service", None)
    if service is None:
        raise RuntimeError("Entitlement service has not been configured on the application")
    return service


__all__ = ["build_entitlement_service", "get_entitlement_service"]
