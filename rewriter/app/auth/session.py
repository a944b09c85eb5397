"""Read-only access to the stored sign-in session."""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..entitlements.models import ensure_aware
from ..entitlements.repository import JsonFileDocument

logger = logging.getLogger(__name__)

TOKENS_KEY = "tokens"
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class AuthTokens(BaseModel):
    """Tokens written by the sign-in flow; ``expires_at`` is epoch milliseconds."""

    access_token: Optional[str] = None
    id_token: Optional[str] = None
    refresh_token: Optional[str] = None
    expires_at: int = Field(ge=0)
    user_email: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    def is_valid_at(self, now: datetime) -> bool:
        now_ms = (ensure_aware(now) - _EPOCH) // timedelta(milliseconds=1)
        return now_ms < self.expires_at


class StoredSessionValidator:
    """Session predicate backed by the auth document.

    The document is re-read on every call because the sign-in flow writes it
    from outside this process' entitlement core. Nothing here writes to it.
    """

    def __init__(self, document: JsonFileDocument, *, key: str = TOKENS_KEY) -> None:
        self._document = document
        self._key = key

    def load_tokens(self) -> Optional[AuthTokens]:
        self._document.reload()
        raw = self._document.get(self._key)
        if raw is None:
            return None
        if not isinstance(raw, dict):
            logger.warning("Ignoring malformed auth tokens payload of type %s", type(raw).__name__)
            return None
        try:
            return AuthTokens.model_validate(raw)
        except ValidationError as exc:
            logger.warning("Ignoring auth tokens that fail validation: %s", exc.error_count())
            return None

    def is_session_valid(self, now: datetime) -> bool:
        tokens = self.load_tokens()
        return tokens is not None and tokens.is_valid_at(now)

    def __call__(self, now: datetime) -> bool:
        return self.is_session_valid(now)


__all__ = ["AuthTokens", "StoredSessionValidator", "TOKENS_KEY"]
