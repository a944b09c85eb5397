"""Authentication session helpers consumed by the entitlement core."""
from .session import TOKENS_KEY, AuthTokens, StoredSessionValidator

__all__ = ["AuthTokens", "StoredSessionValidator", "TOKENS_KEY"]
