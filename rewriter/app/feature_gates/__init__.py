"""Feature gating utilities enforcing the daily usage quota."""
from .quota import QuotaEvaluation, QuotaGuard, date_key

__all__ = [
    "QuotaEvaluation",
    "QuotaGuard",
    "date_key",
]
