"""Static catalog definitions for purchasable plans."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Union

from .exceptions import InvalidPlanError
from .models import PlanType


@dataclass(frozen=True)
class PlanDefinition:
    """Describes a paid plan and how long one purchase lasts."""

    key: PlanType
    display_name: str
    price_jpy: int
    duration_days: int
    description: str


PLAN_CATALOG: Dict[PlanType, PlanDefinition] = {
    PlanType.WEEKLY: PlanDefinition(
        key=PlanType.WEEKLY,
        display_name="Weekly",
        price_jpy=150,
        duration_days=7,
        description="Unlimited use for 7 days",
    ),
    PlanType.MONTHLY: PlanDefinition(
        key=PlanType.MONTHLY,
        display_name="Monthly",
        price_jpy=490,
        duration_days=30,
        description="Unlimited use for 30 days",
    ),
}


def coerce_plan_type(value: Union[PlanType, str]) -> PlanType:
    """Parse ``value`` into a :class:`PlanType`, raising ``InvalidPlanError``."""

    if isinstance(value, PlanType):
        return value
    if not isinstance(value, str):
        raise InvalidPlanError(value)
    try:
        return PlanType(value.strip().lower())
    except ValueError as exc:
        raise InvalidPlanError(value) from exc


def get_plan_definition(plan_type: Union[PlanType, str]) -> PlanDefinition:
    """Return the definition of a purchasable plan.

    ``Free`` is part of :class:`PlanType` but cannot be purchased, so it is
    rejected the same way as an unknown value.
    """

    key = coerce_plan_type(plan_type)
    try:
        return PLAN_CATALOG[key]
    except KeyError as exc:
        raise InvalidPlanError(key.value) from exc


__all__ = ["PLAN_CATALOG", "PlanDefinition", "coerce_plan_type", "get_plan_definition"]
