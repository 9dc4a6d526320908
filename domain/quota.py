"""
Domain: Lead quota tiers and consumption modes.

Contract excerpts implemented here:
- A subscription plan includes a daily, weekly and yearly number of leads.
  A limit of 0 means no included quota at that tier.
- DAILY_INCLUDED consumptions count toward the day, week and year windows.
  WEEKLY_INCLUDED consumptions count toward the week and year windows.
  PAID_EXTRA consumptions never count toward included quota.
- The yearly limit is a hard ceiling checked before the daily and weekly tiers.
- Daily quota is preferred over weekly quota when both are available.
- An explicit paid mode (BUY_EXTRA or PAID) is always honored, even when
  included quota remains.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, List, Optional


class ConsumptionType(str, Enum):
    DAILY_INCLUDED = "DAILY_INCLUDED"
    WEEKLY_INCLUDED = "WEEKLY_INCLUDED"
    PAID_EXTRA = "PAID_EXTRA"

    @property
    def is_included(self) -> bool:
        return self in INCLUDED_CONSUMPTION_TYPES

    @classmethod
    def parse(cls, value: Any) -> Optional["ConsumptionType"]:
        """Parse a stored consumption_type; unknown or empty values yield None."""

        text = str(value or "").strip().upper()
        try:
            return cls(text)
        except ValueError:
            return None


INCLUDED_CONSUMPTION_TYPES = frozenset(
    {ConsumptionType.DAILY_INCLUDED, ConsumptionType.WEEKLY_INCLUDED}
)


class ConsumptionMode(str, Enum):
    AUTO = "AUTO"
    USE_WEEKLY = "USE_WEEKLY"
    BUY_EXTRA = "BUY_EXTRA"
    PAID = "PAID"

    @property
    def wants_paid(self) -> bool:
        return self in (ConsumptionMode.BUY_EXTRA, ConsumptionMode.PAID)


def normalize_consumption_mode(value: Any) -> ConsumptionMode:
    """Normalize a caller-supplied mode; anything unrecognized becomes AUTO."""

    if isinstance(value, ConsumptionMode):
        return value
    text = str(value or "").strip().upper()
    try:
        return ConsumptionMode(text)
    except ValueError:
        return ConsumptionMode.AUTO


def _to_finite_decimal(value: Any) -> Optional[Decimal]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not number.is_finite():
        return None
    return number


def to_non_negative_count(value: Any) -> int:
    """Coerce a stored limit/count to a non-negative integer (invalid -> 0)."""

    number = _to_finite_decimal(value)
    if number is None or number <= 0:
        return 0
    return int(math.floor(number))


def to_non_negative_amount(value: Any) -> Decimal:
    """Coerce a caller-supplied price to a non-negative amount (invalid -> 0)."""

    number = _to_finite_decimal(value)
    if number is None or number <= 0:
        return Decimal("0")
    return number


@dataclass(frozen=True, slots=True)
class QuotaLimits:
    daily: int = 0
    weekly: int = 0
    yearly: int = 0

    @classmethod
    def from_plan_row(cls, row: Optional[dict]) -> "QuotaLimits":
        row = row or {}
        return cls(
            daily=to_non_negative_count(row.get("daily_limit")),
            weekly=to_non_negative_count(row.get("weekly_limit")),
            yearly=to_non_negative_count(row.get("yearly_limit")),
        )


@dataclass(frozen=True, slots=True)
class QuotaUsage:
    daily: int = 0
    weekly: int = 0
    yearly: int = 0

    def record(self, consumption_type: ConsumptionType) -> "QuotaUsage":
        """Usage after one more consumption of the given type."""

        if consumption_type is ConsumptionType.DAILY_INCLUDED:
            return QuotaUsage(self.daily + 1, self.weekly + 1, self.yearly + 1)
        if consumption_type is ConsumptionType.WEEKLY_INCLUDED:
            return QuotaUsage(self.daily, self.weekly + 1, self.yearly + 1)
        return self


@dataclass(frozen=True, slots=True)
class QuotaRemaining:
    daily: int = 0
    weekly: int = 0
    yearly: int = 0

    @classmethod
    def from_limits(cls, limits: QuotaLimits, usage: QuotaUsage) -> "QuotaRemaining":
        return cls(
            daily=max(0, limits.daily - usage.daily),
            weekly=max(0, limits.weekly - usage.weekly),
            yearly=max(0, limits.yearly - usage.yearly),
        )

    def as_dict(self) -> dict[str, int]:
        return {"daily": self.daily, "weekly": self.weekly, "yearly": self.yearly}


def select_consumption_type(
    remaining: QuotaRemaining,
    mode: ConsumptionMode,
) -> Optional[ConsumptionType]:
    """
    Pick the tier that covers the next consumption.

    Returns None when the included quota is exhausted and the caller did not ask
    for a paid consumption (the caller reports PAID_REQUIRED).
    """

    wants_paid = mode.wants_paid

    if remaining.yearly <= 0:
        return ConsumptionType.PAID_EXTRA if wants_paid else None
    if remaining.daily > 0:
        return ConsumptionType.PAID_EXTRA if wants_paid else ConsumptionType.DAILY_INCLUDED
    if remaining.weekly > 0:
        return ConsumptionType.PAID_EXTRA if wants_paid else ConsumptionType.WEEKLY_INCLUDED
    return ConsumptionType.PAID_EXTRA if wants_paid else None


@dataclass(frozen=True, slots=True)
class QuotaAlert:
    """Vendor-facing notice that an included tier just ran out."""

    type: str
    title: str
    message: str

    def as_dict(self) -> dict[str, str]:
        return {"type": self.type, "title": self.title, "message": self.message}


def quota_exhausted_alerts(
    consumption_type: Optional[ConsumptionType],
    remaining: QuotaRemaining,
) -> List[QuotaAlert]:
    """Alerts for tiers exhausted by an included consumption."""

    if consumption_type is None or not consumption_type.is_included:
        return []

    alerts: List[QuotaAlert] = []
    if consumption_type is ConsumptionType.DAILY_INCLUDED and remaining.daily <= 0:
        alerts.append(
            QuotaAlert(
                type="LEAD_DAILY_EXHAUSTED",
                title="Daily Lead Quota Exhausted",
                message="Daily included leads are exhausted. Use weekly quota or buy extra leads.",
            )
        )
    if remaining.weekly <= 0:
        alerts.append(
            QuotaAlert(
                type="LEAD_WEEKLY_EXHAUSTED",
                title="Weekly Lead Quota Exhausted",
                message="Weekly included leads are exhausted. Buy extra leads to continue.",
            )
        )
    if remaining.yearly <= 0:
        alerts.append(
            QuotaAlert(
                type="LEAD_YEARLY_EXHAUSTED",
                title="Yearly Lead Quota Exhausted",
                message="Yearly included leads are exhausted for this plan period. Buy extra leads to continue.",
            )
        )
    return alerts
