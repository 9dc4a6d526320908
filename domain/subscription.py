"""
Domain: Vendor subscriptions and plans.

Contract excerpts implemented here:
- A vendor has at most one current subscription: status ACTIVE and an end date
  that is either open (null) or in the future.
- A plan defines the daily, weekly and yearly inclusion limits. Limits are
  non-negative integers; anything else stored in the plan collapses to 0.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping, Optional

from .quota import QuotaLimits
from .time import parse_utc_timestamp

SUBSCRIPTION_STATUS_ACTIVE = "ACTIVE"


@dataclass(frozen=True, slots=True)
class Subscription:
    subscription_id: str
    vendor_id: str
    plan_id: Optional[str]
    status: str
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    # end_date present in the row but unreadable
    end_date_invalid: bool = False

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Subscription":
        raw_end = row.get("end_date")
        end_date = parse_utc_timestamp(raw_end)
        plan_id = row.get("plan_id")
        return cls(
            subscription_id=str(row.get("id") or ""),
            vendor_id=str(row.get("vendor_id") or ""),
            plan_id=str(plan_id) if plan_id else None,
            status=str(row.get("status") or "").strip().upper(),
            start_date=parse_utc_timestamp(row.get("start_date")),
            end_date=end_date,
            end_date_invalid=bool(raw_end) and end_date is None,
        )

    def is_current(self, now: datetime) -> bool:
        """ACTIVE and either open-ended or ending strictly after `now`."""

        if self.status != SUBSCRIPTION_STATUS_ACTIVE or self.end_date_invalid:
            return False
        return self.end_date is None or self.end_date > now


@dataclass(frozen=True, slots=True)
class Plan:
    plan_id: str
    name: str
    limits: QuotaLimits

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Plan":
        return cls(
            plan_id=str(row.get("id") or ""),
            name=str(row.get("name") or "").strip(),
            limits=QuotaLimits.from_plan_row(dict(row)),
        )


@dataclass(frozen=True, slots=True)
class ActiveSubscription:
    """Resolved subscription state for one vendor at evaluation time."""

    subscription: Optional[Subscription]
    plan: Optional[Plan]
    plan_name: str = ""
    limits: QuotaLimits = field(default_factory=QuotaLimits)

    @classmethod
    def none(cls) -> "ActiveSubscription":
        return cls(subscription=None, plan=None)

    @property
    def is_active(self) -> bool:
        return self.subscription is not None

    @property
    def plan_id(self) -> Optional[str]:
        return self.subscription.plan_id if self.subscription else None
