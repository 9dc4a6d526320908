"""
Usage service.

Counts a vendor's included-quota consumptions inside the current day, week and
year windows by replaying purchase history. The quota snapshot table is never
trusted for this: it may be stale or missing.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from supabase import Client  # type: ignore[import-not-found]

from domain.purchase import LeadPurchase
from domain.quota import ConsumptionType, QuotaLimits, QuotaRemaining, QuotaUsage
from domain.time import quota_windows, require_utc_timestamp, utc_now
from repositories.lead_purchase_repository import list_purchases_by_vendor
from services.subscription_service import resolve_active_subscription


def tally_included_usage(purchases: Iterable[LeadPurchase], now: datetime) -> QuotaUsage:
    """
    Pure counting step.

    - Only DAILY_INCLUDED and WEEKLY_INCLUDED rows count.
    - Yearly and weekly usage include both included tiers.
    - Daily usage counts DAILY_INCLUDED rows only.
    - Rows without a readable timestamp are skipped.
    """

    windows = quota_windows(now)
    daily = weekly = yearly = 0

    for purchase in purchases:
        if purchase.consumption_type is None or not purchase.consumption_type.is_included:
            continue
        purchased_at = purchase.purchased_at
        if purchased_at is None:
            continue

        if purchased_at >= windows.year_start:
            yearly += 1
        if purchased_at >= windows.week_start:
            weekly += 1
        if purchase.consumption_type is ConsumptionType.DAILY_INCLUDED and purchased_at >= windows.day_start:
            daily += 1

    return QuotaUsage(daily=daily, weekly=weekly, yearly=yearly)


def count_included_usage(db: Client, vendor_id: str, now: Optional[datetime] = None) -> QuotaUsage:
    now = now or utc_now()
    require_utc_timestamp("now", now)
    return tally_included_usage(list_purchases_by_vendor(db, vendor_id), now)


@dataclass(frozen=True, slots=True)
class QuotaSummary:
    """Dashboard view of a vendor's quota, derived from purchase history."""

    vendor_id: str
    subscription_active: bool
    plan_id: Optional[str]
    plan_name: str
    limits: QuotaLimits
    used: QuotaUsage
    remaining: QuotaRemaining
    computed_at: datetime


def get_quota_summary(db: Client, vendor_id: str, now: Optional[datetime] = None) -> QuotaSummary:
    now = now or utc_now()
    active = resolve_active_subscription(db, vendor_id, now)
    used = count_included_usage(db, vendor_id, now)
    return QuotaSummary(
        vendor_id=str(vendor_id),
        subscription_active=active.is_active,
        plan_id=active.plan_id,
        plan_name=active.plan_name,
        limits=active.limits,
        used=used,
        remaining=QuotaRemaining.from_limits(active.limits, used),
        computed_at=now,
    )


__all__ = [
    "QuotaSummary",
    "tally_included_usage",
    "count_included_usage",
    "get_quota_summary",
]
