"""
Subscription repository (persistence).

Reads vendor plan subscriptions and plans. Deciding which subscription is
current happens in the subscription service.
"""

from __future__ import annotations

from typing import List, Optional

from postgrest.exceptions import APIError
from supabase import Client  # type: ignore[import-not-found]

from domain.subscription import SUBSCRIPTION_STATUS_ACTIVE, Plan, Subscription
from repositories.errors import describe_error

_SUBSCRIPTIONS_TABLE: str = "vendor_plan_subscriptions"
_PLANS_TABLE: str = "vendor_plans"

# Upper bound on ACTIVE rows scanned per vendor.
ACTIVE_SUBSCRIPTION_SCAN_LIMIT: int = 10


def list_active_subscriptions(
    db: Client,
    vendor_id: str,
    limit: int = ACTIVE_SUBSCRIPTION_SCAN_LIMIT,
) -> List[Subscription]:
    """
    ACTIVE subscriptions for a vendor, most relevant first.

    Ordered by end_date desc (open-ended last), start_date desc, id desc.
    """

    try:
        response = (
            db.table(_SUBSCRIPTIONS_TABLE)
            .select("id, vendor_id, plan_id, status, start_date, end_date")
            .eq("vendor_id", str(vendor_id))
            .eq("status", SUBSCRIPTION_STATUS_ACTIVE)
            .order("end_date", desc=True, nullsfirst=False)
            .order("start_date", desc=True, nullsfirst=False)
            .order("id", desc=True)
            .limit(limit)
            .execute()
        )
    except APIError as exc:
        raise RuntimeError(f"Failed to validate subscription: {describe_error(exc)}") from exc

    rows = getattr(response, "data", None) or []
    return [Subscription.from_row(row) for row in rows]


def get_plan(db: Client, plan_id: str) -> Optional[Plan]:
    try:
        response = (
            db.table(_PLANS_TABLE)
            .select("id, name, daily_limit, weekly_limit, yearly_limit")
            .eq("id", str(plan_id))
            .limit(1)
            .execute()
        )
    except APIError as exc:
        raise RuntimeError(f"Failed to load subscription plan: {describe_error(exc)}") from exc

    rows = getattr(response, "data", None) or []
    if not rows:
        return None
    return Plan.from_row(rows[0])


__all__ = ["ACTIVE_SUBSCRIPTION_SCAN_LIMIT", "list_active_subscriptions", "get_plan"]
