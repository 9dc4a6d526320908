"""
Subscription service.

Resolves a vendor's current subscription and the quota limits of its plan.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from supabase import Client  # type: ignore[import-not-found]

from domain.quota import QuotaLimits
from domain.subscription import ActiveSubscription
from domain.time import require_utc_timestamp, utc_now
from repositories.subscription_repository import get_plan, list_active_subscriptions

logger = logging.getLogger(__name__)


def resolve_active_subscription(
    db: Client,
    vendor_id: str,
    now: Optional[datetime] = None,
) -> ActiveSubscription:
    """
    Find the vendor's current subscription and its plan limits.

    The store returns ACTIVE rows already ordered by relevance; the end date is
    re-checked here against `now` because the store's clock may lag. If no row
    qualifies the result has no subscription and all limits are zero.

    A current subscription without a plan (or with a missing plan row) keeps
    zero limits: the vendor is subscribed but has no included quota.
    """

    now = now or utc_now()
    require_utc_timestamp("now", now)

    current = next(
        (sub for sub in list_active_subscriptions(db, vendor_id) if sub.is_current(now)),
        None,
    )
    if current is None:
        return ActiveSubscription.none()

    plan = get_plan(db, current.plan_id) if current.plan_id else None
    if current.plan_id and plan is None:
        logger.warning(
            "Subscription %s for vendor %s references missing plan %s",
            current.subscription_id,
            vendor_id,
            current.plan_id,
        )

    return ActiveSubscription(
        subscription=current,
        plan=plan,
        plan_name=plan.name if plan else "",
        limits=plan.limits if plan else QuotaLimits(),
    )


__all__ = ["resolve_active_subscription"]
