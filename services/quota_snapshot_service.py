"""
Quota snapshot service.

Keeps the denormalized `vendor_lead_quota` row in step with consumptions.
Writes here are best-effort: the row is only a cache for dashboards, so a
failed write is logged and dropped and never fails the caller.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from supabase import Client  # type: ignore[import-not-found]

from domain.quota import QuotaLimits, QuotaUsage
from domain.time import utc_now
from repositories.quota_snapshot_repository import get_snapshot, insert_snapshot, update_snapshot
from services.usage_service import QuotaSummary, get_quota_summary

logger = logging.getLogger(__name__)


def _snapshot_payload(
    plan_id: Optional[str],
    limits: QuotaLimits,
    usage: QuotaUsage,
    now: datetime,
) -> Dict[str, Any]:
    return {
        "plan_id": plan_id or None,
        "daily_limit": limits.daily,
        "weekly_limit": limits.weekly,
        "yearly_limit": limits.yearly,
        "daily_used": usage.daily,
        "weekly_used": usage.weekly,
        "yearly_used": usage.yearly,
        "updated_at": now.isoformat(),
    }


def _write_snapshot(db: Client, vendor_id: str, payload: Dict[str, Any]) -> None:
    if get_snapshot(db, vendor_id) is not None:
        update_snapshot(db, vendor_id, payload)
    else:
        insert_snapshot(db, vendor_id, payload)


def sync_quota_snapshot(
    db: Client,
    vendor_id: str,
    plan_id: Optional[str],
    limits: QuotaLimits,
    usage: QuotaUsage,
    now: datetime,
) -> bool:
    """
    Upsert the vendor's snapshot row.

    Returns:
        True if the row was written, False if the write failed (and was logged)
    """

    try:
        _write_snapshot(db, vendor_id, _snapshot_payload(plan_id, limits, usage, now))
    except Exception as exc:
        logger.warning("Quota snapshot sync failed for vendor %s: %s", vendor_id, exc)
        return False
    return True


def rebuild_quota_snapshot(
    db: Client, vendor_id: str, now: Optional[datetime] = None
) -> Tuple[QuotaSummary, bool]:
    """
    Recompute the snapshot from purchase history and write it.

    Store errors while reading history propagate; only the final cache write is
    best-effort.

    Returns:
        (summary, synced) where synced is False if the snapshot write failed
    """

    now = now or utc_now()
    summary = get_quota_summary(db, vendor_id, now)
    synced = sync_quota_snapshot(db, vendor_id, summary.plan_id, summary.limits, summary.used, now)
    return summary, synced


def reset_quota_snapshot(db: Client, vendor_id: str, now: Optional[datetime] = None) -> bool:
    """Zero a vendor's limits and usage, e.g. once their subscription expired."""

    now = now or utc_now()
    payload = _snapshot_payload(None, QuotaLimits(), QuotaUsage(), now)
    payload.pop("plan_id")
    try:
        update_snapshot(db, vendor_id, payload)
    except Exception as exc:
        logger.warning("Quota snapshot reset failed for vendor %s: %s", vendor_id, exc)
        return False
    logger.info("Lead quota reset for vendor %s", vendor_id)
    return True


__all__ = ["sync_quota_snapshot", "rebuild_quota_snapshot", "reset_quota_snapshot"]
