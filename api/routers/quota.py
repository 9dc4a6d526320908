"""
Vendor Quota API Endpoints.

Endpoints for reading and rebuilding a vendor's lead quota figures.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from supabase import Client  # type: ignore[import-not-found]

from api.dependencies import get_db
from api.models import QuotaFigures, QuotaSummaryResponse
from services.quota_snapshot_service import rebuild_quota_snapshot
from services.usage_service import QuotaSummary, get_quota_summary

router = APIRouter()
logger = logging.getLogger(__name__)


def _to_response(summary: QuotaSummary, snapshot_synced: Optional[bool] = None) -> QuotaSummaryResponse:
    return QuotaSummaryResponse(
        vendor_id=summary.vendor_id,
        subscription_active=summary.subscription_active,
        plan_id=summary.plan_id,
        plan_name=summary.plan_name,
        limits=QuotaFigures(daily=summary.limits.daily, weekly=summary.limits.weekly, yearly=summary.limits.yearly),
        used=QuotaFigures(daily=summary.used.daily, weekly=summary.used.weekly, yearly=summary.used.yearly),
        remaining=QuotaFigures(**summary.remaining.as_dict()),
        computed_at=summary.computed_at,
        snapshot_synced=snapshot_synced,
    )


@router.get(
    "/vendors/{vendor_id}/quota",
    response_model=QuotaSummaryResponse,
    summary="Get Vendor Quota",
    description="Limits, usage and remaining included leads, computed from purchase history."
)
def get_vendor_quota(vendor_id: str, db: Client = Depends(get_db)):
    """
    Read a vendor's quota.

    Usage is always replayed from `lead_purchases`, so the figures are correct
    even if the cached `vendor_lead_quota` row is stale or missing.
    """
    try:
        return _to_response(get_quota_summary(db, vendor_id))
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to read vendor quota: {str(e)}"
        )


@router.post(
    "/vendors/{vendor_id}/quota/rebuild",
    response_model=QuotaSummaryResponse,
    summary="Rebuild Vendor Quota Snapshot",
    description="Replay purchase history into the cached quota row and return the result."
)
def rebuild_vendor_quota(vendor_id: str, db: Client = Depends(get_db)):
    """
    Rebuild a vendor's cached quota row.

    The figures are returned even when the cache write fails; `snapshot_synced`
    tells the caller whether the row was actually written.
    """
    try:
        summary, synced = rebuild_quota_snapshot(db, vendor_id)
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to rebuild vendor quota: {str(e)}"
        )

    if not synced:
        logger.warning("Quota rebuild for vendor %s computed figures but the snapshot write failed", vendor_id)
    return _to_response(summary, snapshot_synced=synced)
