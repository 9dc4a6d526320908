"""
Quota snapshot repository (persistence).

`vendor_lead_quota` holds one denormalized row per vendor with the plan limits
and included usage, for dashboard reads. The row is a cache: it can always be
rebuilt from `lead_purchases`.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from supabase import Client  # type: ignore[import-not-found]

_QUOTA_TABLE: str = "vendor_lead_quota"


def get_snapshot(db: Client, vendor_id: str) -> Optional[Dict[str, Any]]:
    """Current snapshot row for a vendor, or None. Raises APIError on failure."""

    response = db.table(_QUOTA_TABLE).select("*").eq("vendor_id", str(vendor_id)).limit(1).execute()
    rows = getattr(response, "data", None) or []
    return dict(rows[0]) if rows else None


def insert_snapshot(db: Client, vendor_id: str, payload: Mapping[str, Any]) -> None:
    db.table(_QUOTA_TABLE).insert({"vendor_id": str(vendor_id), **payload}).execute()


def update_snapshot(db: Client, vendor_id: str, payload: Mapping[str, Any]) -> None:
    db.table(_QUOTA_TABLE).update(dict(payload)).eq("vendor_id", str(vendor_id)).execute()


__all__ = ["get_snapshot", "insert_snapshot", "update_snapshot"]
