"""
Lead purchase repository (persistence).

This module provides *only* persistence operations for `lead_purchases` rows.
It does not enforce business rules (per-lead cap, quota tiers); it inserts,
counts and fetches ledger rows. Uniqueness of (vendor_id, lead_id) is enforced
by the database.
"""

from __future__ import annotations

from typing import Any, List, Mapping, Optional

from postgrest.exceptions import APIError
from supabase import Client  # type: ignore[import-not-found]

from domain.purchase import LeadPurchase
from repositories.errors import describe_error

# Supabase table name for lead purchase records.
# Keep this aligned with your database schema.
_LEAD_PURCHASES_TABLE: str = "lead_purchases"


def list_purchases_by_vendor(db: Client, vendor_id: str) -> List[LeadPurchase]:
    """
    Retrieve every purchase a vendor has made (purchase history).

    No time filter is applied: which column holds the authoritative timestamp
    depends on the record shape, so windowing happens in the caller.
    """

    try:
        response = db.table(_LEAD_PURCHASES_TABLE).select("*").eq("vendor_id", str(vendor_id)).execute()
    except APIError as exc:
        raise RuntimeError(f"Failed to read lead purchase usage: {describe_error(exc)}") from exc

    rows = getattr(response, "data", None) or []
    return [LeadPurchase.from_row(row) for row in rows]


def get_purchase(db: Client, vendor_id: str, lead_id: str) -> Optional[LeadPurchase]:
    """
    Retrieve the purchase of one lead by one vendor.

    Returns:
        LeadPurchase or None if the vendor has not consumed the lead
    """

    try:
        response = (
            db.table(_LEAD_PURCHASES_TABLE)
            .select("*")
            .eq("vendor_id", str(vendor_id))
            .eq("lead_id", str(lead_id))
            .limit(1)
            .execute()
        )
    except APIError as exc:
        raise RuntimeError(f"Failed to validate lead purchase: {describe_error(exc)}") from exc

    rows = getattr(response, "data", None) or []
    if not rows:
        return None
    return LeadPurchase.from_row(rows[0])


def count_purchases_by_lead(db: Client, lead_id: str) -> int:
    """Number of purchase rows against a lead, across all vendors."""

    try:
        response = (
            db.table(_LEAD_PURCHASES_TABLE)
            .select("id", count="exact", head=True)
            .eq("lead_id", str(lead_id))
            .execute()
        )
    except APIError as exc:
        raise RuntimeError(f"Failed to validate lead capacity: {describe_error(exc)}") from exc

    return getattr(response, "count", 0) or 0


def insert_purchase(db: Client, payload: Mapping[str, Any]) -> Optional[LeadPurchase]:
    """
    Insert one purchase row and return it as stored.

    Errors are raised as APIError untouched so the caller can tell a unique
    violation or a missing column apart from other failures. Returns None if
    the store accepted the insert but returned no representation.
    """

    response = db.table(_LEAD_PURCHASES_TABLE).insert(dict(payload)).execute()
    rows = getattr(response, "data", None) or []
    if not rows:
        return None
    return LeadPurchase.from_row(rows[0])


__all__ = [
    "list_purchases_by_vendor",
    "get_purchase",
    "count_purchases_by_lead",
    "insert_purchase",
]
