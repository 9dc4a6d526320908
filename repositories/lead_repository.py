"""
Lead repository (persistence).

This module provides *only* persistence operations for the Lead domain entity.
No business rules (ownership, availability, caps) belong here.
"""

from __future__ import annotations

from typing import Optional

from postgrest.exceptions import APIError
from supabase import Client  # type: ignore[import-not-found]

from domain.lead import Lead, LeadStatus
from repositories.errors import describe_error

# Supabase table name for Lead records.
# Keep this aligned with your database schema.
_LEADS_TABLE: str = "leads"


def get_lead(db: Client, lead_id: str) -> Optional[Lead]:
    """
    Retrieve a single lead by id.

    Returns:
        Lead or None if not found
    """

    try:
        response = db.table(_LEADS_TABLE).select("*").eq("id", str(lead_id)).limit(1).execute()
    except APIError as exc:
        raise RuntimeError(f"Failed to fetch lead: {describe_error(exc)}") from exc

    rows = getattr(response, "data", None) or []
    if not rows:
        return None
    return Lead.from_row(rows[0])


def mark_lead_purchased(db: Client, lead_id: str) -> None:
    """Move a lead to PURCHASED. Raises APIError on failure."""

    db.table(_LEADS_TABLE).update({"status": LeadStatus.PURCHASED.value}).eq("id", str(lead_id)).execute()


__all__ = ["get_lead", "mark_lead_purchased"]
