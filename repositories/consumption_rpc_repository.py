"""
Atomic lead consumption procedure (persistence).

`consume_vendor_lead()` is a PostgreSQL function that, in one transaction:
- validates the lead, the vendor's subscription and the per-lead vendor cap
- selects the quota tier
- inserts the lead_purchases row and marks the lead PURCHASED
and returns a JSON result object.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, Mapping

from postgrest.exceptions import APIError
from supabase import Client  # type: ignore[import-not-found]

from domain.quota import ConsumptionMode
from repositories.errors import CONSUME_LEAD_FUNCTION


def _result_from_api_error(exc: APIError) -> Dict[str, Any]:
    """
    Supabase-py can raise APIError for a function returning JSON, with the
    function's own result object as the error body.
    """

    try:
        body = exc.json() if callable(getattr(exc, "json", None)) else {}
    except (TypeError, ValueError):
        body = {}
    if isinstance(body, Mapping) and "success" in body:
        return dict(body)
    raise exc


def call_consume_vendor_lead(
    db: Client,
    vendor_id: str,
    lead_id: str,
    mode: ConsumptionMode,
    purchase_price: Decimal,
) -> Dict[str, Any]:
    """
    Execute the atomic consumption procedure.

    Returns:
        The procedure's result object ({} when it returned nothing usable).

    Raises:
        APIError: the procedure call itself failed.
    """

    params = {
        "p_vendor_id": str(vendor_id),
        "p_lead_id": str(lead_id),
        "p_mode": mode.value,
        "p_purchase_price": float(purchase_price),
    }

    try:
        response = db.rpc(CONSUME_LEAD_FUNCTION, params).execute()
    except APIError as exc:
        return _result_from_api_error(exc)

    data = getattr(response, "data", None)
    if isinstance(data, list):
        data = data[0] if data else None
    return dict(data) if isinstance(data, Mapping) else {}


__all__ = ["call_consume_vendor_lead"]
