"""
Lead consumption entry point.

Two implementations share one caller-facing contract:

- the atomic `consume_vendor_lead()` procedure (preferred): gates, tier
  selection and the insert run in one database transaction
- the multi-step path in `consumption_service` (fallback): same decision,
  separate round trips, racy per-lead cap

The procedure is always tried first. Only when the store reports that the
procedure, or a column it needs, does not exist on this schema is the same
request re-run through the multi-step path. Any other procedure error is
raised unchanged.
"""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional

from postgrest.exceptions import APIError
from supabase import Client  # type: ignore[import-not-found]

from domain.consumption import ConsumptionCode, ConsumptionResult, ConsumptionStage, build_result_envelope
from domain.quota import ConsumptionMode, normalize_consumption_mode, to_non_negative_amount
from repositories.consumption_rpc_repository import call_consume_vendor_lead
from repositories.errors import describe_error, is_schema_compatibility_error
from services.consumption_service import consume_lead_multistep

logger = logging.getLogger(__name__)


def consume_lead(
    db: Client,
    vendor_id: Any,
    lead_id: Any,
    mode: Any = ConsumptionMode.AUTO,
    purchase_price: Any = Decimal("0"),
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Consume a lead for a vendor.

    Returns:
        Envelope dict: on success {success, existing_purchase, consumption_type,
        remaining, purchase_datetime, plan_name, lead_status, purchase}; on
        rejection {success, code, error, statusCode}.

    Raises:
        APIError: the procedure failed for a reason other than schema drift
        RuntimeError: the fallback path hit a store error
    """

    vendor_id = str(vendor_id or "").strip()
    lead_id = str(lead_id or "").strip()
    if not vendor_id or not lead_id:
        logger.info("Lead consumption rejected: vendor_id and lead_id are required")
        rejected = ConsumptionResult.rejected(
            ConsumptionCode.INVALID_INPUT,
            "vendor_id and lead_id are required",
            ConsumptionStage.VALIDATING,
        )
        return build_result_envelope(rejected.as_dict())

    consumption_mode = normalize_consumption_mode(mode)
    price = to_non_negative_amount(purchase_price)

    try:
        result = call_consume_vendor_lead(db, vendor_id, lead_id, consumption_mode, price)
    except APIError as exc:
        if not is_schema_compatibility_error(exc):
            raise
        logger.warning(
            "consume_vendor_lead unavailable (%s); using multi-step consumption for vendor %s and lead %s",
            describe_error(exc),
            vendor_id,
            lead_id,
        )
        fallback = consume_lead_multistep(db, vendor_id, lead_id, consumption_mode, price, now=now)
        return build_result_envelope(fallback.as_dict())

    return build_result_envelope(result)


__all__ = ["consume_lead"]
