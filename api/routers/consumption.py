"""
Lead Consumption API Endpoints.

Endpoint for a vendor acquiring a lead against their subscription quota.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from supabase import Client  # type: ignore[import-not-found]

from api.dependencies import get_db
from api.models import ConsumeLeadRequest, ConsumeLeadResponse
from domain.quota import ConsumptionType, QuotaRemaining, quota_exhausted_alerts
from services.consumption_router import consume_lead

router = APIRouter()


@router.post(
    "/vendors/{vendor_id}/leads/{lead_id}/consume",
    response_model=ConsumeLeadResponse,
    summary="Consume Lead",
    description="Acquire a lead using included daily/weekly quota or as a paid extra."
)
def consume_vendor_lead(
    vendor_id: str,
    lead_id: str,
    request: Optional[ConsumeLeadRequest] = None,
    db: Client = Depends(get_db),
):
    """
    Consume a lead for a vendor.

    **Tier selection:**
    1. Yearly included quota exhausted: a paid mode is required
    2. Daily quota remaining: DAILY_INCLUDED
    3. Weekly quota remaining: WEEKLY_INCLUDED
    4. Otherwise a paid mode is required

    `BUY_EXTRA` and `PAID` always record a PAID_EXTRA consumption at `price`,
    even when included quota remains.

    **Idempotence:**
    Repeating the request for the same vendor and lead returns the original
    purchase with `existing_purchase: true`.

    **Rejections** return `success: false` with `code`, `error` and the HTTP
    status in `statusCode`:
    INVALID_INPUT 400, LEAD_NOT_FOUND 404, LEAD_UNAVAILABLE 409,
    LEAD_NOT_PURCHASABLE 409, LEAD_CAP_REACHED 409, SUBSCRIPTION_INACTIVE 403,
    PAID_REQUIRED 402.
    """
    request = request or ConsumeLeadRequest()

    try:
        envelope = consume_lead(
            db,
            vendor_id=vendor_id,
            lead_id=lead_id,
            mode=request.mode,
            purchase_price=request.price,
        )
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to consume lead: {str(e)}"
        )

    if not envelope["success"]:
        return JSONResponse(status_code=envelope["statusCode"], content=jsonable_encoder(envelope))

    alerts = []
    if not envelope["existing_purchase"]:
        alerts = quota_exhausted_alerts(
            ConsumptionType.parse(envelope["consumption_type"]),
            QuotaRemaining(**envelope["remaining"]),
        )

    content = {**envelope, "alerts": [alert.as_dict() for alert in alerts]}
    return JSONResponse(status_code=200, content=jsonable_encoder(content))
