"""
API Request and Response Models.

Pydantic models for validating API requests and serializing responses.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


# ============================================================================
# Consumption Models
# ============================================================================

class ConsumeLeadRequest(BaseModel):
    """Request to consume (acquire) a lead."""
    mode: Any = Field(
        "AUTO",
        description="AUTO, USE_WEEKLY, BUY_EXTRA or PAID. Unrecognized values fall back to AUTO."
    )
    price: Optional[Decimal] = Field(
        None,
        description="Price charged when the consumption is a paid extra. Ignored for included tiers."
    )

    class Config:
        json_schema_extra = {
            "example": {
                "mode": "AUTO",
                "price": "50.00"
            }
        }


class QuotaFigures(BaseModel):
    """Daily/weekly/yearly counts."""
    daily: int
    weekly: int
    yearly: int


class QuotaAlertResponse(BaseModel):
    type: str
    title: str
    message: str


class ConsumeLeadResponse(BaseModel):
    """
    Result of a consumption attempt.

    Successful attempts carry the consumption details; rejected attempts carry
    `code`, `error` and `statusCode`.
    """
    success: bool
    existing_purchase: Optional[bool] = None
    consumption_type: Optional[str] = None
    remaining: Optional[QuotaFigures] = None
    purchase_datetime: Optional[str] = None
    plan_name: Optional[str] = None
    lead_status: Optional[str] = None
    purchase: Optional[Dict[str, Any]] = None
    alerts: List[QuotaAlertResponse] = Field(default_factory=list)
    code: Optional[str] = None
    error: Optional[str] = None
    statusCode: Optional[int] = None

    class Config:
        json_schema_extra = {
            "example": {
                "success": True,
                "existing_purchase": False,
                "consumption_type": "DAILY_INCLUDED",
                "remaining": {"daily": 0, "weekly": 2, "yearly": 99},
                "purchase_datetime": "2025-01-06T09:30:00+00:00",
                "plan_name": "Growth",
                "lead_status": "ACTIVE",
                "purchase": {
                    "id": "123e4567-e89b-12d3-a456-426614174005",
                    "vendor_id": "123e4567-e89b-12d3-a456-426614174002",
                    "lead_id": "123e4567-e89b-12d3-a456-426614174000",
                    "consumption_type": "DAILY_INCLUDED",
                    "purchase_price": "0"
                },
                "alerts": [
                    {
                        "type": "LEAD_DAILY_EXHAUSTED",
                        "title": "Daily Lead Quota Exhausted",
                        "message": "Daily included leads are exhausted. Use weekly quota or buy extra leads."
                    }
                ]
            }
        }


# ============================================================================
# Quota Models
# ============================================================================

class QuotaSummaryResponse(BaseModel):
    """Vendor quota computed from purchase history."""
    vendor_id: str
    subscription_active: bool
    plan_id: Optional[str] = None
    plan_name: str
    limits: QuotaFigures
    used: QuotaFigures
    remaining: QuotaFigures
    computed_at: datetime
    snapshot_synced: Optional[bool] = Field(
        None,
        description="Set by a rebuild: whether the cached quota row was written."
    )

    class Config:
        json_schema_extra = {
            "example": {
                "vendor_id": "123e4567-e89b-12d3-a456-426614174002",
                "subscription_active": True,
                "plan_id": "123e4567-e89b-12d3-a456-426614174009",
                "plan_name": "Growth",
                "limits": {"daily": 1, "weekly": 3, "yearly": 100},
                "used": {"daily": 1, "weekly": 1, "yearly": 1},
                "remaining": {"daily": 0, "weekly": 2, "yearly": 99},
                "computed_at": "2025-01-06T09:30:00Z"
            }
        }
