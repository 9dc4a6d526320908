"""
Domain: Lead consumption outcomes.

Both consumption paths (the atomic `consume_vendor_lead` procedure and the
multi-step fallback) produce a result mapping; `build_result_envelope` turns
either one into the same caller-facing envelope:

- success: {success, existing_purchase, consumption_type, remaining,
  purchase_datetime, plan_name, lead_status, purchase}
- failure: {success, code, error, statusCode} (+ remaining when known)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from .purchase import LeadPurchase
from .quota import ConsumptionType, QuotaRemaining, to_non_negative_count

# Maximum number of distinct vendors that may hold a purchase of one lead.
LEAD_VENDOR_CAP: int = 5


class ConsumptionCode(str, Enum):
    INVALID_INPUT = "INVALID_INPUT"
    LEAD_NOT_FOUND = "LEAD_NOT_FOUND"
    LEAD_UNAVAILABLE = "LEAD_UNAVAILABLE"
    LEAD_NOT_PURCHASABLE = "LEAD_NOT_PURCHASABLE"
    LEAD_CAP_REACHED = "LEAD_CAP_REACHED"
    SUBSCRIPTION_INACTIVE = "SUBSCRIPTION_INACTIVE"
    PAID_REQUIRED = "PAID_REQUIRED"


STATUS_CODE_BY_CONSUMPTION_CODE: Dict[str, int] = {
    ConsumptionCode.INVALID_INPUT.value: 400,
    ConsumptionCode.LEAD_NOT_FOUND.value: 404,
    ConsumptionCode.LEAD_UNAVAILABLE.value: 409,
    ConsumptionCode.LEAD_NOT_PURCHASABLE.value: 409,
    ConsumptionCode.LEAD_CAP_REACHED.value: 409,
    ConsumptionCode.SUBSCRIPTION_INACTIVE.value: 403,
    ConsumptionCode.PAID_REQUIRED.value: 402,
}

_DEFAULT_FAILURE_CODE = "CONSUMPTION_FAILED"
_DEFAULT_FAILURE_MESSAGE = "Lead consumption failed"


def status_code_for(code: Any) -> int:
    return STATUS_CODE_BY_CONSUMPTION_CODE.get(str(code or "").strip().upper(), 400)


class ConsumptionStage(str, Enum):
    """Steps of one multi-step consumption attempt, in order."""

    VALIDATING = "VALIDATING"
    LOADING_LEAD = "LOADING_LEAD"
    LOADING_SUBSCRIPTION = "LOADING_SUBSCRIPTION"
    CHECKING_EXISTING = "CHECKING_EXISTING"
    CHECKING_CAP = "CHECKING_CAP"
    SELECTING_TIER = "SELECTING_TIER"
    RECORDING = "RECORDING"
    DONE = "DONE"


@dataclass(frozen=True, slots=True)
class ConsumptionResult:
    """Outcome of the multi-step consumption path."""

    success: bool
    code: Optional[ConsumptionCode] = None
    error: Optional[str] = None
    stage: ConsumptionStage = ConsumptionStage.DONE
    existing_purchase: bool = False
    consumption_type: Optional[ConsumptionType] = None
    remaining: Optional[QuotaRemaining] = None
    purchase: Optional[LeadPurchase] = None
    purchase_datetime: Optional[str] = None
    plan_name: str = ""
    lead_status: str = ""

    @classmethod
    def rejected(
        cls,
        code: ConsumptionCode,
        error: str,
        stage: ConsumptionStage,
        remaining: Optional[QuotaRemaining] = None,
        plan_name: str = "",
    ) -> "ConsumptionResult":
        return cls(
            success=False,
            code=code,
            error=error,
            stage=stage,
            remaining=remaining,
            plan_name=plan_name,
        )

    def as_dict(self) -> Dict[str, Any]:
        if not self.success:
            payload: Dict[str, Any] = {
                "success": False,
                "code": self.code.value if self.code else None,
                "error": self.error,
            }
            if self.remaining is not None:
                payload["remaining"] = self.remaining.as_dict()
            if self.plan_name:
                payload["plan_name"] = self.plan_name
            return payload

        return {
            "success": True,
            "existing_purchase": self.existing_purchase,
            "consumption_type": self.consumption_type.value if self.consumption_type else None,
            "remaining": (self.remaining or QuotaRemaining()).as_dict(),
            "purchase_datetime": self.purchase_datetime,
            "plan_name": self.plan_name,
            "lead_status": self.lead_status,
            "purchase": dict(self.purchase.raw) if self.purchase else None,
        }


def _normalize_remaining(value: Any) -> Dict[str, int]:
    value = value if isinstance(value, Mapping) else {}
    return {
        "daily": to_non_negative_count(value.get("daily")),
        "weekly": to_non_negative_count(value.get("weekly")),
        "yearly": to_non_negative_count(value.get("yearly")),
    }


def build_result_envelope(result: Any) -> Dict[str, Any]:
    """Normalize a consumption result mapping into the caller-facing envelope."""

    result = result if isinstance(result, Mapping) else {}

    if result.get("success"):
        purchase = result.get("purchase")
        purchase = dict(purchase) if isinstance(purchase, Mapping) else None
        consumption_type = result.get("consumption_type") or (purchase or {}).get("consumption_type")
        purchase_datetime = (
            result.get("purchase_datetime")
            or (purchase or {}).get("purchase_datetime")
            or (purchase or {}).get("purchase_date")
        )
        return {
            "success": True,
            "existing_purchase": bool(result.get("existing_purchase")),
            "consumption_type": str(consumption_type or ConsumptionType.PAID_EXTRA.value).strip().upper(),
            "remaining": _normalize_remaining(result.get("remaining")),
            "purchase_datetime": purchase_datetime,
            "plan_name": str(result.get("plan_name") or result.get("subscription_plan_name") or ""),
            "lead_status": str(result.get("lead_status") or (purchase or {}).get("lead_status") or ""),
            "purchase": purchase,
        }

    code = str(result.get("code") or _DEFAULT_FAILURE_CODE).strip().upper()
    envelope: Dict[str, Any] = {
        "success": False,
        "code": code,
        "error": result.get("error") or _DEFAULT_FAILURE_MESSAGE,
        "statusCode": status_code_for(code),
    }
    if isinstance(result.get("remaining"), Mapping):
        envelope["remaining"] = _normalize_remaining(result["remaining"])
    return envelope
