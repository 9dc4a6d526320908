"""
Lead consumption service (multi-step path).

Decides whether a vendor's acquisition of a lead is covered by the included
quota of their subscription (daily, weekly, within the yearly ceiling) or must
be bought as a paid extra, and records the outcome once per (vendor, lead).

Process:
1. Validate input (vendor_id and lead_id present)
2. Load the lead; check it exists, is consumable and is not reserved for
   another vendor
3. Resolve the active subscription and replay included usage
4. Replay an existing purchase of this lead by this vendor (idempotent success)
5. Enforce the per-lead vendor cap
6. Select the tier
7. Record the purchase, sync the quota snapshot, mark the lead PURCHASED

This path is NOT transactional. Steps 4, 5 and the insert are separate round
trips: the unique constraint on (vendor_id, lead_id) resolves a vendor racing
itself, but two different vendors can both pass the cap check at count 4 and
leave a lead with 6 holders. The atomic procedure (see consumption_router)
does not have this gap.
"""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from postgrest.exceptions import APIError
from supabase import Client  # type: ignore[import-not-found]

from domain.consumption import (
    LEAD_VENDOR_CAP,
    ConsumptionCode,
    ConsumptionResult,
    ConsumptionStage,
)
from domain.purchase import LeadPurchase
from domain.quota import (
    ConsumptionMode,
    ConsumptionType,
    QuotaRemaining,
    QuotaUsage,
    normalize_consumption_mode,
    select_consumption_type,
    to_non_negative_amount,
)
from domain.time import require_utc_timestamp, utc_now
from repositories.errors import describe_error
from repositories.lead_purchase_repository import count_purchases_by_lead, get_purchase
from repositories.lead_repository import get_lead, mark_lead_purchased
from services.purchase_recorder import VENDOR_LEAD_STATUS_ACTIVE, record_lead_purchase
from services.quota_snapshot_service import sync_quota_snapshot
from services.subscription_service import resolve_active_subscription
from services.usage_service import count_included_usage

logger = logging.getLogger(__name__)


def _reject(
    vendor_id: Any,
    lead_id: Any,
    code: ConsumptionCode,
    error: str,
    stage: ConsumptionStage,
    remaining: Optional[QuotaRemaining] = None,
    plan_name: str = "",
) -> ConsumptionResult:
    logger.info(
        "Lead consumption rejected at %s for vendor %s and lead %s: %s",
        stage.value,
        vendor_id,
        lead_id,
        code.value,
    )
    return ConsumptionResult.rejected(code, error, stage, remaining=remaining, plan_name=plan_name)


def _replay(
    purchase: LeadPurchase,
    remaining: QuotaRemaining,
    plan_name: str,
    now: datetime,
    stage: ConsumptionStage,
) -> ConsumptionResult:
    """Success result for a lead this vendor already holds."""

    return ConsumptionResult(
        success=True,
        stage=stage,
        existing_purchase=True,
        consumption_type=purchase.replay_consumption_type,
        remaining=remaining,
        purchase=purchase,
        purchase_datetime=purchase.purchase_datetime or now.isoformat(),
        plan_name=purchase.plan_name or plan_name,
        lead_status=purchase.lead_status or VENDOR_LEAD_STATUS_ACTIVE,
    )


def consume_lead_multistep(
    db: Client,
    vendor_id: Any,
    lead_id: Any,
    mode: Any = ConsumptionMode.AUTO,
    purchase_price: Any = Decimal("0"),
    now: Optional[datetime] = None,
) -> ConsumptionResult:
    """
    Consume a lead for a vendor using separate store round trips.

    Domain rejections come back as unsuccessful results; store failures raise.

    Example:
        result = consume_lead_multistep(db, vendor_id, lead_id, mode="AUTO")
        if result.success:
            print(result.consumption_type, result.remaining)
        else:
            print(result.code, result.error)
    """

    # 1. Validate input
    vendor_id = str(vendor_id or "").strip()
    lead_id = str(lead_id or "").strip()
    if not vendor_id or not lead_id:
        return _reject(
            vendor_id,
            lead_id,
            ConsumptionCode.INVALID_INPUT,
            "vendor_id and lead_id are required",
            ConsumptionStage.VALIDATING,
        )

    consumption_mode = normalize_consumption_mode(mode)
    now = now or utc_now()
    require_utc_timestamp("now", now)

    # 2. Load the lead
    lead = get_lead(db, lead_id)
    if lead is None:
        return _reject(
            vendor_id, lead_id, ConsumptionCode.LEAD_NOT_FOUND, "Lead not found", ConsumptionStage.LOADING_LEAD
        )
    if not lead.is_consumable():
        return _reject(
            vendor_id,
            lead_id,
            ConsumptionCode.LEAD_UNAVAILABLE,
            "Lead no longer available",
            ConsumptionStage.LOADING_LEAD,
        )
    if lead.is_reserved_for_other(vendor_id):
        return _reject(
            vendor_id,
            lead_id,
            ConsumptionCode.LEAD_NOT_PURCHASABLE,
            "This lead is not purchasable",
            ConsumptionStage.LOADING_LEAD,
        )

    # 3. Subscription and usage
    active = resolve_active_subscription(db, vendor_id, now)
    if not active.is_active:
        return _reject(
            vendor_id,
            lead_id,
            ConsumptionCode.SUBSCRIPTION_INACTIVE,
            "No active subscription plan",
            ConsumptionStage.LOADING_SUBSCRIPTION,
        )

    usage = count_included_usage(db, vendor_id, now)
    remaining = QuotaRemaining.from_limits(active.limits, usage)

    # 4. Idempotent replay
    existing = get_purchase(db, vendor_id, lead_id)
    if existing is not None:
        return _replay(existing, remaining, active.plan_name, now, ConsumptionStage.CHECKING_EXISTING)

    # 5. Per-lead vendor cap
    if count_purchases_by_lead(db, lead_id) >= LEAD_VENDOR_CAP:
        return _reject(
            vendor_id,
            lead_id,
            ConsumptionCode.LEAD_CAP_REACHED,
            f"This lead has reached maximum {LEAD_VENDOR_CAP} vendors limit",
            ConsumptionStage.CHECKING_CAP,
        )

    # 6. Tier selection
    consumption_type = select_consumption_type(remaining, consumption_mode)
    if consumption_type is None:
        if remaining.yearly <= 0:
            error = "Yearly included quota exhausted. Paid consumption required."
        else:
            error = "Included quota exhausted. Paid consumption required."
        return _reject(
            vendor_id,
            lead_id,
            ConsumptionCode.PAID_REQUIRED,
            error,
            ConsumptionStage.SELECTING_TIER,
            remaining=remaining,
            plan_name=active.plan_name,
        )

    effective_price = (
        to_non_negative_amount(purchase_price)
        if consumption_type is ConsumptionType.PAID_EXTRA
        else Decimal("0")
    )

    # 7. Record
    recorded = record_lead_purchase(
        db,
        vendor_id=vendor_id,
        lead_id=lead_id,
        consumption_type=consumption_type,
        purchase_price=effective_price,
        plan_name=active.plan_name,
        purchased_at=now,
    )
    if not recorded.created:
        # Another request for the same pair won the insert; report its row.
        return _replay(recorded.purchase, remaining, active.plan_name, now, ConsumptionStage.RECORDING)

    usage_after: QuotaUsage = usage.record(consumption_type)
    remaining_after = QuotaRemaining.from_limits(active.limits, usage_after)

    sync_quota_snapshot(db, vendor_id, active.plan_id, active.limits, usage_after, now)

    if not lead.is_purchased:
        try:
            mark_lead_purchased(db, lead_id)
        except APIError as exc:
            logger.warning("Failed to mark lead %s as PURCHASED: %s", lead_id, describe_error(exc))

    purchase = recorded.purchase
    logger.info(
        "Vendor %s consumed lead %s as %s (%s record)",
        vendor_id,
        lead_id,
        consumption_type.value,
        recorded.template,
    )
    return ConsumptionResult(
        success=True,
        stage=ConsumptionStage.DONE,
        existing_purchase=False,
        consumption_type=consumption_type,
        remaining=remaining_after,
        purchase=purchase,
        purchase_datetime=purchase.purchase_datetime or now.isoformat(),
        plan_name=active.plan_name,
        lead_status=purchase.lead_status or VENDOR_LEAD_STATUS_ACTIVE,
    )


__all__ = ["consume_lead_multistep"]
