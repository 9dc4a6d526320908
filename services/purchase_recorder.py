"""
Purchase recorder.

Writes the single `lead_purchases` row for a (vendor, lead) pair.

Handles:
- Record shapes: the rich shape is tried first; if the schema lacks one of its
  columns, the legacy shape is tried next.
- Unique-constraint races: if another request already wrote the row for this
  (vendor, lead) pair, that row is read back and returned as the result.

Any other store error propagates.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Dict, List, Tuple

from postgrest.exceptions import APIError
from supabase import Client  # type: ignore[import-not-found]

from domain.purchase import LeadPurchase
from domain.quota import ConsumptionType
from domain.time import require_utc_timestamp
from repositories.errors import describe_error, is_missing_column, is_unique_violation
from repositories.lead_purchase_repository import get_purchase, insert_purchase

logger = logging.getLogger(__name__)

PAYMENT_STATUS_COMPLETED = "COMPLETED"
VENDOR_LEAD_STATUS_ACTIVE = "ACTIVE"


@dataclass(frozen=True, slots=True)
class PurchaseDraft:
    """Everything needed to build any record shape."""

    vendor_id: str
    lead_id: str
    consumption_type: ConsumptionType
    purchase_price: Decimal
    plan_name: str
    purchased_at: datetime


@dataclass(frozen=True, slots=True)
class RecordedPurchase:
    """
    purchase: the unique row for (vendor_id, lead_id)
    created: False when a concurrent request had already written it
    template: name of the record shape that was accepted
    """

    purchase: LeadPurchase
    created: bool
    template: str


def _rich_record(draft: PurchaseDraft) -> Dict[str, Any]:
    timestamp = draft.purchased_at.isoformat()
    return {
        "vendor_id": draft.vendor_id,
        "lead_id": draft.lead_id,
        "amount": str(draft.purchase_price),
        "payment_status": PAYMENT_STATUS_COMPLETED,
        "purchase_date": timestamp,
        "consumption_type": draft.consumption_type.value,
        "purchase_price": str(draft.purchase_price),
        "purchase_datetime": timestamp,
        "subscription_plan_name": draft.plan_name or "",
        "lead_status": VENDOR_LEAD_STATUS_ACTIVE,
        "updated_at": timestamp,
    }


def _legacy_record(draft: PurchaseDraft) -> Dict[str, Any]:
    return {
        "vendor_id": draft.vendor_id,
        "lead_id": draft.lead_id,
        "amount": str(draft.purchase_price),
        "payment_status": PAYMENT_STATUS_COMPLETED,
        "purchase_date": draft.purchased_at.isoformat(),
    }


RecordTemplate = Tuple[str, Callable[[PurchaseDraft], Dict[str, Any]]]

# Tried in order; a missing-column error moves on to the next template.
RECORD_TEMPLATES: List[RecordTemplate] = [
    ("rich", _rich_record),
    ("legacy", _legacy_record),
]


def record_lead_purchase(
    db: Client,
    vendor_id: str,
    lead_id: str,
    consumption_type: ConsumptionType,
    purchase_price: Decimal,
    plan_name: str,
    purchased_at: datetime,
    templates: List[RecordTemplate] = RECORD_TEMPLATES,
) -> RecordedPurchase:
    """
    Insert the purchase row, trying each record template in turn.

    Returns:
        RecordedPurchase holding the one row unique for (vendor_id, lead_id)

    Raises:
        RuntimeError: the store rejected every template, or failed otherwise
    """

    require_utc_timestamp("purchased_at", purchased_at)
    draft = PurchaseDraft(
        vendor_id=str(vendor_id),
        lead_id=str(lead_id),
        consumption_type=consumption_type,
        purchase_price=purchase_price,
        plan_name=plan_name,
        purchased_at=purchased_at,
    )

    for position, (name, build_record) in enumerate(templates):
        try:
            inserted = insert_purchase(db, build_record(draft))
        except APIError as exc:
            if is_unique_violation(exc):
                existing = get_purchase(db, draft.vendor_id, draft.lead_id)
                if existing is not None:
                    logger.info(
                        "Lead purchase for vendor %s and lead %s was written concurrently",
                        draft.vendor_id,
                        draft.lead_id,
                    )
                    return RecordedPurchase(purchase=existing, created=False, template=name)

            has_next = position + 1 < len(templates)
            if has_next and is_missing_column(exc):
                logger.warning(
                    "lead_purchases rejected the %s record shape (%s); retrying with %s",
                    name,
                    describe_error(exc),
                    templates[position + 1][0],
                )
                continue

            raise RuntimeError(f"Failed to record lead purchase: {describe_error(exc)}") from exc

        if inserted is None:
            raise RuntimeError("Failed to record lead purchase: insert returned no row")
        return RecordedPurchase(purchase=inserted, created=True, template=name)

    raise RuntimeError("Failed to record lead purchase: no record template configured")


__all__ = [
    "RECORD_TEMPLATES",
    "PurchaseDraft",
    "RecordedPurchase",
    "record_lead_purchase",
]
