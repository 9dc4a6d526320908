"""
Domain: Lead purchase ledger rows.

Contract excerpts relevant here:
- A vendor may consume a given lead at most once: (vendor_id, lead_id) is unique.
- Ledger rows are written once and never updated or deleted by the engine.
- Two record shapes exist in deployed schemas. The rich shape carries
  consumption_type, purchase_price, purchase_datetime and the plan name; the
  legacy shape only has amount, payment_status and purchase_date.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Mapping, Optional

from .quota import ConsumptionType, to_non_negative_amount
from .time import parse_utc_timestamp

# Timestamp columns in priority order; the first one present wins.
_PURCHASE_TIMESTAMP_FIELDS = ("purchase_datetime", "purchase_date", "updated_at", "created_at")


def purchase_timestamp(row: Mapping[str, Any]) -> Optional[datetime]:
    """Authoritative timestamp of a ledger row, whichever shape it has."""

    for name in _PURCHASE_TIMESTAMP_FIELDS:
        value = row.get(name)
        if value:
            return parse_utc_timestamp(value)
    return None


@dataclass(frozen=True, slots=True)
class LeadPurchase:
    """
    Immutable view of one `lead_purchases` row.

    `consumption_type` is None for legacy rows that never stored it; such rows
    never count toward included usage.
    """

    vendor_id: str
    lead_id: str
    consumption_type: Optional[ConsumptionType]
    purchase_price: Decimal
    purchased_at: Optional[datetime]
    purchase_id: Optional[str] = None
    plan_name: str = ""
    lead_status: str = ""
    raw: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "LeadPurchase":
        price = row.get("purchase_price")
        if price is None:
            price = row.get("amount")
        purchase_id = row.get("id")
        return cls(
            vendor_id=str(row.get("vendor_id") or ""),
            lead_id=str(row.get("lead_id") or ""),
            consumption_type=ConsumptionType.parse(row.get("consumption_type")),
            purchase_price=to_non_negative_amount(price),
            purchased_at=purchase_timestamp(row),
            purchase_id=str(purchase_id) if purchase_id is not None else None,
            plan_name=str(row.get("subscription_plan_name") or "").strip(),
            lead_status=str(row.get("lead_status") or "").strip(),
            raw=dict(row),
        )

    @property
    def replay_consumption_type(self) -> ConsumptionType:
        """Type reported when this purchase is replayed; unknown reads as paid."""
        return self.consumption_type or ConsumptionType.PAID_EXTRA

    @property
    def purchase_datetime(self) -> Optional[str]:
        """The stored purchase timestamp exactly as the row holds it."""
        value = self.raw.get("purchase_datetime") or self.raw.get("purchase_date")
        return str(value) if value else None
