"""
Domain: Lead entity.

Contract excerpts implemented here:
- A Lead is an acquirable sales opportunity identified by lead_id.
- A Lead without an owning vendor is an open marketplace lead; a Lead with an
  owning vendor can only be consumed by that vendor.
- Status moves AVAILABLE -> PURCHASED on the first successful consumption and
  never reverts. Other statuses are terminal and block consumption.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional


class LeadStatus(str, Enum):
    AVAILABLE = "AVAILABLE"
    PURCHASED = "PURCHASED"


_CONSUMABLE_STATUSES = frozenset({LeadStatus.AVAILABLE.value, LeadStatus.PURCHASED.value})


@dataclass(frozen=True, slots=True)
class Lead:
    """
    Lead as seen by the consumption engine.

    Content fields (title, product, budget, contact details) are opaque here and
    kept in `raw`.
    """

    lead_id: str
    status: str = ""
    vendor_id: Optional[str] = None
    raw: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Lead":
        vendor_id = str(row.get("vendor_id") or "").strip()
        return cls(
            lead_id=str(row["id"]),
            status=str(row.get("status") or "").strip().upper(),
            vendor_id=vendor_id or None,
            raw=dict(row),
        )

    def is_consumable(self) -> bool:
        """An unset status is treated as available."""
        return not self.status or self.status in _CONSUMABLE_STATUSES

    def is_reserved_for_other(self, vendor_id: str) -> bool:
        return self.vendor_id is not None and self.vendor_id != str(vendor_id)

    @property
    def is_purchased(self) -> bool:
        return self.status == LeadStatus.PURCHASED.value
