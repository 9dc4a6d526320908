"""
Tests for `services/usage_service.py`.

Covers contract rules:
- Included consumptions are counted per UTC day, ISO week and calendar year.
- Daily usage counts DAILY_INCLUDED rows only.
- PAID_EXTRA and legacy rows without a consumption type never count.
- The timestamp comes from whichever column the record shape has.
"""

from __future__ import annotations

from domain.quota import QuotaLimits, QuotaRemaining, QuotaUsage
from services.usage_service import count_included_usage, get_quota_summary


def test_no_history_means_no_usage(db, now) -> None:
    assert count_included_usage(db, "vendor-a", now) == QuotaUsage(0, 0, 0)


def test_counts_by_window(db, now) -> None:
    db.add_purchase("vendor-a", "l1", "DAILY_INCLUDED", "2024-03-06T08:00:00+00:00")  # today
    db.add_purchase("vendor-a", "l2", "DAILY_INCLUDED", "2024-03-05T08:00:00+00:00")  # this week
    db.add_purchase("vendor-a", "l3", "WEEKLY_INCLUDED", "2024-03-06T09:00:00+00:00")  # today, weekly tier
    db.add_purchase("vendor-a", "l4", "WEEKLY_INCLUDED", "2024-02-10T09:00:00+00:00")  # this year
    db.add_purchase("vendor-a", "l5", "DAILY_INCLUDED", "2023-12-31T23:59:59+00:00")  # last year

    assert count_included_usage(db, "vendor-a", now) == QuotaUsage(daily=1, weekly=3, yearly=4)


def test_week_boundary_monday_midnight(db) -> None:
    """Monday 00:00 counts toward the new week; Sunday 23:59:59 does not."""

    from datetime import datetime, timezone

    reference = datetime(2024, 3, 6, 12, 0, tzinfo=timezone.utc)
    db.add_purchase("vendor-a", "l1", "WEEKLY_INCLUDED", "2024-03-04T00:00:00Z")
    db.add_purchase("vendor-a", "l2", "WEEKLY_INCLUDED", "2024-03-03T23:59:59Z")

    usage = count_included_usage(db, "vendor-a", reference)

    assert usage.weekly == 1
    assert usage.yearly == 2


def test_paid_and_legacy_rows_are_excluded(db, now) -> None:
    db.add_purchase("vendor-a", "l1", "PAID_EXTRA", "2024-03-06T08:00:00+00:00", purchase_price="49")
    db.add_purchase("vendor-a", "l2", None, "2024-03-06T08:00:00+00:00")

    assert count_included_usage(db, "vendor-a", now) == QuotaUsage(0, 0, 0)


def test_timestamp_fallback_columns(db, now) -> None:
    db.rows("lead_purchases").extend(
        [
            {"vendor_id": "vendor-a", "lead_id": "l1", "consumption_type": "DAILY_INCLUDED", "purchase_date": "2024-03-06T01:00:00Z"},
            {"vendor_id": "vendor-a", "lead_id": "l2", "consumption_type": "DAILY_INCLUDED", "created_at": "2024-03-06T02:00:00Z"},
            {"vendor_id": "vendor-a", "lead_id": "l3", "consumption_type": "DAILY_INCLUDED"},
        ]
    )

    assert count_included_usage(db, "vendor-a", now) == QuotaUsage(daily=2, weekly=2, yearly=2)


def test_other_vendors_are_not_counted(db, now) -> None:
    db.add_purchase("vendor-b", "l1", "DAILY_INCLUDED", "2024-03-06T08:00:00+00:00")

    assert count_included_usage(db, "vendor-a", now) == QuotaUsage(0, 0, 0)


def test_quota_summary(db, now) -> None:
    db.add_vendor("vendor-a", daily=1, weekly=3, yearly=100)
    db.add_purchase("vendor-a", "l1", "DAILY_INCLUDED", "2024-03-06T08:00:00+00:00")

    summary = get_quota_summary(db, "vendor-a", now)

    assert summary.subscription_active
    assert summary.plan_name == "Growth"
    assert summary.limits == QuotaLimits(1, 3, 100)
    assert summary.used == QuotaUsage(1, 1, 1)
    assert summary.remaining == QuotaRemaining(0, 2, 99)
    assert summary.computed_at == now
