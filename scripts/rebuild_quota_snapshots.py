#!/usr/bin/env python3
"""
Quota Snapshot Rebuild Script

Replays each vendor's lead purchase history into the cached
`vendor_lead_quota` row and prints the resulting figures.

Usage:
    python scripts/rebuild_quota_snapshots.py VENDOR_ID [VENDOR_ID ...]
    python scripts/rebuild_quota_snapshots.py --reset VENDOR_ID
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from repositories.client import get_supabase
from services.quota_snapshot_service import rebuild_quota_snapshot, reset_quota_snapshot


def main() -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="Rebuild vendor lead quota snapshots from purchase history",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Rebuild one vendor
  python scripts/rebuild_quota_snapshots.py 123e4567-e89b-12d3-a456-426614174002

  # Zero the quota of vendors whose subscription expired
  python scripts/rebuild_quota_snapshots.py --reset VENDOR_ID VENDOR_ID
        """,
    )
    parser.add_argument("vendor_ids", nargs="+", help="Vendor IDs to process")
    parser.add_argument(
        "--reset",
        action="store_true",
        help="Zero limits and usage instead of rebuilding (subscription expired)",
    )
    args = parser.parse_args()

    db = get_supabase()
    failures = 0

    print("=" * 60)
    print("QUOTA SNAPSHOT RESET" if args.reset else "QUOTA SNAPSHOT REBUILD")
    print("=" * 60)

    for vendor_id in args.vendor_ids:
        if args.reset:
            if reset_quota_snapshot(db, vendor_id):
                print(f"[OK]   {vendor_id}: quota reset")
            else:
                failures += 1
                print(f"[FAIL] {vendor_id}: quota reset failed")
            continue

        try:
            summary, synced = rebuild_quota_snapshot(db, vendor_id)
        except RuntimeError as e:
            failures += 1
            print(f"[FAIL] {vendor_id}: {e}")
            continue

        plan = summary.plan_name or "(no plan)"
        if synced:
            print(f"[OK]   {vendor_id}: {plan}")
        else:
            failures += 1
            print(f"[FAIL] {vendor_id}: {plan} (snapshot write failed)")
        print(
            f"       used      daily={summary.used.daily:<5} "
            f"weekly={summary.used.weekly:<5} yearly={summary.used.yearly}"
        )
        print(
            f"       remaining daily={summary.remaining.daily:<5} "
            f"weekly={summary.remaining.weekly:<5} yearly={summary.remaining.yearly}"
        )

    print("=" * 60)
    print(f"Processed {len(args.vendor_ids)} vendor(s), {failures} failure(s)")
    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())
