"""
Orders Document Verification Script

Verifies the integrity of the persisted orders document and prints a
per-day overview.
Run from project root: python scripts/verify.py [path/to/orders.json]

Version: 1.0.0
"""

import os
import sys
from datetime import datetime

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pandas as pd

from kds.core.config import get_settings
from kds.services import money
from kds.services.integrity import load_records, verify_orders


def verify_document(path: str) -> bool:
    """Verify the orders document after a service day."""
    settings = get_settings()

    print("=" * 60)
    print("🔍 ORDERS VERIFICATION REPORT")
    print("=" * 60)
    print(f"⏰ Timestamp: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print(f"📄 File: {path}")
    print("=" * 60)

    if not os.path.exists(path):
        print("\n❌ Orders document not found!")
        print("   Start the API and create an order first.")
        return False

    try:
        records = load_records(path)
        print("\n✅ File loaded successfully!")
    except (OSError, ValueError) as e:
        print(f"\n❌ Could not read orders document: {e}")
        return False

    report = verify_orders(records)
    print(f"\n📊 STATISTICS:")
    print(f"   Total Orders: {report.total_orders}")

    if report.ok:
        print("✅ All lifecycle invariants hold")
    else:
        print(f"\n⚠️ {len(report.problems)} problem(s) found:")
        for problem in report.problems:
            print(f"   - {problem}")

    rows = [r for r in records if isinstance(r, dict)]
    df = pd.DataFrame(rows)
    if rows and {"id", "status", "businessDate"} <= set(df.columns):
        df["subtotal"] = [money.round2(money.subtotal(r.get("items") or [])) for r in rows]
        df.loc[df["status"] == "CANCELED", "subtotal"] = 0.0

        print(f"\n💰 REVENUE BY BUSINESS DATE (pre-tax, canceled excluded):")
        print("-" * 60)
        by_day = df.groupby("businessDate").agg(
            orders=("id", "count"),
            subtotal=("subtotal", "sum"),
        )
        by_day["subtotal"] = by_day["subtotal"].map(money.round2)
        print(by_day.to_string())

        print(f"\n📋 STATUS COUNTS:")
        print(df["status"].value_counts().to_string())

    print("\n" + "=" * 60)
    print("✅ VERIFICATION COMPLETE" if report.ok else "⚠️ VERIFICATION FOUND PROBLEMS")
    print("=" * 60)

    return report.ok


if __name__ == "__main__":
    target = sys.argv[1] if len(sys.argv) > 1 else str(get_settings().orders_file)
    sys.exit(0 if verify_document(target) else 1)
