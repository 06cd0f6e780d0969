"""
Orders Document Integrity Checks

Inspects the raw persisted document (plain dicts, not validated models) so
that records the store would refuse to load can still be reported on.
Used by scripts/verify.py.
"""

import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Union

STATUS_TIMESTAMP = {
    "IN_PROGRESS": "acceptedAt",
    "COMPLETED": "doneAt",
    "CANCELED": "canceledAt",
}
TRANSITION_FIELDS = ("acceptedAt", "doneAt", "canceledAt")
DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


@dataclass
class IntegrityReport:
    """Result of checking one orders document."""
    total_orders: int = 0
    problems: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.problems


def _check_order(record: dict[str, Any]) -> list[str]:
    label = f"Order #{record.get('id')}"
    problems = []

    order_id = record.get("id")
    if not isinstance(order_id, int) or isinstance(order_id, bool) or order_id < 1:
        problems.append(f"{label}: id must be a positive integer")

    items = record.get("items")
    if not isinstance(items, list) or not items:
        problems.append(f"{label}: items must be a non-empty array")

    if not isinstance(record.get("businessDate"), str) or not DATE_PATTERN.match(record["businessDate"]):
        problems.append(f"{label}: malformed businessDate {record.get('businessDate')!r}")

    status = record.get("status")
    if status == "NEW":
        stamped = [f for f in TRANSITION_FIELDS if record.get(f) is not None]
        if stamped:
            problems.append(f"{label}: NEW order has {', '.join(stamped)} set")
    elif status in STATUS_TIMESTAMP:
        expected = STATUS_TIMESTAMP[status]
        if record.get(expected) is None:
            problems.append(f"{label}: {status} order is missing {expected}")
        # DONE after ACCEPT keeps acceptedAt, so only the other terminal stamp is wrong
        for other in TRANSITION_FIELDS:
            if other in (expected, "acceptedAt") or record.get(other) is None:
                continue
            problems.append(f"{label}: {status} order has {other} set")
    else:
        problems.append(f"{label}: unknown status {status!r}")

    return problems


def verify_orders(records: list[dict[str, Any]]) -> IntegrityReport:
    """
    Check raw order records against the lifecycle invariants.

    Args:
        records: Parsed JSON array from the orders document

    Returns:
        IntegrityReport listing every problem found
    """
    report = IntegrityReport(total_orders=len(records))
    seen: set = set()

    for record in records:
        if not isinstance(record, dict):
            report.problems.append(f"Non-object entry: {record!r}")
            continue
        order_id = record.get("id")
        if order_id in seen:
            report.problems.append(f"Order #{order_id}: duplicate id")
        seen.add(order_id)
        report.problems.extend(_check_order(record))

    return report


def load_records(path: Union[str, Path]) -> list[dict[str, Any]]:
    """Read the orders document as raw JSON; raises ValueError if it is not an array."""
    with open(path, encoding="utf-8") as fh:
        data = json.load(fh)
    if not isinstance(data, list):
        raise ValueError("orders document must be a JSON array")
    return data
