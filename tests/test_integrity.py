import json

import pytest

from kds.services import lifecycle
from kds.services.integrity import load_records, verify_orders

from tests.conftest import TACO


def record(**overrides):
    base = {
        "id": 1,
        "createdBy": "FrontDesk",
        "orderType": "Takeaway",
        "notes": "",
        "items": [TACO],
        "status": "NEW",
        "createdAt": 1_773_489_600_000,
        "acceptedAt": None,
        "doneAt": None,
        "canceledAt": None,
        "businessDate": "2026-03-14",
    }
    base.update(overrides)
    return base


def test_store_output_passes(store, orders_path):
    for _ in range(4):
        store.create(items=[TACO])
    lifecycle.apply_action(store, 1, "ACCEPT")
    lifecycle.apply_action(store, 1, "DONE")
    lifecycle.apply_action(store, 2, "CANCEL")
    lifecycle.apply_action(store, 3, "ACCEPT")

    report = verify_orders(load_records(orders_path))
    assert report.ok, report.problems
    assert report.total_orders == 4


@pytest.mark.parametrize(
    "bad, fragment",
    [
        (record(status="IN_PROGRESS"), "missing acceptedAt"),
        (record(status="COMPLETED", doneAt=5, canceledAt=6), "has canceledAt set"),
        (record(status="CANCELED", canceledAt=5, doneAt=6), "has doneAt set"),
        (record(status="IN_PROGRESS", acceptedAt=5, doneAt=6), "has doneAt set"),
        (record(acceptedAt=5), "NEW order has acceptedAt set"),
        (record(status="SHIPPED"), "unknown status"),
        (record(items=[]), "non-empty array"),
        (record(id=0), "positive integer"),
        (record(businessDate="14/03/2026"), "malformed businessDate"),
    ],
)
def test_invariant_violations_reported(bad, fragment):
    report = verify_orders([bad])
    assert not report.ok
    assert any(fragment in problem for problem in report.problems), report.problems


def test_completed_after_accept_is_fine():
    assert verify_orders([record(status="COMPLETED", acceptedAt=5, doneAt=6)]).ok


def test_duplicate_ids_reported():
    report = verify_orders([record(), record()])
    assert report.problems == ["Order #1: duplicate id"]


def test_load_records_requires_array(tmp_path):
    path = tmp_path / "orders.json"
    path.write_text(json.dumps({"id": 1}))
    with pytest.raises(ValueError):
        load_records(path)
