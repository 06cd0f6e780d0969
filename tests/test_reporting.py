import csv
import io

import pytest

from kds.models import LineItem
from kds.services import lifecycle, reporting

from tests.conftest import TACO, TODAY

TAX = 0.09


def parse(text):
    return list(csv.reader(io.StringIO(text)))


class TestSummary:
    def test_empty_day_is_all_zero(self, store):
        report = reporting.summary(store.snapshot(), TODAY, TAX)
        assert report.date == TODAY
        assert report.total_orders == 0
        assert (report.completed, report.canceled, report.in_progress) == (0, 0, 0)
        assert report.avg_prep_min == 0
        assert (report.subtotal, report.tax, report.grand_total) == (0, 0, 0)

    def test_single_order_money(self, store):
        store.create(items=[TACO])
        report = reporting.summary(store.snapshot(), TODAY, TAX)
        assert report.subtotal == 20.0
        assert report.tax == 1.8
        assert report.grand_total == 21.8

    def test_avg_prep_excludes_canceled_but_counts_them(self, store, clock):
        done = store.create(items=[TACO])
        canceled = store.create(items=[TACO])
        clock.advance(minutes=15)
        lifecycle.apply_action(store, done.id, "DONE")
        lifecycle.apply_action(store, canceled.id, "CANCEL")

        report = reporting.summary(store.snapshot(), TODAY, TAX)
        assert report.avg_prep_min == 15.0
        assert report.total_orders == 2
        assert report.completed == 1
        assert report.canceled == 1
        # canceled order carries no money
        assert report.subtotal == 20.0

    def test_counts_by_status(self, store):
        for _ in range(4):
            store.create(items=[TACO])
        lifecycle.apply_action(store, 1, "ACCEPT")
        lifecycle.apply_action(store, 2, "ACCEPT")
        lifecycle.apply_action(store, 3, "DONE")

        report = reporting.summary(store.snapshot(), TODAY, TAX)
        assert report.total_orders == 4
        assert report.new == 1
        assert report.in_progress == 2
        assert report.completed == 1
        assert report.canceled == 0

    def test_avg_prep_rounded_to_one_decimal(self, store, clock):
        first = store.create(items=[TACO])
        second = store.create(items=[TACO])
        clock.advance(minutes=10)
        lifecycle.apply_action(store, first.id, "DONE")
        clock.advance(minutes=2, seconds=10)
        lifecycle.apply_action(store, second.id, "DONE")
        # (10 + 12.1666...) / 2 = 11.0833...
        assert reporting.summary(store.snapshot(), TODAY, TAX).avg_prep_min == 11.1

    def test_other_dates_ignored(self, store, clock):
        store.create(items=[TACO])
        clock.advance(minutes=24 * 60)
        store.create(items=[{"name": "Flan", "qty": 1, "price": 4.0}])

        report = reporting.summary(store.snapshot(), "2026-03-15", TAX)
        assert report.total_orders == 1
        assert report.subtotal == 4.0

    def test_completion_before_creation_is_ignored(self, store):
        order = store.create(items=[TACO])
        broken = lifecycle.transition(order, "DONE", order.created_at - 60000)
        assert reporting.avg_prep_minutes([broken]) == 0.0

    def test_aggregate_subtotal_rounded_once(self, store):
        for _ in range(3):
            store.create(items=[{"name": "Salsa", "qty": 1, "price": 0.05}])
        report = reporting.summary(store.snapshot(), TODAY, TAX)
        # 0.15 * 0.09 = 0.0135 on the aggregate; each order alone would be taxed 0.00
        assert report.subtotal == 0.15
        assert report.tax == 0.01
        assert report.grand_total == 0.16


class TestCsvExport:
    def test_header_and_field_counts(self, store):
        store.create(items=[{"name": "Taco, al pastor", "qty": 2, "price": 3.5}])
        store.create(notes='say "hola"', items=[TACO])
        rows = parse(reporting.export_csv(store.snapshot(), TODAY, TAX))

        assert rows[0] == reporting.CSV_COLUMNS
        data = rows[1:3]
        assert all(len(row) == len(rows[0]) for row in data)

    def test_quoting_of_commas_and_quotes(self, store):
        store.create(
            notes='say "hola"',
            items=[{"name": "Taco, al pastor", "qty": 2, "price": 3.5, "note": "no onion"}],
        )
        text = reporting.export_csv(store.snapshot(), TODAY, TAX)
        line = text.split("\n")[1]

        assert '"2x Taco, al pastor (no onion) $3.50"' in line
        assert '"say ""hola"""' in line

    def test_row_values(self, store, clock):
        order = store.create(items=[{"name": "Taco, al pastor", "qty": 2, "price": 3.5}])
        clock.advance(minutes=1)
        lifecycle.apply_action(store, order.id, "ACCEPT")

        row = parse(reporting.export_csv(store.snapshot(), TODAY, TAX))[1]
        record = dict(zip(reporting.CSV_COLUMNS, row))
        assert record["id"] == "1"
        assert record["businessDate"] == TODAY
        assert record["status"] == "IN_PROGRESS"
        assert record["orderType"] == "Takeaway"
        assert record["createdBy"] == "FrontDesk"
        assert record["createdAt"] == str(order.created_at)
        assert record["acceptedAt"] == str(clock.now)
        assert record["doneAt"] == ""
        assert (record["subtotal"], record["tax"], record["total"]) == ("7.00", "0.63", "7.63")
        assert record["notes"] == ""
        assert record["items"] == "2x Taco, al pastor $3.50"

    def test_rows_in_stored_order_with_footer(self, store):
        store.create(items=[TACO])
        store.create(items=[TACO])
        lifecycle.apply_action(store, 2, "CANCEL")
        store.create(items=[{"name": "Flan", "qty": 1, "price": 4.0}])

        lines = reporting.export_csv(store.snapshot(), TODAY, TAX).split("\n")
        assert [line.split(",")[0] for line in lines[1:4]] == ["1", "2", "3"]
        assert lines[4] == ""

        footer = parse("\n".join(lines[5:]))
        pad = [""] * 4
        assert footer[0] == [""] * 7 + ["Daily Subtotal", "24.00"] + pad
        assert footer[1] == [""] * 7 + ["Daily Tax", "2.16"] + pad
        assert footer[2] == [""] * 7 + ["Daily Total", "26.16"] + pad

    def test_footer_matches_summary(self, store):
        for _ in range(3):
            store.create(items=[{"name": "Salsa", "qty": 1, "price": 0.05}])
        text = reporting.export_csv(store.snapshot(), TODAY, TAX)
        report = reporting.summary(store.snapshot(), TODAY, TAX)

        rows = parse(text)
        assert [row[8] for row in rows[1:4]] == ["0.05", "0.05", "0.05"]
        assert [row[9] for row in rows[1:4]] == ["0.00", "0.00", "0.00"]
        footer = {row[7]: row[8] for row in rows[4:] if row}
        assert footer["Daily Subtotal"] == f"{report.subtotal:.2f}"
        assert footer["Daily Tax"] == f"{report.tax:.2f}"
        assert footer["Daily Total"] == f"{report.grand_total:.2f}"

    def test_empty_day_has_header_and_zero_footer(self, store):
        lines = reporting.export_csv(store.snapshot(), TODAY, TAX).split("\n")
        assert lines[0] == ",".join(reporting.CSV_COLUMNS)
        assert lines[1] == ""
        assert lines[2].endswith("Daily Subtotal,0.00,,,,")

    def test_filename(self):
        assert reporting.export_filename(TODAY) == "orders_2026-03-14.csv"


@pytest.mark.parametrize(
    "item, expected",
    [
        (LineItem(name="Taco", qty=2, price=3.5), "2x Taco $3.50"),
        (LineItem(name="Taco", qty=2.0, price=3), "2x Taco $3.00"),
        (LineItem(name="Queso", qty=1.5, price=None), "1.5x Queso"),
        (LineItem(name="Agua", qty=None, price=None, note="fresa"), "0x Agua (fresa)"),
    ],
)
def test_format_item(item, expected):
    assert reporting.format_item(item) == expected


def test_format_items_joined_with_pipes():
    items = [LineItem(name="Taco", qty=1, price=2), LineItem(name="Flan", qty=1, price=4)]
    assert reporting.format_items(items) == "1x Taco $2.00 | 1x Flan $4.00"
