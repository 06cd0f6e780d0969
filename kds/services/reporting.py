"""
Daily Reporting

Summary statistics and the CSV export for one business date.

Money aggregation:
    Both the summary and the CSV footer round the summed subtotal of all
    non-canceled orders once and derive tax and total from that figure.
    The per-order subtotal/tax/total columns of the CSV are each order's
    own rounded values, so summing the tax column by hand can differ from
    the footer by a cent; the footer always equals /api/summary.

Version: 1.0.0
"""

import csv
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Iterable, Optional

import pandas as pd

from kds.models import LineItem, Order, OrderStatus
from kds.schemas import SummaryReport
from kds.services import money

CSV_COLUMNS = [
    "id",
    "businessDate",
    "status",
    "orderType",
    "createdBy",
    "createdAt",
    "acceptedAt",
    "doneAt",
    "subtotal",
    "tax",
    "total",
    "notes",
    "items",
]

# footer amounts sit under the subtotal column, labels one column to the left
FOOTER_VALUE_COLUMN = CSV_COLUMNS.index("subtotal")


def orders_for_date(orders: Iterable[Order], date: str) -> list[Order]:
    """Orders attributed to ``date``, in stored order."""
    return [o for o in orders if o.business_date == date]


def avg_prep_minutes(orders: Iterable[Order]) -> float:
    """
    Mean minutes from creation to completion, rounded to 1 decimal.

    Orders without doneAt, or with doneAt before createdAt, are left out.
    """
    minutes = [
        (o.done_at - o.created_at) / 60000
        for o in orders
        if o.created_at is not None and o.done_at is not None and o.done_at >= o.created_at
    ]
    if not minutes:
        return 0.0
    mean = sum(minutes) / len(minutes)
    return float(Decimal(repr(mean)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def daily_money(orders: Iterable[Order], tax_rate: float) -> money.MoneyBreakdown:
    """Subtotal, tax and total over the non-canceled orders."""
    raw = sum(money.subtotal(o) for o in orders if o.status != OrderStatus.CANCELED)
    return money.money_breakdown(raw, tax_rate)


def summary(orders: Iterable[Order], date: str, tax_rate: float) -> SummaryReport:
    """
    Build the daily summary for ``date``.

    Args:
        orders: The store snapshot
        date: Business date (YYYY-MM-DD)
        tax_rate: Configured tax rate

    Returns:
        SummaryReport with counts, avgPrepMin and money totals
    """
    day = orders_for_date(orders, date)
    totals = daily_money(day, tax_rate)

    def count(status: OrderStatus) -> int:
        return sum(1 for o in day if o.status == status)

    return SummaryReport(
        date=date,
        total_orders=len(day),
        new=count(OrderStatus.NEW),
        in_progress=count(OrderStatus.IN_PROGRESS),
        completed=count(OrderStatus.COMPLETED),
        canceled=count(OrderStatus.CANCELED),
        avg_prep_min=avg_prep_minutes(day),
        subtotal=totals.subtotal,
        tax=totals.tax,
        grand_total=totals.total,
    )


# =============================================================================
# CSV EXPORT
# =============================================================================

def _format_number(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def format_item(item: LineItem) -> str:
    """Render one line item as ``{qty}x {name}{ (note)}{ $price}``."""
    qty = _format_number(item.qty) if item.qty is not None else "0"
    text = f"{qty}x {item.name}"
    if item.note:
        text += f" ({item.note})"
    if isinstance(item.price, (int, float)) and not isinstance(item.price, bool):
        text += f" ${item.price:.2f}"
    return text


def format_items(items: Iterable[LineItem]) -> str:
    return " | ".join(format_item(it) for it in items)


def _cents(amount: float) -> str:
    return f"{amount:.2f}"


def _csv_row(order: Order, tax_rate: float) -> dict[str, Optional[Any]]:
    row = {
        "id": order.id,
        "businessDate": order.business_date,
        "status": order.status.value,
        "orderType": order.order_type,
        "createdBy": order.created_by,
        "createdAt": order.created_at,
        "acceptedAt": order.accepted_at,
        "doneAt": order.done_at,
        "notes": order.notes or "",
        "items": format_items(order.items),
    }
    # subtotal, tax and total columns
    for column, amount in money.order_money(order, tax_rate).to_dict().items():
        row[column] = _cents(amount)
    return row


def _footer_row(label: str, amount: float) -> list[str]:
    row = [""] * len(CSV_COLUMNS)
    row[FOOTER_VALUE_COLUMN - 1] = label
    row[FOOTER_VALUE_COLUMN] = _cents(amount)
    return row


def _to_csv(df: pd.DataFrame, header: bool) -> str:
    return df.to_csv(
        index=False,
        header=header,
        na_rep="",
        lineterminator="\n",
        quoting=csv.QUOTE_MINIMAL,
    )


def export_csv(orders: Iterable[Order], date: str, tax_rate: float) -> str:
    """
    Render the orders of ``date`` as CSV text with a daily totals footer.

    Fields containing a comma, quote or line break are quoted and inner
    quotes doubled. Timestamps are raw epoch milliseconds, empty when unset.
    """
    day = orders_for_date(orders, date)
    rows = [_csv_row(o, tax_rate) for o in day]

    # object dtype keeps integer timestamps from turning into floats around NaN
    body = _to_csv(pd.DataFrame(rows, columns=CSV_COLUMNS, dtype=object), header=True)

    totals = daily_money(day, tax_rate)
    footer = pd.DataFrame(
        [
            _footer_row("Daily Subtotal", totals.subtotal),
            _footer_row("Daily Tax", totals.tax),
            _footer_row("Daily Total", totals.total),
        ],
        dtype=object,
    )
    return body + "\n" + _to_csv(footer, header=False)


def export_filename(date: str) -> str:
    return f"orders_{date}.csv"
