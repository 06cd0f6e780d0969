"""
Money Calculator

Line-item subtotals and the derived tax/total for orders and daily reports.

Rounding is half-up to cents on the decimal representation of the float,
so 1.005 rounds to 1.01 instead of the 1.00 binary rounding would give.
Tax is always computed from the already-rounded subtotal, and the total
is the rounded sum of the two rounded parts.
"""

import math
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Any, Iterable, Union

from kds.models import LineItem, Order

CENTS = Decimal("0.01")


@dataclass(frozen=True)
class MoneyBreakdown:
    """Independently rounded subtotal, tax and total."""
    subtotal: float
    tax: float
    total: float

    def to_dict(self) -> dict:
        return {"subtotal": self.subtotal, "tax": self.tax, "total": self.total}


def _number(value: Any) -> float:
    """Coerce a quantity or price to float; anything unusable counts as zero."""
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, str):
        try:
            value = float(value)
        except ValueError:
            return 0.0
    if not isinstance(value, (int, float)):
        return 0.0
    value = float(value)
    if math.isnan(value) or math.isinf(value):
        return 0.0
    return value


def _item_fields(item: Union[LineItem, dict]) -> tuple[Any, Any]:
    if isinstance(item, LineItem):
        return item.qty, item.price
    if isinstance(item, dict):
        return item.get("qty"), item.get("price")
    return None, None


def round2(amount: float) -> float:
    """
    Round a currency amount half-up to 2 decimals.

    Example:
        >>> round2(1.005)
        1.01
        >>> round2(2.675)
        2.68
    """
    try:
        quantized = Decimal(repr(float(amount))).quantize(CENTS, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError):
        return 0.0
    result = float(quantized)
    # avoid -0.0 in reports
    return result + 0.0


def subtotal(order_or_items: Union[Order, Iterable[Union[LineItem, dict]]]) -> float:
    """Sum of qty * price over the line items (unrounded). Never raises."""
    items = order_or_items.items if isinstance(order_or_items, Order) else order_or_items
    if items is None:
        return 0.0
    total = 0.0
    for item in items:
        qty, price = _item_fields(item)
        total += _number(qty) * _number(price)
    return total


def tax(amount: float, rate: float) -> float:
    """Tax on an already-rounded subtotal."""
    return round2(amount * rate)


def total(amount: float, rate: float) -> float:
    return round2(amount + tax(amount, rate))


def money_breakdown(amount: float, rate: float) -> MoneyBreakdown:
    """
    Round a raw subtotal and derive tax and total from it.

    Args:
        amount: Raw (unrounded) subtotal
        rate: Tax rate as decimal

    Returns:
        MoneyBreakdown with each value rounded to cents
    """
    rounded = round2(amount)
    return MoneyBreakdown(
        subtotal=rounded,
        tax=tax(rounded, rate),
        total=total(rounded, rate),
    )


def order_money(order: Order, rate: float) -> MoneyBreakdown:
    """Per-order rounded subtotal, tax and total."""
    return money_breakdown(subtotal(order), rate)
