"""
Order Domain Models

The order collection lives in memory and is persisted as one JSON
document, so the entities are Pydantic models rather than ORM tables.
Python attributes are snake_case; the wire and storage format uses
camelCase (createdBy, businessDate, acceptedAt, ...).

Version: 1.0.0
"""

import enum
import math
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class OrderStatus(str, enum.Enum):
    """Order status workflow."""
    NEW = "NEW"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELED = "CANCELED"

    @property
    def is_terminal(self) -> bool:
        return self in (OrderStatus.COMPLETED, OrderStatus.CANCELED)


class OrderAction(str, enum.Enum):
    """Kitchen actions that move an order through its lifecycle."""
    ACCEPT = "ACCEPT"
    DONE = "DONE"
    CANCEL = "CANCEL"


class CamelModel(BaseModel):
    """Base model serializing field names as camelCase."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


def _loose_number(value: Any) -> Optional[Union[int, float]]:
    """Numbers and numeric strings pass through; anything else is missing."""
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        try:
            value = float(value)
        except ValueError:
            return None
    if not isinstance(value, (int, float)):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return value


class LineItem(CamelModel):
    """
    Single item in an order.

    Items are stored as the front of house sent them. A quantity or price
    that is not a finite number (or numeric string) is kept as missing and
    counts as zero; a non-text name or note is stored as its text form. A
    non-object entry becomes an item named after its value.
    """

    name: str = Field(default="", examples=["Tacos al Pastor"])
    qty: Optional[Union[int, float]] = Field(default=None, examples=[2])
    price: Optional[Union[int, float]] = Field(default=None, examples=[10.5])
    note: Optional[str] = Field(default=None, examples=["no onion"])

    @model_validator(mode="before")
    @classmethod
    def coerce_loose_item(cls, data: Any) -> Any:
        if isinstance(data, LineItem):
            return data
        if not isinstance(data, dict):
            return {"name": "" if data is None else str(data)}

        data = dict(data)
        name = data.get("name")
        data["name"] = "" if name is None else str(name)
        if data.get("note") is not None:
            data["note"] = str(data["note"])
        for key in ("qty", "price"):
            data[key] = _loose_number(data.get(key))
        return data


class Order(CamelModel):
    """
    A front-of-house order.

    Timestamps are epoch milliseconds. acceptedAt, doneAt and canceledAt
    are set once, by the transition that enters the matching status.
    businessDate is fixed when the order is created.
    """

    id: int = Field(..., ge=1)
    created_by: str = "FrontDesk"
    order_type: str = "Takeaway"
    notes: str = ""
    items: list[LineItem] = Field(..., min_length=1)
    status: OrderStatus = OrderStatus.NEW

    # =========================================================================
    # TIMESTAMPS
    # =========================================================================
    created_at: int
    accepted_at: Optional[int] = None
    done_at: Optional[int] = None
    canceled_at: Optional[int] = None

    business_date: str = Field(..., pattern=r"^\d{4}-\d{2}-\d{2}$")

    def to_json_dict(self) -> dict:
        """Wire/storage representation."""
        return self.model_dump(mode="json", by_alias=True)

    def __repr__(self):
        return f"<Order #{self.id} - {self.order_type} - {self.status.value}>"
