"""
Pydantic Schemas for Request/Response Validation

Request bodies are validated here, at the HTTP boundary, before anything
reaches the order engine. Optional order fields get their documented
defaults from the settings when a client leaves them out.

Version: 1.0.0
"""

from datetime import datetime
from typing import Any, List, Optional

from pydantic import Field, field_validator

from kds.models import CamelModel, LineItem, OrderStatus


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================

class OrderCreate(CamelModel):
    """
    Request schema for creating a new order.

    createdBy and orderType fall back to the configured defaults
    ("FrontDesk" / "Takeaway") when absent or blank; notes defaults to "".
    """

    created_by: Optional[str] = Field(None, examples=["FrontDesk"])
    order_type: Optional[str] = Field(None, examples=["Takeaway", "DineIn"])
    notes: Optional[str] = None
    items: List[LineItem] = Field(..., min_length=1)

    @field_validator("created_by", "order_type", "notes", mode="before")
    @classmethod
    def text_fields_as_text(cls, v: Any) -> Any:
        if v is None or isinstance(v, str):
            return v
        return str(v)

    @field_validator("items", mode="before")
    @classmethod
    def validate_items(cls, v: Any) -> Any:
        if not isinstance(v, list) or not v:
            raise ValueError("items must be a non-empty array")
        return v


class OrderActionRequest(CamelModel):
    """Request schema for advancing an order (ACCEPT, DONE, CANCEL)."""
    action: Optional[str] = Field(None, examples=["ACCEPT"])


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class OrderCreateResponse(CamelModel):
    """Response after successfully creating an order."""
    id: int
    status: OrderStatus


class OrderActionResponse(CamelModel):
    """Response after a successful status transition."""
    ok: bool = True
    status: OrderStatus


class MetaResponse(CamelModel):
    """Store metadata shown by the front-of-house and kitchen screens."""
    store_name: str
    business_date_today: str


class SummaryReport(CamelModel):
    """Daily operational and financial summary for one business date."""
    date: str
    total_orders: int = 0
    new: int = 0
    in_progress: int = 0
    completed: int = 0
    canceled: int = 0
    avg_prep_min: float = 0.0
    subtotal: float = 0.0
    tax: float = 0.0
    grand_total: float = 0.0


class ErrorResponse(CamelModel):
    """Standard error response."""
    success: bool = False
    error: str
    detail: Optional[str] = None


class HealthResponse(CamelModel):
    """Health check response."""
    status: str
    storage: str
    orders_loaded: int
    data_file: str
    timestamp: datetime
