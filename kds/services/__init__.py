"""
                        Services Module

Business logic of the order lifecycle engine.

Services:
    - business_date: calendar-day attribution of orders
    - money: subtotal, tax and total rounding
    - order_store: thread-safe order collection with JSON persistence
    - lifecycle: ACCEPT / DONE / CANCEL state machine
    - reporting: daily summary and CSV export
    - integrity: checks on the persisted orders document
"""

from kds.services.order_store import OrderStore

__all__ = ["OrderStore"]
