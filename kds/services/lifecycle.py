"""
Order Lifecycle State Machine

    ACCEPT   NEW               -> IN_PROGRESS   stamps acceptedAt
    DONE     NEW, IN_PROGRESS  -> COMPLETED     stamps doneAt
    CANCEL   NEW, IN_PROGRESS  -> CANCELED      stamps canceledAt

COMPLETED and CANCELED are terminal. Every timestamp is set exactly once,
by the transition that enters its status.
"""

import logging
from dataclasses import dataclass
from typing import Union

from kds.core.exceptions import InvalidTransitionError
from kds.models import Order, OrderAction, OrderStatus
from kds.services.order_store import OrderStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Transition:
    """One row of the transition table."""
    valid_from: frozenset
    target: OrderStatus
    timestamp_field: str


TRANSITIONS: dict[OrderAction, Transition] = {
    OrderAction.ACCEPT: Transition(
        valid_from=frozenset({OrderStatus.NEW}),
        target=OrderStatus.IN_PROGRESS,
        timestamp_field="accepted_at",
    ),
    OrderAction.DONE: Transition(
        valid_from=frozenset({OrderStatus.NEW, OrderStatus.IN_PROGRESS}),
        target=OrderStatus.COMPLETED,
        timestamp_field="done_at",
    ),
    OrderAction.CANCEL: Transition(
        valid_from=frozenset({OrderStatus.NEW, OrderStatus.IN_PROGRESS}),
        target=OrderStatus.CANCELED,
        timestamp_field="canceled_at",
    ),
}


def parse_action(raw: Union[str, OrderAction, None]) -> OrderAction:
    """Map a raw action tag onto OrderAction, rejecting anything unknown."""
    if isinstance(raw, OrderAction):
        return raw
    try:
        return OrderAction(raw)
    except ValueError:
        raise InvalidTransitionError(f"Unknown action: {raw!r}")


def allowed_actions(status: OrderStatus) -> list[OrderAction]:
    """Actions that are legal from ``status``, in table order."""
    return [action for action, rule in TRANSITIONS.items() if status in rule.valid_from]


def transition(order: Order, action: Union[str, OrderAction], now: int) -> Order:
    """
    Return a copy of ``order`` with ``action`` applied at instant ``now``.

    Args:
        order: Current order (left untouched)
        action: ACCEPT, DONE or CANCEL
        now: Epoch milliseconds to stamp

    Raises:
        InvalidTransitionError: unknown action, or not legal from the current status
    """
    action = parse_action(action)
    rule = TRANSITIONS[action]
    if order.status not in rule.valid_from:
        allowed = ", ".join(a.value for a in allowed_actions(order.status)) or "none"
        raise InvalidTransitionError(
            f"Cannot {action.value} order #{order.id} in status {order.status.value} "
            f"(allowed: {allowed})"
        )
    return order.model_copy(update={"status": rule.target, rule.timestamp_field: now})


def apply_action(store: OrderStore, order_id: int, action: Union[str, OrderAction, None]) -> OrderStatus:
    """
    Validate and apply a kitchen action to a stored order, then persist.

    The order is looked up before the action is parsed, so an unknown id
    reports NotFoundError even when the action is also bad.

    Returns:
        The order's new status

    Raises:
        NotFoundError: no order has that id
        InvalidTransitionError: action unknown or illegal from the current status
        StorageWriteError: the change could not be persisted (nothing applied)
    """
    updated = store.update(order_id, lambda order: transition(order, action, store.clock()))
    logger.info(f"Order #{order_id} -> {updated.status.value}")
    return updated.status
