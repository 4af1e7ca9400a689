# backend/services/order_status.py
import enum
from datetime import datetime, timezone
from typing import Optional

from utils.errors import InvalidTransitionError, ValidationFailed


class OrderStatus(str, enum.Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"
    RETURNED = "RETURNED"


# Allowed moves for website and manual orders alike
TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED, OrderStatus.RETURNED},
    OrderStatus.DELIVERED: {OrderStatus.RETURNED},
    OrderStatus.CANCELLED: set(),
    OrderStatus.RETURNED: set(),
}


def can_transition(current: str, new: str) -> bool:
    try:
        return OrderStatus(new) in TRANSITIONS[OrderStatus(current)]
    except ValueError:
        return False


def apply_transition(order, new_status: str, now: Optional[datetime] = None):
    """Moves an order to new_status, stamping delivery or cancellation time."""
    try:
        target = OrderStatus(new_status)
    except ValueError:
        raise ValidationFailed(f"Unknown order status: {new_status}")

    if not can_transition(order.order_status, target.value):
        raise InvalidTransitionError(order.order_status, target.value)

    now = now or datetime.now(timezone.utc)
    order.order_status = target.value
    if target == OrderStatus.DELIVERED:
        order.actual_delivery = now
    elif target == OrderStatus.CANCELLED:
        order.cancelled_at = now
    return order
