# storefront/domain/order_status.py
from enum import Enum


class OrderStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    RETURN_INITIATED = "return_initiated"
    RETURN_COMPLETED = "return_completed"
    RETURN_CANCELLED = "return_cancelled"


# pending -> ... -> delivered
FORWARD_CHAIN = (
    OrderStatus.PENDING,
    OrderStatus.CONFIRMED,
    OrderStatus.PROCESSING,
    OrderStatus.OUT_FOR_DELIVERY,
    OrderStatus.DELIVERED,
)

RETURN_STATUSES = frozenset({
    OrderStatus.RETURN_INITIATED,
    OrderStatus.RETURN_COMPLETED,
    OrderStatus.RETURN_CANCELLED,
})

# customer-requestable statuses and the exact status the order must be in
CUSTOMER_RETURN_PRECONDITIONS = {
    OrderStatus.RETURN_INITIATED: OrderStatus.DELIVERED,
    OrderStatus.RETURN_CANCELLED: OrderStatus.RETURN_INITIATED,
}


def _admin_transitions() -> dict:
    table = {status: frozenset() for status in OrderStatus}
    for index, status in enumerate(FORWARD_CHAIN[:-1]):
        table[status] = frozenset(FORWARD_CHAIN[index + 1:]) | {OrderStatus.CANCELLED}
    return table


# admin moves: any forward step, or cancel before delivery
ADMIN_TRANSITIONS = _admin_transitions()
