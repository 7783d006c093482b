# storefront/domain/status.py
from enum import Enum


class OrderStatus(str, Enum):
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    PICKED_UP = "picked_up"
    ON_THE_WAY = "on_the_way"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


# forward chain; cancelled is applied from outside and is not part of it
STATUS_CHAIN = (
    OrderStatus.CONFIRMED,
    OrderStatus.PREPARING,
    OrderStatus.PICKED_UP,
    OrderStatus.ON_THE_WAY,
    OrderStatus.DELIVERED,
)

TERMINAL_STATUSES = frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED})


def is_terminal(status: OrderStatus) -> bool:
    return OrderStatus(status) in TERMINAL_STATUSES


def next_status(status: OrderStatus) -> OrderStatus | None:
    """Next stage of the chain, or None for a terminal status."""
    status = OrderStatus(status)
    if status in TERMINAL_STATUSES:
        return None
    return STATUS_CHAIN[STATUS_CHAIN.index(status) + 1]
