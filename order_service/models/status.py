"""
Order status state machine
"""
from enum import Enum
from typing import Dict, FrozenSet


class OrderStatus(str, Enum):
    """Closed set of order states; new orders start as PENDING"""

    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPING = "shipping"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"

    @classmethod
    def values(cls) -> list:
        return [s.value for s in cls]


# Source state -> states reachable through a plain status update.
# Currently permissive: every state may move to every other state.
STATUS_TRANSITIONS: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    source: frozenset(OrderStatus) for source in OrderStatus
}

# Only these states may be moved to CANCELLED through the cancel operation
CANCELLABLE_STATUSES: FrozenSet[OrderStatus] = frozenset({OrderStatus.PENDING})


def allowed_sources(target: OrderStatus) -> FrozenSet[OrderStatus]:
    """States from which ``target`` may be reached by a status update"""
    return frozenset(
        source for source, targets in STATUS_TRANSITIONS.items() if target in targets
    )
