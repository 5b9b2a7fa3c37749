"""
Models package
"""
from order_service.models.catalog import User, Product
from order_service.models.order import Order, OrderItem
from order_service.models.status import (
    OrderStatus,
    STATUS_TRANSITIONS,
    CANCELLABLE_STATUSES,
)

__all__ = [
    "User",
    "Product",
    "Order",
    "OrderItem",
    "OrderStatus",
    "STATUS_TRANSITIONS",
    "CANCELLABLE_STATUSES",
]
