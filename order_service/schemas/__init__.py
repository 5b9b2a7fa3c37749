"""
Schemas package
"""
from order_service.schemas.order import (
    OrderItemCreate,
    OrderCreate,
    OrderStatusUpdate,
    OrderFilters,
    OrderItemResponse,
    OrderSummaryResponse,
    OrderResponse,
    OrderCreatedResponse,
    OrderEvent
)

__all__ = [
    "OrderItemCreate",
    "OrderCreate",
    "OrderStatusUpdate",
    "OrderFilters",
    "OrderItemResponse",
    "OrderSummaryResponse",
    "OrderResponse",
    "OrderCreatedResponse",
    "OrderEvent"
]
