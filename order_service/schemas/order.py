"""
Pydantic schemas for request/response validation

Wire names are camelCase (``userId``, ``totalAmount``...); Python code uses
snake_case attribute names.
"""
from pydantic import BaseModel, Field, ConfigDict
from pydantic.alias_generators import to_camel
from typing import Optional, List
from datetime import datetime

from order_service.models.status import OrderStatus


class CamelModel(BaseModel):
    """Base schema with camelCase aliases"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class OrderItemCreate(CamelModel):
    """Line item as submitted by the client"""
    product_id: int = Field(..., gt=0, description="Product ID")
    quantity: int = Field(..., gt=0, description="Quantity to order")
    unit_price: float = Field(..., ge=0, description="Unit price at order time")
    total_price: float = Field(..., ge=0, description="Line total at order time")


class OrderCreate(CamelModel):
    """Schema for creating a new order"""
    user_id: int = Field(..., gt=0, description="Owning user ID")
    items: List[OrderItemCreate] = Field(..., min_length=1, description="Order line items")
    total_amount: float = Field(..., ge=0, description="Order total")
    shipping_fee: Optional[float] = Field(None, ge=0, description="Shipping fee (default 0)")
    discount_amount: Optional[float] = Field(None, ge=0, description="Discount (default 0)")
    payment_method: Optional[str] = Field(None, max_length=50, description="Payment method (default cod)")
    shipping_address: Optional[str] = Field(None, description="Shipping address")
    coupon_code: Optional[str] = Field(None, max_length=50, description="Coupon code")


class OrderStatusUpdate(CamelModel):
    """Schema for updating order status; the value is checked by the service"""
    status: str = Field(..., description="New status: " + ", ".join(OrderStatus.values()))


class OrderFilters(CamelModel):
    """Optional filters for listing orders; unset means unconstrained"""
    status: Optional[OrderStatus] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


class OrderItemResponse(CamelModel):
    """Line item with product details"""
    id: int
    product_id: int
    quantity: int
    unit_price: float
    total_price: float
    product_name: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    category: Optional[str] = None


class OrderSummaryResponse(CamelModel):
    """Order header without items"""
    id: int
    order_code: str
    user_id: int
    status: OrderStatus
    total_amount: float
    shipping_fee: float
    discount_amount: float
    payment_method: str
    shipping_address: Optional[str] = None
    coupon_code: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    email: Optional[str] = None
    user_name: Optional[str] = None


class OrderResponse(OrderSummaryResponse):
    """Order aggregate: header, owner details and line items"""
    phone: Optional[str] = None
    items: List[OrderItemResponse] = []


class OrderCreatedResponse(CamelModel):
    """Schema returned by order creation"""
    message: str = "Order created successfully"
    order_id: int
    order_code: str


class OrderEvent(BaseModel):
    """Schema for order event payloads published to RabbitMQ"""
    event_type: str
    event_id: str
    event_version: str = "1.0"
    timestamp: str
    source: str = "order-service"
    data: dict
