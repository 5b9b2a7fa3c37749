"""
SQLAlchemy Order and OrderItem models
"""
from datetime import datetime, timezone

from sqlalchemy import (
    Column, Integer, String, Float, DateTime, Text, ForeignKey,
    CheckConstraint, UniqueConstraint
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from order_service.database import Base
from order_service.models.status import OrderStatus


_STATUS_VALUES = ", ".join(f"'{s}'" for s in OrderStatus.values())


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Order(Base):
    """Order header; owns its line items"""

    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    order_code = Column(String(32), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    status = Column(String(20), nullable=False, default=OrderStatus.PENDING.value, index=True)
    total_amount = Column(Float, nullable=False)
    shipping_fee = Column(Float, nullable=False, default=0)
    discount_amount = Column(Float, nullable=False, default=0)
    payment_method = Column(String(50), nullable=False, default="cod")
    shipping_address = Column(Text, nullable=True)
    coupon_code = Column(String(50), nullable=True)
    # Written by the ORM at full precision; SQLite stores CURRENT_TIMESTAMP without
    # microseconds, which would break inclusive date-range filters
    created_at = Column(DateTime(timezone=True), default=utc_now, server_default=func.now(), nullable=False, index=True)
    updated_at = Column(
        DateTime(timezone=True), default=utc_now, server_default=func.now(), onupdate=utc_now, nullable=False
    )

    items = relationship(
        "OrderItem",
        back_populates="order",
        order_by="OrderItem.id",
    )

    # Constraints
    __table_args__ = (
        UniqueConstraint("order_code", name="uq_orders_order_code"),
        CheckConstraint("total_amount >= 0", name="check_total_amount_non_negative"),
        CheckConstraint("shipping_fee >= 0", name="check_shipping_fee_non_negative"),
        CheckConstraint("discount_amount >= 0", name="check_discount_amount_non_negative"),
        CheckConstraint(f"status IN ({_STATUS_VALUES})", name="check_status_valid"),
    )

    def __repr__(self):
        return f"<Order(id={self.id}, order_code='{self.order_code}', user_id={self.user_id}, status='{self.status}')>"


class OrderItem(Base):
    """Order line item; prices are captured at order time"""

    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Float, nullable=False)
    total_price = Column(Float, nullable=False)

    order = relationship("Order", back_populates="items")

    __table_args__ = (
        CheckConstraint("quantity > 0", name="check_quantity_positive"),
        CheckConstraint("unit_price >= 0", name="check_unit_price_non_negative"),
        CheckConstraint("total_price >= 0", name="check_total_price_non_negative"),
    )

    def __repr__(self):
        return f"<OrderItem(id={self.id}, order_id={self.order_id}, product_id={self.product_id}, quantity={self.quantity})>"
