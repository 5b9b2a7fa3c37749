"""
Order Writer - validates and atomically persists new orders
"""
from typing import List, Mapping, Tuple, Union

import structlog
from pydantic import ValidationError as SchemaValidationError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from tenacity import retry, stop_after_attempt, retry_if_exception_type

from order_service.config import settings
from order_service.exceptions import (
    OrderCodeCollisionError,
    StorageError,
    ValidationError,
    format_validation_errors,
)
from order_service.models.status import OrderStatus
from order_service.repositories.order_repository import OrderRepository
from order_service.schemas.order import OrderCreate, OrderResponse
from order_service.services.order_code import generate_order_code
from order_service.services.order_reader import OrderReader

logger = structlog.get_logger(__name__)


def is_order_code_violation(error: IntegrityError) -> bool:
    """True if the unique constraint on order codes was violated"""
    message = str(error.orig)
    return "uq_orders_order_code" in message or "orders.order_code" in message


class OrderWriter:
    """Creates orders: header and items are stored together or not at all"""

    def __init__(self, db: Session, reader: OrderReader = None):
        self.repository = OrderRepository(db)
        self.reader = reader or OrderReader(db)

    def create(self, order_data: Union[OrderCreate, Mapping]) -> OrderResponse:
        """
        Create new order

        Steps:
        1. Validate input (no database access before this passes)
        2. Generate an order code
        3. Insert header and items in one transaction
        4. Re-read the stored aggregate

        Args:
            order_data: OrderCreate or a camelCase/snake_case mapping

        Returns:
            The created order with its server-assigned ID, code and timestamps

        Raises:
            ValidationError: Missing or malformed input
            StorageError: The transaction failed and was rolled back
        """
        order = self.validate(order_data)

        header = {
            "user_id": order.user_id,
            "status": OrderStatus.PENDING.value,
            "total_amount": order.total_amount,
            "shipping_fee": order.shipping_fee or 0,
            "discount_amount": order.discount_amount or 0,
            "payment_method": order.payment_method or settings.DEFAULT_PAYMENT_METHOD,
            "shipping_address": order.shipping_address,
            "coupon_code": order.coupon_code or None,
        }
        items = [
            {
                "product_id": item.product_id,
                "quantity": item.quantity,
                "unit_price": item.unit_price,
                "total_price": item.total_price,
            }
            for item in order.items
        ]

        try:
            order_id, order_code = self._insert(header, items)
        except OrderCodeCollisionError as e:
            logger.error("Order code collision persisted after retry", user_id=order.user_id)
            raise StorageError("Failed to create order") from e

        logger.info(
            "Order created",
            order_id=order_id,
            order_code=order_code,
            user_id=order.user_id,
            items=len(items),
        )
        return self.reader.get_by_id(order_id)

    @staticmethod
    def validate(order_data: Union[OrderCreate, Mapping]) -> OrderCreate:
        """Return a validated OrderCreate or raise ValidationError"""
        if not isinstance(order_data, OrderCreate):
            try:
                order_data = OrderCreate.model_validate(order_data)
            except SchemaValidationError as e:
                raise ValidationError(format_validation_errors(e.errors())) from e

        if not order_data.user_id or not order_data.items or order_data.total_amount is None:
            raise ValidationError("Missing required fields")
        return order_data

    @retry(
        stop=stop_after_attempt(settings.ORDER_CODE_MAX_ATTEMPTS),
        retry=retry_if_exception_type(OrderCodeCollisionError),
        reraise=True
    )
    def _insert(self, header: dict, items: List[dict]) -> Tuple[int, str]:
        """One transaction attempt with a freshly generated order code"""
        order_code = generate_order_code(settings.ORDER_CODE_PREFIX)

        try:
            order_id = self.repository.create({**header, "order_code": order_code}, items)
        except IntegrityError as e:
            if is_order_code_violation(e):
                logger.warning("Order code collision, regenerating", order_code=order_code)
                raise OrderCodeCollisionError(f"Order code {order_code} already exists") from e
            logger.error("Order rejected by database constraints", user_id=header["user_id"], error=str(e.orig))
            raise StorageError("Failed to create order") from e
        except SQLAlchemyError as e:
            logger.error("Failed to create order", user_id=header["user_id"], error=str(e))
            raise StorageError("Failed to create order") from e

        return order_id, order_code
