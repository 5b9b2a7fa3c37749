"""
Order Repository - Data Access Layer
"""
from datetime import datetime
from typing import Iterable, List, Optional

from sqlalchemy import select, update
from sqlalchemy.engine import RowMapping
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from order_service.models.catalog import Product, User
from order_service.models.order import Order, OrderItem
from order_service.models.status import OrderStatus


HEADER_COLUMNS = (
    Order.id,
    Order.order_code,
    Order.user_id,
    Order.status,
    Order.total_amount,
    Order.shipping_fee,
    Order.discount_amount,
    Order.payment_method,
    Order.shipping_address,
    Order.coupon_code,
    Order.created_at,
    Order.updated_at,
)

OWNER_COLUMNS = (
    User.email,
    User.name.label("user_name"),
)

ITEM_COLUMNS = (
    OrderItem.id.label("item_id"),
    OrderItem.product_id,
    OrderItem.quantity,
    OrderItem.unit_price,
    OrderItem.total_price,
    Product.name.label("product_name"),
    Product.description,
    Product.image_url,
    Product.category,
)


class OrderRepository:
    """Repository for order headers and line items"""

    def __init__(self, db: Session):
        self.db = db

    def create(self, order_data: dict, items_data: List[dict]) -> int:
        """
        Insert an order header and its items in one transaction

        Args:
            order_data: Order header columns
            items_data: One dict of item columns per line item

        Returns:
            The new order ID

        Raises:
            SQLAlchemyError: The transaction was rolled back, nothing persisted
        """
        try:
            order = Order(**order_data)
            order.items = [OrderItem(**item_data) for item_data in items_data]
            self.db.add(order)
            # Header is inserted first; the unit of work fills order_id on each item
            self.db.flush()

            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
        return order.id

    def _aggregate_query(self):
        return (
            select(*HEADER_COLUMNS, *OWNER_COLUMNS, User.phone, *ITEM_COLUMNS)
            .select_from(Order)
            .outerjoin(User, User.id == Order.user_id)
            .outerjoin(OrderItem, OrderItem.order_id == Order.id)
            .outerjoin(Product, Product.id == OrderItem.product_id)
        )

    def get_rows_by_id(self, order_id: int) -> List[RowMapping]:
        """Joined header/owner/item/product rows for one order, one row per item"""
        query = self._aggregate_query().where(Order.id == order_id).order_by(OrderItem.id)
        return list(self.db.execute(query).mappings().all())

    def get_rows_by_user_id(self, user_id: int) -> List[RowMapping]:
        """Joined rows for every order of a user, newest order first"""
        query = (
            self._aggregate_query()
            .where(Order.user_id == user_id)
            .order_by(Order.created_at.desc(), Order.id.desc(), OrderItem.id)
        )
        return list(self.db.execute(query).mappings().all())

    def get_by_order_code(self, order_code: str) -> Optional[Order]:
        """Get order header by order code"""
        # Status updates bypass the identity map, so reload any cached instance
        return self.db.execute(
            select(Order)
            .where(Order.order_code == order_code)
            .execution_options(populate_existing=True)
        ).scalars().first()

    def get_all(
        self,
        status: Optional[OrderStatus] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> List[RowMapping]:
        """Order headers with owner fields, filtered by every given predicate"""
        query = (
            select(*HEADER_COLUMNS, *OWNER_COLUMNS)
            .select_from(Order)
            .outerjoin(User, User.id == Order.user_id)
        )

        if status is not None:
            query = query.where(Order.status == OrderStatus(status).value)
        if start_date is not None:
            query = query.where(Order.created_at >= start_date)
        if end_date is not None:
            query = query.where(Order.created_at <= end_date)

        query = query.order_by(Order.created_at.desc(), Order.id.desc())
        return list(self.db.execute(query).mappings().all())

    def get_status(self, order_id: int) -> Optional[str]:
        """Current status of an order, or None if it does not exist"""
        return self.db.execute(
            select(Order.status).where(Order.id == order_id)
        ).scalar_one_or_none()

    def update_status(
        self,
        order_id: int,
        new_status: OrderStatus,
        from_statuses: Iterable[OrderStatus],
    ) -> bool:
        """
        Set the status of an order whose current status is in ``from_statuses``

        Runs as one conditional UPDATE, so the status check and the write
        cannot interleave with another update.

        Returns:
            True if a row was updated, False if the order does not exist or
            its status is not in ``from_statuses``
        """
        sources = [OrderStatus(s).value for s in from_statuses]
        if not sources:
            return False

        statement = (
            update(Order)
            .where(Order.id == order_id, Order.status.in_(sources))
            .values(status=OrderStatus(new_status).value)
            .execution_options(synchronize_session=False)
        )
        try:
            result = self.db.execute(statement)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
        return result.rowcount > 0
