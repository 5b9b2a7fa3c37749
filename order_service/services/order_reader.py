"""
Order Reader - builds order aggregates from joined rows and applies status changes
"""
from contextlib import contextmanager
from datetime import datetime
from typing import Dict, Iterable, List, Mapping, Optional

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from order_service.exceptions import ConflictError, NotFoundError, StorageError, ValidationError
from order_service.models.status import OrderStatus, CANCELLABLE_STATUSES, allowed_sources
from order_service.repositories.order_repository import OrderRepository
from order_service.schemas.order import OrderFilters, OrderResponse, OrderSummaryResponse

logger = structlog.get_logger(__name__)

# Row keys that belong to a line item rather than to the order header
ITEM_KEYS = (
    "product_id",
    "quantity",
    "unit_price",
    "total_price",
    "product_name",
    "description",
    "image_url",
    "category",
)


def fold_order_rows(rows: Iterable[Mapping]) -> List[dict]:
    """
    Fold joined order/item rows into one dict per order

    Rows are partitioned by the order ``id``; orders keep the position of
    their first row. Each order gets an ``items`` list sorted by item id.
    Rows with a NULL ``item_id`` come from an order without items and add
    nothing to ``items``.
    """
    orders: Dict[int, dict] = {}
    for row in rows:
        order = orders.get(row["id"])
        if order is None:
            order = {
                key: row[key] for key in row.keys()
                if key != "item_id" and key not in ITEM_KEYS
            }
            order["items"] = []
            orders[row["id"]] = order

        if row["item_id"] is None:
            continue
        item = {"id": row["item_id"]}
        item.update((key, row[key]) for key in ITEM_KEYS if key in row.keys())
        order["items"].append(item)

    for order in orders.values():
        order["items"].sort(key=lambda item: item["id"])
    return list(orders.values())


@contextmanager
def storage_errors(action: str, **context):
    """Report database failures as StorageError without exposing their text"""
    try:
        yield
    except SQLAlchemyError as e:
        logger.error("Database error", action=action, error=str(e), **context)
        raise StorageError(f"Failed to {action}") from e


class OrderReader:
    """Read side of the order aggregate plus in-place status changes"""

    def __init__(self, db: Session):
        self.repository = OrderRepository(db)

    def get_by_id(self, order_id: int) -> OrderResponse:
        """
        Get one order with its items, product details and owner details

        Raises:
            NotFoundError: No order with this ID
            StorageError: The database query failed
        """
        with storage_errors("get order", order_id=order_id):
            rows = self.repository.get_rows_by_id(order_id)

        orders = fold_order_rows(rows)
        if not orders:
            raise NotFoundError(f"Order with id={order_id} not found")
        return OrderResponse.model_validate(orders[0])

    def get_by_user_id(self, user_id: int) -> List[OrderResponse]:
        """All orders of a user with their items, newest first"""
        with storage_errors("get user orders", user_id=user_id):
            rows = self.repository.get_rows_by_user_id(user_id)
        return [OrderResponse.model_validate(o) for o in fold_order_rows(rows)]

    def get_by_order_code(self, order_code: str) -> OrderSummaryResponse:
        """Order header by order code, without items"""
        with storage_errors("get order by code", order_code=order_code):
            order = self.repository.get_by_order_code(order_code)
        if order is None:
            raise NotFoundError(f"Order with code={order_code} not found")
        return OrderSummaryResponse.model_validate(order)

    def list_all(
        self,
        status: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> List[OrderSummaryResponse]:
        """Order headers with owner fields; every given filter must match"""
        try:
            filters = OrderFilters(status=status, start_date=start_date, end_date=end_date)
        except ValueError as e:
            raise ValidationError(f"Invalid order filters: {e}") from e

        with storage_errors("list orders", status=status):
            rows = self.repository.get_all(
                status=filters.status,
                start_date=filters.start_date,
                end_date=filters.end_date,
            )
        return [OrderSummaryResponse.model_validate(dict(row)) for row in rows]

    def update_status(self, order_id: int, new_status: str) -> OrderResponse:
        """
        Move an order to ``new_status`` if the transition table allows it

        Raises:
            ValidationError: ``new_status`` is missing or not a known status
            NotFoundError: No order with this ID
            ConflictError: The transition table forbids the change
        """
        if not new_status:
            raise ValidationError("Status is required")
        try:
            target = OrderStatus(new_status)
        except ValueError:
            raise ValidationError(
                f"Invalid status '{new_status}'. Allowed: {', '.join(OrderStatus.values())}"
            )

        with storage_errors("update order status", order_id=order_id):
            updated = self.repository.update_status(order_id, target, allowed_sources(target))
            current = None if updated else self.repository.get_status(order_id)

        if not updated:
            if current is None:
                raise NotFoundError(f"Order with id={order_id} not found")
            logger.warning("Status transition refused", order_id=order_id, status=current, target=target.value)
            raise ConflictError(f"Order {order_id} cannot move from '{current}' to '{target.value}'")

        logger.info("Order status updated", order_id=order_id, status=target.value)
        return self.get_by_id(order_id)

    def cancel(self, order_id: int) -> OrderResponse:
        """
        Cancel a pending order

        Raises:
            NotFoundError: No order with this ID
            ConflictError: The order is not pending
        """
        with storage_errors("cancel order", order_id=order_id):
            updated = self.repository.update_status(
                order_id, OrderStatus.CANCELLED, CANCELLABLE_STATUSES
            )
            current = None if updated else self.repository.get_status(order_id)

        if not updated:
            if current is None:
                raise NotFoundError(f"Order with id={order_id} not found")
            logger.warning("Cancel refused", order_id=order_id, status=current)
            raise ConflictError(
                f"Cannot cancel order {order_id}: only pending orders can be cancelled (status is '{current}')"
            )

        logger.info("Order cancelled", order_id=order_id)
        return self.get_by_id(order_id)
