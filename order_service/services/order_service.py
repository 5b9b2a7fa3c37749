"""
Order Service - Business Logic Layer
"""
from datetime import datetime
from typing import List, Mapping, Optional, Union

import structlog
from sqlalchemy.orm import Session

from order_service.config import settings
from order_service.publishers.event_publisher import EventPublisher
from order_service.schemas.order import OrderCreate, OrderResponse, OrderSummaryResponse
from order_service.services.order_reader import OrderReader
from order_service.services.order_writer import OrderWriter

logger = structlog.get_logger(__name__)


class OrderService:
    """Service layer combining the order writer, reader and event publisher"""

    def __init__(self, db: Session, event_publisher: EventPublisher = None):
        self.reader = OrderReader(db)
        self.writer = OrderWriter(db, reader=self.reader)
        self.event_publisher = event_publisher or EventPublisher()

    def create_order(self, order_data: Union[OrderCreate, Mapping]) -> OrderResponse:
        """Create an order and announce it"""
        order = self.writer.create(order_data)

        self._publish(
            self.event_publisher.publish_order_created,
            {
                'order_id': order.id,
                'order_code': order.order_code,
                'user_id': order.user_id,
                'total_amount': order.total_amount,
                'status': order.status.value,
                'items': [
                    {
                        'product_id': item.product_id,
                        'quantity': item.quantity,
                        'unit_price': item.unit_price,
                        'total_price': item.total_price,
                    }
                    for item in order.items
                ],
            }
        )
        return order

    def get_order_by_id(self, order_id: int) -> OrderResponse:
        return self.reader.get_by_id(order_id)

    def get_orders_by_user(self, user_id: int) -> List[OrderResponse]:
        return self.reader.get_by_user_id(user_id)

    def get_order_by_code(self, order_code: str) -> OrderSummaryResponse:
        return self.reader.get_by_order_code(order_code)

    def get_all_orders(
        self,
        status: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> List[OrderSummaryResponse]:
        return self.reader.list_all(status=status, start_date=start_date, end_date=end_date)

    def update_order_status(self, order_id: int, new_status: str) -> OrderResponse:
        """Set an order's status and announce the change"""
        order = self.reader.update_status(order_id, new_status)
        self._publish_status_changed(order)
        return order

    def cancel_order(self, order_id: int) -> OrderResponse:
        """Cancel a pending order and announce the change"""
        order = self.reader.cancel(order_id)
        self._publish_status_changed(order)
        return order

    def _publish_status_changed(self, order: OrderResponse) -> None:
        self._publish(
            self.event_publisher.publish_order_status_changed,
            {
                'order_id': order.id,
                'order_code': order.order_code,
                'new_status': order.status.value,
                'updated_at': order.updated_at.isoformat(),
            }
        )

    def _publish(self, publish, event_data: dict) -> None:
        # Events are best effort; the database change is already committed
        if not settings.EVENTS_ENABLED:
            return
        if not publish(event_data):
            logger.warning("Order event not delivered", order_id=event_data.get('order_id'))
