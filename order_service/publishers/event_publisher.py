"""
RabbitMQ Event Publisher
"""
import pika
import uuid
from datetime import datetime, timezone
from typing import Dict

import structlog

from order_service.config import settings
from order_service.schemas.order import OrderEvent

logger = structlog.get_logger(__name__)


class EventPublisher:
    """Publisher for sending order events to RabbitMQ"""

    def __init__(self):
        self.rabbitmq_url = settings.RABBITMQ_URL
        self.exchange = settings.RABBITMQ_EXCHANGE
        self.routing_key = settings.RABBITMQ_ROUTING_KEY

    def build_event(self, event_type: str, data: Dict) -> OrderEvent:
        return OrderEvent(
            event_type=event_type,
            event_id=str(uuid.uuid4()),
            timestamp=datetime.now(timezone.utc).isoformat(),
            source=settings.SERVICE_NAME,
            data=data,
        )

    def publish(self, event_type: str, routing_key: str, data: Dict, mandatory: bool = False) -> bool:
        """
        Publish one event to the orders exchange

        Args:
            event_type: Event name, e.g. OrderCreated
            routing_key: Topic routing key
            data: JSON-serializable payload
            mandatory: Fail if no queue is bound for the routing key

        Returns:
            True if published successfully, False otherwise
        """
        event = self.build_event(event_type, data)
        try:
            connection = pika.BlockingConnection(
                pika.URLParameters(self.rabbitmq_url)
            )
            try:
                channel = connection.channel()

                channel.exchange_declare(
                    exchange=self.exchange,
                    exchange_type='topic',
                    durable=True
                )

                # Enable publisher confirms
                channel.confirm_delivery()

                channel.basic_publish(
                    exchange=self.exchange,
                    routing_key=routing_key,
                    body=event.model_dump_json(),
                    properties=pika.BasicProperties(
                        delivery_mode=2,  # Persistent message
                        content_type='application/json',
                        correlation_id=event.event_id
                    ),
                    mandatory=mandatory
                )
            finally:
                connection.close()

        except pika.exceptions.UnroutableError:
            logger.warning("Event could not be routed to any queue", event_type=event_type, event_id=event.event_id)
            return False
        except (pika.exceptions.AMQPError, OSError) as e:
            logger.error("Error publishing event", event_type=event_type, error=str(e))
            return False

        logger.info("Event published", event_type=event_type, event_id=event.event_id)
        return True

    def publish_order_created(self, order_data: Dict) -> bool:
        """Publish OrderCreated event"""
        return self.publish("OrderCreated", self.routing_key, order_data, mandatory=True)

    def publish_order_status_changed(self, order_data: Dict) -> bool:
        """Publish OrderStatusChanged event"""
        return self.publish("OrderStatusChanged", "order.status.changed", order_data)
