"""
Services package
"""
from order_service.services.order_reader import OrderReader
from order_service.services.order_writer import OrderWriter
from order_service.services.order_service import OrderService

__all__ = ["OrderReader", "OrderWriter", "OrderService"]
