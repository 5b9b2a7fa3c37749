"""
Order API endpoints
"""
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status, Query

from order_service.api.deps import CurrentUser, get_current_user, get_order_service, require_admin
from order_service.exceptions import (
    ConflictError,
    NotFoundError,
    OrderServiceError,
    StorageError,
    ValidationError,
)
from order_service.services.order_service import OrderService
from order_service.schemas.order import (
    OrderCreate,
    OrderCreatedResponse,
    OrderStatusUpdate,
    OrderResponse,
    OrderSummaryResponse,
)

router = APIRouter(prefix="/orders", tags=["orders"])


def to_http_error(error: OrderServiceError, not_found_status: int = status.HTTP_404_NOT_FOUND) -> HTTPException:
    """Map order service errors to HTTP errors; storage details are never exposed"""
    if isinstance(error, StorageError):
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Server error"
        )
    if isinstance(error, NotFoundError):
        return HTTPException(status_code=not_found_status, detail=error.message)
    if isinstance(error, (ValidationError, ConflictError)):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=error.message)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Server error")


@router.get("/health", summary="Orders health check")
def orders_health():
    """Liveness of the orders router"""
    return {"status": "OK", "service": "orders"}


@router.post(
    "",
    response_model=OrderCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create order"
)
def create_order(
    order_data: OrderCreate,
    service: OrderService = Depends(get_order_service),
    user: CurrentUser = Depends(get_current_user)
):
    """
    Create a new order with its line items

    Header and items are stored in one transaction.

    - **userId**: Owning user (required)
    - **items**: Non-empty list of {productId, quantity, unitPrice, totalPrice}
    - **totalAmount**: Order total (required)
    - **shippingFee**, **discountAmount**: Default 0
    - **paymentMethod**: Default cod
    - **shippingAddress**, **couponCode**: Optional
    """
    try:
        order = service.create_order(order_data)
    except StorageError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create order"
        ) from e
    except OrderServiceError as e:
        raise to_http_error(e) from e

    return OrderCreatedResponse(order_id=order.id, order_code=order.order_code)


@router.get("", response_model=List[OrderSummaryResponse], summary="Get all orders")
def get_orders(
    status_filter: Optional[str] = Query(None, alias="status", description="Exact order status"),
    start_date: Optional[datetime] = Query(None, alias="startDate", description="Created at or after"),
    end_date: Optional[datetime] = Query(None, alias="endDate", description="Created at or before"),
    service: OrderService = Depends(get_order_service),
    admin: CurrentUser = Depends(require_admin)
):
    """
    Retrieve all orders, newest first (admin only)

    Every supplied filter must match; omitted filters are not applied.
    """
    try:
        return service.get_all_orders(
            status=status_filter or None,
            start_date=start_date,
            end_date=end_date
        )
    except OrderServiceError as e:
        raise to_http_error(e) from e


@router.get("/user/{user_id}", response_model=List[OrderResponse], summary="Get orders by user")
def get_orders_by_user(
    user_id: int,
    service: OrderService = Depends(get_order_service),
    user: CurrentUser = Depends(get_current_user)
):
    """
    Get all orders of a user with their items, newest first

    - **user_id**: User ID
    """
    try:
        return service.get_orders_by_user(user_id)
    except OrderServiceError as e:
        raise to_http_error(e) from e


@router.get("/code/{order_code}", response_model=OrderSummaryResponse, summary="Get order by code")
def get_order_by_code(
    order_code: str,
    service: OrderService = Depends(get_order_service),
    user: CurrentUser = Depends(get_current_user)
):
    """
    Retrieve an order header by its order code

    - **order_code**: Order code, e.g. MM1718000000000123
    """
    try:
        return service.get_order_by_code(order_code)
    except OrderServiceError as e:
        raise to_http_error(e) from e


@router.get("/{order_id}", response_model=OrderResponse, summary="Get order by ID")
def get_order(
    order_id: int,
    service: OrderService = Depends(get_order_service),
    user: CurrentUser = Depends(get_current_user)
):
    """
    Retrieve a specific order with items, product and user details

    - **order_id**: Order ID
    """
    try:
        return service.get_order_by_id(order_id)
    except OrderServiceError as e:
        raise to_http_error(e) from e


@router.patch("/{order_id}/status", response_model=OrderResponse, summary="Update order status")
def update_order_status(
    order_id: int,
    status_data: OrderStatusUpdate,
    service: OrderService = Depends(get_order_service),
    user: CurrentUser = Depends(get_current_user)
):
    """
    Update order status

    - **order_id**: Order ID
    - **status**: New status (pending, processing, shipping, delivered, cancelled)
    """
    try:
        return service.update_order_status(order_id, status_data.status)
    except OrderServiceError as e:
        raise to_http_error(e) from e


@router.delete("/{order_id}", response_model=OrderResponse, summary="Cancel order")
def cancel_order(
    order_id: int,
    service: OrderService = Depends(get_order_service),
    user: CurrentUser = Depends(get_current_user)
):
    """
    Cancel an order; only pending orders can be cancelled

    - **order_id**: Order ID
    """
    try:
        return service.cancel_order(order_id)
    except OrderServiceError as e:
        raise to_http_error(e, not_found_status=status.HTTP_400_BAD_REQUEST) from e
