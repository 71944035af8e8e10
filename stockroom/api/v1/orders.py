"""
==============================================================================
Order Endpoints
==============================================================================

Customer order CRUD. Lists are newest first.

==============================================================================
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from stockroom.db.database import get_db
from stockroom.db.models import User
from stockroom.core.dependencies import ListParams, get_current_user
from stockroom.services.order_service import OrderService
from stockroom.schemas.order import OrderCreate, OrderUpdate, OrderDetail, OrderResponse
from stockroom.schemas.common import MessageResponse, PaginatedResponse


router = APIRouter(prefix="/orders", tags=["Orders"])


class OrderController:
    """Controller for order operations."""

    def __init__(self, db: Session):
        self._service = OrderService(db)

    def list_all(self, params: ListParams) -> PaginatedResponse[OrderDetail]:
        orders, total = self._service.list_orders(params)
        return PaginatedResponse[OrderDetail].create(
            items=[OrderDetail.from_model(o) for o in orders],
            total=total,
            page=params.page,
            limit=params.limit,
        )

    def get(self, order_id: str) -> OrderResponse:
        return OrderResponse(order=OrderDetail.from_model(self._service.get_by_id(order_id)))

    def create(self, data: OrderCreate) -> OrderResponse:
        return OrderResponse(order=OrderDetail.from_model(self._service.create_order(data)))

    def update(self, order_id: str, data: OrderUpdate) -> OrderResponse:
        return OrderResponse(order=OrderDetail.from_model(self._service.update_order(order_id, data)))

    def delete(self, order_id: str) -> MessageResponse:
        self._service.delete_order(order_id)
        return MessageResponse(message="Order deleted")


@router.get("", response_model=PaginatedResponse[OrderDetail])
async def list_orders(
    params: ListParams = Depends(),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List orders, newest first."""
    return OrderController(db).list_all(params)


@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def create_order(
    data: OrderCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Create an order.

    The customer and every product must exist.
    """
    return OrderController(db).create(data)


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return OrderController(db).get(order_id)


@router.put("/{order_id}", response_model=OrderResponse)
async def update_order(
    order_id: str,
    data: OrderUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Update an order. Sending ``items`` replaces every line."""
    return OrderController(db).update(order_id, data)


@router.delete("/{order_id}", response_model=MessageResponse)
async def delete_order(
    order_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return OrderController(db).delete(order_id)
