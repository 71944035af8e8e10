"""
==============================================================================
Order Schemas Module
==============================================================================

Request and response schemas for customer orders.

==============================================================================
"""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field
from stockroom.db.models import OrderStatus


class OrderItemIn(BaseModel):
    """Single order line in a request."""
    product_id: str = Field(..., min_length=1)
    quantity: int = Field(..., ge=1)


class OrderCreate(BaseModel):
    """Order creation request."""
    customer_id: str = Field(..., min_length=1)
    items: List[OrderItemIn] = Field(default_factory=list)
    status: OrderStatus = Field(default=OrderStatus.PENDING)
    total: float = Field(..., ge=0)


class OrderUpdate(BaseModel):
    """Order update request. ``items`` replaces all lines when given."""
    customer_id: Optional[str] = Field(default=None, min_length=1)
    items: Optional[List[OrderItemIn]] = Field(default=None)
    status: Optional[OrderStatus] = Field(default=None)
    total: Optional[float] = Field(default=None, ge=0)


class OrderItemDetail(BaseModel):
    product_id: str
    product_name: Optional[str] = None
    sku: Optional[str] = None
    quantity: int


class OrderDetail(BaseModel):
    id: str
    customer_id: str
    customer_name: Optional[str] = None
    status: OrderStatus
    total: float
    items: List[OrderItemDetail]
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_model(cls, order) -> "OrderDetail":
        return cls(
            id=order.id,
            customer_id=order.customer_id,
            customer_name=order.customer.name if order.customer else None,
            status=order.status,
            total=order.total,
            items=[
                OrderItemDetail(
                    product_id=item.product_id,
                    product_name=item.product.name if item.product else None,
                    sku=item.product.sku if item.product else None,
                    quantity=item.quantity,
                )
                for item in order.items
            ],
            created_at=order.created_at,
            updated_at=order.updated_at,
        )


class OrderResponse(BaseModel):
    success: bool = Field(default=True)
    order: OrderDetail
