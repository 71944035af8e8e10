"""
==============================================================================
Order Service Module
==============================================================================

Customer order management.

Rules:
-----
- The customer and every referenced product must exist
- Item quantities are at least 1, totals are never negative
- Lists are newest first
- Updating ``items`` replaces all order lines

==============================================================================
"""

from __future__ import annotations

import logging
from typing import List, Tuple

from sqlalchemy.orm import Session, selectinload

from stockroom.db.models import Customer, Order, OrderItem, Product
from stockroom.core.dependencies import ListParams
from stockroom.core import exceptions
from stockroom.schemas.order import OrderCreate, OrderItemIn, OrderUpdate


# Module logger
logger = logging.getLogger(__name__)


class OrderService:
    """
    Order service.

    Example:
        >>> service = OrderService(db_session)
        >>> order = service.create_order(OrderCreate(
        ...     customer_id=customer.id,
        ...     items=[OrderItemIn(product_id=product.id, quantity=2)],
        ...     total=19.5,
        ... ))
    """

    def __init__(self, db: Session) -> None:
        self._db = db

    def _query(self):
        return self._db.query(Order).options(
            selectinload(Order.customer),
            selectinload(Order.items).selectinload(OrderItem.product),
        )

    def _require_customer(self, customer_id: str) -> Customer:
        customer = self._db.query(Customer).filter(Customer.id == customer_id).first()
        if not customer:
            raise exceptions.customer_not_found(customer_id)
        return customer

    def _build_items(self, items: List[OrderItemIn]) -> List[OrderItem]:
        product_ids = {item.product_id for item in items}
        found = {
            product_id
            for (product_id,) in self._db.query(Product.id).filter(
                Product.id.in_(product_ids)
            ).all()
        } if product_ids else set()

        missing = product_ids - found
        if missing:
            raise exceptions.product_not_found(sorted(missing)[0])

        return [
            OrderItem(product_id=item.product_id, quantity=item.quantity)
            for item in items
        ]

    def create_order(self, data: OrderCreate) -> Order:
        """
        Raises:
            AppException: CUSTOMER_NOT_FOUND or PRODUCT_NOT_FOUND
        """
        self._require_customer(data.customer_id)

        order = Order(
            customer_id=data.customer_id,
            status=data.status,
            total=data.total,
            items=self._build_items(data.items),
        )
        self._db.add(order)
        self._db.commit()

        logger.info(f"✅ Order created: {order.id} ({len(data.items)} items, total {data.total})")
        return self.get_by_id(order.id)

    def get_by_id(self, order_id: str) -> Order:
        order = self._query().filter(Order.id == order_id).first()
        if not order:
            raise exceptions.order_not_found(order_id)
        return order

    def list_orders(self, params: ListParams) -> Tuple[List[Order], int]:
        """Newest first."""
        query = self._query()
        total = query.count()
        orders = (
            query.order_by(Order.created_at.desc())
            .offset(params.offset)
            .limit(params.limit)
            .all()
        )
        return orders, total

    def count_orders(self) -> int:
        return self._db.query(Order).count()

    def update_order(self, order_id: str, data: OrderUpdate) -> Order:
        order = self.get_by_id(order_id)

        if data.customer_id is not None:
            self._require_customer(data.customer_id)
            order.customer_id = data.customer_id
        if data.status is not None:
            if data.status != order.status:
                logger.info(f"Order {order.id}: {order.status.value} → {data.status.value}")
            order.status = data.status
        if data.total is not None:
            order.total = data.total
        if data.items is not None:
            order.items = self._build_items(data.items)

        self._db.commit()
        self._db.expire(order)
        return self.get_by_id(order_id)

    def delete_order(self, order_id: str) -> None:
        order = self.get_by_id(order_id)
        self._db.delete(order)
        self._db.commit()
        logger.info(f"Order deleted: {order_id}")
