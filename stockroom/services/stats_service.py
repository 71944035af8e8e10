"""
Dashboard statistics.

Sales are grouped by calendar month number (1-12) of the order creation
date, ascending, across all years.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Dict

from sqlalchemy.orm import Session

from stockroom.db.models import Order
from stockroom.schemas.stats import MonthlySales, StatsSummary
from stockroom.services.order_service import OrderService
from stockroom.services.product_service import ProductService


logger = logging.getLogger(__name__)


class StatsService:

    def __init__(self, db: Session) -> None:
        self._db = db
        self._products = ProductService(db)
        self._orders = OrderService(db)

    def summary(self) -> StatsSummary:
        sales: Dict[int, float] = defaultdict(float)
        for created_at, total in self._db.query(Order.created_at, Order.total).all():
            sales[created_at.month] += total or 0.0

        return StatsSummary(
            product_count=self._products.count_products(),
            order_count=self._orders.count_orders(),
            low_stock_count=self._products.count_low_stock(),
            recent_sales=[
                MonthlySales(month=month, total_sales=round(total, 2))
                for month, total in sorted(sales.items())
            ],
        )
