"""Dashboard statistics schemas."""

from typing import List
from pydantic import BaseModel, Field


class MonthlySales(BaseModel):
    month: int = Field(ge=1, le=12)
    total_sales: float = Field(ge=0)


class StatsSummary(BaseModel):
    success: bool = Field(default=True)
    product_count: int = Field(ge=0)
    order_count: int = Field(ge=0)
    low_stock_count: int = Field(ge=0)
    recent_sales: List[MonthlySales]
