from datetime import date
from typing import List, Optional

from pydantic import Field

from kitchen.schemas.base import CamelModel


class OrderItemIn(CamelModel):
    dish_id: int
    quantity: int = Field(..., gt=0)
    price: float = Field(..., gt=0)
    notes: Optional[str] = Field(default=None, max_length=200)


class OrderCreate(CamelModel):
    customer_id: int
    delivery_date: date
    delivery_address: Optional[str] = Field(default=None, max_length=200)
    notes: Optional[str] = None
    items: List[OrderItemIn] = Field(..., min_length=1)


class OrderUpdate(CamelModel):
    """Partial update; only keys present in the body are applied."""

    status: Optional[str] = None
    delivery_date: Optional[date] = None
    delivery_address: Optional[str] = Field(default=None, max_length=200)
    notes: Optional[str] = None
    items: Optional[List[OrderItemIn]] = Field(default=None, min_length=1)


class OrderStatusUpdate(CamelModel):
    status: str = Field(..., min_length=1)
