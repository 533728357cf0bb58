"""Canonical in-memory records consumed by the aggregation code.

Storage adapters convert their own rows into these; nothing downstream of
``kitchen.domain.store`` touches ORM objects.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional


@dataclass(frozen=True)
class IngredientRecord:
    id: int
    name: str
    unit: str
    current_stock: Optional[float] = None
    min_stock: Optional[float] = None
    cost_per_unit: Optional[float] = None
    supplier: Optional[str] = None
    category: Optional[str] = None


@dataclass(frozen=True)
class BillOfMaterialsLine:
    ingredient_id: int
    quantity: float


@dataclass(frozen=True)
class DishRecord:
    id: int
    name: str
    price: float
    category: str = "main"
    bill_of_materials: tuple[BillOfMaterialsLine, ...] = ()


@dataclass(frozen=True)
class CustomerRef:
    id: int
    name: str
    phone: str = ""
    email: Optional[str] = None


@dataclass(frozen=True)
class OrderItemRecord:
    dish_id: int
    quantity: int
    price: float
    notes: Optional[str] = None

    @property
    def subtotal(self) -> float:
        return self.price * self.quantity


@dataclass(frozen=True)
class OrderRecord:
    id: int
    order_number: str
    customer: CustomerRef
    status: str
    delivery_date: date
    order_date: datetime
    total_amount: float
    created_at: Optional[datetime] = None
    items: tuple[OrderItemRecord, ...] = field(default_factory=tuple)

    @property
    def is_cancelled(self) -> bool:
        return self.status == "CANCELLED"
