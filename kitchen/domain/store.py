from __future__ import annotations

from datetime import date, datetime, time
from typing import Iterable, Literal, Protocol

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from kitchen.domain.records import (
    BillOfMaterialsLine,
    CustomerRef,
    DishRecord,
    IngredientRecord,
    OrderItemRecord,
    OrderRecord,
)
from kitchen.models.dish import Dish
from kitchen.models.ingredient import Ingredient
from kitchen.models.order import Order

DateField = Literal["delivery_date", "order_date", "created_at"]


class OrderStore(Protocol):
    def orders_in_window(
        self,
        start: date,
        end: date,
        *,
        date_field: DateField = "delivery_date",
        statuses_excluded: Iterable[str] = (),
    ) -> list[OrderRecord]: ...

    def dish_catalog(self, dish_ids: Iterable[int] | None = None) -> dict[int, DishRecord]: ...

    def ingredients_by_id(self, ids: Iterable[int] | None = None) -> dict[int, IngredientRecord]: ...

    def first_order_dates(self, customer_ids: Iterable[int]) -> dict[int, date]: ...


def ingredient_to_record(row: Ingredient) -> IngredientRecord:
    return IngredientRecord(
        id=row.id,
        name=row.name,
        unit=row.unit,
        current_stock=row.current_stock,
        min_stock=row.min_stock,
        cost_per_unit=float(row.cost_per_unit) if row.cost_per_unit is not None else None,
        supplier=row.supplier,
        category=row.category,
    )


def dish_to_record(row: Dish) -> DishRecord:
    return DishRecord(
        id=row.id,
        name=row.name,
        price=float(row.price or 0),
        category=row.category or "main",
        bill_of_materials=tuple(
            BillOfMaterialsLine(ingredient_id=line.ingredient_id, quantity=float(line.quantity or 0))
            for line in row.ingredients
        ),
    )


def order_to_record(row: Order) -> OrderRecord:
    return OrderRecord(
        id=row.id,
        order_number=row.order_number,
        customer=CustomerRef(
            id=row.customer_id,
            name=row.customer_name or (row.customer.name if row.customer else ""),
            phone=row.customer_phone or "",
            email=row.customer_email,
        ),
        status=row.status,
        delivery_date=row.delivery_date,
        order_date=row.order_date,
        created_at=row.created_at,
        total_amount=float(row.total_amount or 0),
        items=tuple(
            OrderItemRecord(
                dish_id=item.dish_id,
                quantity=int(item.quantity or 0),
                price=float(item.price or 0),
                notes=item.notes,
            )
            for item in row.order_items
        ),
    )


class SqlOrderStore:
    """``OrderStore`` over the SQLAlchemy models."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def orders_in_window(
        self,
        start: date,
        end: date,
        *,
        date_field: DateField = "delivery_date",
        statuses_excluded: Iterable[str] = (),
    ) -> list[OrderRecord]:
        column = getattr(Order, date_field)
        query = self.db.query(Order).options(selectinload(Order.order_items), selectinload(Order.customer))
        if date_field == "delivery_date":
            query = query.filter(column >= start, column <= end)
        else:
            query = query.filter(
                column >= datetime.combine(start, time.min),
                column <= datetime.combine(end, time.max),
            )
        excluded = list(statuses_excluded)
        if excluded:
            query = query.filter(Order.status.notin_(excluded))
        rows = query.order_by(column.asc(), Order.id.asc()).all()
        return [order_to_record(row) for row in rows]

    def dish_catalog(self, dish_ids: Iterable[int] | None = None) -> dict[int, DishRecord]:
        query = self.db.query(Dish).options(selectinload(Dish.ingredients))
        if dish_ids is not None:
            ids = set(dish_ids)
            if not ids:
                return {}
            query = query.filter(Dish.id.in_(ids))
        return {row.id: dish_to_record(row) for row in query.all()}

    def ingredients_by_id(self, ids: Iterable[int] | None = None) -> dict[int, IngredientRecord]:
        query = self.db.query(Ingredient)
        if ids is not None:
            wanted = set(ids)
            if not wanted:
                return {}
            query = query.filter(Ingredient.id.in_(wanted))
        return {row.id: ingredient_to_record(row) for row in query.all()}

    def first_order_dates(self, customer_ids: Iterable[int]) -> dict[int, date]:
        ids = set(customer_ids)
        if not ids:
            return {}
        rows = (
            self.db.query(Order.customer_id, func.min(Order.order_date))
            .filter(Order.customer_id.in_(ids), Order.status != "CANCELLED")
            .group_by(Order.customer_id)
            .all()
        )
        return {
            customer_id: first.date() if isinstance(first, datetime) else first
            for customer_id, first in rows
            if first is not None
        }
