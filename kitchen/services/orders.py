from __future__ import annotations

import logging
import math
from datetime import date, timedelta
from typing import Any, Iterable, Optional

from sqlalchemy import desc, or_
from sqlalchemy.orm import Session, selectinload

from kitchen.core.config import DEFAULT_PAGE_SIZE, ORDER_HISTORY_LIMIT
from kitchen.core.database import transaction
from kitchen.core.errors import NotFound, ValidationFailed
from kitchen.models.customer import Customer
from kitchen.models.dish import Dish
from kitchen.models.order import Order, OrderHistory
from kitchen.models.order_item import OrderItem
from kitchen.schemas.orders import OrderCreate, OrderItemIn
from kitchen.services.calendar import now_utc, today, week_window
from kitchen.services.customers import preference_to_dict
from kitchen.services.order_numbers import allocate_order_number
from kitchen.services.order_status import OrderStatus, normalize_status, status_label, status_rank

logger = logging.getLogger(__name__)

DATE_RANGES = ("all", "today", "week", "month")

EXPORT_COLUMNS = [
    "Order number",
    "Customer",
    "Phone",
    "Delivery date",
    "Status",
    "Items",
    "Total",
]


def order_total(items: Iterable[OrderItemIn | OrderItem]) -> float:
    return round(sum(float(item.price) * int(item.quantity) for item in items), 2)


def order_item_to_dict(item: OrderItem) -> dict[str, Any]:
    price = float(item.price or 0)
    return {
        "id": item.id,
        "dishId": item.dish_id,
        "dishName": item.dish.name if item.dish else None,
        "quantity": item.quantity,
        "price": price,
        "subtotal": round(price * int(item.quantity or 0), 2),
        "notes": item.notes,
    }


def history_to_dict(entry: OrderHistory) -> dict[str, Any]:
    return {
        "id": entry.id,
        "action": entry.action,
        "details": entry.details,
        "userId": entry.user_id,
        "createdAt": entry.created_at.isoformat() if entry.created_at else None,
    }


def order_to_dict(order: Order, history: Optional[list[OrderHistory]] = None) -> dict[str, Any]:
    data = {
        "id": order.id,
        "orderNumber": order.order_number,
        "customerId": order.customer_id,
        "customer": {
            "id": order.customer_id,
            "name": order.customer_name,
            "phone": order.customer_phone,
            "email": order.customer_email,
        },
        "orderDate": order.order_date.isoformat() if order.order_date else None,
        "deliveryDate": order.delivery_date.isoformat() if order.delivery_date else None,
        "deliveryAddress": order.delivery_address,
        "notes": order.notes,
        "totalAmount": float(order.total_amount or 0),
        "status": order.status,
        "statusLabel": status_label(order.status),
        "items": [order_item_to_dict(item) for item in order.order_items],
        "createdAt": order.created_at.isoformat() if order.created_at else None,
        "updatedAt": order.updated_at.isoformat() if order.updated_at else None,
    }
    if history is not None:
        data["history"] = [history_to_dict(entry) for entry in history]
    return data


def _order_query(db: Session):
    return db.query(Order).options(selectinload(Order.order_items).selectinload(OrderItem.dish))


def get_order(db: Session, order_id: int) -> Order:
    order = _order_query(db).filter(Order.id == order_id).first()
    if order is None:
        raise NotFound("Order not found", {"orderId": order_id})
    return order


def recent_history(db: Session, order_id: int, limit: int = ORDER_HISTORY_LIMIT) -> list[OrderHistory]:
    return (
        db.query(OrderHistory)
        .filter(OrderHistory.order_id == order_id)
        .order_by(OrderHistory.created_at.desc(), OrderHistory.id.desc())
        .limit(limit)
        .all()
    )


def order_detail(db: Session, order_id: int) -> dict:
    order = get_order(db, order_id)
    return order_to_dict(order, recent_history(db, order.id))


def load_dishes(db: Session, dish_ids: Iterable[int]) -> dict[int, Dish]:
    wanted = set(dish_ids)
    dishes = {dish.id: dish for dish in db.query(Dish).filter(Dish.id.in_(wanted)).all()} if wanted else {}
    missing = sorted(wanted - set(dishes))
    if missing:
        raise NotFound("Dish not found", {"dishIds": missing})
    return dishes


def build_items(payload_items: Iterable[OrderItemIn]) -> list[OrderItem]:
    return [
        OrderItem(dish_id=item.dish_id, quantity=item.quantity, price=round(item.price, 2), notes=item.notes)
        for item in payload_items
    ]


def create_order(db: Session, payload: OrderCreate, *, user_id: str = "system") -> Order:
    customer = db.query(Customer).filter(Customer.id == payload.customer_id).first()
    if customer is None:
        raise NotFound("Customer not found", {"customerId": payload.customer_id})
    load_dishes(db, [item.dish_id for item in payload.items])

    with transaction(db):
        order = Order(
            order_number=allocate_order_number(db),
            customer_id=customer.id,
            customer_name=customer.name,
            customer_phone=customer.phone,
            customer_email=customer.email,
            order_date=now_utc(),
            delivery_date=payload.delivery_date,
            delivery_address=payload.delivery_address or customer.address,
            notes=payload.notes,
            total_amount=order_total(payload.items),
            status=OrderStatus.NEW.value,
            order_items=build_items(payload.items),
        )
        order.history.append(
            OrderHistory(
                user_id=user_id,
                action="created",
                details={"message": "Order created", "itemCount": len(payload.items)},
            )
        )
        db.add(order)

    logger.info(
        "order created",
        extra={"order_id": order.id, "order_number": order.order_number},
    )
    return get_order(db, order.id)


def _apply_date_range(query, date_range: str, reference: date):
    if date_range == "today":
        return query.filter(Order.delivery_date == reference)
    if date_range == "week":
        return query.filter(Order.delivery_date >= reference - timedelta(days=7))
    if date_range == "month":
        return query.filter(Order.delivery_date >= reference - timedelta(days=30))
    return query


def filtered_orders_query(
    db: Session,
    *,
    status: Optional[str] = None,
    date_range: str = "all",
    search: Optional[str] = None,
    customer_id: Optional[int] = None,
):
    if date_range not in DATE_RANGES:
        raise ValidationFailed("Invalid dateRange", {"dateRange": date_range, "allowed": list(DATE_RANGES)})

    query = _order_query(db)
    if status and status.strip().lower() != "all":
        query = query.filter(Order.status == normalize_status(status).value)
    if customer_id is not None:
        query = query.filter(Order.customer_id == customer_id)
    query = _apply_date_range(query, date_range, today())

    clean_search = (search or "").strip()
    if clean_search:
        like = f"%{clean_search}%"
        query = query.filter(
            or_(
                Order.order_number.ilike(like),
                Order.customer_name.ilike(like),
                Order.customer_phone.ilike(like),
            )
        )
    return query


def list_orders(
    db: Session,
    *,
    status: Optional[str] = None,
    date_range: str = "all",
    search: Optional[str] = None,
    customer_id: Optional[int] = None,
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
) -> dict:
    query = filtered_orders_query(
        db, status=status, date_range=date_range, search=search, customer_id=customer_id
    )
    total = query.order_by(None).count()
    orders = (
        query.order_by(desc(Order.created_at), desc(Order.id))
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return {
        "orders": [order_to_dict(order) for order in orders],
        "pagination": {
            "total": total,
            "page": page,
            "limit": limit,
            "totalPages": math.ceil(total / limit) if total else 0,
        },
    }


def customer_orders(db: Session, customer_id: int) -> list[dict]:
    if db.query(Customer.id).filter(Customer.id == customer_id).first() is None:
        raise NotFound("Customer not found", {"customerId": customer_id})
    orders = (
        _order_query(db)
        .filter(Order.customer_id == customer_id)
        .order_by(desc(Order.created_at), desc(Order.id))
        .all()
    )
    return [order_to_dict(order) for order in orders]


def delete_order(db: Session, order_id: int) -> None:
    order = get_order(db, order_id)
    with transaction(db):
        db.delete(order)
    logger.info("order deleted", extra={"order_id": order_id})


def todays_orders(db: Session) -> list[dict]:
    orders = (
        _order_query(db)
        .filter(Order.delivery_date == today())
        .order_by(Order.created_at.asc(), Order.id.asc())
        .all()
    )
    return [order_to_dict(order) for order in orders]


def weekly_orders(db: Session, day: date) -> dict:
    start, end = week_window(day)
    orders = (
        _order_query(db)
        .filter(Order.delivery_date >= start, Order.delivery_date <= end)
        .order_by(Order.delivery_date.asc(), Order.created_at.asc(), Order.id.asc())
        .all()
    )

    by_date: dict[str, list[dict]] = {}
    for order in orders:
        by_date.setdefault(order.delivery_date.isoformat(), []).append(order_to_dict(order))

    active = [order for order in orders if order.status != OrderStatus.CANCELLED.value]
    return {
        "weekOf": start.isoformat(),
        "weekEnd": end.isoformat(),
        "ordersByDate": by_date,
        "stats": {
            "totalOrders": len(active),
            "totalRevenue": round(sum(float(order.total_amount or 0) for order in active), 2),
            "pendingOrders": sum(1 for order in active if order.status == OrderStatus.NEW.value),
            "confirmedOrders": sum(1 for order in active if order.status != OrderStatus.NEW.value),
            "cancelledOrders": len(orders) - len(active),
        },
    }


def next_delivery_date(db: Session) -> Optional[date]:
    row = (
        db.query(Order.delivery_date)
        .filter(Order.delivery_date >= today(), Order.status != OrderStatus.CANCELLED.value)
        .order_by(Order.delivery_date.asc())
        .first()
    )
    return row[0] if row else None


def active_orders_for_day(db: Session, day: date) -> list[Order]:
    orders = (
        _order_query(db)
        .options(selectinload(Order.customer).selectinload(Customer.preferences))
        .filter(Order.delivery_date == day, Order.status != OrderStatus.CANCELLED.value)
        .all()
    )
    return sorted(orders, key=lambda order: (status_rank(order.status), order.created_at, order.id))


def next_delivery(db: Session) -> dict:
    delivery_date = next_delivery_date(db)
    if delivery_date is None:
        return {"deliveryDate": None, "orders": [], "customers": []}

    orders = active_orders_for_day(db, delivery_date)
    customers: dict[int, dict] = {}
    for order in orders:
        customer = order.customer
        if customer is not None and customer.id not in customers:
            customers[customer.id] = {
                "id": customer.id,
                "name": customer.name,
                "phone": customer.phone,
                "address": customer.address,
                "preferences": [preference_to_dict(preference) for preference in customer.preferences],
            }
    return {
        "deliveryDate": delivery_date.isoformat(),
        "orders": [order_to_dict(order) for order in orders],
        "customers": list(customers.values()),
    }


def export_rows(db: Session, **filters) -> list[list[Any]]:
    orders = filtered_orders_query(db, **filters).order_by(desc(Order.created_at), desc(Order.id)).all()
    rows = []
    for order in orders:
        items_text = ", ".join(
            f"{item.quantity}x {item.dish.name if item.dish else item.dish_id}" for item in order.order_items
        )
        rows.append(
            [
                order.order_number,
                order.customer_name,
                order.customer_phone,
                order.delivery_date.isoformat() if order.delivery_date else "",
                status_label(order.status),
                items_text,
                f"{float(order.total_amount or 0):.2f}",
            ]
        )
    return rows


def recent_orders(db: Session, limit: int = 5) -> list[dict]:
    orders = _order_query(db).order_by(desc(Order.created_at), desc(Order.id)).limit(limit).all()
    return [order_to_dict(order) for order in orders]
