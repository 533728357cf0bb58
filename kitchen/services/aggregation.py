"""Order statistics over an already-fetched set of order records.

Cancelled orders never contribute to revenue, averages, customer counts or
popularity; they only show up in the status breakdown and ``cancelledOrders``.
"""
from __future__ import annotations

from collections import Counter, defaultdict
from datetime import date, datetime, timedelta
from typing import Iterable, Literal, Mapping, Sequence

from kitchen.core.config import TOP_N_LIMIT
from kitchen.core.errors import ReportComputationError
from kitchen.domain.records import DishRecord, OrderRecord
from kitchen.services.order_status import STATUS_ORDER

DayField = Literal["delivery_date", "order_date", "created_at"]


def money(value: float) -> float:
    return round(float(value or 0), 2)


def active_orders(orders: Iterable[OrderRecord]) -> list[OrderRecord]:
    return [order for order in orders if not order.is_cancelled]


def average_order_value(revenue: float, count: int) -> float:
    if count <= 0:
        return 0.0
    return money(revenue / count)


def growth(current: float, previous: float) -> float:
    """Percentage change; 0 when there is nothing to compare against."""
    if not previous:
        return 0.0
    return round((current - previous) / previous * 100, 1)


def order_day(order: OrderRecord, date_field: DayField) -> date:
    value = getattr(order, date_field)
    if value is None:
        raise ReportComputationError(
            "Order is missing a date",
            {"orderId": order.id, "field": date_field},
        )
    if isinstance(value, datetime):
        return value.date()
    return value


def _dish(dishes: Mapping[int, DishRecord], dish_id: int, order: OrderRecord) -> DishRecord:
    dish = dishes.get(dish_id)
    if dish is None:
        raise ReportComputationError(
            "Order item references an unknown dish",
            {"orderId": order.id, "dishId": dish_id},
        )
    return dish


def orders_by_status(orders: Iterable[OrderRecord]) -> dict[str, int]:
    counts = {status.value: 0 for status in STATUS_ORDER}
    for order in orders:
        counts[order.status] = counts.get(order.status, 0) + 1
    return counts


def orders_by_day(
    orders: Iterable[OrderRecord],
    start: date,
    end: date,
    *,
    date_field: DayField = "delivery_date",
    dishes: Mapping[int, DishRecord] | None = None,
) -> list[dict]:
    """One bucket per calendar day in ``[start, end]``, empty days included."""
    buckets: dict[date, dict] = {}
    current = start
    while current <= end:
        buckets[current] = {"date": current.isoformat(), "count": 0, "revenue": 0.0, "dishes": {}}
        current += timedelta(days=1)

    for order in active_orders(orders):
        bucket = buckets.get(order_day(order, date_field))
        if bucket is None:
            continue
        bucket["count"] += 1
        bucket["revenue"] += order.total_amount
        if dishes is not None:
            for item in order.items:
                name = _dish(dishes, item.dish_id, order).name
                bucket["dishes"][name] = bucket["dishes"].get(name, 0) + item.quantity

    for bucket in buckets.values():
        bucket["revenue"] = money(bucket["revenue"])
    return list(buckets.values())


def summarize_orders(
    orders: Sequence[OrderRecord],
    start: date,
    end: date,
    *,
    date_field: DayField = "delivery_date",
    dishes: Mapping[int, DishRecord] | None = None,
) -> dict:
    active = active_orders(orders)
    revenue = money(sum(order.total_amount for order in active))
    return {
        "totalOrders": len(active),
        "totalRevenue": revenue,
        "uniqueCustomers": len({order.customer.id for order in active}),
        "averageOrderValue": average_order_value(revenue, len(active)),
        "cancelledOrders": len(orders) - len(active),
        "ordersByStatus": orders_by_status(orders),
        "ordersByDay": orders_by_day(orders, start, end, date_field=date_field, dishes=dishes),
    }


def top_dishes(
    orders: Iterable[OrderRecord],
    dishes: Mapping[int, DishRecord],
    *,
    limit: int = TOP_N_LIMIT,
    sort_by: Literal["quantity", "revenue"] = "quantity",
) -> list[dict]:
    stats: dict[int, dict] = {}
    for order in active_orders(orders):
        seen_in_order: set[int] = set()
        for item in order.items:
            dish = _dish(dishes, item.dish_id, order)
            entry = stats.setdefault(
                dish.id,
                {
                    "dishId": dish.id,
                    "name": dish.name,
                    "category": dish.category,
                    "quantity": 0,
                    "revenue": 0.0,
                    "orderCount": 0,
                },
            )
            entry["quantity"] += item.quantity
            entry["revenue"] += item.subtotal
            if dish.id not in seen_in_order:
                entry["orderCount"] += 1
                seen_in_order.add(dish.id)

    ranked = sorted(stats.values(), key=lambda entry: (-entry[sort_by], entry["name"]))
    for entry in ranked:
        entry["revenue"] = money(entry["revenue"])
    return ranked[:limit]


def top_customers(
    orders: Iterable[OrderRecord],
    dishes: Mapping[int, DishRecord],
    *,
    limit: int = TOP_N_LIMIT,
    favorites: int = 3,
) -> list[dict]:
    stats: dict[int, dict] = {}
    dish_counts: dict[int, Counter] = defaultdict(Counter)
    for order in active_orders(orders):
        customer = order.customer
        entry = stats.setdefault(
            customer.id,
            {
                "customerId": customer.id,
                "name": customer.name,
                "phone": customer.phone,
                "totalSpent": 0.0,
                "orderCount": 0,
            },
        )
        entry["totalSpent"] += order.total_amount
        entry["orderCount"] += 1
        for item in order.items:
            dish_counts[customer.id][_dish(dishes, item.dish_id, order).name] += item.quantity

    ranked = sorted(stats.values(), key=lambda entry: (-entry["totalSpent"], entry["name"]))[:limit]
    for entry in ranked:
        entry["totalSpent"] = money(entry["totalSpent"])
        counts = dish_counts[entry["customerId"]]
        entry["favoriteDishes"] = [
            name for name, _ in sorted(counts.items(), key=lambda pair: (-pair[1], pair[0]))[:favorites]
        ]
    return ranked


def category_breakdown(orders: Iterable[OrderRecord], dishes: Mapping[int, DishRecord]) -> list[dict]:
    totals: dict[str, dict] = {}
    for order in active_orders(orders):
        for item in order.items:
            dish = _dish(dishes, item.dish_id, order)
            entry = totals.setdefault(dish.category, {"category": dish.category, "quantity": 0, "revenue": 0.0})
            entry["quantity"] += item.quantity
            entry["revenue"] += item.subtotal
    for entry in totals.values():
        entry["revenue"] = money(entry["revenue"])
    return sorted(totals.values(), key=lambda entry: -entry["revenue"])
