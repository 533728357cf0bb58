from __future__ import annotations

import logging
from datetime import date, timedelta

from kitchen.core.config import TOP_N_LIMIT
from kitchen.core.errors import ValidationFailed
from kitchen.domain.records import DishRecord, OrderRecord
from kitchen.domain.store import OrderStore
from kitchen.services.aggregation import (
    active_orders,
    average_order_value,
    category_breakdown,
    growth,
    money,
    orders_by_day,
    orders_by_status,
    summarize_orders,
    top_customers,
    top_dishes,
)
from kitchen.services.calendar import friday_of, week_window
from kitchen.services.order_status import OrderStatus
from kitchen.services.requirements import calculate_requirements
from kitchen.services.shopping_list import GROUP_BY_OPTIONS, group_requirements, shopping_list_summary

logger = logging.getLogger(__name__)

PERIODS = ("month", "quarter", "year")
WEEKDAY_LABELS = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]


def order_record_to_dict(order: OrderRecord, dishes: dict[int, DishRecord]) -> dict:
    return {
        "id": order.id,
        "orderNumber": order.order_number,
        "customerId": order.customer.id,
        "customerName": order.customer.name,
        "status": order.status,
        "deliveryDate": order.delivery_date.isoformat(),
        "totalAmount": money(order.total_amount),
        "items": [
            {
                "dishId": item.dish_id,
                "dishName": dishes[item.dish_id].name if item.dish_id in dishes else None,
                "quantity": item.quantity,
                "price": item.price,
            }
            for item in order.items
        ],
    }


def weekly_summary(store: OrderStore, day: date) -> dict:
    start, end = week_window(day)
    orders = store.orders_in_window(start, end, date_field="delivery_date")
    dishes = store.dish_catalog()
    ingredients = store.ingredients_by_id()
    logger.info("weekly summary week_of=%s orders=%s", start.isoformat(), len(orders))
    return {
        "weekOf": start.isoformat(),
        "friday": friday_of(day).isoformat(),
        "summary": summarize_orders(orders, start, end, date_field="delivery_date", dishes=dishes),
        "topDishes": top_dishes(orders, dishes, limit=TOP_N_LIMIT),
        "topCustomers": top_customers(orders, dishes, limit=TOP_N_LIMIT),
        "ingredientRequirements": calculate_requirements(orders, dishes, ingredients),
        "orders": [order_record_to_dict(order, dishes) for order in orders],
    }


def shopping_list(store: OrderStore, day: date, group_by: str = "category") -> dict:
    if group_by not in GROUP_BY_OPTIONS:
        raise ValidationFailed("Invalid groupBy", {"groupBy": group_by, "allowed": list(GROUP_BY_OPTIONS)})
    start, end = week_window(day)
    orders = store.orders_in_window(
        start, end, date_field="delivery_date", statuses_excluded=(OrderStatus.CANCELLED.value,)
    )
    requirements = calculate_requirements(orders, store.dish_catalog(), store.ingredients_by_id())
    return {
        "weekOf": start.isoformat(),
        "deliveryDate": friday_of(day).isoformat(),
        "summary": shopping_list_summary(requirements, len(orders)),
        "ingredients": group_requirements(requirements, group_by),
        "groupBy": group_by,
        "orderCount": len(orders),
    }


def _month_start(day: date, months_back: int = 0) -> date:
    index = day.year * 12 + (day.month - 1) - months_back
    return date(index // 12, index % 12 + 1, 1)


def period_windows(period: str, reference: date) -> tuple[tuple[date, date], tuple[date, date]]:
    """Current and previous calendar windows for ``period`` around ``reference``."""
    if period == "month":
        start = _month_start(reference)
        end = _month_start(reference, -1) - timedelta(days=1)
        previous_start = _month_start(reference, 1)
    elif period == "quarter":
        start = date(reference.year, 3 * ((reference.month - 1) // 3) + 1, 1)
        end = _month_start(start, -3) - timedelta(days=1)
        previous_start = _month_start(start, 3)
    elif period == "year":
        start = date(reference.year, 1, 1)
        end = date(reference.year, 12, 31)
        previous_start = date(reference.year - 1, 1, 1)
    else:
        raise ValidationFailed("Invalid period", {"period": period, "allowed": list(PERIODS)})
    return (start, end), (previous_start, start - timedelta(days=1))


def analytics(store: OrderStore, period: str, reference: date) -> dict:
    (start, end), (previous_start, previous_end) = period_windows(period, reference)
    current = store.orders_in_window(start, end, date_field="order_date")
    previous = store.orders_in_window(previous_start, previous_end, date_field="order_date")
    dishes = store.dish_catalog()

    active = active_orders(current)
    active_previous = active_orders(previous)
    revenue = money(sum(order.total_amount for order in active))
    previous_revenue = money(sum(order.total_amount for order in active_previous))

    customer_ids = {order.customer.id for order in active}
    first_dates = store.first_order_dates(customer_ids)
    new_customers = sum(1 for customer_id in customer_ids if first_dates.get(customer_id, start) >= start)

    return {
        "period": period,
        "startDate": start.isoformat(),
        "endDate": end.isoformat(),
        "totalRevenue": revenue,
        "revenueGrowth": growth(revenue, previous_revenue),
        "totalOrders": len(active),
        "ordersGrowth": growth(len(active), len(active_previous)),
        "averageOrderValue": average_order_value(revenue, len(active)),
        "activeCustomers": len(customer_ids),
        "newCustomers": new_customers,
        "returningCustomers": len(customer_ids) - new_customers,
        "revenueByDay": orders_by_day(current, start, end, date_field="order_date"),
        "ordersByStatus": orders_by_status(current),
        "topDishes": top_dishes(current, dishes, limit=TOP_N_LIMIT, sort_by="revenue"),
        "categoryBreakdown": category_breakdown(current, dishes),
    }


def analytics_csv_rows(report: dict) -> list[list]:
    rows: list[list] = [["Period", report["period"], report["startDate"], report["endDate"]], []]
    rows.append(["Date", "Orders", "Revenue"])
    for bucket in report["revenueByDay"]:
        rows.append([bucket["date"], bucket["count"], f"{bucket['revenue']:.2f}"])
    rows.append([])
    rows.append(["Dish", "Quantity", "Revenue"])
    for dish in report["topDishes"]:
        rows.append([dish["name"], dish["quantity"], f"{dish['revenue']:.2f}"])
    return rows


def dashboard(store: OrderStore, reference: date, *, recent_orders: list[dict], low_stock_count: int) -> dict:
    start, end = week_window(reference)
    orders = store.orders_in_window(start, end, date_field="created_at")
    dishes = store.dish_catalog()
    active = active_orders(orders)
    revenue = money(sum(order.total_amount for order in active))

    counts = [0] * 7
    for order in active:
        if order.created_at is None:
            continue
        offset = (order.created_at.date() - start).days
        if 0 <= offset < 7:
            counts[offset] += 1

    return {
        "stats": {
            "totalOrders": len(active),
            "activeCustomers": len({order.customer.id for order in active}),
            "revenue": revenue,
            "avgOrderValue": average_order_value(revenue, len(active)),
        },
        "weeklyOrders": [
            {"day": WEEKDAY_LABELS[index], "date": (start + timedelta(days=index)).isoformat(), "orders": counts[index]}
            for index in range(7)
        ],
        "recentOrders": recent_orders,
        "topDishes": top_dishes(orders, dishes, limit=5),
        "lowStockCount": low_stock_count,
    }
