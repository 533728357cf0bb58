from __future__ import annotations

from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from kitchen.services.calendar import today
from kitchen.services.customers import preference_to_dict
from kitchen.services.order_status import STATUS_ORDER, OrderStatus
from kitchen.services.orders import active_orders_for_day, next_delivery_date, order_to_dict

ALERT_PREFERENCE_TYPES = {"ALLERGY", "MEDICAL"}


def kitchen_board(db: Session, day: Optional[date] = None) -> dict:
    """Preparation view for one delivery day: orders by status, batch totals, alerts."""
    delivery_date = day or next_delivery_date(db) or today()
    orders = active_orders_for_day(db, delivery_date)

    by_status: dict[str, list[dict]] = {
        status.value: [] for status in STATUS_ORDER if status is not OrderStatus.CANCELLED
    }
    batches: dict[int, dict] = {}
    alerts: dict[int, dict] = {}
    total_items = 0

    for order in orders:
        by_status.setdefault(order.status, []).append(order_to_dict(order))
        for item in order.order_items:
            total_items += item.quantity
            batch = batches.setdefault(
                item.dish_id,
                {
                    "dishId": item.dish_id,
                    "dishName": item.dish.name if item.dish else None,
                    "category": item.dish.category if item.dish else None,
                    "totalQuantity": 0,
                    "orderCount": 0,
                    "orders": [],
                },
            )
            batch["totalQuantity"] += item.quantity
            batch["orderCount"] += 1
            batch["orders"].append(
                {"orderNumber": order.order_number, "quantity": item.quantity, "notes": item.notes}
            )

        customer = order.customer
        if customer is None:
            continue
        flagged = [pref for pref in customer.preferences if pref.type in ALERT_PREFERENCE_TYPES]
        if not flagged:
            continue
        alert = alerts.setdefault(
            customer.id,
            {
                "customerId": customer.id,
                "name": customer.name,
                "orderNumbers": [],
                "preferences": [preference_to_dict(pref) for pref in flagged],
            },
        )
        alert["orderNumbers"].append(order.order_number)

    return {
        "deliveryDate": delivery_date.isoformat(),
        "stats": {"totalOrders": len(orders), "totalItems": total_items},
        "ordersByStatus": by_status,
        "batchCooking": sorted(batches.values(), key=lambda batch: (-batch["totalQuantity"], batch["dishName"] or "")),
        "alerts": list(alerts.values()),
    }
