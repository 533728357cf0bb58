"""Partial order updates with a per-change history trail.

Every update runs as one transaction: the status guard, field diffs, item
replacement, total recomputation and history rows commit together or not at all.
"""
from __future__ import annotations

import logging
from datetime import date
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from kitchen.core.database import transaction
from kitchen.core.errors import Conflict, KitchenError
from kitchen.models.order import Order, OrderHistory
from kitchen.models.order_item import OrderItem
from kitchen.schemas.orders import OrderItemIn
from kitchen.services.order_status import ensure_transition, is_terminal, normalize_status, status_label
from kitchen.services.orders import (
    build_items,
    get_order,
    load_dishes,
    order_to_dict,
    order_total,
    recent_history,
)

logger = logging.getLogger(__name__)

# payload key (same as the model attribute) -> history key
_TRACKED_FIELDS = {
    "delivery_date": "deliveryDate",
    "notes": "notes",
    "delivery_address": "deliveryAddress",
}


def _jsonable(value: Any) -> Any:
    if isinstance(value, date):
        return value.isoformat()
    return value


def status_change(order: Order, target: str) -> Optional[dict]:
    """Apply a guarded status change; ``None`` when the status is unchanged."""
    destination = normalize_status(target)
    if destination.value == order.status:
        return None
    ensure_transition(order.status, destination)
    details = {
        "from": order.status,
        "to": destination.value,
        "fromLabel": status_label(order.status),
        "toLabel": status_label(destination),
    }
    order.status = destination.value
    return details


def field_changes(order: Order, changes: dict[str, Any]) -> dict[str, dict]:
    diff = {}
    for field, history_key in _TRACKED_FIELDS.items():
        if field not in changes:
            continue
        new_value = changes[field]
        if field == "delivery_date" and new_value is None:
            continue
        old_value = getattr(order, field)
        if old_value == new_value:
            continue
        diff[history_key] = {"from": _jsonable(old_value), "to": _jsonable(new_value)}
        setattr(order, field, new_value)
    return diff


def _quantities(items) -> dict[int, dict]:
    merged: dict[int, dict] = {}
    for item in items:
        entry = merged.setdefault(item.dish_id, {"quantity": 0, "price": float(item.price)})
        entry["quantity"] += int(item.quantity)
    return merged


def item_changes(
    current: list[OrderItem], replacement: list[OrderItemIn], dish_names: dict[int, str]
) -> list[tuple[str, dict]]:
    """History entries for replacing ``current`` with ``replacement``, keyed by dish."""
    old = _quantities(current)
    new = _quantities(replacement)
    entries: list[tuple[str, dict]] = []

    for dish_id in old.keys() - new.keys():
        entries.append(
            (
                "item_removed",
                {"dishId": dish_id, "dishName": dish_names.get(dish_id), "quantity": old[dish_id]["quantity"]},
            )
        )
    for dish_id in new.keys() - old.keys():
        entries.append(
            (
                "item_added",
                {
                    "dishId": dish_id,
                    "dishName": dish_names.get(dish_id),
                    "quantity": new[dish_id]["quantity"],
                    "price": new[dish_id]["price"],
                },
            )
        )
    for dish_id in old.keys() & new.keys():
        before, after = old[dish_id], new[dish_id]
        if before["quantity"] == after["quantity"] and before["price"] == after["price"]:
            continue
        entries.append(
            (
                "item_updated",
                {
                    "dishId": dish_id,
                    "dishName": dish_names.get(dish_id),
                    "quantity": {"from": before["quantity"], "to": after["quantity"]},
                    "price": {"from": before["price"], "to": after["price"]},
                },
            )
        )
    rank = {"item_removed": 0, "item_added": 1, "item_updated": 2}
    entries.sort(key=lambda entry: (rank[entry[0]], entry[1]["dishId"]))
    return entries


def _replace_items(db: Session, order: Order, replacement: list[OrderItemIn]) -> list[tuple[str, dict]]:
    if is_terminal(order.status):
        raise Conflict(
            f"Items cannot be changed on a {order.status.lower()} order",
            {"orderId": order.id, "status": order.status},
        )
    current = list(order.order_items)
    dishes = load_dishes(db, {item.dish_id for item in replacement} | {item.dish_id for item in current})
    entries = item_changes(current, replacement, {dish_id: dish.name for dish_id, dish in dishes.items()})

    order.order_items.clear()
    db.flush()
    order.order_items.extend(build_items(replacement))
    order.total_amount = order_total(replacement)
    return entries


def apply_order_update(db: Session, order_id: int, changes: dict[str, Any], *, user_id: str = "system") -> dict:
    """Apply ``changes`` (snake_case keys, only those the caller sent) to an order."""
    order = get_order(db, order_id)
    entries: list[tuple[str, dict]] = []

    try:
        with transaction(db):
            # items are checked against the status the order had before this update
            item_entries: list[tuple[str, dict]] = []
            if changes.get("items") is not None:
                replacement = [
                    item if isinstance(item, OrderItemIn) else OrderItemIn.model_validate(item)
                    for item in changes["items"]
                ]
                item_entries = _replace_items(db, order, replacement)

            if changes.get("status") is not None:
                details = status_change(order, changes["status"])
                if details is not None:
                    entries.append(("status_change", details))

            diff = field_changes(order, changes)
            if diff:
                entries.append(("order_updated", diff))
            entries.extend(item_entries)

            for action, details in entries:
                db.add(OrderHistory(order_id=order.id, user_id=user_id, action=action, details=details))
    except KitchenError:
        raise
    except SQLAlchemyError as exc:
        logger.exception("order update failed order_id=%s", order_id)
        raise KitchenError("Order update failed", {"orderId": order_id}) from exc

    if entries:
        logger.info(
            "order updated actions=%s",
            ",".join(action for action, _ in entries),
            extra={"order_id": order_id},
        )

    db.expire_all()
    order = get_order(db, order_id)
    return order_to_dict(order, recent_history(db, order.id))
