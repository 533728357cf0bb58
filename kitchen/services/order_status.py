from __future__ import annotations

import logging
from enum import Enum

from kitchen.core.errors import InvalidStatusTransition, ValidationFailed

logger = logging.getLogger(__name__)


class OrderStatus(str, Enum):
    NEW = "NEW"
    CONFIRMED = "CONFIRMED"
    PREPARING = "PREPARING"
    READY = "READY"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


STATUS_LABELS = {
    OrderStatus.NEW: "New",
    OrderStatus.CONFIRMED: "Confirmed",
    OrderStatus.PREPARING: "Preparing",
    OrderStatus.READY: "Ready",
    OrderStatus.DELIVERED: "Delivered",
    OrderStatus.CANCELLED: "Cancelled",
}

# workflow progression, used for sorting kitchen views
STATUS_ORDER = [
    OrderStatus.NEW,
    OrderStatus.CONFIRMED,
    OrderStatus.PREPARING,
    OrderStatus.READY,
    OrderStatus.DELIVERED,
    OrderStatus.CANCELLED,
]

TRANSITIONS: dict[OrderStatus, set[OrderStatus]] = {
    OrderStatus.NEW: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.PREPARING, OrderStatus.CANCELLED},
    OrderStatus.PREPARING: {OrderStatus.READY, OrderStatus.CANCELLED},
    OrderStatus.READY: {OrderStatus.DELIVERED, OrderStatus.CANCELLED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
}

TERMINAL_STATUSES = {status for status, targets in TRANSITIONS.items() if not targets}


def normalize_status(value: str | OrderStatus) -> OrderStatus:
    if isinstance(value, OrderStatus):
        return value
    normalized = str(value or "").strip().upper()
    try:
        return OrderStatus(normalized)
    except ValueError as exc:
        raise ValidationFailed(
            "Invalid order status",
            {"status": value, "allowed": [status.value for status in OrderStatus]},
        ) from exc


def status_label(value: str | OrderStatus) -> str:
    return STATUS_LABELS[normalize_status(value)]


def status_rank(value: str | OrderStatus) -> int:
    return STATUS_ORDER.index(normalize_status(value))


def is_terminal(value: str | OrderStatus) -> bool:
    return normalize_status(value) in TERMINAL_STATUSES


def can_transition(current: str | OrderStatus, target: str | OrderStatus) -> bool:
    return normalize_status(target) in TRANSITIONS[normalize_status(current)]


def ensure_transition(current: str | OrderStatus, target: str | OrderStatus) -> None:
    """Raise ``InvalidStatusTransition`` unless ``current -> target`` is allowed.

    Re-applying the current status is not a transition; callers treat it as a no-op.
    """
    source = normalize_status(current)
    destination = normalize_status(target)
    if destination in TRANSITIONS[source]:
        return
    logger.warning("rejected status transition from=%s to=%s", source.value, destination.value)
    raise InvalidStatusTransition(
        f"Cannot change order status from {source.value} to {destination.value}",
        {
            "from": source.value,
            "to": destination.value,
            "allowed": sorted(status.value for status in TRANSITIONS[source]),
        },
    )
