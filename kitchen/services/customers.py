from __future__ import annotations

import logging
import re
from typing import Any, Optional

from sqlalchemy import case, func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from kitchen.core.database import transaction
from kitchen.core.errors import Conflict, NotFound
from kitchen.models.customer import Customer, CustomerPreference
from kitchen.models.order import Order
from kitchen.schemas.customers import CustomerCreate, CustomerUpdate, PreferenceIn, PreferenceUpdate
from kitchen.services.order_status import OrderStatus

logger = logging.getLogger(__name__)

DUPLICATE_PHONE_MESSAGE = "A customer with this phone number already exists"
DUPLICATE_PREFERENCE_MESSAGE = "This preference already exists for the customer"

_PHONE_STRIP = re.compile(r"[^\d+]")

CUSTOMER_EXPORT_COLUMNS = [
    "Name",
    "Phone",
    "Email",
    "Address",
    "Notes",
    "Order count",
    "Total spent",
    "Last order date",
    "Created at",
]


def normalize_phone(raw: str) -> str:
    """Canonical phone form: ``050-1234567`` for local mobile numbers."""
    phone = _PHONE_STRIP.sub("", raw or "")
    if phone.startswith("+972"):
        phone = "0" + phone[4:]
    elif phone.startswith("972"):
        phone = "0" + phone[3:]
    if len(phone) == 10 and phone.startswith("0") and phone.isdigit():
        return f"{phone[:3]}-{phone[3:]}"
    return phone


def preference_to_dict(preference: CustomerPreference) -> dict[str, Any]:
    return {
        "id": preference.id,
        "type": preference.type,
        "value": preference.value,
        "notes": preference.notes,
    }


def customer_to_dict(customer: Customer, stats: Optional[dict] = None) -> dict[str, Any]:
    data = {
        "id": customer.id,
        "name": customer.name,
        "phone": customer.phone,
        "email": customer.email,
        "address": customer.address,
        "notes": customer.notes,
        "preferences": [preference_to_dict(preference) for preference in customer.preferences],
        "createdAt": customer.created_at.isoformat() if customer.created_at else None,
        "updatedAt": customer.updated_at.isoformat() if customer.updated_at else None,
    }
    if stats is not None:
        data.update(stats)
    return data


def get_customer(db: Session, customer_id: int) -> Customer:
    customer = (
        db.query(Customer)
        .options(selectinload(Customer.preferences))
        .filter(Customer.id == customer_id)
        .first()
    )
    if customer is None:
        raise NotFound("Customer not found", {"customerId": customer_id})
    return customer


def _phone_taken(db: Session, phone: str, exclude_id: Optional[int] = None) -> bool:
    query = db.query(Customer.id).filter(Customer.phone == phone)
    if exclude_id is not None:
        query = query.filter(Customer.id != exclude_id)
    return query.first() is not None


def _customer_stats(db: Session, customer_ids: list[int]) -> dict[int, dict]:
    if not customer_ids:
        return {}
    not_cancelled = Order.status != OrderStatus.CANCELLED.value
    rows = (
        db.query(
            Order.customer_id,
            func.count(Order.id),
            func.coalesce(func.sum(case((not_cancelled, Order.total_amount), else_=0)), 0),
            func.max(Order.delivery_date),
        )
        .filter(Order.customer_id.in_(customer_ids))
        .group_by(Order.customer_id)
        .all()
    )
    stats = {
        customer_id: {"orderCount": 0, "totalSpent": 0.0, "lastOrderDate": None} for customer_id in customer_ids
    }
    for customer_id, order_count, total_spent, last_date in rows:
        stats[customer_id] = {
            "orderCount": int(order_count or 0),
            "totalSpent": round(float(total_spent or 0), 2),
            "lastOrderDate": last_date.isoformat() if last_date else None,
        }
    return stats


def list_customers(db: Session, search: Optional[str] = None) -> list[dict]:
    query = db.query(Customer).options(selectinload(Customer.preferences))
    clean_search = (search or "").strip()
    if clean_search:
        like = f"%{clean_search}%"
        query = query.filter(
            or_(Customer.name.ilike(like), Customer.phone.ilike(like), Customer.email.ilike(like))
        )
    customers = query.order_by(Customer.name.asc(), Customer.id.asc()).all()
    stats = _customer_stats(db, [customer.id for customer in customers])
    return [customer_to_dict(customer, stats[customer.id]) for customer in customers]


def customer_detail(db: Session, customer_id: int) -> dict:
    customer = get_customer(db, customer_id)
    return customer_to_dict(customer, _customer_stats(db, [customer.id])[customer.id])


def export_rows(db: Session) -> list[list[Any]]:
    customers = db.query(Customer).order_by(Customer.name.asc(), Customer.id.asc()).all()
    stats = _customer_stats(db, [customer.id for customer in customers])
    rows = []
    for customer in customers:
        customer_stats = stats[customer.id]
        rows.append(
            [
                customer.name,
                customer.phone,
                customer.email or "",
                customer.address or "",
                customer.notes or "",
                customer_stats["orderCount"],
                f"{customer_stats['totalSpent']:.2f}",
                customer_stats["lastOrderDate"] or "",
                customer.created_at.date().isoformat() if customer.created_at else "",
            ]
        )
    return rows


def _preference_rows(preferences: list[PreferenceIn]) -> list[CustomerPreference]:
    return [
        CustomerPreference(type=preference.type, value=preference.value, notes=preference.notes)
        for preference in preferences
    ]


def create_customer(db: Session, payload: CustomerCreate) -> Customer:
    phone = normalize_phone(payload.phone)
    if _phone_taken(db, phone):
        logger.warning("duplicate customer phone rejected phone=%s", phone)
        raise Conflict(DUPLICATE_PHONE_MESSAGE, {"phone": phone})

    customer = Customer(
        name=payload.name,
        phone=phone,
        email=payload.email,
        address=payload.address,
        notes=payload.notes,
        preferences=_preference_rows(payload.preferences),
    )
    try:
        with transaction(db):
            db.add(customer)
    except IntegrityError as exc:
        raise Conflict(DUPLICATE_PHONE_MESSAGE, {"phone": phone}) from exc
    db.refresh(customer)
    logger.info("customer created customer_id=%s", customer.id)
    return customer


def update_customer(db: Session, customer_id: int, payload: CustomerUpdate) -> Customer:
    customer = get_customer(db, customer_id)
    changes = payload.model_dump(exclude_unset=True, exclude={"preferences"})

    if changes.get("phone") is not None:
        changes["phone"] = normalize_phone(changes["phone"])
        if _phone_taken(db, changes["phone"], exclude_id=customer.id):
            logger.warning("duplicate customer phone rejected phone=%s", changes["phone"])
            raise Conflict(DUPLICATE_PHONE_MESSAGE, {"phone": changes["phone"]})

    for field in ("name", "phone"):
        if field in changes and changes[field] is None:
            changes.pop(field)

    try:
        with transaction(db):
            for field, value in changes.items():
                setattr(customer, field, value)
            if payload.preferences is not None:
                customer.preferences.clear()
                db.flush()
                customer.preferences.extend(_preference_rows(payload.preferences))
    except IntegrityError as exc:
        raise Conflict(DUPLICATE_PHONE_MESSAGE, {"phone": customer.phone}) from exc
    db.refresh(customer)
    logger.info("customer updated customer_id=%s", customer.id)
    return customer


def delete_customer(db: Session, customer_id: int) -> None:
    customer = get_customer(db, customer_id)
    order_count = db.query(func.count(Order.id)).filter(Order.customer_id == customer.id).scalar() or 0
    if order_count:
        logger.warning("customer delete blocked customer_id=%s orders=%s", customer.id, order_count)
        raise Conflict(
            "Customer has orders and cannot be deleted",
            {"customerId": customer.id, "orderCount": int(order_count)},
        )
    with transaction(db):
        db.delete(customer)
    logger.info("customer deleted customer_id=%s", customer_id)


def list_preferences(db: Session, customer_id: int) -> list[CustomerPreference]:
    return get_customer(db, customer_id).preferences


def _get_preference(db: Session, customer_id: int, preference_id: int) -> CustomerPreference:
    preference = (
        db.query(CustomerPreference)
        .filter(CustomerPreference.id == preference_id, CustomerPreference.customer_id == customer_id)
        .first()
    )
    if preference is None:
        raise NotFound("Preference not found", {"customerId": customer_id, "preferenceId": preference_id})
    return preference


def _preference_exists(
    db: Session, customer_id: int, type_: str, value: str, exclude_id: Optional[int] = None
) -> bool:
    query = db.query(CustomerPreference.id).filter(
        CustomerPreference.customer_id == customer_id,
        CustomerPreference.type == type_,
        func.lower(CustomerPreference.value) == value.lower(),
    )
    if exclude_id is not None:
        query = query.filter(CustomerPreference.id != exclude_id)
    return query.first() is not None


def add_preference(db: Session, customer_id: int, payload: PreferenceIn) -> CustomerPreference:
    get_customer(db, customer_id)
    if _preference_exists(db, customer_id, payload.type, payload.value):
        raise Conflict(DUPLICATE_PREFERENCE_MESSAGE, {"type": payload.type, "value": payload.value})
    preference = CustomerPreference(
        customer_id=customer_id, type=payload.type, value=payload.value, notes=payload.notes
    )
    try:
        with transaction(db):
            db.add(preference)
    except IntegrityError as exc:
        raise Conflict(DUPLICATE_PREFERENCE_MESSAGE, {"type": payload.type, "value": payload.value}) from exc
    db.refresh(preference)
    return preference


def update_preference(
    db: Session, customer_id: int, preference_id: int, payload: PreferenceUpdate
) -> CustomerPreference:
    preference = _get_preference(db, customer_id, preference_id)
    changes = payload.model_dump(exclude_unset=True)
    type_ = changes.get("type") or preference.type
    value = changes.get("value") or preference.value
    if _preference_exists(db, customer_id, type_, value, exclude_id=preference.id):
        raise Conflict(DUPLICATE_PREFERENCE_MESSAGE, {"type": type_, "value": value})
    try:
        with transaction(db):
            preference.type = type_
            preference.value = value
            if "notes" in changes:
                preference.notes = changes["notes"]
    except IntegrityError as exc:
        raise Conflict(DUPLICATE_PREFERENCE_MESSAGE, {"type": type_, "value": value}) from exc
    db.refresh(preference)
    return preference


def delete_preference(db: Session, customer_id: int, preference_id: int) -> None:
    preference = _get_preference(db, customer_id, preference_id)
    with transaction(db):
        db.delete(preference)
