from __future__ import annotations

import csv
import io
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from kitchen.core.config import DEFAULT_PAGE_SIZE
from kitchen.core.database import get_db
from kitchen.deps import Principal, get_current_principal
from kitchen.schemas.orders import OrderCreate, OrderStatusUpdate, OrderUpdate
from kitchen.services import orders as order_service
from kitchen.services.calendar import parse_day
from kitchen.services.order_lifecycle import apply_order_update
from kitchen.services.orders import EXPORT_COLUMNS

router = APIRouter(prefix="/api/orders", tags=["orders"], dependencies=[Depends(get_current_principal)])


@router.get("")
def list_orders(
    status_filter: Optional[str] = Query(default=None, alias="status"),
    date_range: str = Query(default="all", alias="dateRange"),
    search: Optional[str] = Query(default=None),
    customer_id: Optional[int] = Query(default=None, alias="customerId"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=100),
    db: Session = Depends(get_db),
):
    return order_service.list_orders(
        db,
        status=status_filter,
        date_range=date_range,
        search=search,
        customer_id=customer_id,
        page=page,
        limit=limit,
    )


@router.post("", status_code=status.HTTP_201_CREATED)
def create_order(
    payload: OrderCreate,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    order = order_service.create_order(db, payload, user_id=principal.uid)
    return order_service.order_to_dict(order)


@router.get("/today")
def todays_orders(db: Session = Depends(get_db)):
    return {"orders": order_service.todays_orders(db)}


@router.get("/weekly")
def weekly_orders(date: Optional[str] = Query(default=None), db: Session = Depends(get_db)):
    return order_service.weekly_orders(db, parse_day(date))


@router.get("/next-delivery")
def next_delivery(db: Session = Depends(get_db)):
    return order_service.next_delivery(db)


@router.get("/export")
def export_orders(
    status_filter: Optional[str] = Query(default=None, alias="status"),
    date_range: str = Query(default="all", alias="dateRange"),
    search: Optional[str] = Query(default=None),
    customer_id: Optional[int] = Query(default=None, alias="customerId"),
    db: Session = Depends(get_db),
):
    rows = order_service.export_rows(
        db, status=status_filter, date_range=date_range, search=search, customer_id=customer_id
    )
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(EXPORT_COLUMNS)
    writer.writerows(rows)
    buffer.seek(0)
    return StreamingResponse(
        iter([buffer.getvalue()]),
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=orders.csv"},
    )


@router.get("/{order_id}")
def get_order(order_id: int, db: Session = Depends(get_db)):
    return order_service.order_detail(db, order_id)


@router.put("/{order_id}")
def update_order(
    order_id: int,
    payload: OrderUpdate,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    changes = payload.model_dump(exclude_unset=True, exclude={"items"})
    if "items" in payload.model_fields_set:
        changes["items"] = payload.items
    return apply_order_update(db, order_id, changes, user_id=principal.uid)


@router.patch("/{order_id}/status")
def update_order_status(
    order_id: int,
    payload: OrderStatusUpdate,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    return apply_order_update(db, order_id, {"status": payload.status}, user_id=principal.uid)


@router.delete("/{order_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_order(order_id: int, db: Session = Depends(get_db)):
    order_service.delete_order(db, order_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
