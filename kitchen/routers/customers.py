from __future__ import annotations

import csv
import io
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from kitchen.core.database import get_db
from kitchen.deps import get_current_principal
from kitchen.schemas.customers import CustomerCreate, CustomerUpdate, PreferenceIn, PreferenceUpdate
from kitchen.services import customers as customer_service
from kitchen.services.orders import customer_orders

router = APIRouter(prefix="/api/customers", tags=["customers"], dependencies=[Depends(get_current_principal)])


@router.get("")
def list_customers(search: Optional[str] = Query(default=None), db: Session = Depends(get_db)):
    return {"customers": customer_service.list_customers(db, search)}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_customer(payload: CustomerCreate, db: Session = Depends(get_db)):
    customer = customer_service.create_customer(db, payload)
    return customer_service.customer_to_dict(customer)


@router.get("/export")
def export_customers(db: Session = Depends(get_db)):
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(customer_service.CUSTOMER_EXPORT_COLUMNS)
    writer.writerows(customer_service.export_rows(db))
    buffer.seek(0)
    return StreamingResponse(
        iter([buffer.getvalue()]),
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=customers.csv"},
    )


@router.get("/{customer_id}")
def get_customer(customer_id: int, db: Session = Depends(get_db)):
    return customer_service.customer_detail(db, customer_id)


@router.put("/{customer_id}")
def update_customer(customer_id: int, payload: CustomerUpdate, db: Session = Depends(get_db)):
    customer = customer_service.update_customer(db, customer_id, payload)
    return customer_service.customer_to_dict(customer)


@router.delete("/{customer_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_customer(customer_id: int, db: Session = Depends(get_db)):
    customer_service.delete_customer(db, customer_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{customer_id}/orders")
def list_customer_orders(customer_id: int, db: Session = Depends(get_db)):
    return {"orders": customer_orders(db, customer_id)}


@router.get("/{customer_id}/preferences")
def list_preferences(customer_id: int, db: Session = Depends(get_db)):
    preferences = customer_service.list_preferences(db, customer_id)
    return {"preferences": [customer_service.preference_to_dict(preference) for preference in preferences]}


@router.post("/{customer_id}/preferences", status_code=status.HTTP_201_CREATED)
def add_preference(customer_id: int, payload: PreferenceIn, db: Session = Depends(get_db)):
    preference = customer_service.add_preference(db, customer_id, payload)
    return customer_service.preference_to_dict(preference)


@router.put("/{customer_id}/preferences/{preference_id}")
def update_preference(
    customer_id: int,
    preference_id: int,
    payload: PreferenceUpdate,
    db: Session = Depends(get_db),
):
    preference = customer_service.update_preference(db, customer_id, preference_id, payload)
    return customer_service.preference_to_dict(preference)


@router.delete("/{customer_id}/preferences/{preference_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_preference(customer_id: int, preference_id: int, db: Session = Depends(get_db)):
    customer_service.delete_preference(db, customer_id, preference_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
