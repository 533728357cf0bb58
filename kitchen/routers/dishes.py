from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from kitchen.core.database import get_db
from kitchen.deps import get_current_principal
from kitchen.schemas.catalog import DishCreate, DishUpdate
from kitchen.services import catalog

router = APIRouter(prefix="/api/dishes", tags=["dishes"], dependencies=[Depends(get_current_principal)])


@router.get("")
def list_dishes(
    search: Optional[str] = Query(default=None),
    category: Optional[str] = Query(default=None),
    available: Optional[bool] = Query(default=None),
    db: Session = Depends(get_db),
):
    return {"dishes": catalog.list_dishes(db, search=search, category=category, available=available)}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_dish(payload: DishCreate, db: Session = Depends(get_db)):
    return catalog.dish_to_dict(catalog.create_dish(db, payload), order_count=0)


@router.get("/{dish_id}")
def get_dish(dish_id: int, db: Session = Depends(get_db)):
    return catalog.dish_detail(db, dish_id)


@router.put("/{dish_id}")
def update_dish(dish_id: int, payload: DishUpdate, db: Session = Depends(get_db)):
    catalog.update_dish(db, dish_id, payload)
    return catalog.dish_detail(db, dish_id)


@router.delete("/{dish_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_dish(dish_id: int, db: Session = Depends(get_db)):
    catalog.delete_dish(db, dish_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
