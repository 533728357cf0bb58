from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from kitchen.core.database import get_db
from kitchen.deps import get_current_principal
from kitchen.schemas.catalog import IngredientCreate, IngredientUpdate
from kitchen.services import catalog

router = APIRouter(prefix="/api/ingredients", tags=["ingredients"], dependencies=[Depends(get_current_principal)])


@router.get("")
def list_ingredients(
    search: Optional[str] = Query(default=None),
    category: Optional[str] = Query(default=None),
    low_stock: Optional[bool] = Query(default=None, alias="lowStock"),
    db: Session = Depends(get_db),
):
    return {"ingredients": catalog.list_ingredients(db, search=search, category=category, low_stock=low_stock)}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_ingredient(payload: IngredientCreate, db: Session = Depends(get_db)):
    return catalog.ingredient_to_dict(catalog.create_ingredient(db, payload))


@router.get("/categories")
def ingredient_categories(db: Session = Depends(get_db)):
    return {"categories": catalog.ingredient_categories(db)}


@router.get("/low-stock")
def low_stock(db: Session = Depends(get_db)):
    return {"ingredients": catalog.low_stock_ingredients(db)}


@router.get("/{ingredient_id}")
def get_ingredient(ingredient_id: int, db: Session = Depends(get_db)):
    return catalog.ingredient_detail(db, ingredient_id)


@router.put("/{ingredient_id}")
def update_ingredient(ingredient_id: int, payload: IngredientUpdate, db: Session = Depends(get_db)):
    catalog.update_ingredient(db, ingredient_id, payload)
    return catalog.ingredient_detail(db, ingredient_id)


@router.delete("/{ingredient_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_ingredient(ingredient_id: int, db: Session = Depends(get_db)):
    catalog.delete_ingredient(db, ingredient_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
