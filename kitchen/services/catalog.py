from __future__ import annotations

import logging
from typing import Any, Iterable, Optional

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from kitchen.core.database import transaction
from kitchen.core.errors import Conflict, NotFound
from kitchen.models.dish import Dish, DishIngredient
from kitchen.models.ingredient import Ingredient
from kitchen.models.order_item import OrderItem
from kitchen.schemas.catalog import (
    DishCreate,
    DishIngredientIn,
    DishUpdate,
    IngredientCreate,
    IngredientUpdate,
)
from kitchen.services.requirements import is_low_stock

logger = logging.getLogger(__name__)

DUPLICATE_INGREDIENT_MESSAGE = "An ingredient with this name already exists"

UNIT_LABELS = {
    "kg": "Kilogram",
    "gram": "Gram",
    "liter": "Liter",
    "ml": "Milliliter",
    "unit": "Unit",
}

DISH_CATEGORY_LABELS = {
    "appetizer": "Appetizer",
    "main": "Main course",
    "side": "Side dish",
    "dessert": "Dessert",
    "beverage": "Beverage",
}


def _float_or_none(value) -> Optional[float]:
    return float(value) if value is not None else None


# Ingredients


def ingredient_to_dict(ingredient: Ingredient, dish_count: int = 0) -> dict[str, Any]:
    return {
        "id": ingredient.id,
        "name": ingredient.name,
        "unit": ingredient.unit,
        "unitLabel": UNIT_LABELS.get(ingredient.unit, ingredient.unit),
        "currentStock": _float_or_none(ingredient.current_stock),
        "minStock": _float_or_none(ingredient.min_stock),
        "costPerUnit": _float_or_none(ingredient.cost_per_unit),
        "supplier": ingredient.supplier,
        "category": ingredient.category,
        "lowStock": is_low_stock(ingredient.current_stock, ingredient.min_stock),
        "dishCount": dish_count,
        "createdAt": ingredient.created_at.isoformat() if ingredient.created_at else None,
        "updatedAt": ingredient.updated_at.isoformat() if ingredient.updated_at else None,
    }


def _dish_counts(db: Session, ingredient_ids: Iterable[int]) -> dict[int, int]:
    ids = list(ingredient_ids)
    if not ids:
        return {}
    rows = (
        db.query(DishIngredient.ingredient_id, func.count(func.distinct(DishIngredient.dish_id)))
        .filter(DishIngredient.ingredient_id.in_(ids))
        .group_by(DishIngredient.ingredient_id)
        .all()
    )
    return {ingredient_id: int(count) for ingredient_id, count in rows}


def list_ingredients(
    db: Session,
    search: Optional[str] = None,
    category: Optional[str] = None,
    low_stock: Optional[bool] = None,
) -> list[dict]:
    query = db.query(Ingredient)
    clean_search = (search or "").strip()
    if clean_search:
        like = f"%{clean_search}%"
        query = query.filter(or_(Ingredient.name.ilike(like), Ingredient.supplier.ilike(like)))
    if category:
        query = query.filter(func.lower(Ingredient.category) == category.strip().lower())
    ingredients = query.order_by(Ingredient.name.asc()).all()
    if low_stock is not None:
        ingredients = [
            ingredient
            for ingredient in ingredients
            if is_low_stock(ingredient.current_stock, ingredient.min_stock) == low_stock
        ]
    counts = _dish_counts(db, [ingredient.id for ingredient in ingredients])
    return [ingredient_to_dict(ingredient, counts.get(ingredient.id, 0)) for ingredient in ingredients]


def low_stock_ingredients(db: Session) -> list[dict]:
    return list_ingredients(db, low_stock=True)


def low_stock_count(db: Session) -> int:
    rows = db.query(Ingredient.current_stock, Ingredient.min_stock).all()
    return sum(1 for current_stock, min_stock in rows if is_low_stock(current_stock, min_stock))


def ingredient_categories(db: Session) -> list[str]:
    rows = (
        db.query(Ingredient.category)
        .filter(Ingredient.category.isnot(None), Ingredient.category != "")
        .distinct()
        .order_by(Ingredient.category.asc())
        .all()
    )
    return [row[0] for row in rows]


def get_ingredient(db: Session, ingredient_id: int) -> Ingredient:
    ingredient = db.query(Ingredient).filter(Ingredient.id == ingredient_id).first()
    if ingredient is None:
        raise NotFound("Ingredient not found", {"ingredientId": ingredient_id})
    return ingredient


def ingredient_detail(db: Session, ingredient_id: int) -> dict:
    ingredient = get_ingredient(db, ingredient_id)
    return ingredient_to_dict(ingredient, _dish_counts(db, [ingredient.id]).get(ingredient.id, 0))


def _ingredient_name_taken(db: Session, name: str, exclude_id: Optional[int] = None) -> bool:
    query = db.query(Ingredient.id).filter(func.lower(Ingredient.name) == name.lower())
    if exclude_id is not None:
        query = query.filter(Ingredient.id != exclude_id)
    return query.first() is not None


def create_ingredient(db: Session, payload: IngredientCreate) -> Ingredient:
    if _ingredient_name_taken(db, payload.name):
        logger.warning("duplicate ingredient rejected name=%s", payload.name)
        raise Conflict(DUPLICATE_INGREDIENT_MESSAGE, {"name": payload.name})
    ingredient = Ingredient(**payload.model_dump())
    try:
        with transaction(db):
            db.add(ingredient)
    except IntegrityError as exc:
        raise Conflict(DUPLICATE_INGREDIENT_MESSAGE, {"name": payload.name}) from exc
    db.refresh(ingredient)
    logger.info("ingredient created ingredient_id=%s", ingredient.id)
    return ingredient


def update_ingredient(db: Session, ingredient_id: int, payload: IngredientUpdate) -> Ingredient:
    ingredient = get_ingredient(db, ingredient_id)
    changes = payload.model_dump(exclude_unset=True)
    for field in ("name", "unit"):
        if field in changes and changes[field] is None:
            changes.pop(field)
    if "name" in changes and _ingredient_name_taken(db, changes["name"], exclude_id=ingredient.id):
        raise Conflict(DUPLICATE_INGREDIENT_MESSAGE, {"name": changes["name"]})
    try:
        with transaction(db):
            for field, value in changes.items():
                setattr(ingredient, field, value)
    except IntegrityError as exc:
        raise Conflict(DUPLICATE_INGREDIENT_MESSAGE, {"name": ingredient.name}) from exc
    db.refresh(ingredient)
    return ingredient


def delete_ingredient(db: Session, ingredient_id: int) -> None:
    ingredient = get_ingredient(db, ingredient_id)
    dish_count = _dish_counts(db, [ingredient.id]).get(ingredient.id, 0)
    if dish_count:
        logger.warning("ingredient delete blocked ingredient_id=%s dishes=%s", ingredient.id, dish_count)
        raise Conflict(
            "Ingredient is used by dishes and cannot be deleted",
            {"ingredientId": ingredient.id, "dishCount": dish_count},
        )
    with transaction(db):
        db.delete(ingredient)
    logger.info("ingredient deleted ingredient_id=%s", ingredient_id)


# Dishes


def dish_to_dict(dish: Dish, order_count: Optional[int] = None) -> dict[str, Any]:
    data = {
        "id": dish.id,
        "name": dish.name,
        "description": dish.description,
        "price": float(dish.price or 0),
        "category": dish.category,
        "categoryLabel": DISH_CATEGORY_LABELS.get(dish.category, dish.category),
        "isAvailable": bool(dish.is_available),
        "ingredients": [
            {
                "id": line.id,
                "ingredientId": line.ingredient_id,
                "name": line.ingredient.name if line.ingredient else None,
                "unit": line.ingredient.unit if line.ingredient else None,
                "quantity": float(line.quantity),
                "notes": line.notes,
            }
            for line in dish.ingredients
        ],
        "createdAt": dish.created_at.isoformat() if dish.created_at else None,
        "updatedAt": dish.updated_at.isoformat() if dish.updated_at else None,
    }
    if order_count is not None:
        data["orderCount"] = order_count
    return data


def _order_counts(db: Session, dish_ids: Iterable[int]) -> dict[int, int]:
    ids = list(dish_ids)
    if not ids:
        return {}
    rows = (
        db.query(OrderItem.dish_id, func.count(func.distinct(OrderItem.order_id)))
        .filter(OrderItem.dish_id.in_(ids))
        .group_by(OrderItem.dish_id)
        .all()
    )
    return {dish_id: int(count) for dish_id, count in rows}


def _dish_query(db: Session):
    return db.query(Dish).options(selectinload(Dish.ingredients).selectinload(DishIngredient.ingredient))


def list_dishes(
    db: Session,
    search: Optional[str] = None,
    category: Optional[str] = None,
    available: Optional[bool] = None,
) -> list[dict]:
    query = _dish_query(db)
    clean_search = (search or "").strip()
    if clean_search:
        like = f"%{clean_search}%"
        query = query.filter(or_(Dish.name.ilike(like), Dish.description.ilike(like)))
    if category:
        query = query.filter(Dish.category == category.strip().lower())
    if available is not None:
        query = query.filter(Dish.is_available == available)
    dishes = query.order_by(Dish.category.asc(), Dish.name.asc()).all()
    counts = _order_counts(db, [dish.id for dish in dishes])
    return [dish_to_dict(dish, counts.get(dish.id, 0)) for dish in dishes]


def get_dish(db: Session, dish_id: int) -> Dish:
    dish = _dish_query(db).filter(Dish.id == dish_id).first()
    if dish is None:
        raise NotFound("Dish not found", {"dishId": dish_id})
    return dish


def dish_detail(db: Session, dish_id: int) -> dict:
    dish = get_dish(db, dish_id)
    return dish_to_dict(dish, _order_counts(db, [dish.id]).get(dish.id, 0))


def _bill_of_materials(db: Session, lines: list[DishIngredientIn]) -> list[DishIngredient]:
    wanted = {line.ingredient_id for line in lines}
    found = {row[0] for row in db.query(Ingredient.id).filter(Ingredient.id.in_(wanted)).all()}
    missing = sorted(wanted - found)
    if missing:
        raise NotFound("Ingredient not found", {"ingredientIds": missing})
    return [
        DishIngredient(ingredient_id=line.ingredient_id, quantity=line.quantity, notes=line.notes)
        for line in lines
    ]


def create_dish(db: Session, payload: DishCreate) -> Dish:
    dish = Dish(
        name=payload.name,
        description=payload.description,
        price=round(payload.price, 2),
        category=payload.category,
        is_available=payload.is_available,
        ingredients=_bill_of_materials(db, payload.ingredients),
    )
    with transaction(db):
        db.add(dish)
    logger.info("dish created dish_id=%s", dish.id)
    return get_dish(db, dish.id)


def update_dish(db: Session, dish_id: int, payload: DishUpdate) -> Dish:
    dish = get_dish(db, dish_id)
    changes = payload.model_dump(exclude_unset=True, exclude={"ingredients"})
    for field in ("name", "price", "category", "is_available"):
        if field in changes and changes[field] is None:
            changes.pop(field)
    if "price" in changes:
        changes["price"] = round(changes["price"], 2)
    lines = _bill_of_materials(db, payload.ingredients) if payload.ingredients is not None else None

    with transaction(db):
        for field, value in changes.items():
            setattr(dish, field, value)
        if lines is not None:
            dish.ingredients.clear()
            db.flush()
            dish.ingredients.extend(lines)
    logger.info("dish updated dish_id=%s", dish.id)
    return get_dish(db, dish.id)


def delete_dish(db: Session, dish_id: int) -> None:
    dish = get_dish(db, dish_id)
    order_count = _order_counts(db, [dish.id]).get(dish.id, 0)
    if order_count:
        logger.warning("dish delete blocked dish_id=%s orders=%s", dish.id, order_count)
        raise Conflict(
            "Dish is referenced by orders and cannot be deleted",
            {"dishId": dish.id, "orderCount": order_count},
        )
    with transaction(db):
        db.delete(dish)
    logger.info("dish deleted dish_id=%s", dish_id)
