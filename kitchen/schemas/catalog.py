from typing import Annotated, List, Literal, Optional

from pydantic import BeforeValidator, Field

from kitchen.schemas.base import CamelModel


def _lower(value):
    return value.strip().lower() if isinstance(value, str) else value


DishCategory = Annotated[Literal["appetizer", "main", "side", "dessert", "beverage"], BeforeValidator(_lower)]
IngredientCategory = Annotated[str, BeforeValidator(_lower)]


class DishIngredientIn(CamelModel):
    ingredient_id: int
    quantity: float = Field(..., gt=0)
    notes: Optional[str] = Field(default=None, max_length=200)


class DishCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    price: float = Field(..., gt=0)
    category: DishCategory = "main"
    is_available: bool = True
    ingredients: List[DishIngredientIn] = Field(..., min_length=1)


class DishUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = None
    price: Optional[float] = Field(default=None, gt=0)
    category: Optional[DishCategory] = None
    is_available: Optional[bool] = None
    ingredients: Optional[List[DishIngredientIn]] = Field(default=None, min_length=1)


class IngredientCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    unit: str = Field(..., min_length=1, max_length=20)
    current_stock: Optional[float] = Field(default=None, ge=0)
    min_stock: Optional[float] = Field(default=None, ge=0)
    cost_per_unit: Optional[float] = Field(default=None, ge=0)
    supplier: Optional[str] = Field(default=None, max_length=100)
    category: Optional[IngredientCategory] = Field(default=None, max_length=50)


class IngredientUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    unit: Optional[str] = Field(default=None, min_length=1, max_length=20)
    current_stock: Optional[float] = Field(default=None, ge=0)
    min_stock: Optional[float] = Field(default=None, ge=0)
    cost_per_unit: Optional[float] = Field(default=None, ge=0)
    supplier: Optional[str] = Field(default=None, max_length=100)
    category: Optional[IngredientCategory] = Field(default=None, max_length=50)
