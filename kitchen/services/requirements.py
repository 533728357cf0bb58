"""Ingredient demand for a set of orders, netted against stock."""
from __future__ import annotations

from typing import Iterable, Mapping, Optional

from kitchen.core.errors import ReportComputationError
from kitchen.domain.records import DishRecord, IngredientRecord, OrderRecord
from kitchen.services.aggregation import active_orders, money


def is_low_stock(current_stock: Optional[float], min_stock: Optional[float]) -> bool:
    # unset values count as 0
    return float(current_stock or 0) < float(min_stock or 0)


def calculate_requirements(
    orders: Iterable[OrderRecord],
    dishes: Mapping[int, DishRecord],
    ingredients: Mapping[int, IngredientRecord],
) -> list[dict]:
    totals: dict[int, float] = {}
    used_in: dict[int, dict[str, float]] = {}
    touching_orders: dict[int, set[int]] = {}

    for order in active_orders(orders):
        for item in order.items:
            dish = dishes.get(item.dish_id)
            if dish is None:
                raise ReportComputationError(
                    "Order item references an unknown dish",
                    {"orderId": order.id, "dishId": item.dish_id},
                )
            for line in dish.bill_of_materials:
                if line.ingredient_id not in ingredients:
                    raise ReportComputationError(
                        "Dish references an unknown ingredient",
                        {"dishId": dish.id, "ingredientId": line.ingredient_id},
                    )
                amount = line.quantity * item.quantity
                totals[line.ingredient_id] = totals.get(line.ingredient_id, 0.0) + amount
                per_dish = used_in.setdefault(line.ingredient_id, {})
                per_dish[dish.name] = per_dish.get(dish.name, 0.0) + amount
                touching_orders.setdefault(line.ingredient_id, set()).add(order.id)

    requirements = []
    for ingredient_id, total in totals.items():
        ingredient = ingredients[ingredient_id]
        total_quantity = round(total, 2)
        current_stock = float(ingredient.current_stock or 0)
        cost_per_unit = float(ingredient.cost_per_unit or 0)
        requirements.append(
            {
                "ingredientId": ingredient.id,
                "name": ingredient.name,
                "unit": ingredient.unit,
                "category": ingredient.category,
                "supplier": ingredient.supplier,
                "totalQuantity": total_quantity,
                "currentStock": ingredient.current_stock,
                "minStock": ingredient.min_stock,
                "needToBuy": round(max(0.0, total - current_stock), 2),
                "costPerUnit": cost_per_unit,
                "estimatedCost": money(total * cost_per_unit),
                "lowStock": is_low_stock(ingredient.current_stock, ingredient.min_stock),
                "usedInDishes": [
                    {"dishName": name, "quantity": round(quantity, 2)}
                    for name, quantity in sorted(used_in[ingredient_id].items(), key=lambda pair: (-pair[1], pair[0]))
                ],
                "orderCount": len(touching_orders[ingredient_id]),
            }
        )

    requirements.sort(key=lambda entry: ((entry["category"] or "").lower(), entry["name"].lower()))
    return requirements
