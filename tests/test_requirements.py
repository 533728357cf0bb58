from datetime import date, datetime

import pytest

from kitchen.core.errors import ReportComputationError
from kitchen.domain.records import (
    BillOfMaterialsLine,
    CustomerRef,
    DishRecord,
    IngredientRecord,
    OrderItemRecord,
    OrderRecord,
)
from kitchen.services.requirements import calculate_requirements, is_low_stock

FRIDAY = date(2024, 11, 15)

INGREDIENTS = {
    1: IngredientRecord(id=1, name="Ingredient Y", unit="kg", current_stock=0.5, min_stock=1, cost_per_unit=10),
    2: IngredientRecord(id=2, name="Rice", unit="kg", current_stock=15, min_stock=10),
}

DISHES = {
    1: DishRecord(id=1, name="Dish X", price=30, bill_of_materials=(BillOfMaterialsLine(1, 0.3),)),
    2: DishRecord(id=2, name="Dish B", price=10, bill_of_materials=(BillOfMaterialsLine(1, 0.1), BillOfMaterialsLine(2, 0.2))),
}


def _order(order_id, items, status="NEW"):
    return OrderRecord(
        id=order_id,
        order_number=f"ORD-2024-{order_id:04d}",
        customer=CustomerRef(id=order_id, name=f"Customer {order_id}"),
        status=status,
        delivery_date=FRIDAY,
        order_date=datetime(2024, 11, 11),
        total_amount=sum(item.price * item.quantity for item in items),
        items=tuple(items),
    )


def test_two_orders_of_two_dishes_need_one_point_two_units():
    orders = [
        _order(1, [OrderItemRecord(dish_id=1, quantity=2, price=30)]),
        _order(2, [OrderItemRecord(dish_id=1, quantity=2, price=30)]),
    ]

    requirements = calculate_requirements(orders, DISHES, INGREDIENTS)

    assert len(requirements) == 1
    ingredient_y = requirements[0]
    assert ingredient_y["name"] == "Ingredient Y"
    assert ingredient_y["totalQuantity"] == 1.2
    assert ingredient_y["needToBuy"] == 0.7
    assert ingredient_y["estimatedCost"] == 12.0
    assert ingredient_y["orderCount"] == 2
    assert ingredient_y["lowStock"] is True
    assert ingredient_y["usedInDishes"] == [{"dishName": "Dish X", "quantity": 1.2}]


def test_need_to_buy_never_goes_negative_and_missing_cost_is_zero():
    orders = [_order(1, [OrderItemRecord(dish_id=2, quantity=3, price=10)])]

    requirements = {entry["name"]: entry for entry in calculate_requirements(orders, DISHES, INGREDIENTS)}

    rice = requirements["Rice"]
    assert rice["totalQuantity"] == 0.6
    assert rice["needToBuy"] == 0
    assert rice["estimatedCost"] == 0
    assert rice["lowStock"] is False


def test_used_in_dishes_sorted_by_quantity():
    orders = [
        _order(1, [OrderItemRecord(dish_id=1, quantity=1, price=30), OrderItemRecord(dish_id=2, quantity=5, price=10)]),
    ]

    ingredient_y = next(
        entry for entry in calculate_requirements(orders, DISHES, INGREDIENTS) if entry["ingredientId"] == 1
    )

    assert [entry["dishName"] for entry in ingredient_y["usedInDishes"]] == ["Dish B", "Dish X"]
    assert ingredient_y["totalQuantity"] == 0.8


def test_cancelled_orders_do_not_create_demand():
    orders = [_order(1, [OrderItemRecord(dish_id=1, quantity=2, price=30)], status="CANCELLED")]

    assert calculate_requirements(orders, DISHES, INGREDIENTS) == []


def test_dish_with_unknown_ingredient_is_a_computation_error():
    dishes = {1: DishRecord(id=1, name="Broken", price=5, bill_of_materials=(BillOfMaterialsLine(42, 1),))}
    orders = [_order(1, [OrderItemRecord(dish_id=1, quantity=1, price=5)])]

    with pytest.raises(ReportComputationError):
        calculate_requirements(orders, dishes, INGREDIENTS)


@pytest.mark.parametrize(
    "current, minimum, expected",
    [(5, 10, True), (15, 10, False), (10, 10, False), (None, 3, True), (None, None, False)],
)
def test_low_stock_flag(current, minimum, expected):
    assert is_low_stock(current, minimum) is expected
