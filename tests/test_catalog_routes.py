import copy

from tests.fixtures_data import DISH_PAYLOAD, INGREDIENT_PAYLOAD, ORDER_PAYLOAD
from tests.support import build_client


def test_create_ingredient_and_reject_duplicate_name():
    client, _ = build_client()

    created = client.post("/api/ingredients", json=INGREDIENT_PAYLOAD)
    duplicate = client.post("/api/ingredients", json={**INGREDIENT_PAYLOAD, "name": "lentils"})

    assert created.status_code == 201, created.text
    body = created.json()
    assert body["category"] == "grains"
    assert body["lowStock"] is True
    assert body["dishCount"] == 0
    assert duplicate.status_code == 409


def test_low_stock_listing_and_filter():
    client, _ = build_client()

    low = client.get("/api/ingredients/low-stock").json()["ingredients"]
    not_low = client.get("/api/ingredients", params={"lowStock": "false"}).json()["ingredients"]

    assert [ingredient["name"] for ingredient in low] == ["Ingredient Y"]
    assert {ingredient["name"] for ingredient in not_low} == {"Rice", "Saffron"}


def test_ingredient_categories_are_distinct_and_sorted():
    client, _ = build_client()

    categories = client.get("/api/ingredients/categories").json()["categories"]

    assert categories == ["exotic", "grains", "vegetables"]


def test_ingredient_used_by_dish_cannot_be_deleted():
    client, _ = build_client()

    used = client.delete("/api/ingredients/2")
    rice = client.get("/api/ingredients/2").json()

    assert used.status_code == 409
    assert rice["dishCount"] == 2


def test_create_dish_with_bill_of_materials():
    client, _ = build_client()

    response = client.post("/api/dishes", json=DISH_PAYLOAD)

    assert response.status_code == 201, response.text
    dish = response.json()
    assert dish["category"] == "main"
    assert dish["orderCount"] == 0
    assert dish["ingredients"] == [
        {"id": dish["ingredients"][0]["id"], "ingredientId": 2, "name": "Rice", "unit": "kg", "quantity": 0.25, "notes": None}
    ]


def test_dish_validation():
    client, _ = build_client()

    no_ingredients = client.post("/api/dishes", json={**DISH_PAYLOAD, "ingredients": []})
    bad_price = client.post("/api/dishes", json={**DISH_PAYLOAD, "price": 0})
    bad_category = client.post("/api/dishes", json={**DISH_PAYLOAD, "category": "snack"})
    unknown_ingredient = client.post(
        "/api/dishes", json={**DISH_PAYLOAD, "ingredients": [{"ingredientId": 77, "quantity": 1}]}
    )

    assert no_ingredients.status_code == 400
    assert bad_price.status_code == 400
    assert bad_category.status_code == 400
    assert unknown_ingredient.status_code == 404


def test_update_dish_replaces_ingredients_and_keeps_past_order_prices():
    client, _ = build_client()
    order = client.post("/api/orders", json=copy.deepcopy(ORDER_PAYLOAD)).json()

    response = client.put(
        "/api/dishes/1",
        json={"price": 35, "ingredients": [{"ingredientId": 2, "quantity": 0.4}]},
    )
    detail = client.get(f"/api/orders/{order['id']}").json()

    assert response.status_code == 200
    assert response.json()["price"] == 35
    assert [line["ingredientId"] for line in response.json()["ingredients"]] == [2]
    assert response.json()["orderCount"] == 1
    assert next(item for item in detail["items"] if item["dishId"] == 1)["price"] == 30
    assert detail["totalAmount"] == 85


def test_dish_referenced_by_orders_cannot_be_deleted():
    client, _ = build_client()
    client.post("/api/orders", json=copy.deepcopy(ORDER_PAYLOAD))

    blocked = client.delete("/api/dishes/1")
    allowed = client.delete("/api/dishes/2")

    assert blocked.status_code == 409
    assert allowed.status_code == 204
    assert client.get("/api/dishes/2").status_code == 404


def test_list_dishes_filters():
    client, _ = build_client()

    mains = client.get("/api/dishes", params={"category": "main"}).json()["dishes"]
    search = client.get("/api/dishes", params={"search": "dish b"}).json()["dishes"]

    assert {dish["name"] for dish in mains} == {"Dish A", "Dish X"}
    assert [dish["name"] for dish in search] == ["Dish B"]
