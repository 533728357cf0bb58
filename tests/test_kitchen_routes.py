from tests.fixtures_data import ORDER_PAYLOAD
from tests.support import build_client


def _order(client, items, customer_id=1, delivery_date="2099-01-02", notes=None):
    payload = {
        **ORDER_PAYLOAD,
        "customerId": customer_id,
        "deliveryDate": delivery_date,
        "items": items,
        "notes": notes,
    }
    response = client.post("/api/orders", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def test_kitchen_board_batches_dishes_and_flags_allergies():
    client, _ = build_client()
    client.post("/api/customers/1/preferences", json={"type": "ALLERGY", "value": "sesame"})
    client.post("/api/customers/2/preferences", json={"type": "PREFERENCE", "value": "spicy"})
    first = _order(client, [{"dishId": 1, "quantity": 2, "price": 30, "notes": "no salt"}])
    _order(client, [{"dishId": 1, "quantity": 1, "price": 30}, {"dishId": 2, "quantity": 1, "price": 10}], customer_id=2)
    client.patch(f"/api/orders/{first['id']}/status", json={"status": "CONFIRMED"})

    board = client.get("/api/kitchen", params={"date": "2099-01-02"}).json()

    assert board["deliveryDate"] == "2099-01-02"
    assert board["stats"] == {"totalOrders": 2, "totalItems": 4}
    assert len(board["ordersByStatus"]["NEW"]) == 1
    assert len(board["ordersByStatus"]["CONFIRMED"]) == 1
    dish_x = board["batchCooking"][0]
    assert dish_x["dishName"] == "Dish X"
    assert dish_x["totalQuantity"] == 3
    assert dish_x["orderCount"] == 2
    assert {"orderNumber": first["orderNumber"], "quantity": 2, "notes": "no salt"} in dish_x["orders"]
    assert [alert["name"] for alert in board["alerts"]] == ["Dana Cohen"]


def test_next_delivery_picks_earliest_upcoming_date_and_sorts_by_status():
    client, _ = build_client()
    _order(client, [{"dishId": 1, "quantity": 1, "price": 30}], delivery_date="2024-11-15")
    later = _order(client, [{"dishId": 1, "quantity": 1, "price": 30}], delivery_date="2099-01-09")
    newer = _order(client, [{"dishId": 1, "quantity": 1, "price": 30}], customer_id=2)
    progressed = _order(client, [{"dishId": 3, "quantity": 1, "price": 25}])
    client.patch(f"/api/orders/{progressed['id']}/status", json={"status": "CONFIRMED"})
    cancelled = _order(client, [{"dishId": 3, "quantity": 1, "price": 25}])
    client.patch(f"/api/orders/{cancelled['id']}/status", json={"status": "CANCELLED"})

    result = client.get("/api/orders/next-delivery").json()

    assert result["deliveryDate"] == "2099-01-02"
    assert [order["id"] for order in result["orders"]] == [newer["id"], progressed["id"]]
    assert later["id"] not in [order["id"] for order in result["orders"]]
    assert {customer["name"] for customer in result["customers"]} == {"Dana Cohen", "Yossi Mizrahi"}


def test_next_delivery_without_upcoming_orders():
    client, _ = build_client()

    assert client.get("/api/orders/next-delivery").json() == {"deliveryDate": None, "orders": [], "customers": []}
