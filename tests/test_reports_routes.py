from datetime import date

from kitchen.domain.store import SqlOrderStore
from tests.fixtures_data import ORDER_PAYLOAD
from tests.support import build_client


def _order(client, items, customer_id=1, delivery_date="2024-11-15"):
    payload = {**ORDER_PAYLOAD, "customerId": customer_id, "deliveryDate": delivery_date, "items": items}
    response = client.post("/api/orders", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


TWO_DISH_X = [{"dishId": 1, "quantity": 2, "price": 30}]


def test_weekly_summary_aggregates_the_friday_orders():
    client, _ = build_client()
    _order(client, TWO_DISH_X)
    _order(client, TWO_DISH_X, customer_id=2)
    cancelled = _order(client, [{"dishId": 3, "quantity": 4, "price": 25}])
    client.patch(f"/api/orders/{cancelled['id']}/status", json={"status": "CANCELLED"})

    response = client.get("/api/reports/weekly-summary", params={"date": "2024-11-12"})

    assert response.status_code == 200
    report = response.json()
    assert report["weekOf"] == "2024-11-10"
    assert report["friday"] == "2024-11-15"
    assert report["summary"]["totalOrders"] == 2
    assert report["summary"]["totalRevenue"] == 120
    assert report["summary"]["averageOrderValue"] == 60
    assert report["summary"]["uniqueCustomers"] == 2
    assert report["summary"]["cancelledOrders"] == 1
    assert report["summary"]["ordersByStatus"]["CANCELLED"] == 1
    assert [dish["name"] for dish in report["topDishes"]] == ["Dish X"]
    assert report["topDishes"][0]["quantity"] == 4
    assert len(report["orders"]) == 3

    requirements = {entry["name"]: entry for entry in report["ingredientRequirements"]}
    assert set(requirements) == {"Ingredient Y"}
    assert requirements["Ingredient Y"]["totalQuantity"] == 1.2


def test_weekly_summary_for_empty_week():
    client, _ = build_client()

    report = client.get("/api/reports/weekly-summary", params={"date": "2024-01-03"}).json()

    assert report["weekOf"] == "2023-12-31"
    assert report["summary"]["averageOrderValue"] == 0
    assert report["ingredientRequirements"] == []
    assert len(report["summary"]["ordersByDay"]) == 7


def test_shopping_list_groups_by_category_and_supplier():
    client, _ = build_client()
    _order(client, TWO_DISH_X)
    _order(client, [{"dishId": 2, "quantity": 1, "price": 10}], customer_id=2)

    by_category = client.get("/api/reports/shopping-list", params={"date": "2024-11-15"}).json()
    by_supplier = client.get(
        "/api/reports/shopping-list", params={"date": "2024-11-15", "groupBy": "supplier"}
    ).json()
    flat = client.get("/api/reports/shopping-list", params={"date": "2024-11-15", "groupBy": "all"}).json()

    assert by_category["groupBy"] == "category"
    assert by_category["orderCount"] == 2
    assert by_category["deliveryDate"] == "2024-11-15"
    assert {group["key"] for group in by_category["ingredients"]} == {"vegetables", "grains", "other"}
    assert {group["key"] for group in by_supplier["ingredients"]} == {"Market", "Spice Co", "unspecified"}
    assert [entry["name"] for entry in flat["ingredients"]] == ["Ingredient Y", "Rice", "Saffron"]
    assert by_category["summary"]["totalIngredients"] == 3
    assert by_category["summary"]["lowStockItems"] == 1


def test_shopping_list_rejects_unknown_grouping():
    client, _ = build_client()

    response = client.get("/api/reports/shopping-list", params={"groupBy": "aisle"})

    assert response.status_code == 400
    assert response.json()["error"]["kind"] == "validation"


def test_analytics_compares_periods():
    client, _ = build_client()
    _order(client, TWO_DISH_X)
    _order(client, [{"dishId": 3, "quantity": 1, "price": 25}], customer_id=2)

    report = client.get("/api/reports/analytics", params={"period": "month"}).json()

    assert report["totalOrders"] == 2
    assert report["totalRevenue"] == 85
    assert report["revenueGrowth"] == 0
    assert report["activeCustomers"] == 2
    assert report["newCustomers"] == 2
    assert report["returningCustomers"] == 0
    assert report["topDishes"][0]["name"] == "Dish X"
    assert sum(bucket["count"] for bucket in report["revenueByDay"]) == 2
    assert {entry["category"] for entry in report["categoryBreakdown"]} == {"main"}


def test_analytics_rejects_unknown_period_and_exports_csv():
    client, _ = build_client()
    _order(client, TWO_DISH_X)

    invalid = client.get("/api/reports/analytics", params={"period": "decade"})
    export = client.get("/api/reports/analytics/export", params={"period": "year"})

    assert invalid.status_code == 400
    assert export.status_code == 200
    assert export.headers["content-type"].startswith("text/csv")
    assert export.text.startswith("Period,year")
    assert "Dish X,2,60.00" in export.text


def test_dashboard_counts_this_weeks_orders():
    client, _ = build_client()
    _order(client, TWO_DISH_X)
    _order(client, [{"dishId": 3, "quantity": 1, "price": 25}], customer_id=2)

    dashboard = client.get("/api/dashboard").json()

    assert dashboard["stats"]["totalOrders"] == 2
    assert dashboard["stats"]["revenue"] == 85
    assert dashboard["stats"]["avgOrderValue"] == 42.5
    assert sum(day["orders"] for day in dashboard["weeklyOrders"]) == 2
    assert [day["day"] for day in dashboard["weeklyOrders"]][0] == "Sun"
    assert len(dashboard["recentOrders"]) == 2
    assert dashboard["topDishes"][0]["name"] == "Dish X"
    assert dashboard["lowStockCount"] == 1


def test_shopping_list_leaves_out_cancelled_orders():
    client, database = build_client()
    kept = _order(client, TWO_DISH_X)
    cancelled = _order(client, [{"dishId": 2, "quantity": 3, "price": 10}], customer_id=2)
    client.patch(f"/api/orders/{cancelled['id']}/status", json={"status": "CANCELLED"})

    flat = client.get("/api/reports/shopping-list", params={"date": "2024-11-15", "groupBy": "all"}).json()

    assert flat["orderCount"] == 1
    assert flat["summary"]["totalOrders"] == 1
    assert [entry["name"] for entry in flat["ingredients"]] == ["Ingredient Y"]
    with database.session() as db:
        store = SqlOrderStore(db)
        window = (date(2024, 11, 10), date(2024, 11, 16))
        assert len(store.orders_in_window(*window)) == 2
        active = store.orders_in_window(*window, statuses_excluded=("CANCELLED",))
        assert [order.id for order in active] == [kept["id"]]
