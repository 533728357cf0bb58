import copy
import csv
import io

from tests.fixtures_data import CUSTOMER_PAYLOAD, ORDER_PAYLOAD, SECOND_CUSTOMER_PAYLOAD
from tests.support import build_client


def test_create_customer_normalizes_phone_and_stores_preferences():
    client, _ = build_client(seed=False)
    payload = {**CUSTOMER_PAYLOAD, "phone": "+972501234567"}

    response = client.post("/api/customers", json=payload)

    assert response.status_code == 201, response.text
    customer = response.json()
    assert customer["phone"] == "050-1234567"
    assert [(pref["type"], pref["value"]) for pref in customer["preferences"]] == [
        ("ALLERGY", "sesame"),
        ("DIETARY_RESTRICTION", "vegetarian"),
    ]


def test_second_customer_with_same_phone_in_other_format_is_conflict():
    client, _ = build_client(seed=False)
    client.post("/api/customers", json={**SECOND_CUSTOMER_PAYLOAD, "phone": "050-1234567"})

    response = client.post("/api/customers", json={**CUSTOMER_PAYLOAD, "phone": "0501234567"})

    assert response.status_code == 409
    assert response.json()["error"]["kind"] == "conflict"
    assert response.json()["error"]["details"] == {"phone": "050-1234567"}


def test_duplicate_preferences_in_one_payload_are_invalid():
    client, _ = build_client(seed=False)
    payload = copy.deepcopy(CUSTOMER_PAYLOAD)
    payload["preferences"].append({"type": "ALLERGY", "value": "Sesame"})

    response = client.post("/api/customers", json=payload)

    assert response.status_code == 400
    assert response.json()["error"]["kind"] == "validation"


def test_customer_field_limits_are_validated():
    client, _ = build_client(seed=False)

    short_name = client.post("/api/customers", json={**SECOND_CUSTOMER_PAYLOAD, "name": "Y"})
    bad_email = client.post("/api/customers", json={**SECOND_CUSTOMER_PAYLOAD, "email": "not-an-email"})
    blank_email = client.post("/api/customers", json={**SECOND_CUSTOMER_PAYLOAD, "email": ""})

    assert short_name.status_code == 400
    assert bad_email.status_code == 400
    assert blank_email.status_code == 201
    assert blank_email.json()["email"] is None


def test_list_customers_includes_order_stats_and_search():
    client, _ = build_client()
    client.post("/api/orders", json=copy.deepcopy(ORDER_PAYLOAD))

    customers = client.get("/api/customers").json()["customers"]
    found = client.get("/api/customers", params={"search": "7654"}).json()["customers"]

    dana = next(customer for customer in customers if customer["id"] == 1)
    assert dana["orderCount"] == 1
    assert dana["totalSpent"] == 85
    assert dana["lastOrderDate"] == "2024-11-15"
    assert [customer["name"] for customer in found] == ["Yossi Mizrahi"]


def test_update_customer_replaces_preferences():
    client, _ = build_client(seed=False)
    customer = client.post("/api/customers", json=CUSTOMER_PAYLOAD).json()

    response = client.put(
        f"/api/customers/{customer['id']}",
        json={"address": "1 New St", "preferences": [{"type": "MEDICAL", "value": "diabetes"}]},
    )

    assert response.status_code == 200
    updated = response.json()
    assert updated["address"] == "1 New St"
    assert updated["name"] == CUSTOMER_PAYLOAD["name"]
    assert [(pref["type"], pref["value"]) for pref in updated["preferences"]] == [("MEDICAL", "diabetes")]


def test_customer_with_orders_cannot_be_deleted():
    client, _ = build_client()
    client.post("/api/orders", json=copy.deepcopy(ORDER_PAYLOAD))

    blocked = client.delete("/api/customers/1")
    allowed = client.delete("/api/customers/2")

    assert blocked.status_code == 409
    assert blocked.json()["error"]["details"]["orderCount"] == 1
    assert allowed.status_code == 204
    assert client.get("/api/customers/2").status_code == 404


def test_preference_endpoints():
    client, _ = build_client()

    created = client.post("/api/customers/1/preferences", json={"type": "allergy", "value": "peanuts"})
    duplicate = client.post("/api/customers/1/preferences", json={"type": "ALLERGY", "value": "Peanuts"})
    preference_id = created.json()["id"]
    updated = client.put(f"/api/customers/1/preferences/{preference_id}", json={"notes": "mild"})
    listed = client.get("/api/customers/1/preferences").json()["preferences"]
    deleted = client.delete(f"/api/customers/1/preferences/{preference_id}")
    missing = client.delete(f"/api/customers/1/preferences/{preference_id}")

    assert created.status_code == 201
    assert duplicate.status_code == 409
    assert updated.json()["notes"] == "mild"
    assert [pref["value"] for pref in listed] == ["peanuts"]
    assert deleted.status_code == 204
    assert missing.status_code == 404


def test_customer_orders_are_newest_first():
    client, _ = build_client()
    first = client.post("/api/orders", json=copy.deepcopy(ORDER_PAYLOAD)).json()
    second = client.post("/api/orders", json=copy.deepcopy(ORDER_PAYLOAD)).json()

    orders = client.get("/api/customers/1/orders").json()["orders"]

    assert [order["id"] for order in orders] == [second["id"], first["id"]]
    assert client.get("/api/customers/99/orders").status_code == 404


def test_export_writes_customer_stats_as_csv():
    client, _ = build_client()
    client.post("/api/orders", json=copy.deepcopy(ORDER_PAYLOAD))
    cancelled = client.post("/api/orders", json=copy.deepcopy(ORDER_PAYLOAD)).json()
    client.patch(f"/api/orders/{cancelled['id']}/status", json={"status": "CANCELLED"})

    response = client.get("/api/customers/export")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert "customers.csv" in response.headers["content-disposition"]
    rows = list(csv.reader(io.StringIO(response.text)))
    assert rows[0] == [
        "Name",
        "Phone",
        "Email",
        "Address",
        "Notes",
        "Order count",
        "Total spent",
        "Last order date",
        "Created at",
    ]
    dana, yossi = rows[1], rows[2]
    assert dana[:8] == ["Dana Cohen", "050-1234567", "", "12 Herzl St", "", "2", "85.00", "2024-11-15"]
    assert yossi[:8] == ["Yossi Mizrahi", "052-7654321", "", "4 Hagefen St", "", "0", "0.00", ""]
    assert len(dana[8]) == 10
