import pytest
from fastapi.testclient import TestClient

from kitchen import main
from kitchen.core import startup_checks
from kitchen.core.metrics import request_metrics
from kitchen.deps import get_current_principal
from tests.support import TEST_PRINCIPAL, build_database

REQUIRED_ROUTES = {
    "/api/orders",
    "/api/orders/{order_id}",
    "/api/orders/{order_id}/status",
    "/api/orders/today",
    "/api/orders/weekly",
    "/api/orders/next-delivery",
    "/api/orders/export",
    "/api/customers",
    "/api/customers/{customer_id}/preferences",
    "/api/customers/export",
    "/api/dishes",
    "/api/ingredients",
    "/api/ingredients/low-stock",
    "/api/kitchen",
    "/api/reports/weekly-summary",
    "/api/reports/shopping-list",
    "/api/reports/analytics",
    "/api/reports/analytics/export",
    "/api/dashboard",
    "/internal/metrics",
}


def test_api_startup_and_router_registration():
    app = main.create_app(build_database())

    with TestClient(app) as client:
        response = client.get("/")
        health_response = client.get("/health")
        docs_response = client.get("/docs")
        openapi_response = client.get("/openapi.json")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
    assert health_response.json() == {"status": "healthy"}
    assert docs_response.status_code == 200
    assert openapi_response.status_code == 200

    paths = {getattr(route, "path", None) for route in app.routes} | set(app.openapi()["paths"])
    assert REQUIRED_ROUTES.issubset(paths)


def test_startup_refuses_sqlite_in_production():
    with pytest.raises(RuntimeError):
        startup_checks.validate_database_environment("sqlite:///./kitchen.db", env="production")


def test_request_id_and_metrics_are_recorded():
    request_metrics.reset()
    app = main.create_app(build_database())
    app.dependency_overrides[get_current_principal] = lambda: TEST_PRINCIPAL
    client = TestClient(app)

    response = client.get("/api/dishes", headers={"X-Request-ID": "req-123"})
    missing = client.get("/api/dishes/999")
    metrics = client.get("/internal/metrics").json()["endpoints"]

    assert response.headers["X-Request-ID"] == "req-123"
    assert missing.status_code == 404
    assert metrics["GET /api/dishes"]["total_requests"] == 1
    assert metrics["GET /api/dishes/999"]["error_count"] == 1
