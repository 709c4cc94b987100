"""Integration tests for the HTTP endpoints."""

import re

import pytest
import requests
from fastapi.testclient import TestClient

from inventory_api.main import create_app
from inventory_api.services.audit import AuditNotifier


def _create_stock(client, shelf_quantity=0, order_quantity=0):
    product = client.post("/api/products", json={"name": "Widget"}).json()["data"]
    store = client.post("/api/stores", json={"name": "Downtown"}).json()["data"]

    response = client.post(
        "/api/stocks",
        json={
            "product_id": product["id"],
            "store_id": store["id"],
            "shelf_quantity": shelf_quantity,
            "order_quantity": order_quantity,
        },
    )
    assert response.status_code == 201
    return product, store, response.json()["data"]


class TestRoot:
    def test_index(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json() == {"message": "Inventory Stock Management"}

    def test_unknown_route(self, client):
        response = client.get("/api/nope")

        assert response.status_code == 404
        body = response.json()
        assert body["success"] is False
        assert body["message"] == "Not Found - /api/nope"


class TestProductsEndpoint:
    def test_create_product(self, client, notifier):
        response = client.post("/api/products", json={"name": "Widget"})

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Product created successfully."
        assert body["data"]["name"] == "Widget"
        assert re.match(r"^[A-Z]\d{9}[A-Z]$", body["data"]["plu"])
        assert notifier.actions() == ["create_product"]

    def test_create_product_requires_name(self, client):
        response = client.post("/api/products", json={})

        assert response.status_code == 400
        assert response.json()["success"] is False
        assert response.json()["message"].startswith("name")

    def test_list_products_with_name_filter(self, client):
        client.post("/api/products", json={"name": "Widget"})
        client.post("/api/products", json={"name": "Gadget"})

        response = client.get("/api/products", params={"name": "WID"})

        assert response.status_code == 200
        assert response.json()["message"] == "Products fetched successfully."
        assert [p["name"] for p in response.json()["data"]] == ["Widget"]

    def test_list_products_without_filters(self, client):
        client.post("/api/products", json={"name": "Widget"})
        client.post("/api/products", json={"name": "Gadget"})

        response = client.get("/api/products", params={"name": ""})

        assert len(response.json()["data"]) == 2


class TestStoresEndpoint:
    def test_create_store(self, client, notifier):
        response = client.post("/api/stores", json={"name": "Downtown"})

        assert response.status_code == 201
        assert response.json()["message"] == "Store created successfully."
        assert response.json()["data"]["name"] == "Downtown"
        assert notifier.actions() == ["create_store"]


class TestStocksEndpoint:
    def test_create_stock(self, client):
        product, store, stock = _create_stock(client, shelf_quantity=7)

        assert stock["product_id"] == product["id"]
        assert stock["store_id"] == store["id"]
        assert (stock["shelf_quantity"], stock["order_quantity"]) == (7, 0)

    def test_create_stock_for_missing_product(self, client):
        store = client.post("/api/stores", json={"name": "Downtown"}).json()["data"]

        response = client.post("/api/stocks", json={"product_id": 99, "store_id": store["id"]})

        assert response.status_code == 404
        assert response.json()["message"] == "PLU not found for product ID 99"

    def test_list_stocks_with_filters(self, client):
        _create_stock(client, shelf_quantity=3)
        _, _, second = _create_stock(client, shelf_quantity=12)

        response = client.get("/api/stocks", params={"shelf_quantity_min": 10})

        assert response.status_code == 200
        assert response.json()["message"] == "Stocks fetched successfully."
        data = response.json()["data"]
        assert [s["id"] for s in data] == [second["id"]]
        assert data[0]["name"] == "Widget"

    def test_list_stocks_rejects_non_numeric_bound(self, client):
        response = client.get("/api/stocks", params={"store_id": "abc"})

        assert response.status_code == 400
        assert response.json()["message"].startswith("store_id")

    def test_increase(self, client, notifier):
        _, _, stock = _create_stock(client, shelf_quantity=2, order_quantity=1)

        response = client.put(f"/api/stocks/{stock['id']}/increase", json={"quantity": 5})

        assert response.status_code == 200
        assert response.json()["message"] == "Stock increased successfully."
        assert response.json()["data"]["shelf_quantity"] == 7
        assert response.json()["data"]["order_quantity"] == 1
        assert notifier.actions()[-1] == "increase_stock"

    def test_increase_accepts_numeric_string(self, client):
        _, _, stock = _create_stock(client)

        response = client.put(f"/api/stocks/{stock['id']}/increase", json={"quantity": "3"})

        assert response.json()["data"]["shelf_quantity"] == 3

    @pytest.mark.parametrize("payload", [{"quantity": -5}, {"quantity": 0}, {"quantity": "abc"}, {}])
    def test_increase_rejects_bad_quantity(self, client, payload):
        response = client.put("/api/stocks/1/increase", json=payload)

        assert response.status_code == 400
        assert response.json()["success"] is False
        assert response.json()["message"] == "Quantity must be a positive number."

    def test_increase_unknown_stock(self, client):
        response = client.put("/api/stocks/123/increase", json={"quantity": 1})

        assert response.status_code == 404
        assert response.json()["message"] == "Stock with ID 123 not found."

    def test_decrease_remove(self, client):
        _, _, stock = _create_stock(client, shelf_quantity=10)

        response = client.put(
            f"/api/stocks/{stock['id']}/decrease",
            params={"action": "remove"},
            json={"quantity": 4},
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Stock decreased successfully using action: remove."
        assert response.json()["data"]["shelf_quantity"] == 6

    def test_decrease_order(self, client):
        _, _, stock = _create_stock(client, shelf_quantity=10)

        response = client.put(
            f"/api/stocks/{stock['id']}/decrease?action=order",
            json={"quantity": 4},
        )

        data = response.json()["data"]
        assert (data["shelf_quantity"], data["order_quantity"]) == (6, 4)

    @pytest.mark.parametrize("query", ["?action=bogus", ""])
    def test_decrease_rejects_bad_action(self, client, query):
        response = client.put(f"/api/stocks/1/decrease{query}", json={"quantity": 5})

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid action. Use 'remove' or 'order'."

    def test_decrease_rejects_bad_quantity(self, client):
        response = client.put("/api/stocks/1/decrease?action=remove", json={"quantity": -1})

        assert response.status_code == 400
        assert response.json()["message"] == "Quantity must be a positive number."

    def test_exhaustion_removes_product(self, client, notifier):
        product, _, stock = _create_stock(client, shelf_quantity=5)

        response = client.put(
            f"/api/stocks/{stock['id']}/decrease?action=remove",
            json={"quantity": 5},
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert (data["shelf_quantity"], data["order_quantity"]) == (0, 0)
        assert notifier.actions()[-2:] == ["decrease_stock", "delete_product"]

        products = client.get("/api/products", params={"plu": product["plu"]}).json()["data"]
        assert products == []

        again = client.put(f"/api/stocks/{stock['id']}/increase", json={"quantity": 1})
        assert again.status_code == 404


class TestErrorEnvelope:
    def test_stack_included_outside_production(self, client):
        response = client.put("/api/stocks/1/increase", json={"quantity": -1})

        assert "stack" in response.json()

    def test_stack_hidden_in_production(self, settings, notifier):
        app = create_app(settings.model_copy(update={"ENV": "production"}), notifier=notifier)

        with TestClient(app) as client:
            response = client.put("/api/stocks/1/increase", json={"quantity": -1})

        assert response.status_code == 400
        assert "stack" not in response.json()


class TestAuditFailureIsolation:
    def test_unreachable_history_service_does_not_change_responses(self, settings, monkeypatch):
        def broken_post(url, json=None, timeout=None):
            raise requests.ConnectionError("history service down")

        monkeypatch.setattr(requests, "post", broken_post)
        app = create_app(settings, notifier=AuditNotifier(settings.HISTORY_SERVICE_URL))

        with TestClient(app) as client:
            created = client.post("/api/products", json={"name": "Widget"})
            listed = client.get("/api/products")

        assert created.status_code == 201
        assert listed.status_code == 200
        assert len(listed.json()["data"]) == 1


class TestRateLimiting:
    def test_second_request_over_limit_is_rejected(self, settings, notifier):
        limited = settings.model_copy(update={"RATE_LIMIT": "1/minute", "RATE_LIMIT_ENABLED": True})
        app = create_app(limited, notifier=notifier)

        with TestClient(app) as client:
            first = client.get("/health")
            second = client.get("/health")

        assert first.status_code == 200
        assert second.status_code == 429
        body = second.json()
        assert body["success"] is False
        assert body["message"].startswith("Rate limit exceeded")
