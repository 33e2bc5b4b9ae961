"""Integration tests for the product endpoints and the assembled application."""

import pytest
from app import app
from fastapi.testclient import TestClient


@pytest.fixture()
def client(store):
    return TestClient(app)


class TestProductEndpoints:
    def test_get_product(self, client, make_product):
        product = make_product(title="Ankara fabric")
        response = client.get(f"/products/{product['id']}")
        assert response.status_code == 200
        assert response.json()["title"] == "Ankara fabric"

    def test_missing_product(self, client):
        response = client.get("/products/nope")
        assert response.status_code == 404
        assert response.json() == {"error": "Product nope not found"}

    def test_record_view(self, client, make_product):
        product = make_product()
        client.post(f"/products/{product['id']}/views")
        response = client.post(f"/products/{product['id']}/views")
        assert response.json() == {"product_id": product["id"], "views": 2}


class TestApplication:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["store"] == {"adapter": "InMemoryStore", "transactional": True}

    def test_routers_are_mounted(self, client):
        paths = {route.path for route in app.routes}
        assert {"/cart", "/orders", "/receipts", "/products/{product_id}"} <= paths
