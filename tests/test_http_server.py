"""Tests for the HTTP surface"""
import pytest
from fastapi.testclient import TestClient

from storefront_server import http_server


@pytest.fixture
def api(storefront, monkeypatch):
    """Test client bound to a storefront over the fake backend"""
    monkeypatch.setattr(http_server, "storefront", storefront)
    return TestClient(http_server.app)


@pytest.fixture
def logged_in(api, backend, sample_user, sample_products):
    backend.add("POST", "/api/auth/login", body={"token": "new-token", "user": sample_user})
    backend.add("GET", "/api/beers/public", body=sample_products)
    response = api.post("/auth/login", json={"email": "test@example.com", "password": "secret123"})
    assert response.status_code == 200
    return api


def test_health_check(api):
    response = api.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_auth_status_anonymous(api):
    response = api.get("/auth/status")

    assert response.status_code == 200
    assert response.json() == {"state": "anonymous", "authenticated": False, "user": None}


def test_login_failure_passes_backend_status(api, backend, storefront):
    backend.add("POST", "/api/auth/login", status=400, body={"message": "Invalid credentials"})

    response = api.post("/auth/login", json={"email": "test@example.com", "password": "wrong"})

    assert response.status_code == 400
    assert response.json()["detail"]["message"] == "Invalid credentials"
    assert storefront.token_store.get() is None


def test_register_validation(api, backend):
    response = api.post(
        "/auth/register",
        json={
            "name": "Ana",
            "email": "ana@example.com",
            "password": "secret123",
            "confirm_password": "secret999",
        },
    )

    assert response.status_code == 400
    assert response.json()["detail"]["code"] == "password_mismatch"
    assert backend.requests == []


def test_empty_cart(api):
    response = api.get("/cart")

    assert response.status_code == 200
    data = response.json()
    assert data["items"] == []
    assert data["summary"]["item_count"] == 0


def test_add_unknown_product(logged_in):
    response = logged_in.post("/cart/add", json={"product_id": "missing"})

    assert response.status_code == 404


def test_cart_flow(logged_in):
    logged_in.post("/cart/add", json={"product_id": "beer-a"})
    response = logged_in.post("/cart/add", json={"product_id": "beer-a"})
    assert response.json()["event"] == "quantity_increased"

    logged_in.post("/cart/add", json={"product_id": "beer-b"})
    response = logged_in.post("/cart/quantity", json={"product_id": "beer-b", "quantity": 0})

    data = response.json()
    assert [item["id"] for item in data["items"]] == ["beer-a"]
    assert data["items"][0]["quantity"] == 2

    response = logged_in.delete("/cart")
    assert response.json()["items"] == []


def test_checkout_requires_login(api, backend):
    response = api.post("/checkout", json={})

    assert response.status_code == 401
    assert backend.calls("POST", "/api/payments/create-preference") == []


def test_checkout_empty_cart(logged_in, backend):
    response = logged_in.post("/checkout", json={})

    assert response.status_code == 400
    assert response.json()["detail"]["code"] == "empty_cart"
    assert backend.calls("POST", "/api/payments/create-preference") == []


def test_checkout_success(logged_in, backend, storefront):
    backend.add(
        "POST",
        "/api/payments/create-preference",
        body={"init_point": "https://payments.test/pay/1"},
    )
    logged_in.post("/cart/add", json={"product_id": "beer-a"})
    logged_in.post("/cart/add", json={"product_id": "beer-a"})
    logged_in.post("/cart/add", json={"product_id": "beer-b"})

    summary = logged_in.get("/checkout").json()
    assert summary["shipping_address"]["city"] == "São Paulo"

    response = logged_in.post("/checkout", json={})

    assert response.status_code == 200
    assert response.json() == {"redirect_url": "https://payments.test/pay/1", "total": "40.90"}
    assert storefront.cart.is_empty


def test_checkout_backend_failure(logged_in, backend, storefront):
    backend.add("POST", "/api/payments/create-preference", status=500, body={})
    logged_in.post("/cart/add", json={"product_id": "beer-a"})

    response = logged_in.post("/checkout", json={})

    assert response.status_code == 502
    assert response.json()["detail"]["message"] == "Payment processing failed"
    assert storefront.cart.get_total_items() == 1


def test_logout(logged_in, storefront):
    response = logged_in.post("/auth/logout")

    assert response.status_code == 200
    assert storefront.session.is_authenticated is False
    assert storefront.token_store.get() is None
