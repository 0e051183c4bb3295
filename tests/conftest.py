"""Pytest configuration and fixtures"""
import json
from decimal import Decimal
from typing import Any, Optional

import httpx
import pytest

from storefront_server.cart import CartStore
from storefront_server.models import Product
from storefront_server.navigation import Navigator
from storefront_server.session import SessionManager
from storefront_server.storefront import Storefront
from storefront_server.storefront_client import StorefrontClient
from storefront_server.token_store import MemoryTokenStore


class FakeBackend:
    """Routes requests to canned responses and records what was sent."""

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], Any] = {}
        self.requests: list[httpx.Request] = []

    def add(self, method: str, path: str, status: int = 200, body: Any = None) -> None:
        self.routes[(method, path)] = (status, body)

    def fail(self, method: str, path: str, error: Exception) -> None:
        self.routes[(method, path)] = error

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"message": "Not found"})
        if isinstance(route, Exception):
            raise route
        status, body = route
        return httpx.Response(status, json=body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]

    def body(self, request: httpx.Request) -> Any:
        return json.loads(request.content)


@pytest.fixture
def backend():
    """Fake storefront backend"""
    return FakeBackend()


@pytest.fixture
def token_store():
    """Empty in-memory token store"""
    return MemoryTokenStore()


@pytest.fixture
def navigator():
    return Navigator()


@pytest.fixture
def client(backend, token_store):
    """API client wired to the fake backend"""
    return StorefrontClient(token_store, base_url="http://backend.test", transport=backend.transport)


@pytest.fixture
def session(client, token_store, navigator):
    """Session manager over the fake backend"""
    return SessionManager(client, token_store, navigator)


@pytest.fixture
def cart():
    return CartStore()


@pytest.fixture
def storefront(backend, token_store):
    """Fully wired storefront over the fake backend"""
    return Storefront(
        token_store,
        api_url="http://backend.test",
        timeout=5.0,
        transport=backend.transport,
    )


@pytest.fixture
def sample_user():
    """Sample user as returned by the backend"""
    return {
        "_id": "user-123",
        "nome": "Test User",
        "email": "test@example.com",
        "telefone": "11999999999",
        "isAdmin": False,
        "endereco": {
            "cep": "01001-000",
            "address": "Rua Augusta, 100",
            "city": "São Paulo",
            "state": "SP",
        },
    }


@pytest.fixture
def sample_products():
    """Sample catalog as returned by the backend"""
    return [
        {"_id": "beer-a", "nome": "Session IPA", "preco": 10.00, "teorAlcoolico": 4.5},
        {"_id": "beer-b", "nome": "Dry Stout", "preco": 5.00, "image": "https://cdn.test/stout.png"},
    ]


def make_product(product_id: str, price: str, name: Optional[str] = None) -> Product:
    return Product(id=product_id, name=name or f"Product {product_id}", price=Decimal(price))


@pytest.fixture
def product_a():
    return make_product("A", "10.00")


@pytest.fixture
def product_b():
    return make_product("B", "5.00")


@pytest.fixture
def product_factory():
    """Build a catalog product from an id and a price string"""
    return make_product
