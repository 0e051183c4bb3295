"""
Tests for Pydantic models
"""

from decimal import Decimal

import pytest
from pydantic import ValidationError as SchemaError

from storefront_server.errors import BackendError, ErrorKind, TransportError, ValidationError
from storefront_server.models import (
    CartItem,
    CheckoutItem,
    CheckoutRequest,
    Failure,
    OrderStatus,
    Product,
    RegistrationForm,
    Result,
    ShippingAddress,
    User,
)


class TestUser:
    """Tests for user parsing."""

    def test_backend_field_names(self, sample_user):
        user = User.model_validate(sample_user)

        assert user.id == "user-123"
        assert user.name == "Test User"
        assert user.phone == "11999999999"
        assert user.is_admin is False
        assert user.address.street == "Rua Augusta, 100"
        assert user.address.postal_code == "01001-000"

    def test_python_field_names(self):
        user = User(id="u1", name="Ana", email="ana@example.com", is_admin=True)

        assert user.is_admin is True
        assert user.address is None


class TestCartItem:
    """Tests for cart line constraints."""

    def test_quantity_must_be_positive(self):
        with pytest.raises(SchemaError):
            CartItem(id="A", name="IPA", unit_price=Decimal("10"), quantity=0)

    def test_price_must_not_be_negative(self):
        with pytest.raises(SchemaError):
            CartItem(id="A", name="IPA", unit_price=Decimal("-1"), quantity=1)

    def test_frozen(self):
        item = CartItem(id="A", name="IPA", unit_price=Decimal("10"), quantity=1)

        with pytest.raises(SchemaError):
            item.quantity = 5

    def test_subtotal(self):
        item = CartItem(id="A", name="IPA", unit_price=Decimal("10.00"), quantity=3)

        assert item.subtotal == Decimal("30.00")


class TestShippingAddress:
    """Tests for address completeness."""

    def test_missing_fields(self):
        address = ShippingAddress(postal_code="01001-000", street="", city=" ", state="SP")

        assert address.missing_fields() == ["street", "city"]
        assert not address.is_complete

    def test_payload_uses_backend_names(self):
        address = ShippingAddress(postal_code="01001-000", street="Rua A, 1", city="São Paulo", state="SP")

        assert address.to_payload() == {
            "cep": "01001-000",
            "address": "Rua A, 1",
            "city": "São Paulo",
            "state": "SP",
        }

    def test_from_missing_address(self):
        assert ShippingAddress.from_address(None) == ShippingAddress()


class TestCheckoutRequest:
    """Tests for the submission snapshot."""

    def test_subtotal_and_payload(self):
        request = CheckoutRequest(
            items=(
                CheckoutItem(id="A", name="IPA", unit_price=Decimal("10.00"), quantity=2),
                CheckoutItem(id="B", name="Stout", unit_price=Decimal("5.00"), quantity=1),
            ),
            shipping_address=ShippingAddress(postal_code="1", street="2", city="3", state="4"),
        )

        assert request.subtotal == Decimal("25.00")
        payload = request.to_payload()
        assert payload["items"][0] == {"_id": "A", "nome": "IPA", "price": 10.0, "quantity": 2}
        assert payload["shippingAddress"]["cep"] == "1"


class TestRegistrationForm:
    def test_payload_excludes_confirmation(self):
        form = RegistrationForm(
            name="Ana",
            email="ana@example.com",
            password="secret123",
            confirm_password="secret123",
        )

        payload = form.to_payload()

        assert payload == {"nome": "Ana", "email": "ana@example.com", "senha": "secret123"}


class TestFailure:
    """Tests for tagged failures."""

    def test_backend_message_preferred(self):
        failure = Failure.from_error(BackendError("Out of stock", status_code=409), "Request failed")

        assert failure.kind == ErrorKind.BACKEND
        assert failure.message == "Out of stock"
        assert failure.status_code == 409

    def test_fallback_when_no_message(self):
        failure = Failure.from_error(BackendError(status_code=500), "Request failed")

        assert failure.message == "Request failed"

    def test_transport_always_uses_fallback(self):
        failure = Failure.from_error(TransportError("[Errno 111] Connection refused"), "Request failed")

        assert failure.kind == ErrorKind.TRANSPORT
        assert failure.message == "Request failed"

    def test_validation_code(self):
        failure = Failure.from_error(ValidationError("Cart is empty", code="empty_cart"), "x")

        assert failure.kind == ErrorKind.VALIDATION
        assert failure.code == "empty_cart"


def test_result_ok():
    assert Result(value=1).ok is True
    assert Result(error=Failure(kind=ErrorKind.BACKEND, message="x")).ok is False


def test_order_status_values():
    assert [status.value for status in OrderStatus] == [
        "pending",
        "processing",
        "shipped",
        "delivered",
        "cancelled",
    ]


def test_product_from_backend():
    product = Product.model_validate({"_id": "p1", "nome": "Lager", "preco": "7.50", "teorAlcoolico": 4.8})

    assert product.price == Decimal("7.50")
    assert product.alcohol_content == 4.8
