"""Data models for storefront entities."""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Generic, Optional, TypeVar

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from .errors import ErrorKind, StorefrontError, TransportError

T = TypeVar("T")


class Address(BaseModel):
    """Postal address stored on a user profile."""

    model_config = ConfigDict(populate_by_name=True)

    postal_code: str = Field(
        default="",
        validation_alias=AliasChoices("cep", "postal_code", "postalCode"),
        description="Postal code (CEP)",
    )
    street: str = Field(
        default="",
        validation_alias=AliasChoices("address", "street"),
        description="Street, number and complement",
    )
    city: str = ""
    state: str = ""

    def to_payload(self) -> dict[str, str]:
        return {
            "cep": self.postal_code,
            "address": self.street,
            "city": self.city,
            "state": self.state,
        }


class User(BaseModel):
    """The authenticated user."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(validation_alias=AliasChoices("_id", "id"), description="User ID")
    name: str = Field(validation_alias=AliasChoices("nome", "name"), description="Full name")
    email: str
    phone: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("telefone", "phone")
    )
    is_admin: bool = Field(
        default=False, validation_alias=AliasChoices("isAdmin", "is_admin")
    )
    address: Optional[Address] = Field(
        default=None, validation_alias=AliasChoices("endereco", "address")
    )


class Product(BaseModel):
    """Represents a catalog product."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(validation_alias=AliasChoices("_id", "id"), description="Product ID")
    name: str = Field(validation_alias=AliasChoices("nome", "name"), description="Product name")
    price: Decimal = Field(
        ge=0,
        validation_alias=AliasChoices("preco", "price"),
        description="Unit price",
    )
    image: Optional[str] = Field(None, description="Product image URL")
    alcohol_content: Optional[float] = Field(
        None,
        validation_alias=AliasChoices("teorAlcoolico", "alcohol_content"),
        description="Alcohol by volume, display only",
    )
    description: Optional[str] = Field(
        None, validation_alias=AliasChoices("descricao", "description")
    )


class CartItem(BaseModel):
    """Represents one line of the shopping cart."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Product ID, unique within the cart")
    name: str = Field(description="Product name")
    unit_price: Decimal = Field(ge=0, description="Unit price")
    quantity: int = Field(ge=1, description="Quantity of the product")
    image: Optional[str] = Field(None, description="Product image URL")
    alcohol_content: Optional[float] = Field(None, description="Alcohol by volume, display only")

    @property
    def subtotal(self) -> Decimal:
        return self.unit_price * self.quantity


class ShippingAddress(BaseModel):
    """Delivery address for a checkout. All four fields are required."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    postal_code: str = Field(
        default="", validation_alias=AliasChoices("cep", "postal_code", "postalCode")
    )
    street: str = Field(default="", validation_alias=AliasChoices("address", "street"))
    city: str = ""
    state: str = ""

    @classmethod
    def from_address(cls, address: Optional[Address]) -> "ShippingAddress":
        if address is None:
            return cls()
        return cls(
            postal_code=address.postal_code,
            street=address.street,
            city=address.city,
            state=address.state,
        )

    def missing_fields(self) -> list[str]:
        """Names of the fields that are empty or blank."""
        return [
            name
            for name in ("postal_code", "street", "city", "state")
            if not getattr(self, name).strip()
        ]

    @property
    def is_complete(self) -> bool:
        return not self.missing_fields()

    def to_payload(self) -> dict[str, str]:
        return {
            "cep": self.postal_code,
            "address": self.street,
            "city": self.city,
            "state": self.state,
        }


class CheckoutItem(BaseModel):
    """Snapshot of a cart line sent with a checkout request."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    unit_price: Decimal
    quantity: int

    @classmethod
    def from_cart_item(cls, item: CartItem) -> "CheckoutItem":
        return cls(
            id=item.id,
            name=item.name,
            unit_price=item.unit_price,
            quantity=item.quantity,
        )

    def to_payload(self) -> dict[str, Any]:
        return {
            "_id": self.id,
            "nome": self.name,
            "price": float(self.unit_price),
            "quantity": self.quantity,
        }


class CheckoutRequest(BaseModel):
    """Immutable snapshot of cart and address taken at submission time."""

    model_config = ConfigDict(frozen=True)

    items: tuple[CheckoutItem, ...]
    shipping_address: ShippingAddress

    @property
    def subtotal(self) -> Decimal:
        return sum((item.unit_price * item.quantity for item in self.items), Decimal("0"))

    def to_payload(self) -> dict[str, Any]:
        return {
            "items": [item.to_payload() for item in self.items],
            "shippingAddress": self.shipping_address.to_payload(),
        }


class PaymentPreference(BaseModel):
    """Payable order intent created by the payment processor."""

    id: Optional[str] = None
    init_point: str = Field(description="URL of the hosted payment page")


class OrderStatus(str, Enum):
    """Order lifecycle states."""

    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class OrderItem(BaseModel):
    """Represents an item in an order."""

    model_config = ConfigDict(populate_by_name=True)

    product_id: Optional[str] = Field(
        None, validation_alias=AliasChoices("_id", "beer", "product_id")
    )
    name: str = Field(validation_alias=AliasChoices("nome", "name"))
    quantity: int
    price: Decimal = Field(validation_alias=AliasChoices("preco", "price"))


class Order(BaseModel):
    """Represents an order as returned by the backend."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(validation_alias=AliasChoices("_id", "id"), description="Order ID")
    items: list[OrderItem] = Field(default_factory=list, description="Order items")
    status: OrderStatus = Field(description="Order status")
    total: Decimal = Field(description="Order total value")
    shipping_address: Optional[ShippingAddress] = Field(
        None, validation_alias=AliasChoices("shippingAddress", "shipping_address")
    )
    created_at: Optional[datetime] = Field(
        None, validation_alias=AliasChoices("createdAt", "created_at")
    )
    updated_at: Optional[datetime] = Field(
        None, validation_alias=AliasChoices("updatedAt", "updated_at")
    )


class AuthCredentials(BaseModel):
    """Authentication credentials."""

    email: str
    password: str


class RegistrationForm(BaseModel):
    """Data entered on the sign-up form."""

    name: str
    email: str
    phone: Optional[str] = None
    password: str
    confirm_password: str
    address: Optional[Address] = None

    def to_payload(self) -> dict[str, Any]:
        """Profile fields sent to the backend. The confirmation never leaves the client."""
        payload: dict[str, Any] = {
            "nome": self.name,
            "email": self.email,
            "senha": self.password,
        }
        if self.phone:
            payload["telefone"] = self.phone
        if self.address is not None:
            payload["endereco"] = self.address.to_payload()
        return payload


class AuthResponse(BaseModel):
    """Response of the login and register endpoints."""

    token: str
    user: User


class TokenValidation(BaseModel):
    """Response of the token validation endpoint."""

    valid: bool
    user: Optional[User] = None


class Failure(BaseModel):
    """Tagged failure carried by a Result."""

    kind: ErrorKind
    message: str
    code: Optional[str] = None
    status_code: Optional[int] = None

    @classmethod
    def from_error(cls, error: StorefrontError, fallback: str) -> "Failure":
        # Transport errors carry library text, never a user-facing message
        message = fallback if isinstance(error, TransportError) else (error.message or fallback)
        return cls(
            kind=error.kind,
            message=message,
            code=error.code,
            status_code=error.status_code,
        )


class Result(BaseModel, Generic[T]):
    """Outcome of an operation: either a value or a failure."""

    value: Optional[T] = None
    error: Optional[Failure] = None

    @property
    def ok(self) -> bool:
        return self.error is None
