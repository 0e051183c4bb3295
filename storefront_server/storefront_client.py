"""Storefront REST API client."""

import logging
from typing import Any, Callable, Optional, TypeVar

import httpx
import pydantic

from .errors import AuthorizationError, BackendError, TransportError
from .models import (
    AuthCredentials,
    AuthResponse,
    CheckoutRequest,
    Order,
    OrderStatus,
    PaymentPreference,
    Product,
    TokenValidation,
    User,
)
from .token_store import TokenStore

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=pydantic.BaseModel)

DEFAULT_BASE_URL = "http://localhost:3000"
DEFAULT_TIMEOUT = 10.0


class StorefrontClient:
    """Client for the storefront backend API."""

    def __init__(
        self,
        token_store: TokenStore,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize the storefront client.

        Args:
            token_store: Store read for the bearer token on every request
            base_url: Backend root URL
            timeout: Request timeout in seconds
            transport: Optional httpx transport, used to stub the backend
        """
        self.token_store = token_store
        self._unauthorized_handlers: list[Callable[[], None]] = []
        self.client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            headers={
                "Accept": "application/json",
                "Content-Type": "application/json",
            },
            transport=transport,
        )

    def on_unauthorized(self, handler: Callable[[], None]) -> None:
        """Register a handler run whenever any response is a 401."""
        self._unauthorized_handlers.append(handler)

    def _auth_headers(self) -> dict[str, str]:
        token = self.token_store.get()
        if token:
            return {"Authorization": f"Bearer {token}"}
        return {}

    @staticmethod
    def _error_message(response: httpx.Response) -> Optional[str]:
        """Extract the backend's human-readable message, if any."""
        try:
            data = response.json()
        except ValueError:
            return None
        if isinstance(data, dict):
            message = data.get("message") or data.get("error")
            if isinstance(message, str) and message:
                return message
        return None

    async def _request(self, method: str, path: str, payload: Optional[dict[str, Any]] = None) -> Any:
        """
        Perform a request and return the decoded JSON body.

        Raises:
            AuthorizationError: On a 401 response, after the unauthorized handlers ran
            BackendError: On any other non-success response or an undecodable body
            TransportError: On network failure or timeout
        """
        try:
            response = await self.client.request(
                method, path, json=payload, headers=self._auth_headers()
            )
        except httpx.TimeoutException as e:
            logger.warning(f"{method} {path} timed out: {e}")
            raise TransportError(code="timeout") from e
        except httpx.TransportError as e:
            logger.warning(f"{method} {path} failed: {e}")
            raise TransportError(code="network") from e

        logger.debug(f"{method} {path} -> {response.status_code}")

        if response.status_code == 401:
            logger.warning(f"{method} {path} unauthorized, forcing logout")
            for handler in list(self._unauthorized_handlers):
                handler()
            raise AuthorizationError(self._error_message(response), status_code=401)

        if response.is_error:
            message = self._error_message(response)
            logger.warning(f"{method} {path} failed: status={response.status_code}, message={message}")
            raise BackendError(message, status_code=response.status_code)

        try:
            return response.json()
        except ValueError as e:
            raise BackendError(code="invalid_response", status_code=response.status_code) from e

    @staticmethod
    def _parse(model: type[ModelT], data: Any) -> ModelT:
        try:
            return model.model_validate(data)
        except pydantic.ValidationError as e:
            logger.error(f"Unexpected {model.__name__} payload: {e}")
            raise BackendError(code="invalid_response") from e

    # Auth

    async def login(self, credentials: AuthCredentials) -> AuthResponse:
        data = await self._request(
            "POST",
            "/api/auth/login",
            {"email": credentials.email, "password": credentials.password},
        )
        return self._parse(AuthResponse, data)

    async def register(self, profile: dict[str, Any]) -> AuthResponse:
        data = await self._request("POST", "/api/auth/register", profile)
        return self._parse(AuthResponse, data)

    async def validate_token(self) -> TokenValidation:
        data = await self._request("GET", "/api/auth/validate")
        return self._parse(TokenValidation, data)

    async def update_profile(self, user_id: str, patch: dict[str, Any]) -> User:
        data = await self._request("PUT", f"/api/auth/{user_id}", patch)
        if isinstance(data, dict) and "user" in data:
            data = data["user"]
        return self._parse(User, data)

    # Catalog

    async def list_products(self) -> list[Product]:
        """Get the publicly listed products."""
        data = await self._request("GET", "/api/beers/public")
        if isinstance(data, dict):
            data = data.get("beers", data.get("data", []))
        return [self._parse(Product, item) for item in data or []]

    # Orders

    async def get_my_orders(self) -> list[Order]:
        data = await self._request("GET", "/api/orders/myorders")
        return self._parse_orders(data)

    async def get_all_orders(self) -> list[Order]:
        data = await self._request("GET", "/api/orders")
        return self._parse_orders(data)

    async def update_order_status(self, order_id: str, status: OrderStatus) -> Order:
        """Set an order's status. Transition legality is left to the backend."""
        data = await self._request("PATCH", f"/api/orders/{order_id}", {"status": status.value})
        if isinstance(data, dict) and "order" in data:
            data = data["order"]
        return self._parse(Order, data)

    def _parse_orders(self, data: Any) -> list[Order]:
        if isinstance(data, dict):
            data = data.get("orders", [])
        return [self._parse(Order, item) for item in data or []]

    # Payments

    async def create_preference(self, request: CheckoutRequest) -> PaymentPreference:
        """Create a payment preference and return its hosted payment page."""
        data = await self._request("POST", "/api/payments/create-preference", request.to_payload())
        return self._parse(PaymentPreference, data)

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()
