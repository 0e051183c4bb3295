"""HTTP server for the storefront core."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from .config import StorefrontConfig
from .errors import ErrorKind, StorefrontError
from .models import Address, Failure, OrderStatus, RegistrationForm, ShippingAddress
from .storefront import Storefront

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("storefront-http-server")

# Global state
storefront: Optional[Storefront] = None

STATUS_BY_KIND = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.UNAUTHENTICATED: 401,
    ErrorKind.AUTHORIZATION: 401,
    ErrorKind.BACKEND: 502,
    ErrorKind.TRANSPORT: 503,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown."""
    global storefront

    # Startup
    logger.info("Starting Storefront HTTP Server...")
    if storefront is None:
        storefront = Storefront.from_config(StorefrontConfig.from_env())
    await storefront.start()

    yield

    # Shutdown
    logger.info("Shutting down Storefront HTTP Server...")
    await storefront.close()


app = FastAPI(
    title="Storefront MCP Server",
    description="HTTP API over the storefront session, cart and checkout",
    version="0.1.0",
    lifespan=lifespan,
)


# Request/Response Models
class LoginRequest(BaseModel):
    email: str
    password: str


class ProfileRequest(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[Address] = None


class AddToCartRequest(BaseModel):
    product_id: str


class RemoveFromCartRequest(BaseModel):
    product_id: str


class UpdateQuantityRequest(BaseModel):
    product_id: str
    quantity: int


class CheckoutBody(BaseModel):
    shipping_address: Optional[ShippingAddress] = None


class OrderStatusRequest(BaseModel):
    status: OrderStatus


async def _storefront() -> Storefront:
    if storefront is None:
        raise HTTPException(status_code=503, detail="Storefront not initialized")
    await storefront.session.wait_ready()
    return storefront


def _raise_failure(failure: Failure) -> None:
    status_code = STATUS_BY_KIND.get(failure.kind, 500)
    # Client errors from the backend are passed through as-is
    if failure.kind == ErrorKind.BACKEND and failure.status_code and 400 <= failure.status_code < 500:
        status_code = failure.status_code
    raise HTTPException(
        status_code=status_code,
        detail={"kind": failure.kind.value, "code": failure.code, "message": failure.message},
    )


def _raise_error(error: StorefrontError) -> None:
    _raise_failure(Failure.from_error(error, str(error)))


def _cart_payload(store: Storefront) -> dict:
    return {
        "items": [item.model_dump(mode="json") for item in store.cart.items],
        "summary": store.checkout.summary().model_dump(mode="json"),
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "ok"}


# Authentication endpoints
@app.post("/auth/login")
async def login(request: LoginRequest):
    """Login with email and password."""
    store = await _storefront()
    result = await store.session.login(request.email, request.password)
    if not result.ok:
        _raise_failure(result.error)
    return {"success": True, "user": result.value.model_dump(mode="json")}


@app.post("/auth/register")
async def register(form: RegistrationForm):
    """Create an account and start a session."""
    store = await _storefront()
    result = await store.session.register(form)
    if not result.ok:
        _raise_failure(result.error)
    return {"success": True, "user": result.value.model_dump(mode="json")}


@app.post("/auth/logout")
async def logout():
    """Logout and clear session."""
    store = await _storefront()
    store.session.logout()
    return {"success": True, "message": "Successfully logged out"}


@app.get("/auth/status")
async def auth_status():
    """Get authentication status."""
    store = await _storefront()
    user = store.session.user
    return {
        "state": store.session.state.value,
        "authenticated": store.session.is_authenticated,
        "user": user.model_dump(mode="json") if user else None,
    }


@app.put("/auth/profile")
async def update_profile(request: ProfileRequest):
    """Update the current user's profile."""
    store = await _storefront()
    patch: dict = {}
    if request.name:
        patch["nome"] = request.name
    if request.phone:
        patch["telefone"] = request.phone
    if request.address is not None:
        patch["endereco"] = request.address.to_payload()
    if not patch:
        raise HTTPException(status_code=400, detail="Nothing to update")

    result = await store.session.update_profile(patch)
    if not result.ok:
        _raise_failure(result.error)
    return {"success": True, "user": result.value.model_dump(mode="json")}


# Catalog endpoints
@app.get("/products")
async def list_products():
    """List catalog products."""
    store = await _storefront()
    try:
        products = await store.client.list_products()
    except StorefrontError as e:
        _raise_error(e)
    return {
        "count": len(products),
        "products": [product.model_dump(mode="json") for product in products],
    }


# Cart endpoints
@app.get("/cart")
async def get_cart():
    """Get current shopping cart."""
    store = await _storefront()
    return _cart_payload(store)


@app.post("/cart/add")
async def add_to_cart(request: AddToCartRequest):
    """Add one unit of a catalog product to the cart."""
    store = await _storefront()
    try:
        products = await store.client.list_products()
    except StorefrontError as e:
        _raise_error(e)

    product = next((p for p in products if p.id == request.product_id), None)
    if product is None:
        raise HTTPException(status_code=404, detail=f"Product {request.product_id} not found")

    event = store.cart.add_item(product)
    return {"event": event.type.value, **_cart_payload(store)}


@app.post("/cart/remove")
async def remove_from_cart(request: RemoveFromCartRequest):
    """Remove a product from the cart."""
    store = await _storefront()
    store.cart.remove_item(request.product_id)
    return _cart_payload(store)


@app.post("/cart/quantity")
async def update_quantity(request: UpdateQuantityRequest):
    """Set the quantity of a cart item."""
    store = await _storefront()
    store.cart.update_quantity(request.product_id, request.quantity)
    return _cart_payload(store)


@app.delete("/cart")
async def clear_cart():
    """Empty the cart."""
    store = await _storefront()
    store.cart.clear_cart()
    return _cart_payload(store)


# Checkout endpoints
@app.get("/checkout")
async def checkout_summary():
    """Totals and default shipping address."""
    store = await _storefront()
    return {
        "summary": store.checkout.summary().model_dump(mode="json"),
        "shipping_address": store.checkout.default_address().model_dump(mode="json"),
        "in_flight": store.checkout.in_flight,
    }


@app.post("/checkout")
async def checkout(body: CheckoutBody):
    """Submit the cart and return the payment page URL."""
    store = await _storefront()
    if not await store.ensure_authenticated():
        raise HTTPException(status_code=401, detail="Not authenticated")

    result = await store.checkout.submit(body.shipping_address)
    if not result.ok:
        _raise_failure(result.error)
    return {
        "redirect_url": result.value.redirect_url,
        "total": str(result.value.total),
    }


# Order endpoints
@app.get("/orders")
async def get_orders():
    """Get the current user's orders."""
    store = await _storefront()
    if not await store.ensure_authenticated():
        raise HTTPException(status_code=401, detail="Not authenticated")
    try:
        orders = await store.client.get_my_orders()
    except StorefrontError as e:
        _raise_error(e)
    return {
        "count": len(orders),
        "orders": [order.model_dump(mode="json") for order in orders],
    }


@app.patch("/orders/{order_id}")
async def update_order_status(order_id: str, request: OrderStatusRequest):
    """Set an order's status."""
    store = await _storefront()
    if not await store.ensure_authenticated():
        raise HTTPException(status_code=401, detail="Not authenticated")
    try:
        order = await store.client.update_order_status(order_id, request.status)
    except StorefrontError as e:
        _raise_error(e)
    return order.model_dump(mode="json")


def run_http_server(host: str = "0.0.0.0", port: int = 8000):
    """Run the HTTP server."""
    import uvicorn

    uvicorn.run(app, host=host, port=port, log_level="info")


if __name__ == "__main__":
    run_http_server()
