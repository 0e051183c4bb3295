"""MCP Server for the storefront."""

import asyncio
import json
import logging
from typing import Any, Optional

from mcp.server import Server
from mcp.types import Resource, TextContent, Tool
from pydantic import AnyUrl

from .cart import CartEventType
from .config import StorefrontConfig
from .models import Address, OrderStatus, RegistrationForm, ShippingAddress
from .storefront import Storefront

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("storefront-mcp-server")

# Initialize server
app = Server("storefront-mcp-server")

# Global state
storefront: Storefront

NOT_AUTHENTICATED = (
    "Error: Not authenticated. Please configure STOREFRONT_EMAIL and STOREFRONT_PASSWORD, "
    "or use storefront_login first."
)

ADDRESS_PROPERTIES = {
    "postal_code": {"type": "string", "description": "Postal code (CEP)"},
    "street": {"type": "string", "description": "Street, number and complement"},
    "city": {"type": "string", "description": "City"},
    "state": {"type": "string", "description": "State"},
}


def _text(text: str) -> list[TextContent]:
    return [TextContent(type="text", text=text)]


def _format_cart() -> str:
    cart = storefront.cart
    if cart.is_empty:
        return "Your cart is empty"

    result_lines = [f"Shopping Cart ({cart.get_total_items()} items):\n"]
    for i, item in enumerate(cart.items, 1):
        result_lines.append(f"{i}. {item.name}")
        result_lines.append(f"   ID: {item.id}")
        result_lines.append(f"   Quantity: {item.quantity} x {item.unit_price}")
        result_lines.append(f"   Subtotal: {item.subtotal}")

    summary = storefront.checkout.summary()
    result_lines.append(f"\n{'=' * 50}")
    result_lines.append(f"Subtotal: {summary.subtotal}")
    result_lines.append(f"Shipping: {summary.shipping_fee}")
    result_lines.append(f"Total: {summary.total}")
    return "\n".join(result_lines)


def _address_from(arguments: dict[str, Any]) -> Optional[ShippingAddress]:
    """Explicit address from tool arguments, or None to use the profile address."""
    if not any(arguments.get(field) for field in ADDRESS_PROPERTIES):
        return None
    default = storefront.checkout.default_address()
    return ShippingAddress(
        postal_code=arguments.get("postal_code") or default.postal_code,
        street=arguments.get("street") or default.street,
        city=arguments.get("city") or default.city,
        state=arguments.get("state") or default.state,
    )


@app.list_resources()
async def list_resources() -> list[Resource]:
    """List available resources."""
    resources = [
        Resource(
            uri=AnyUrl("storefront://cart"),
            name="Shopping Cart",
            mimeType="application/json",
            description="Current shopping cart contents",
        )
    ]

    if storefront.session.is_authenticated:
        resources.append(
            Resource(
                uri=AnyUrl("storefront://orders"),
                name="Orders",
                mimeType="application/json",
                description="User's orders",
            )
        )

    return resources


@app.read_resource()
async def read_resource(uri: AnyUrl) -> str:
    """Read a resource by URI."""
    uri_str = str(uri)

    if uri_str == "storefront://cart":
        data = {
            "items": [item.model_dump(mode="json") for item in storefront.cart.items],
            "summary": storefront.checkout.summary().model_dump(mode="json"),
        }
        return json.dumps(data, indent=2)

    elif uri_str == "storefront://orders":
        if not await storefront.ensure_authenticated():
            return "Error: Not authenticated. Please login first."

        orders = await storefront.client.get_my_orders()
        return json.dumps([order.model_dump(mode="json") for order in orders], indent=2)

    raise ValueError(f"Unknown resource: {uri}")


@app.list_tools()
async def list_tools() -> list[Tool]:
    """List available tools."""
    return [
        Tool(
            name="storefront_login",
            description="Authenticate with the storefront. Uses STOREFRONT_EMAIL/STOREFRONT_PASSWORD if not provided.",
            inputSchema={
                "type": "object",
                "properties": {
                    "email": {"type": "string", "description": "Email address"},
                    "password": {"type": "string", "description": "Password"},
                },
            },
        ),
        Tool(
            name="storefront_register",
            description="Create an account and start a session",
            inputSchema={
                "type": "object",
                "properties": {
                    "name": {"type": "string", "description": "Full name"},
                    "email": {"type": "string", "description": "Email address"},
                    "phone": {"type": "string", "description": "Phone number (optional)"},
                    "password": {"type": "string", "description": "Password, at least 6 characters"},
                    "confirm_password": {"type": "string", "description": "Password confirmation"},
                    **ADDRESS_PROPERTIES,
                },
                "required": ["name", "email", "password", "confirm_password"],
            },
        ),
        Tool(
            name="storefront_logout",
            description="Logout and clear session",
            inputSchema={"type": "object", "properties": {}},
        ),
        Tool(
            name="storefront_session",
            description="Show the current session state and user",
            inputSchema={"type": "object", "properties": {}},
        ),
        Tool(
            name="storefront_update_profile",
            description="Update the current user's profile",
            inputSchema={
                "type": "object",
                "properties": {
                    "name": {"type": "string", "description": "Full name"},
                    "phone": {"type": "string", "description": "Phone number"},
                    **ADDRESS_PROPERTIES,
                },
            },
        ),
        Tool(
            name="storefront_list_products",
            description="List the products available in the catalog",
            inputSchema={"type": "object", "properties": {}},
        ),
        Tool(
            name="storefront_add_to_cart",
            description="Add one unit of a catalog product to the cart",
            inputSchema={
                "type": "object",
                "properties": {
                    "product_id": {"type": "string", "description": "Product ID from the catalog"},
                },
                "required": ["product_id"],
            },
        ),
        Tool(
            name="storefront_remove_from_cart",
            description="Remove a product from the cart",
            inputSchema={
                "type": "object",
                "properties": {
                    "product_id": {"type": "string", "description": "Product ID to remove"},
                },
                "required": ["product_id"],
            },
        ),
        Tool(
            name="storefront_update_quantity",
            description="Set the quantity of a cart item (0 or less removes it)",
            inputSchema={
                "type": "object",
                "properties": {
                    "product_id": {"type": "string", "description": "Product ID to update"},
                    "quantity": {"type": "integer", "description": "New quantity to set"},
                },
                "required": ["product_id", "quantity"],
            },
        ),
        Tool(
            name="storefront_clear_cart",
            description="Remove every item from the cart",
            inputSchema={"type": "object", "properties": {}},
        ),
        Tool(
            name="storefront_get_cart",
            description="Get current shopping cart contents with totals including shipping",
            inputSchema={"type": "object", "properties": {}},
        ),
        Tool(
            name="storefront_checkout",
            description="Submit the cart and get the payment page URL. Address fields default to the profile address.",
            inputSchema={"type": "object", "properties": dict(ADDRESS_PROPERTIES)},
        ),
        Tool(
            name="storefront_get_orders",
            description="Get the current user's orders",
            inputSchema={"type": "object", "properties": {}},
        ),
        Tool(
            name="storefront_update_order_status",
            description="Set an order's status (admin only)",
            inputSchema={
                "type": "object",
                "properties": {
                    "order_id": {"type": "string", "description": "Order ID"},
                    "status": {
                        "type": "string",
                        "enum": [status.value for status in OrderStatus],
                        "description": "New status",
                    },
                },
                "required": ["order_id", "status"],
            },
        ),
    ]


@app.call_tool()
async def call_tool(name: str, arguments: Any) -> list[TextContent]:
    """Handle tool calls."""
    arguments = arguments or {}
    try:
        await storefront.session.wait_ready()

        if name == "storefront_login":
            email = arguments.get("email")
            password = arguments.get("password")

            # Use provided credentials or fall back to environment
            if not email or not password:
                if storefront.credentials:
                    email = email or storefront.credentials.email
                    password = password or storefront.credentials.password
                else:
                    return _text(
                        "Error: No credentials provided and STOREFRONT_EMAIL/STOREFRONT_PASSWORD not configured."
                    )

            result = await storefront.session.login(email, password)
            if result.ok:
                return _text(f"Successfully logged in as {result.value.name} ({result.value.email})")
            return _text(f"Login failed: {result.error.message}")

        elif name == "storefront_register":
            address = None
            if any(arguments.get(field) for field in ADDRESS_PROPERTIES):
                address = Address(**{field: arguments.get(field) or "" for field in ADDRESS_PROPERTIES})
            form = RegistrationForm(
                name=arguments["name"],
                email=arguments["email"],
                phone=arguments.get("phone"),
                password=arguments["password"],
                confirm_password=arguments["confirm_password"],
                address=address,
            )
            result = await storefront.session.register(form)
            if result.ok:
                return _text(f"Account created. Logged in as {result.value.email}")
            return _text(f"Registration failed: {result.error.message}")

        elif name == "storefront_logout":
            storefront.session.logout()
            return _text("Successfully logged out")

        elif name == "storefront_session":
            session = storefront.session
            lines = [f"State: {session.state.value}"]
            if session.user:
                lines.append(f"User: {session.user.name} ({session.user.email})")
                lines.append(f"Admin: {'yes' if session.user.is_admin else 'no'}")
            return _text("\n".join(lines))

        elif name == "storefront_update_profile":
            patch: dict[str, Any] = {}
            if arguments.get("name"):
                patch["nome"] = arguments["name"]
            if arguments.get("phone"):
                patch["telefone"] = arguments["phone"]
            address = _address_from(arguments)
            if address is not None:
                patch["endereco"] = address.to_payload()
            if not patch:
                return _text("Error: Nothing to update")

            result = await storefront.session.update_profile(patch)
            if result.ok:
                return _text(f"Profile updated for {result.value.email}")
            return _text(f"Profile update failed: {result.error.message}")

        elif name == "storefront_list_products":
            products = await storefront.client.list_products()
            if not products:
                return _text("No products available")

            result_lines = [f"Found {len(products)} product(s):\n"]
            for i, product in enumerate(products, 1):
                result_lines.append(f"\n{i}. {product.name}")
                result_lines.append(f"   ID: {product.id}")
                result_lines.append(f"   Price: {product.price}")
                if product.alcohol_content is not None:
                    result_lines.append(f"   Alcohol: {product.alcohol_content}%")
            return _text("\n".join(result_lines))

        elif name == "storefront_add_to_cart":
            product_id = arguments["product_id"]
            products = await storefront.client.list_products()
            product = next((p for p in products if p.id == product_id), None)
            if product is None:
                return _text(f"Product {product_id} not found in catalog")

            event = storefront.cart.add_item(product)
            if event.type == CartEventType.QUANTITY_INCREASED:
                return _text(f"{product.name} - quantity increased to {event.item.quantity}")
            return _text(f"{product.name} added to cart")

        elif name == "storefront_remove_from_cart":
            product_id = arguments["product_id"]
            if product_id not in storefront.cart:
                return _text(f"Product {product_id} is not in the cart")
            storefront.cart.remove_item(product_id)
            return _text(f"Removed product {product_id} from cart")

        elif name == "storefront_update_quantity":
            product_id = arguments["product_id"]
            if product_id not in storefront.cart:
                return _text(f"Product {product_id} is not in the cart")
            storefront.cart.update_quantity(product_id, int(arguments["quantity"]))
            return _text(_format_cart())

        elif name == "storefront_clear_cart":
            storefront.cart.clear_cart()
            return _text("All items were removed from the cart")

        elif name == "storefront_get_cart":
            return _text(_format_cart())

        elif name == "storefront_checkout":
            if not await storefront.ensure_authenticated():
                return _text(NOT_AUTHENTICATED)

            result = await storefront.checkout.submit(_address_from(arguments))
            if not result.ok:
                return _text(f"Checkout failed: {result.error.message}")
            return _text(
                f"Order submitted. Total: {result.value.total}\n"
                f"Complete the payment at: {result.value.redirect_url}"
            )

        elif name == "storefront_get_orders":
            if not await storefront.ensure_authenticated():
                return _text(NOT_AUTHENTICATED)

            orders = await storefront.client.get_my_orders()
            if not orders:
                return _text("No orders found")

            result_lines = [f"Found {len(orders)} order(s):\n"]
            for i, order in enumerate(orders, 1):
                result_lines.append(f"\n{i}. Order {order.id}")
                result_lines.append(f"   Status: {order.status.value}")
                if order.created_at:
                    result_lines.append(f"   Date: {order.created_at.strftime('%Y-%m-%d %H:%M')}")
                result_lines.append(f"   Total: {order.total}")
                for item in order.items:
                    result_lines.append(f"     - {item.name} x{item.quantity}")
            return _text("\n".join(result_lines))

        elif name == "storefront_update_order_status":
            if not await storefront.ensure_authenticated():
                return _text(NOT_AUTHENTICATED)

            order = await storefront.client.update_order_status(
                arguments["order_id"], OrderStatus(arguments["status"])
            )
            return _text(f"Order {order.id} is now {order.status.value}")

        else:
            return _text(f"Unknown tool: {name}")

    except Exception as e:
        logger.error(f"Error executing tool {name}: {e}", exc_info=True)
        return _text(f"Error: {str(e)}")


async def main() -> None:
    """Main entry point."""
    global storefront

    config = StorefrontConfig.from_env()
    storefront = Storefront.from_config(config)

    if config.credentials:
        logger.info(f"Credentials loaded from environment for: {config.email}")
    else:
        logger.warning("No credentials found in environment variables (STOREFRONT_EMAIL, STOREFRONT_PASSWORD)")
        logger.warning("Checkout and order operations will require storefront_login")

    logger.info(f"Starting Storefront MCP Server against {config.api_url}...")
    await storefront.start()

    # Import and run the server
    from mcp.server.stdio import stdio_server

    try:
        async with stdio_server() as (read_stream, write_stream):
            await app.run(
                read_stream,
                write_stream,
                app.create_initialization_options(),
            )
    finally:
        await storefront.close()


if __name__ == "__main__":
    asyncio.run(main())
