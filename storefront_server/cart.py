"""In-memory shopping cart."""

import logging
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel

from .models import CartItem, Product
from .observable import Observable

logger = logging.getLogger(__name__)


class CartEventType(str, Enum):
    ITEM_ADDED = "item_added"
    QUANTITY_INCREASED = "quantity_increased"
    ITEM_REMOVED = "item_removed"
    QUANTITY_UPDATED = "quantity_updated"
    CART_CLEARED = "cart_cleared"


class CartEvent(BaseModel):
    """Notification emitted after a cart mutation."""

    type: CartEventType
    item: Optional[CartItem] = None


class CartStore(Observable):
    """
    Line items for the current visit, in insertion order.

    At most one item per product id, and every stored quantity is at
    least 1. The cart is never persisted.
    """

    def __init__(self) -> None:
        super().__init__()
        self._items: dict[str, CartItem] = {}

    @property
    def items(self) -> list[CartItem]:
        return list(self._items.values())

    def get(self, item_id: str) -> Optional[CartItem]:
        return self._items.get(item_id)

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._items

    @property
    def is_empty(self) -> bool:
        return not self._items

    def add_item(self, product: Product) -> CartEvent:
        """Add one unit of ``product``, merging with an existing line."""
        existing = self._items.get(product.id)
        if existing is not None:
            item = existing.model_copy(update={"quantity": existing.quantity + 1})
            event = CartEvent(type=CartEventType.QUANTITY_INCREASED, item=item)
        else:
            item = CartItem(
                id=product.id,
                name=product.name,
                unit_price=product.price,
                quantity=1,
                image=product.image,
                alcohol_content=product.alcohol_content,
            )
            event = CartEvent(type=CartEventType.ITEM_ADDED, item=item)

        self._items[item.id] = item
        logger.info(f"{event.type.value}: {item.name} (qty: {item.quantity})")
        self._notify(event)
        return event

    def remove_item(self, item_id: str) -> None:
        item = self._items.pop(item_id, None)
        if item is None:
            return
        logger.info(f"item_removed: {item.name}")
        self._notify(CartEvent(type=CartEventType.ITEM_REMOVED, item=item))

    def update_quantity(self, item_id: str, quantity: int) -> None:
        """Set an absolute quantity. Zero or less removes the line."""
        if quantity <= 0:
            self.remove_item(item_id)
            return

        existing = self._items.get(item_id)
        if existing is None:
            return

        item = CartItem.model_validate({**existing.model_dump(), "quantity": quantity})
        self._items[item_id] = item
        logger.info(f"quantity_updated: {item.name} (qty: {quantity})")
        self._notify(CartEvent(type=CartEventType.QUANTITY_UPDATED, item=item))

    def clear_cart(self) -> None:
        self._items.clear()
        logger.info("cart_cleared")
        self._notify(CartEvent(type=CartEventType.CART_CLEARED))

    def get_total_price(self) -> Decimal:
        return sum((item.subtotal for item in self._items.values()), Decimal("0"))

    def get_total_items(self) -> int:
        return sum(item.quantity for item in self._items.values())
