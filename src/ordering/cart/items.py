"""Cart item management: add, update quantity, remove, clear.

Every operation is a read-modify-write against the store with no locking:
two concurrent ``add_item`` calls for the same buyer and product can race
(both read "absent" and both insert; the unique (buyer, product) constraint
then rejects the second).
"""

import structlog

from ordering.cart.cart import CartItem, cart_total_amount, cart_total_items
from shared.errors import ObjectNotFoundError, StoreError, ValidationError
from shared.session import Session
from shared.store import schema
from shared.store.port import Store

logger = structlog.get_logger(__name__)


class CartService:
    """Buyer-scoped cart mutations."""

    def __init__(self, store: Store) -> None:
        self.store = store

    def list_items(self, session: Session) -> list[CartItem]:
        """Return the buyer's cart rows with their products expanded."""
        buyer_id = session.require_user()
        try:
            rows = self.store.read(
                schema.CART_ITEMS,
                {"buyer_id": buyer_id},
                relations=["product"],
                order_by="created_at",
            )
        except StoreError as exc:
            raise StoreError.wrap("fetch cart items", exc) from exc
        return [CartItem.from_row(row) for row in rows]

    def add_item(self, session: Session, product_id: str, quantity: int = 1) -> CartItem:
        """Add ``quantity`` units of a product, merging into an existing row."""
        buyer_id = session.require_user()
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})

        try:
            existing = self.store.read_one(schema.CART_ITEMS, {"buyer_id": buyer_id, "product_id": product_id})
            if existing:
                rows = self.store.update(
                    schema.CART_ITEMS,
                    {"quantity": existing["quantity"] + quantity},
                    {"id": existing["id"]},
                )
            else:
                rows = self.store.insert(
                    schema.CART_ITEMS,
                    {"buyer_id": buyer_id, "product_id": product_id, "quantity": quantity},
                )
        except StoreError as exc:
            raise StoreError.wrap("add to cart", exc) from exc

        item = CartItem.from_row(rows[0])
        logger.info(
            "Cart item added",
            buyer_id=buyer_id,
            product_id=product_id,
            quantity=quantity,
            merged=existing is not None,
        )
        return item

    def update_quantity(self, session: Session, item_id: str, quantity: int) -> CartItem | None:
        """Set an item's quantity; zero or less removes the item and returns None."""
        if quantity <= 0:
            self.remove_item(session, item_id)
            return None

        buyer_id = session.require_user()
        try:
            rows = self.store.update(
                schema.CART_ITEMS,
                {"quantity": quantity},
                {"id": item_id, "buyer_id": buyer_id},
            )
        except StoreError as exc:
            raise StoreError.wrap("update quantity", exc) from exc

        if not rows:
            raise ObjectNotFoundError("Item not found in cart")
        return CartItem.from_row(rows[0])

    def remove_item(self, session: Session, item_id: str) -> None:
        buyer_id = session.require_user()
        try:
            removed = self.store.delete(schema.CART_ITEMS, {"id": item_id, "buyer_id": buyer_id})
        except StoreError as exc:
            raise StoreError.wrap("remove from cart", exc) from exc

        if not removed:
            raise ObjectNotFoundError("Item not found in cart")
        logger.info("Cart item removed", buyer_id=buyer_id, item_id=item_id)

    def clear(self, session: Session) -> int:
        """Delete every cart row of the buyer; return how many were removed."""
        buyer_id = session.require_user()
        try:
            removed = self.store.delete(schema.CART_ITEMS, {"buyer_id": buyer_id})
        except StoreError as exc:
            raise StoreError.wrap("clear cart", exc) from exc

        logger.info("Cart cleared", buyer_id=buyer_id, removed=removed)
        return removed

    @staticmethod
    def total_amount(items: list[CartItem]):
        return cart_total_amount(items)

    @staticmethod
    def total_items(items: list[CartItem]) -> int:
        return cart_total_items(items)
