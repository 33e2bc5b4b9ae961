"""Order creation: splits a buyer's cart into one order per seller.

Flow:
    1. Group cart items by seller (a grouping, not a sort).
    2. Per seller group, sequentially:
       a. total = Σ current price × quantity
       b. order number from the store procedure, or the local fallback
       c. insert Order + OrderItems, decrement stock (floored at zero), and
          delete the group's cart rows as one unit
    3. Sweep any remaining cart rows of the buyer.

Each group is its own unit of work. A failure in a later group does not
roll back groups that already committed: the caller receives a
PartialCheckoutFailure naming the committed orders, and the cart keeps
exactly the items of the failed and not-yet-processed sellers.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from decimal import Decimal

import structlog

from catalogue.product.product import floor_stock
from ordering.cart.cart import CartItem
from ordering.order.numbering import OrderNumberGenerator
from ordering.order.order import Order, OrderItem, OrderStatus
from shared.errors import PartialCheckoutFailure, StoreError, ValidationError
from shared.money import to_money
from shared.store import schema
from shared.store.port import Store

logger = structlog.get_logger(__name__)


@dataclass
class SellerGroup:
    """The cart items of one seller, materialized as exactly one order."""

    seller_id: str
    items: list[CartItem] = field(default_factory=list)

    @property
    def total(self) -> Decimal:
        return sum((item.subtotal for item in self.items), to_money(0))

    def order_items(self) -> list[OrderItem]:
        return [OrderItem.snapshot(item.product_id, item.quantity, item.product.price) for item in self.items]


def group_by_seller(items: list[CartItem]) -> dict[str, SellerGroup]:
    """Partition cart items by their product's seller, keeping first-seen order."""
    groups: dict[str, SellerGroup] = {}
    for item in items:
        groups.setdefault(item.seller_id, SellerGroup(seller_id=item.seller_id)).items.append(item)
    return groups


def validate_checkout(items: list[CartItem], shipping_address: str | None) -> None:
    """Reject a checkout before anything is written."""
    errors: dict[str, list[str]] = {}
    if not shipping_address or not shipping_address.strip():
        errors["shipping_address"] = ["Shipping address is required"]
    if not items:
        errors["cart"] = ["Cannot create an order from an empty cart"]
    missing = [item.product_id for item in items if item.product is None]
    if missing:
        errors["cart"] = [f"Product {product_id} is no longer available" for product_id in missing]
    if errors:
        raise ValidationError(errors)


class OrderCreation:
    """Runs the per-seller checkout over a store."""

    def __init__(self, store: Store, numbers: OrderNumberGenerator | None = None) -> None:
        self.store = store
        self.numbers = numbers or OrderNumberGenerator(store)

    def create_orders(
        self,
        buyer_id: str,
        items: list[CartItem],
        shipping_address: str,
        notes: str | None = None,
    ) -> list[Order]:
        validate_checkout(items, shipping_address)
        groups = group_by_seller(items)
        seller_ids = list(groups)

        logger.info(
            "Starting checkout",
            buyer_id=buyer_id,
            item_count=len(items),
            seller_count=len(groups),
        )

        created: list[Order] = []
        for index, group in enumerate(groups.values()):
            try:
                order = self._commit_group(buyer_id, group, shipping_address.strip(), notes)
            except StoreError as exc:
                logger.error(
                    "Checkout failed for seller group",
                    buyer_id=buyer_id,
                    seller_id=group.seller_id,
                    committed_orders=[o.order_number for o in created],
                    error=str(exc),
                )
                if created:
                    raise PartialCheckoutFailure(
                        reason=str(exc),
                        created_orders=created,
                        failed_seller_id=group.seller_id,
                        pending_seller_ids=seller_ids[index + 1 :],
                        original_exception=exc,
                    ) from exc
                raise StoreError.wrap("create order", exc) from exc

            created.append(order)

        self._sweep_cart(buyer_id)

        logger.info(
            "Checkout complete",
            buyer_id=buyer_id,
            orders=[order.order_number for order in created],
        )
        return created

    # -------------------------------------------------------------------
    # One seller group
    # -------------------------------------------------------------------
    def _commit_group(
        self,
        buyer_id: str,
        group: SellerGroup,
        shipping_address: str,
        notes: str | None,
    ) -> Order:
        order_number = self.numbers.next_number()
        undo: list[Callable[[], object]] = []

        if self.store.supports_transactions:
            with self.store.transaction():
                return self._write_group(buyer_id, group, order_number, shipping_address, notes, undo)

        # No transactions: undo what was written so a retry never duplicates the order
        try:
            return self._write_group(buyer_id, group, order_number, shipping_address, notes, undo)
        except StoreError:
            self._compensate(group.seller_id, undo)
            raise

    def _write_group(
        self,
        buyer_id: str,
        group: SellerGroup,
        order_number: str,
        shipping_address: str,
        notes: str | None,
        undo: list[Callable[[], object]],
    ) -> Order:
        order_items = group.order_items()
        order_row = self.store.insert(
            schema.ORDERS,
            {
                "order_number": order_number,
                "buyer_id": buyer_id,
                "seller_id": group.seller_id,
                "total_amount": group.total,
                "status": OrderStatus.PENDING.value,
                "shipping_address": shipping_address,
                "notes": notes,
            },
        )[0]
        order_id = order_row["id"]
        undo.append(lambda: self.store.delete(schema.ORDERS, {"id": order_id}))

        item_rows = self.store.insert(schema.ORDER_ITEMS, [item.to_row(order_id) for item in order_items])
        undo.append(lambda: self.store.delete(schema.ORDER_ITEMS, {"order_id": order_id}))

        for item in group.items:
            self._decrement_stock(item, undo)

        self.store.delete(
            schema.CART_ITEMS,
            {"buyer_id": buyer_id, "id__in": [item.id for item in group.items]},
        )

        logger.info(
            "Order created",
            order_id=order_id,
            order_number=order_number,
            seller_id=group.seller_id,
            total_amount=str(group.total),
            item_count=len(item_rows),
        )
        return Order.from_row({**order_row, "order_items": item_rows})

    def _decrement_stock(self, item: CartItem, undo: list[Callable[[], object]]) -> None:
        product = self.store.read_one(schema.PRODUCTS, {"id": item.product_id})
        if product is None:
            logger.warning("Product vanished during checkout, stock not decremented", product_id=item.product_id)
            return

        previous = product.get("stock_quantity") or 0
        remaining = floor_stock(previous, item.quantity)
        if item.quantity > previous:
            logger.warning(
                "Product oversold, stock floored at zero",
                product_id=item.product_id,
                stock_quantity=previous,
                ordered=item.quantity,
            )

        self.store.update(schema.PRODUCTS, {"stock_quantity": remaining}, {"id": item.product_id})
        undo.append(
            lambda: self.store.update(schema.PRODUCTS, {"stock_quantity": previous}, {"id": item.product_id})
        )

    def _compensate(self, seller_id: str, undo: list[Callable[[], object]]) -> None:
        for step in reversed(undo):
            try:
                step()
            except StoreError as exc:
                logger.error("Checkout compensation step failed", seller_id=seller_id, error=str(exc))

    def _sweep_cart(self, buyer_id: str) -> None:
        """Delete whatever is left in the buyer's cart after every group committed."""
        try:
            self.store.delete(schema.CART_ITEMS, {"buyer_id": buyer_id})
        except StoreError as exc:
            logger.warning("Cart sweep after checkout failed", buyer_id=buyer_id, error=str(exc))
