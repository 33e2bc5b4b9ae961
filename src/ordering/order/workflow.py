"""Order workflow: checkout, status transitions and the order list.

``OrderWorkflow`` is the entry point the HTTP layer and the UI actions call.
Every operation takes the acting ``Session`` explicitly. After a successful
write the caller's order list is reloaded and handed to
``on_orders_changed``; a failing reload never fails the write.
"""

from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass, field, replace

import structlog

from ordering.cart.items import CartService
from ordering.order.creation import OrderCreation
from ordering.order.numbering import OrderNumberGenerator
from ordering.order.order import Order, assert_can_transition, parse_status
from shared.errors import InvalidStatusTransition, ObjectNotFoundError, ProteanException, StoreError
from shared.session import Role, Session, parse_role
from shared.store import schema
from shared.store.port import Store

logger = structlog.get_logger(__name__)

ORDER_RELATIONS = ["order_items.product"]


@dataclass
class OrderListing:
    orders: list[Order] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


OrdersChangedHook = Callable[[Session, OrderListing], None]


class OrderWorkflow:
    def __init__(
        self,
        store: Store,
        on_orders_changed: OrdersChangedHook | None = None,
        numbers: OrderNumberGenerator | None = None,
    ) -> None:
        self.store = store
        self.on_orders_changed = on_orders_changed
        self.cart = CartService(store)
        self.creation = OrderCreation(store, numbers=numbers)

    # -------------------------------------------------------------------
    # Checkout
    # -------------------------------------------------------------------
    def create_orders(self, session: Session, shipping_address: str, notes: str | None = None) -> list[Order]:
        """Turn the buyer's cart into one pending order per seller."""
        buyer_id = session.require_user()
        items = self.cart.list_items(session)
        orders = self.creation.create_orders(buyer_id, items, shipping_address, notes)
        self.reload(session)
        return orders

    # -------------------------------------------------------------------
    # Status
    # -------------------------------------------------------------------
    def update_order_status(self, session: Session, order_id: str, status: str) -> Order:
        """Move an order along the status state machine.

        Re-applying the current status succeeds without writing.
        """
        session.require_user()
        target = parse_status(status)
        order = self.get_order(order_id)
        current = order.order_status

        if current == target:
            logger.info("Order status unchanged", order_id=order_id, status=target.value)
            return order

        assert_can_transition(current, target)

        try:
            rows = self.store.update(
                schema.ORDERS,
                {"status": target.value},
                {"id": order_id, "status": current.value},
            )
        except StoreError as exc:
            raise StoreError.wrap("update order status", exc) from exc

        if not rows:
            # Status moved underneath us between the read and the write
            latest = self.get_order(order_id)
            if latest.order_status == target:
                return latest
            raise InvalidStatusTransition(latest.status, target.value)

        logger.info(
            "Order status updated",
            order_id=order_id,
            order_number=order.order_number,
            from_status=current.value,
            to_status=target.value,
        )
        self.reload(session)
        return replace(order, status=target.value, updated_at=rows[0].get("updated_at"))

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def get_order(self, order_id: str) -> Order:
        """Fetch one order with its items and receipts.

        A failed receipt read is logged and leaves ``receipts`` empty.
        """
        try:
            row = self.store.read_one(schema.ORDERS, {"id": order_id}, relations=ORDER_RELATIONS)
        except StoreError as exc:
            raise StoreError.wrap("fetch order", exc) from exc
        if row is None:
            raise ObjectNotFoundError(f"Order {order_id} not found")
        row["payment_receipts"] = self._receipts_by_order([order_id], []).get(order_id, [])
        return Order.from_row(row)

    def list_orders(
        self,
        session: Session,
        status: str | None = None,
        role: Role | str | None = None,
    ) -> OrderListing:
        """Orders where the session user is the buyer or the seller, newest first.

        Receipts are fetched separately; if that read fails the orders are
        still returned and the failure is reported in ``warnings``.
        """
        user_id = session.require_user()
        role = parse_role(role, default=session.role)
        filters = {"buyer_id": user_id} if role == Role.BUYER else {"seller_id": user_id}
        if status:
            filters["status"] = parse_status(status).value

        try:
            rows = self.store.read(
                schema.ORDERS,
                filters,
                relations=ORDER_RELATIONS,
                order_by="created_at",
                descending=True,
            )
        except StoreError as exc:
            raise StoreError.wrap("fetch orders", exc) from exc

        listing = OrderListing()
        receipts = self._receipts_by_order([row["id"] for row in rows], listing.warnings)
        for row in rows:
            row["payment_receipts"] = receipts.get(row["id"], [])
            listing.orders.append(Order.from_row(row))
        return listing

    def _receipts_by_order(self, order_ids: list[str], warnings: list[str]) -> dict[str, list[dict]]:
        grouped: dict[str, list[dict]] = defaultdict(list)
        if not order_ids:
            return grouped
        try:
            rows = self.store.read(
                schema.PAYMENT_RECEIPTS,
                {"order_id__in": order_ids},
                order_by="created_at",
            )
        except StoreError as exc:
            logger.error("Error fetching payment receipts", order_count=len(order_ids), error=str(exc))
            warnings.append(f"Failed to fetch payment receipts: {exc}")
            return grouped
        for row in rows:
            grouped[row["order_id"]].append(row)
        return grouped

    # -------------------------------------------------------------------
    # Reload
    # -------------------------------------------------------------------
    def reload(self, session: Session) -> OrderListing | None:
        """Re-read the session's orders and hand them to ``on_orders_changed``."""
        if self.on_orders_changed is None:
            return None
        try:
            listing = self.list_orders(session)
        except ProteanException as exc:
            logger.warning("Order list reload failed", user_id=session.user_id, error=str(exc))
            return None
        try:
            self.on_orders_changed(session, listing)
        except Exception as exc:
            logger.warning("Orders changed hook failed", user_id=session.user_id, error=str(exc))
        return listing
