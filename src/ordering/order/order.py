"""Order and OrderItem records, and the order status state machine.

State Machine (5 states):
    PENDING → CONFIRMED → SHIPPED → DELIVERED
    PENDING/CONFIRMED → CANCELLED

DELIVERED and CANCELLED are terminal. No transition skips a stage or moves
backwards.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum

from catalogue.product.product import Product
from payments.receipt.receipt import PaymentReceipt
from shared.errors import InvalidStatusTransition, ValidationError
from shared.money import line_total, to_money


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


# State machine transition map
_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
}


def parse_status(value: str | OrderStatus) -> OrderStatus:
    """Coerce a raw status value, rejecting anything outside the five states."""
    if isinstance(value, OrderStatus):
        return value
    try:
        return OrderStatus(value)
    except ValueError:
        allowed = ", ".join(status.value for status in OrderStatus)
        raise ValidationError({"status": [f"Unknown order status {value!r}; expected one of {allowed}"]}) from None


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    return target in _VALID_TRANSITIONS[current]


def assert_can_transition(current: OrderStatus, target: OrderStatus) -> None:
    """Validate that the current state allows transition to target."""
    if not can_transition(current, target):
        raise InvalidStatusTransition(current.value, target.value)


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------
@dataclass
class OrderItem:
    """A line item with the unit price captured at order creation.

    The snapshot decouples historical orders from later price changes on
    the product.
    """

    product_id: str
    quantity: int
    unit_price: Decimal
    total_price: Decimal
    id: str | None = None
    order_id: str | None = None
    product: Product | None = None
    created_at: datetime | None = None

    @classmethod
    def snapshot(cls, product_id: str, quantity: int, unit_price) -> "OrderItem":
        unit_price = to_money(unit_price)
        return cls(
            product_id=product_id,
            quantity=quantity,
            unit_price=unit_price,
            total_price=line_total(unit_price, quantity),
        )

    @classmethod
    def from_row(cls, row: dict) -> "OrderItem":
        product_row = row.get("product")
        return cls(
            id=str(row["id"]),
            order_id=str(row["order_id"]),
            product_id=str(row["product_id"]),
            quantity=row["quantity"],
            unit_price=to_money(row["unit_price"]),
            total_price=to_money(row["total_price"]),
            product=Product.from_row(product_row) if product_row else None,
            created_at=row.get("created_at"),
        )

    def to_row(self, order_id: str) -> dict:
        return {
            "order_id": order_id,
            "product_id": self.product_id,
            "quantity": self.quantity,
            "unit_price": self.unit_price,
            "total_price": self.total_price,
        }


@dataclass
class Order:
    id: str
    order_number: str
    buyer_id: str
    seller_id: str
    total_amount: Decimal
    shipping_address: str
    status: str = OrderStatus.PENDING.value
    notes: str | None = None
    items: list[OrderItem] = field(default_factory=list)
    receipts: list[PaymentReceipt] = field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_row(cls, row: dict) -> "Order":
        return cls(
            id=str(row["id"]),
            order_number=row["order_number"],
            buyer_id=str(row["buyer_id"]),
            seller_id=str(row["seller_id"]),
            total_amount=to_money(row["total_amount"]),
            shipping_address=row["shipping_address"],
            status=row.get("status") or OrderStatus.PENDING.value,
            notes=row.get("notes"),
            items=[OrderItem.from_row(item) for item in row.get("order_items") or []],
            receipts=[PaymentReceipt.from_row(receipt) for receipt in row.get("payment_receipts") or []],
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )

    @property
    def order_status(self) -> OrderStatus:
        return OrderStatus(self.status)

    @property
    def items_total(self) -> Decimal:
        return sum((item.total_price for item in self.items), to_money(0))
