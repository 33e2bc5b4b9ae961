"""Table names, column defaults, and relation map shared by every store adapter."""

from dataclasses import dataclass

PRODUCTS = "products"
CART_ITEMS = "cart_items"
ORDERS = "orders"
ORDER_ITEMS = "order_items"
PAYMENT_RECEIPTS = "payment_receipts"

TABLES = frozenset({PRODUCTS, CART_ITEMS, ORDERS, ORDER_ITEMS, PAYMENT_RECEIPTS})

# Tables whose rows carry an ``updated_at`` column bumped on every update
TIMESTAMPED = frozenset({PRODUCTS, CART_ITEMS, ORDERS})

DEFAULTS: dict[str, dict] = {
    PRODUCTS: {
        "category_id": None,
        "description": "",
        "stock_quantity": 0,
        "status": "active",
        "views": 0,
    },
    CART_ITEMS: {"quantity": 1},
    ORDERS: {"status": "pending", "notes": None},
    ORDER_ITEMS: {},
    PAYMENT_RECEIPTS: {
        "status": "pending",
        "notes": None,
        "verified_at": None,
        "verified_by": None,
    },
}


@dataclass(frozen=True)
class Relation:
    """How rows of one table expand into related rows of another.

    ``many=True`` attaches a list (one-to-many); otherwise a single row or
    ``None`` (many-to-one).
    """

    table: str
    local_field: str
    remote_field: str
    many: bool


RELATIONS: dict[str, dict[str, Relation]] = {
    CART_ITEMS: {
        "product": Relation(PRODUCTS, "product_id", "id", many=False),
    },
    ORDERS: {
        "order_items": Relation(ORDER_ITEMS, "id", "order_id", many=True),
        "payment_receipts": Relation(PAYMENT_RECEIPTS, "id", "order_id", many=True),
    },
    ORDER_ITEMS: {
        "product": Relation(PRODUCTS, "product_id", "id", many=False),
        "order": Relation(ORDERS, "order_id", "id", many=False),
    },
    PAYMENT_RECEIPTS: {
        "order": Relation(ORDERS, "order_id", "id", many=False),
    },
    PRODUCTS: {},
}
