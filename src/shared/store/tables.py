"""SQLAlchemy table definitions mirroring the hosted marketplace schema."""

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    MetaData,
    Numeric,
    String,
    Table,
    Text,
    UniqueConstraint,
)

metadata = MetaData()

products = Table(
    "products",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("seller_id", String(36), nullable=False, index=True),
    Column("category_id", String(36)),
    Column("title", Text, nullable=False),
    Column("description", Text, nullable=False, default=""),
    Column("price", Numeric(10, 2), nullable=False),
    Column("stock_quantity", Integer, nullable=False, default=0),
    Column("status", String(20), nullable=False, default="active"),
    Column("views", Integer, default=0),
    Column("created_at", DateTime(timezone=True)),
    Column("updated_at", DateTime(timezone=True)),
    CheckConstraint("price > 0", name="products_price_positive"),
    CheckConstraint("stock_quantity >= 0", name="products_stock_non_negative"),
    CheckConstraint("status IN ('active', 'inactive', 'out_of_stock')", name="products_status_valid"),
)

cart_items = Table(
    "cart_items",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("buyer_id", String(36), nullable=False, index=True),
    Column("product_id", String(36), ForeignKey("products.id", ondelete="CASCADE"), nullable=False),
    Column("quantity", Integer, nullable=False, default=1),
    Column("created_at", DateTime(timezone=True)),
    Column("updated_at", DateTime(timezone=True)),
    UniqueConstraint("buyer_id", "product_id", name="cart_items_buyer_product_key"),
    CheckConstraint("quantity > 0", name="cart_items_quantity_positive"),
)

orders = Table(
    "orders",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("order_number", String(64), nullable=False, unique=True),
    Column("buyer_id", String(36), nullable=False, index=True),
    Column("seller_id", String(36), nullable=False, index=True),
    Column("total_amount", Numeric(10, 2), nullable=False),
    Column("status", String(20), nullable=False, default="pending"),
    Column("shipping_address", Text, nullable=False),
    Column("notes", Text),
    Column("created_at", DateTime(timezone=True)),
    Column("updated_at", DateTime(timezone=True)),
    CheckConstraint("total_amount > 0", name="orders_total_positive"),
    CheckConstraint(
        "status IN ('pending', 'confirmed', 'shipped', 'delivered', 'cancelled')",
        name="orders_status_valid",
    ),
)

order_items = Table(
    "order_items",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("order_id", String(36), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True),
    Column("product_id", String(36), ForeignKey("products.id"), nullable=False),
    Column("quantity", Integer, nullable=False),
    Column("unit_price", Numeric(10, 2), nullable=False),
    Column("total_price", Numeric(10, 2), nullable=False),
    Column("created_at", DateTime(timezone=True)),
    CheckConstraint("quantity > 0", name="order_items_quantity_positive"),
)

payment_receipts = Table(
    "payment_receipts",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("order_id", String(36), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True),
    Column("receipt_url", Text, nullable=False),
    Column("uploaded_by", String(36), nullable=False),
    Column("status", String(20), nullable=False, default="pending"),
    Column("notes", Text),
    Column("created_at", DateTime(timezone=True)),
    Column("verified_at", DateTime(timezone=True)),
    Column("verified_by", String(36)),
    CheckConstraint("status IN ('pending', 'verified', 'rejected')", name="payment_receipts_status_valid"),
)

# Backs the ``generate_order_number`` procedure on databases without one
order_number_sequence = Table(
    "order_number_sequence",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("issued_at", DateTime(timezone=True)),
)

TABLES = {
    "products": products,
    "cart_items": cart_items,
    "orders": orders,
    "order_items": order_items,
    "payment_receipts": payment_receipts,
}
