"""Cart item record: one row per (buyer, product), deleted at checkout.

A buyer's cart is not an aggregate of its own: it is simply the set of
``cart_items`` rows carrying the buyer's id. Adding a product that is
already present increments the existing row instead of duplicating it.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from catalogue.product.product import Product
from shared.money import line_total, to_money


@dataclass
class CartItem:
    id: str
    buyer_id: str
    product_id: str
    quantity: int
    product: Product | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_row(cls, row: dict) -> "CartItem":
        product_row = row.get("product")
        return cls(
            id=str(row["id"]),
            buyer_id=str(row["buyer_id"]),
            product_id=str(row["product_id"]),
            quantity=row["quantity"],
            product=Product.from_row(product_row) if product_row else None,
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )

    @property
    def seller_id(self) -> str | None:
        return self.product.seller_id if self.product else None

    @property
    def subtotal(self) -> Decimal:
        """Current price × quantity; zero when the product is gone."""
        if self.product is None:
            return to_money(0)
        return line_total(self.product.price, self.quantity)


def cart_total_amount(items: list[CartItem]) -> Decimal:
    return sum((item.subtotal for item in items), to_money(0))


def cart_total_items(items: list[CartItem]) -> int:
    return sum(item.quantity for item in items)
