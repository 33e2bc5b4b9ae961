"""Product record as seen by the ordering workflows.

The catalogue itself (listing, filtering, editing) lives outside this
codebase; checkout only reads a product's seller and current price, and
mutates its stock and view counter.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum

from shared.money import to_money


class ProductStatus(Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    OUT_OF_STOCK = "out_of_stock"


def floor_stock(current: int, ordered: int) -> int:
    """Stock left after ``ordered`` units leave; never below zero."""
    return max(0, (current or 0) - ordered)


@dataclass
class Product:
    id: str
    seller_id: str
    title: str
    price: Decimal
    stock_quantity: int = 0
    status: str = ProductStatus.ACTIVE.value
    views: int = 0
    description: str = ""
    category_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_row(cls, row: dict) -> "Product":
        return cls(
            id=str(row["id"]),
            seller_id=str(row["seller_id"]),
            title=row.get("title", ""),
            price=to_money(row["price"]),
            stock_quantity=row.get("stock_quantity") or 0,
            status=row.get("status") or ProductStatus.ACTIVE.value,
            views=row.get("views") or 0,
            description=row.get("description") or "",
            category_id=row.get("category_id"),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )
