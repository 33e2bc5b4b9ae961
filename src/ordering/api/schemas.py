"""Pydantic request/response schemas for the Ordering API.

These are external contracts, separate from the internal dataclass records;
responses are built from those records with ``from_attributes``.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from payments.api.schemas import ReceiptResponse


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class ProductSummary(BaseModel):
    id: str
    seller_id: str
    title: str
    price: Decimal
    stock_quantity: int

    model_config = {"from_attributes": True}


# ---------------------------------------------------------------------------
# Cart Schemas
# ---------------------------------------------------------------------------
class AddCartItemRequest(BaseModel):
    product_id: str
    quantity: int = Field(ge=1, default=1)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "product_id": "prod-001",
                    "quantity": 2,
                }
            ]
        }
    }


class UpdateCartItemRequest(BaseModel):
    """A quantity of zero or less removes the item."""

    quantity: int


class CartItemResponse(BaseModel):
    id: str
    product_id: str
    quantity: int
    subtotal: Decimal
    product: ProductSummary | None = None

    model_config = {"from_attributes": True}


class CartResponse(BaseModel):
    items: list[CartItemResponse]
    total_amount: Decimal
    total_items: int


class ClearCartResponse(BaseModel):
    removed: int


# ---------------------------------------------------------------------------
# Order Schemas
# ---------------------------------------------------------------------------
class CheckoutRequest(BaseModel):
    shipping_address: str
    notes: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "shipping_address": "12 Allen Avenue, Ikeja, Lagos",
                    "notes": "Call before delivery",
                }
            ]
        }
    }


class UpdateOrderStatusRequest(BaseModel):
    status: str


class OrderItemResponse(BaseModel):
    id: str | None = None
    product_id: str
    quantity: int
    unit_price: Decimal
    total_price: Decimal
    product: ProductSummary | None = None

    model_config = {"from_attributes": True}


class OrderResponse(BaseModel):
    id: str
    order_number: str
    buyer_id: str
    seller_id: str
    total_amount: Decimal
    status: str
    shipping_address: str
    notes: str | None = None
    items: list[OrderItemResponse] = []
    receipts: list[ReceiptResponse] = []
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class CheckoutResponse(BaseModel):
    orders: list[OrderResponse]


class OrderListResponse(BaseModel):
    orders: list[OrderResponse]
    warnings: list[str] = []
