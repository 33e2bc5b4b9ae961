"""Pydantic response schemas for the Catalogue API."""

from decimal import Decimal

from pydantic import BaseModel


class ProductResponse(BaseModel):
    id: str
    seller_id: str
    title: str
    description: str = ""
    price: Decimal
    stock_quantity: int
    status: str
    views: int

    model_config = {"from_attributes": True}


class ProductViewsResponse(BaseModel):
    product_id: str
    views: int
