"""FastAPI endpoints for the Catalogue domain."""

from fastapi import APIRouter, Depends

from catalogue.api.schemas import ProductResponse, ProductViewsResponse
from catalogue.product.views import ProductService
from shared.store import get_store


def get_product_service() -> ProductService:
    return ProductService(get_store())


product_router = APIRouter(prefix="/products", tags=["products"])


@product_router.get("/{product_id}", response_model=ProductResponse)
async def get_product(
    product_id: str,
    products: ProductService = Depends(get_product_service),
) -> ProductResponse:
    return ProductResponse.model_validate(products.get_product(product_id))


@product_router.post("/{product_id}/views", response_model=ProductViewsResponse)
async def record_product_view(
    product_id: str,
    products: ProductService = Depends(get_product_service),
) -> ProductViewsResponse:
    return ProductViewsResponse(product_id=product_id, views=products.record_view(product_id))
