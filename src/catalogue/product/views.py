"""Product lookups and the view counter."""

import structlog

from catalogue.product.product import Product
from shared.errors import ObjectNotFoundError, StoreError
from shared.store import schema
from shared.store.port import Store

logger = structlog.get_logger(__name__)


class ProductService:
    def __init__(self, store: Store) -> None:
        self.store = store

    def get_product(self, product_id: str) -> Product:
        try:
            row = self.store.read_one(schema.PRODUCTS, {"id": product_id})
        except StoreError as exc:
            raise StoreError.wrap("fetch product", exc) from exc
        if row is None:
            raise ObjectNotFoundError(f"Product {product_id} not found")
        return Product.from_row(row)

    def record_view(self, product_id: str) -> int:
        """Increment the product's view counter and return the new count.

        Read-modify-write without locking; concurrent views may be lost.
        """
        product = self.get_product(product_id)
        views = product.views + 1
        try:
            self.store.update(schema.PRODUCTS, {"views": views}, {"id": product_id})
        except StoreError as exc:
            raise StoreError.wrap("record product view", exc) from exc

        logger.debug("Product viewed", product_id=product_id, views=views)
        return views
