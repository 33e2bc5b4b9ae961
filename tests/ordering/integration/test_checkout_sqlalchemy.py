"""Checkout, status and listing against the SQLAlchemy adapter on SQLite."""

from decimal import Decimal

import pytest
from ordering.cart.items import CartService
from ordering.order.workflow import OrderWorkflow
from payments.receipt.management import ReceiptService
from shared.errors import PartialCheckoutFailure, StoreError
from shared.session import Role, Session
from shared.store import schema
from shared.store.sqlalchemy_adapter import SqlAlchemyStore

BUYER = Session(user_id="buyer-001")
SELLER_1 = Session(user_id="seller-1", role=Role.SELLER)


class CartDeleteFailingStore(SqlAlchemyStore):
    """Fails the per-group cart delete of the n-th seller group."""

    def __init__(self, fail_on_group: int) -> None:
        super().__init__("sqlite://")
        self.fail_on_group = fail_on_group
        self.group_deletes = 0

    def delete(self, table, filters):
        if table == schema.CART_ITEMS and "id__in" in filters:
            self.group_deletes += 1
            if self.group_deletes == self.fail_on_group:
                raise StoreError("cart row locked")
        return super().delete(table, filters)


def _seed(store):
    cart = CartService(store)
    product_a = store.insert(
        schema.PRODUCTS,
        {"seller_id": "seller-1", "title": "ProductA", "price": Decimal("500.00"), "stock_quantity": 10},
    )[0]
    product_b = store.insert(
        schema.PRODUCTS,
        {"seller_id": "seller-2", "title": "ProductB", "price": Decimal("1000.00"), "stock_quantity": 5},
    )[0]
    cart.add_item(BUYER, product_a["id"], 2)
    cart.add_item(BUYER, product_b["id"], 1)
    return product_a, product_b


def _stock(store, product):
    return store.read_one(schema.PRODUCTS, {"id": product["id"]})["stock_quantity"]


@pytest.fixture()
def sql_store():
    store = SqlAlchemyStore("sqlite://")
    store.setup_db()
    return store


class TestCheckoutOnSqlite:
    def test_two_sellers(self, sql_store):
        product_a, product_b = _seed(sql_store)

        orders = OrderWorkflow(sql_store).create_orders(BUYER, "12 Allen Avenue")

        assert sorted(order.total_amount for order in orders) == [Decimal("1000.00"), Decimal("1000.00")]
        assert sql_store.read(schema.CART_ITEMS) == []
        assert _stock(sql_store, product_a) == 8
        assert _stock(sql_store, product_b) == 4
        assert len(sql_store.read(schema.ORDER_ITEMS)) == 2

    def test_failed_group_is_rolled_back(self):
        store = CartDeleteFailingStore(fail_on_group=2)
        store.setup_db()
        product_a, product_b = _seed(store)

        with pytest.raises(PartialCheckoutFailure):
            OrderWorkflow(store).create_orders(BUYER, "12 Allen Avenue")

        assert [row["seller_id"] for row in store.read(schema.ORDERS)] == ["seller-1"]
        assert len(store.read(schema.ORDER_ITEMS)) == 1
        assert [row["product_id"] for row in store.read(schema.CART_ITEMS)] == [product_b["id"]]
        assert _stock(store, product_a) == 8
        assert _stock(store, product_b) == 5


class TestLifecycleOnSqlite:
    def test_status_receipts_and_listing(self, sql_store):
        _seed(sql_store)
        workflow = OrderWorkflow(sql_store)
        order = next(o for o in workflow.create_orders(BUYER, "12 Allen Avenue") if o.seller_id == "seller-1")

        workflow.update_order_status(SELLER_1, order.id, "confirmed")
        receipts = ReceiptService(sql_store)
        receipt = receipts.upload_receipt(BUYER, order.id, "https://files/r.jpg")
        receipts.verify_receipt(SELLER_1, receipt.id)

        listing = workflow.list_orders(SELLER_1)
        assert [o.id for o in listing.orders] == [order.id]
        assert listing.orders[0].status == "confirmed"
        assert [r.status for r in listing.orders[0].receipts] == ["verified"]
        assert listing.orders[0].items[0].product.title == "ProductA"
