"""Application tests for checkout: one order per seller, stock, cart and numbering."""

import re
from decimal import Decimal

import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st
from ordering.order.workflow import OrderWorkflow
from shared.errors import NotAuthenticatedError, StoreError, ValidationError
from shared.session import Session
from shared.store import schema
from shared.store.memory_adapter import InMemoryStore

ADDRESS = "12 Allen Avenue, Ikeja, Lagos"


@pytest.fixture()
def two_seller_cart(buyer, make_product, put_in_cart):
    """ProductA (seller-1, 500 × 2) and ProductB (seller-2, 1000 × 1)."""
    product_a = make_product(seller_id="seller-1", price="500.00", stock_quantity=10, title="ProductA")
    product_b = make_product(seller_id="seller-2", price="1000.00", stock_quantity=5, title="ProductB")
    put_in_cart(buyer.user_id, product_a, 2)
    put_in_cart(buyer.user_id, product_b, 1)
    return product_a, product_b


def _stock(store, product):
    return store.read_one(schema.PRODUCTS, {"id": product["id"]})["stock_quantity"]


class TestCreateOrders:
    def test_one_order_per_seller(self, store, buyer, two_seller_cart):
        orders = OrderWorkflow(store).create_orders(buyer, ADDRESS)

        assert [order.seller_id for order in orders] == ["seller-1", "seller-2"]
        assert [order.total_amount for order in orders] == [Decimal("1000.00"), Decimal("1000.00")]
        assert all(order.status == "pending" for order in orders)
        assert all(order.buyer_id == buyer.user_id for order in orders)
        assert all(order.shipping_address == ADDRESS for order in orders)

    def test_cart_is_empty_afterwards(self, store, buyer, two_seller_cart):
        OrderWorkflow(store).create_orders(buyer, ADDRESS)
        assert store.read(schema.CART_ITEMS, {"buyer_id": buyer.user_id}) == []

    def test_stock_is_decremented(self, store, buyer, two_seller_cart):
        product_a, product_b = two_seller_cart
        OrderWorkflow(store).create_orders(buyer, ADDRESS)
        assert _stock(store, product_a) == 8
        assert _stock(store, product_b) == 4

    def test_items_are_persisted_with_price_snapshot(self, store, buyer, two_seller_cart):
        orders = OrderWorkflow(store).create_orders(buyer, ADDRESS)
        for order in orders:
            rows = store.read(schema.ORDER_ITEMS, {"order_id": order.id})
            assert sum(row["total_price"] for row in rows) == order.total_amount
            for row in rows:
                assert row["total_price"] == row["unit_price"] * row["quantity"]

    def test_price_is_read_at_checkout_not_when_carted(self, store, buyer, make_product, put_in_cart):
        product = make_product(seller_id="seller-1", price="500.00")
        put_in_cart(buyer.user_id, product, 2)
        store.update(schema.PRODUCTS, {"price": Decimal("650.00")}, {"id": product["id"]})

        (order,) = OrderWorkflow(store).create_orders(buyer, ADDRESS)

        (item,) = store.read(schema.ORDER_ITEMS, {"order_id": order.id})
        assert item["unit_price"] == Decimal("650.00")
        assert item["total_price"] == Decimal("1300.00")
        assert order.total_amount == Decimal("1300.00")

    def test_notes_are_stored(self, store, buyer, two_seller_cart):
        orders = OrderWorkflow(store).create_orders(buyer, ADDRESS, notes="Leave at the gate")
        assert {order.notes for order in orders} == {"Leave at the gate"}

    def test_order_numbers_come_from_procedure(self, store, buyer, two_seller_cart):
        orders = OrderWorkflow(store).create_orders(buyer, ADDRESS)
        assert [order.order_number[-6:] for order in orders] == ["000001", "000002"]

    def test_order_numbers_fall_back_when_procedure_fails(self, store, buyer, two_seller_cart):
        store.fail_on("call_procedure")
        orders = OrderWorkflow(store).create_orders(buyer, ADDRESS)
        assert len(orders) == 2
        assert all(re.match(r"^ORD-\d{13}-\d{4}-[0-9A-F]{6}$", order.order_number) for order in orders)

    def test_other_buyers_carts_are_untouched(self, store, buyer, two_seller_cart, put_in_cart):
        product_a, _ = two_seller_cart
        put_in_cart("buyer-002", product_a, 1)
        OrderWorkflow(store).create_orders(buyer, ADDRESS)
        assert len(store.read(schema.CART_ITEMS, {"buyer_id": "buyer-002"})) == 1

    def test_oversell_floors_stock_at_zero(self, store, buyer, make_product, put_in_cart):
        product = make_product(stock_quantity=1)
        put_in_cart(buyer.user_id, product, 3)
        [order] = OrderWorkflow(store).create_orders(buyer, ADDRESS)
        assert order.total_amount == Decimal("1500.00")
        assert _stock(store, product) == 0

    def test_reload_hook_receives_new_orders(self, store, buyer, two_seller_cart):
        seen = []
        workflow = OrderWorkflow(store, on_orders_changed=lambda session, listing: seen.append(listing))
        workflow.create_orders(buyer, ADDRESS)
        assert len(seen) == 1
        assert len(seen[0].orders) == 2

    def test_failing_reload_hook_does_not_fail_checkout(self, store, buyer, two_seller_cart):
        def explode(session, listing):
            raise RuntimeError("UI went away")

        orders = OrderWorkflow(store, on_orders_changed=explode).create_orders(buyer, ADDRESS)
        assert len(orders) == 2

    def test_failing_final_sweep_does_not_fail_checkout(self, store, buyer, two_seller_cart):
        store.fail_on("delete", schema.CART_ITEMS, when=lambda filters: "id__in" not in filters)
        orders = OrderWorkflow(store).create_orders(buyer, ADDRESS)
        assert len(orders) == 2
        assert store.read(schema.CART_ITEMS, {"buyer_id": buyer.user_id}) == []


class TestCreateOrdersValidation:
    def test_requires_authentication(self, store):
        with pytest.raises(NotAuthenticatedError):
            OrderWorkflow(store).create_orders(Session.anonymous(), ADDRESS)

    def test_empty_cart(self, store, buyer):
        with pytest.raises(ValidationError):
            OrderWorkflow(store).create_orders(buyer, ADDRESS)
        assert store.read(schema.ORDERS) == []

    @pytest.mark.parametrize("address", ["", "   "])
    def test_blank_address_writes_nothing(self, store, buyer, two_seller_cart, address):
        with pytest.raises(ValidationError):
            OrderWorkflow(store).create_orders(buyer, address)
        assert store.read(schema.ORDERS) == []
        assert len(store.read(schema.CART_ITEMS)) == 2

    def test_vanished_product_writes_nothing(self, store, buyer, two_seller_cart):
        product_a, _ = two_seller_cart
        store.delete(schema.PRODUCTS, {"id": product_a["id"]})
        with pytest.raises(ValidationError):
            OrderWorkflow(store).create_orders(buyer, ADDRESS)
        assert store.read(schema.ORDERS) == []

    def test_cart_read_failure(self, store, buyer, two_seller_cart):
        store.fail_on("read", schema.CART_ITEMS)
        with pytest.raises(StoreError):
            OrderWorkflow(store).create_orders(buyer, ADDRESS)


class TestCheckoutProperties:
    @settings(max_examples=25, deadline=None, suppress_health_check=[HealthCheck.function_scoped_fixture])
    @given(
        quantities=st.lists(
            st.tuples(st.integers(min_value=1, max_value=5), st.integers(min_value=1, max_value=4)),
            min_size=1,
            max_size=12,
        )
    )
    def test_n_sellers_give_n_single_seller_orders(self, quantities):
        store = InMemoryStore()
        buyer = Session(user_id="buyer-prop")
        for index, (seller_number, quantity) in enumerate(quantities):
            product = store.insert(
                schema.PRODUCTS,
                {
                    "seller_id": f"seller-{seller_number}",
                    "title": f"P{index}",
                    "price": Decimal(f"{index + 1}.25"),
                    "stock_quantity": 2,
                },
            )[0]
            store.insert(
                schema.CART_ITEMS,
                {"buyer_id": buyer.user_id, "product_id": product["id"], "quantity": quantity},
            )

        orders = OrderWorkflow(store).create_orders(buyer, ADDRESS)

        sellers = {f"seller-{seller_number}" for seller_number, _ in quantities}
        assert len(orders) == len(sellers)
        assert {order.seller_id for order in orders} == sellers
        for order in orders:
            assert order.items_total == order.total_amount
            for item in order.items:
                assert item.total_price == item.unit_price * item.quantity
        assert all(row["stock_quantity"] >= 0 for row in store.read(schema.PRODUCTS))
        assert store.read(schema.CART_ITEMS) == []
