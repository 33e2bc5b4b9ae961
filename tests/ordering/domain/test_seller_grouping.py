"""Tests for partitioning a cart into seller groups and checkout validation."""

from decimal import Decimal

import pytest
from catalogue.product.product import Product
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st
from ordering.cart.cart import CartItem
from ordering.order.creation import group_by_seller, validate_checkout
from shared.errors import ValidationError


def _item(index, seller_id, price="100.00", quantity=1):
    return CartItem(
        id=f"ci-{index}",
        buyer_id="buyer-001",
        product_id=f"prod-{index}",
        quantity=quantity,
        product=Product(id=f"prod-{index}", seller_id=seller_id, title="T", price=Decimal(price)),
    )


class TestGroupBySeller:
    def test_one_group_per_seller(self):
        items = [_item(1, "s-1"), _item(2, "s-2"), _item(3, "s-1")]
        groups = group_by_seller(items)
        assert list(groups) == ["s-1", "s-2"]
        assert [item.id for item in groups["s-1"].items] == ["ci-1", "ci-3"]

    def test_group_total(self):
        groups = group_by_seller([_item(1, "s-1", "500.00", 2), _item(2, "s-1", "250.00", 1)])
        assert groups["s-1"].total == Decimal("1250.00")

    def test_group_order_items_snapshot_prices(self):
        group = group_by_seller([_item(1, "s-1", "500.00", 2)])["s-1"]
        [order_item] = group.order_items()
        assert order_item.unit_price == Decimal("500.00")
        assert order_item.total_price == Decimal("1000.00")

    @settings(max_examples=50, suppress_health_check=[HealthCheck.function_scoped_fixture])
    @given(st.lists(st.sampled_from(["s-1", "s-2", "s-3", "s-4", "s-5"]), min_size=1, max_size=30))
    def test_partition_is_complete_and_single_seller(self, sellers):
        items = [_item(index, seller) for index, seller in enumerate(sellers)]
        groups = group_by_seller(items)
        assert set(groups) == set(sellers)
        assert sum(len(group.items) for group in groups.values()) == len(items)
        for seller_id, group in groups.items():
            assert {item.seller_id for item in group.items} == {seller_id}


class TestValidateCheckout:
    def test_valid(self):
        validate_checkout([_item(1, "s-1")], "12 Allen Avenue")

    def test_empty_cart(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_checkout([], "12 Allen Avenue")
        assert "cart" in exc_info.value.messages

    @pytest.mark.parametrize("address", [None, "", "   "])
    def test_blank_address(self, address):
        with pytest.raises(ValidationError) as exc_info:
            validate_checkout([_item(1, "s-1")], address)
        assert "shipping_address" in exc_info.value.messages

    def test_vanished_product(self):
        item = _item(1, "s-1")
        item.product = None
        with pytest.raises(ValidationError) as exc_info:
            validate_checkout([item], "12 Allen Avenue")
        assert exc_info.value.messages["cart"] == ["Product prod-1 is no longer available"]
