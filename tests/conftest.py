import os
from decimal import Decimal
from pathlib import Path

import pytest

os.environ.setdefault("MARKETPLACE_ENV", "test")

from shared.session import Role, Session  # noqa: E402
from shared.store import reset_store, set_store  # noqa: E402
from shared.store import schema  # noqa: E402
from shared.store.memory_adapter import InMemoryStore  # noqa: E402


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = Path(item.fspath)

        # Mark tests based on their directory
        if "/domain/" in str(test_path):
            item.add_marker(pytest.mark.domain)
        elif "/application/" in str(test_path):
            item.add_marker(pytest.mark.application)
        elif "/integration/" in str(test_path):
            item.add_marker(pytest.mark.integration)
            # Integration tests are often slower
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)


@pytest.fixture()
def store():
    """A fresh in-memory store, installed as the process-wide store."""
    memory_store = InMemoryStore()
    set_store(memory_store)
    return memory_store


@pytest.fixture(autouse=True)
def run_around_tests():
    """Fixture to automatically reset the process-wide store after every test"""
    yield
    reset_store()


@pytest.fixture()
def buyer():
    return Session(user_id="buyer-001", role=Role.BUYER)


@pytest.fixture()
def seller():
    return Session(user_id="seller-1", role=Role.SELLER)


@pytest.fixture()
def make_product(store):
    """Factory inserting a product row and returning it."""

    def _make_product(seller_id="seller-1", price="500.00", stock_quantity=10, **overrides):
        row = {
            "seller_id": seller_id,
            "title": overrides.pop("title", f"Product of {seller_id}"),
            "price": Decimal(price),
            "stock_quantity": stock_quantity,
        }
        row.update(overrides)
        return store.insert(schema.PRODUCTS, row)[0]

    return _make_product


@pytest.fixture()
def put_in_cart(store):
    """Factory inserting a cart row directly, bypassing the merge logic."""

    def _put_in_cart(buyer_id, product, quantity=1):
        return store.insert(
            schema.CART_ITEMS,
            {"buyer_id": buyer_id, "product_id": product["id"], "quantity": quantity},
        )[0]

    return _put_in_cart
