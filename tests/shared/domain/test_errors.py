"""Tests for the error taxonomy and its message envelopes."""

from protean.exceptions import DatabaseError, InvalidStateError, ProteanException
from ordering.order.order import Order
from shared.errors import (
    InvalidStatusTransition,
    NotAuthenticatedError,
    PartialCheckoutFailure,
    StoreError,
    ValidationError,
)


def _order(number):
    return Order(
        id=f"id-{number}",
        order_number=number,
        buyer_id="buyer-001",
        seller_id="seller-1",
        total_amount=0,
        shipping_address="12 Allen Avenue",
    )


class TestMessages:
    def test_validation_messages_are_field_keyed(self):
        error = ValidationError({"quantity": ["Quantity must be at least 1"]})
        assert error.messages == {"quantity": ["Quantity must be at least 1"]}

    def test_all_errors_share_the_protean_base_class(self):
        for error_class in (ValidationError, NotAuthenticatedError, StoreError, InvalidStatusTransition):
            assert issubclass(error_class, ProteanException)

    def test_not_authenticated_has_default_message(self):
        assert str(NotAuthenticatedError()) == "User not authenticated"


class TestStoreErrorWrap:
    def test_is_a_database_error(self):
        assert issubclass(StoreError, DatabaseError)

    def test_wrap_builds_failed_to_envelope(self):
        cause = StoreError("connection reset")
        error = StoreError.wrap("create order", cause)
        assert str(error) == "Failed to create order: connection reset"
        assert error.action == "create order"
        assert error.original_exception is cause

    def test_wrap_falls_back_to_exception_name(self):
        error = StoreError.wrap("clear cart", RuntimeError())
        assert str(error) == "Failed to clear cart: RuntimeError"


class TestInvalidStatusTransition:
    def test_is_an_invalid_state_error(self):
        assert issubclass(InvalidStatusTransition, InvalidStateError)

    def test_message_names_both_states(self):
        error = InvalidStatusTransition("delivered", "pending")
        assert str(error) == "Cannot transition order from delivered to pending"
        assert error.current == "delivered"
        assert error.target == "pending"

    def test_entity_is_configurable(self):
        error = InvalidStatusTransition("verified", "rejected", entity="receipt")
        assert "Cannot transition receipt" in str(error)


class TestPartialCheckoutFailure:
    def test_is_a_store_error(self):
        assert issubclass(PartialCheckoutFailure, StoreError)

    def test_carries_committed_orders_and_sellers(self):
        error = PartialCheckoutFailure(
            reason="insert rejected",
            created_orders=[_order("ORD-1")],
            failed_seller_id="seller-2",
            pending_seller_ids=["seller-3"],
        )
        assert error.action == "create order"
        assert str(error) == "Failed to create order: insert rejected"
        assert error.created_order_numbers == ["ORD-1"]
        assert error.failed_seller_id == "seller-2"
        assert error.pending_seller_ids == ["seller-3"]
