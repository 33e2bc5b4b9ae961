"""Tests for the order status state machine: valid moves and rejected ones."""

import pytest
from ordering.order.order import (
    OrderStatus,
    assert_can_transition,
    can_transition,
    parse_status,
)
from shared.errors import InvalidStatusTransition, ValidationError

ALLOWED = {
    (OrderStatus.PENDING, OrderStatus.CONFIRMED),
    (OrderStatus.PENDING, OrderStatus.CANCELLED),
    (OrderStatus.CONFIRMED, OrderStatus.SHIPPED),
    (OrderStatus.CONFIRMED, OrderStatus.CANCELLED),
    (OrderStatus.SHIPPED, OrderStatus.DELIVERED),
}


class TestTransitions:
    @pytest.mark.parametrize("current", list(OrderStatus))
    @pytest.mark.parametrize("target", list(OrderStatus))
    def test_transition_table(self, current, target):
        assert can_transition(current, target) == ((current, target) in ALLOWED)

    def test_happy_path(self):
        path = [OrderStatus.PENDING, OrderStatus.CONFIRMED, OrderStatus.SHIPPED, OrderStatus.DELIVERED]
        for current, target in zip(path, path[1:]):
            assert_can_transition(current, target)

    def test_cannot_skip_stages(self):
        with pytest.raises(InvalidStatusTransition):
            assert_can_transition(OrderStatus.PENDING, OrderStatus.SHIPPED)

    def test_cannot_go_backwards(self):
        with pytest.raises(InvalidStatusTransition):
            assert_can_transition(OrderStatus.SHIPPED, OrderStatus.CONFIRMED)

    def test_cannot_cancel_after_shipping(self):
        with pytest.raises(InvalidStatusTransition):
            assert_can_transition(OrderStatus.SHIPPED, OrderStatus.CANCELLED)

    @pytest.mark.parametrize("terminal", [OrderStatus.DELIVERED, OrderStatus.CANCELLED])
    def test_terminal_states(self, terminal):
        assert not any(can_transition(terminal, target) for target in OrderStatus)


class TestParseStatus:
    def test_parses_value(self):
        assert parse_status("shipped") == OrderStatus.SHIPPED

    def test_passes_enum_through(self):
        assert parse_status(OrderStatus.CANCELLED) is OrderStatus.CANCELLED

    def test_unknown_status(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_status("refunded")
        assert "status" in exc_info.value.messages
