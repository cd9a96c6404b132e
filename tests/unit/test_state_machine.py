"""Tests for the order status graph."""
import pytest

from src.mk_common.enums import OrderStatus
from src.mk_common.errors import IllegalTransitionError
from src.mk_order.domain.state_machine import (
    ALLOWED_TRANSITIONS,
    TERMINAL_STATES,
    check_transition,
    is_valid_transition,
    quick_actions,
    status_label,
    timestamp_field,
)

P, C, O, D, X = (
    OrderStatus.PENDING,
    OrderStatus.CONFIRMED,
    OrderStatus.OUT_FOR_DELIVERY,
    OrderStatus.DELIVERED,
    OrderStatus.CANCELLED,
)


class TestTransitions:
    @pytest.mark.parametrize("current,target", [(P, C), (P, X), (C, O), (C, X), (O, D)])
    def test_allowed(self, current, target) -> None:
        assert is_valid_transition(current, target)
        check_transition("o1", current, target)

    @pytest.mark.parametrize(
        "current,target",
        [(P, O), (P, D), (C, D), (O, X), (O, C), (D, X), (X, P), (C, P), (P, P)],
    )
    def test_rejected(self, current, target) -> None:
        assert not is_valid_transition(current, target)
        with pytest.raises(IllegalTransitionError) as exc_info:
            check_transition("o1", current, target)
        assert exc_info.value.code == 4010

    def test_terminal_states_have_no_exits(self) -> None:
        assert TERMINAL_STATES == {D, X}
        for status in TERMINAL_STATES:
            assert ALLOWED_TRANSITIONS[status] == frozenset()

    def test_every_status_is_covered(self) -> None:
        assert set(ALLOWED_TRANSITIONS) == set(OrderStatus)


class TestPresentation:
    def test_timestamp_fields(self) -> None:
        assert timestamp_field(C) == "confirmedAt"
        assert timestamp_field(O) == "dispatchedAt"
        assert timestamp_field(D) == "deliveredAt"
        assert timestamp_field(X) == "cancelledAt"

    def test_pending_has_no_timestamp_field(self) -> None:
        with pytest.raises(KeyError):
            timestamp_field(P)

    def test_labels(self) -> None:
        assert status_label(O) == "Dispatched"
        assert status_label(P) == "Pending"

    def test_quick_actions(self) -> None:
        assert quick_actions(P) == ("accept", "cancel")
        assert quick_actions(C) == ("dispatch", "cancel")
        assert quick_actions(O) == ("deliver",)
        assert quick_actions(D) == ()
        assert quick_actions(X) == ()
