"""Unit tests for the order status state machine.

Covers:
- Transition tables: every legal edge, nothing else.
- Guarded compare-and-set: illegal pairs and stale ``from`` values write
  nothing; applied transitions write one history row and one outbox row.
- Payment-status transitions on the order.
- advance_status retry behaviour and cancellation rules.
"""

from __future__ import annotations

import itertools
from unittest.mock import MagicMock, patch
from uuid import uuid4

import pytest
from django.db import OperationalError

from modules.core.models import OutboxEvent
from modules.orders.constants import (
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    OrderStatus,
    PaymentStatus,
    is_legal_payment_transition,
    is_legal_transition,
)
from modules.orders.exceptions import (
    IllegalStatusTransitionError,
    OrderNotFound,
    StaleTransitionError,
)
from modules.orders.models import Order, OrderStatusHistory
from modules.orders.services import OrderService
from shared.domain.exceptions import PersistenceError

pytestmark = pytest.mark.unit

LEGAL_EDGES = {
    (OrderStatus.PENDING, OrderStatus.PAID),
    (OrderStatus.PENDING, OrderStatus.CANCELLED),
    (OrderStatus.PAID, OrderStatus.SHIPPED),
    (OrderStatus.PAID, OrderStatus.CANCELLED),
    (OrderStatus.SHIPPED, OrderStatus.COMPLETED),
}


def _status(order) -> str:
    return Order.objects.values_list("status", flat=True).get(id=order.id)


# ---------------------------------------------------------------------------
# Transition tables
# ---------------------------------------------------------------------------


class TestTransitionTable:
    @pytest.mark.parametrize(
        "from_status,to_status", list(itertools.product(OrderStatus.values, repeat=2))
    )
    def test_only_listed_edges_are_legal(self, from_status, to_status):
        expected = (from_status, to_status) in LEGAL_EDGES
        assert is_legal_transition(from_status, to_status) is expected

    def test_terminal_states_have_no_exits(self):
        for state in TERMINAL_STATES:
            assert VALID_TRANSITIONS[state] == set()

    def test_payment_edges(self):
        assert is_legal_payment_transition(PaymentStatus.PENDING, PaymentStatus.COMPLETED)
        assert is_legal_payment_transition(PaymentStatus.PENDING, PaymentStatus.FAILED)
        assert not is_legal_payment_transition(PaymentStatus.FAILED, PaymentStatus.COMPLETED)
        assert not is_legal_payment_transition(PaymentStatus.COMPLETED, PaymentStatus.FAILED)
        assert not is_legal_payment_transition(PaymentStatus.COMPLETED, PaymentStatus.PENDING)


# ---------------------------------------------------------------------------
# Guarded transitions
# ---------------------------------------------------------------------------


class TestTransitionStatus:
    def test_full_lifecycle(self, order_service, place_order):
        order = place_order()
        for from_status, to_status in [
            (OrderStatus.PENDING, OrderStatus.PAID),
            (OrderStatus.PAID, OrderStatus.SHIPPED),
            (OrderStatus.SHIPPED, OrderStatus.COMPLETED),
        ]:
            updated = order_service.transition_status(order.id, from_status, to_status)
            assert updated.status == to_status

        history = OrderStatusHistory.objects.filter(order=order, field="status")
        assert [(h.old_value, h.new_value) for h in history] == [
            (None, "pending"),
            ("pending", "paid"),
            ("paid", "shipped"),
            ("shipped", "completed"),
        ]

    def test_illegal_jump_writes_nothing(self, order_service, place_order):
        order = place_order()
        history_before = OrderStatusHistory.objects.count()

        with pytest.raises(IllegalStatusTransitionError) as exc_info:
            order_service.transition_status(order.id, OrderStatus.PENDING, OrderStatus.SHIPPED)

        assert exc_info.value.from_status == OrderStatus.PENDING
        assert _status(order) == OrderStatus.PENDING
        assert OrderStatusHistory.objects.count() == history_before

    def test_stale_from_status_writes_nothing(self, order_service, place_order):
        order = place_order()
        order_service.transition_status(order.id, OrderStatus.PENDING, OrderStatus.PAID)
        history_before = OrderStatusHistory.objects.count()

        with pytest.raises(StaleTransitionError) as exc_info:
            order_service.transition_status(
                order.id, OrderStatus.PENDING, OrderStatus.CANCELLED
            )

        assert exc_info.value.expected == OrderStatus.PENDING
        assert exc_info.value.current == OrderStatus.PAID
        assert _status(order) == OrderStatus.PAID
        assert OrderStatusHistory.objects.count() == history_before

    def test_unknown_order(self, order_service):
        with pytest.raises(OrderNotFound):
            order_service.transition_status(uuid4(), OrderStatus.PENDING, OrderStatus.PAID)

    def test_applied_transition_writes_outbox_event(self, order_service, place_order):
        order = place_order()
        order_service.transition_status(order.id, OrderStatus.PENDING, OrderStatus.PAID)

        event = OutboxEvent.objects.get(
            event_type="OrderStatusChanged", aggregate_id=str(order.id)
        )
        assert event.topic == "orders"
        assert event.payload["payload"] == {"old_status": "pending", "new_status": "paid"}

    def test_storage_failure_rolls_back_the_transition(self, order_service, place_order):
        order = place_order()
        history_before = OrderStatusHistory.objects.count()
        outbox_before = OutboxEvent.objects.count()

        with patch(
            "modules.orders.repositories.django_repository.OrderStatusHistory.objects.create",
            side_effect=OperationalError("disk full"),
        ):
            with pytest.raises(PersistenceError):
                order_service.transition_status(
                    order.id, OrderStatus.PENDING, OrderStatus.PAID
                )

        assert _status(order) == OrderStatus.PENDING
        assert OrderStatusHistory.objects.count() == history_before
        assert OutboxEvent.objects.count() == outbox_before

    def test_cancellation_writes_order_cancelled_event(self, order_service, place_order):
        order = place_order()
        order_service.transition_status(order.id, OrderStatus.PENDING, OrderStatus.CANCELLED)
        assert OutboxEvent.objects.filter(
            event_type="OrderCancelled", aggregate_id=str(order.id)
        ).exists()


class TestTransitionPaymentStatus:
    def test_pending_to_completed(self, order_service, place_order):
        order = place_order()
        updated = order_service.transition_payment_status(
            order.id, PaymentStatus.PENDING, PaymentStatus.COMPLETED
        )
        assert updated.payment_status == PaymentStatus.COMPLETED
        assert updated.status == OrderStatus.PENDING
        assert OrderStatusHistory.objects.filter(
            order=order, field="payment_status", new_value="completed"
        ).exists()

    def test_failed_cannot_become_completed(self, order_service, place_order):
        order = place_order()
        order_service.transition_payment_status(
            order.id, PaymentStatus.PENDING, PaymentStatus.FAILED
        )
        with pytest.raises(IllegalStatusTransitionError):
            order_service.transition_payment_status(
                order.id, PaymentStatus.FAILED, PaymentStatus.COMPLETED
            )

    def test_stale_payment_status(self, order_service, place_order):
        order = place_order()
        order_service.transition_payment_status(
            order.id, PaymentStatus.PENDING, PaymentStatus.FAILED
        )
        with pytest.raises(StaleTransitionError) as exc_info:
            order_service.transition_payment_status(
                order.id, PaymentStatus.PENDING, PaymentStatus.COMPLETED
            )
        assert exc_info.value.field == "payment_status"
        assert exc_info.value.current == PaymentStatus.FAILED


# ---------------------------------------------------------------------------
# advance_status / cancel_order
# ---------------------------------------------------------------------------


class TestAdvanceStatus:
    def test_reads_current_status(self, order_service, place_order):
        order = place_order()
        order_service.advance_status(order.id, OrderStatus.PAID)
        updated = order_service.advance_status(order.id, OrderStatus.SHIPPED)
        assert updated.status == OrderStatus.SHIPPED

    def test_illegal_target_is_not_retried(self, order_service, place_order):
        order = place_order()
        with pytest.raises(IllegalStatusTransitionError):
            order_service.advance_status(order.id, OrderStatus.COMPLETED)

    def test_unknown_order(self, order_service):
        with pytest.raises(OrderNotFound):
            order_service.advance_status(uuid4(), OrderStatus.PAID)

    def test_retries_stale_then_succeeds(self):
        repo = MagicMock()
        repo.current_value.side_effect = [OrderStatus.PENDING, OrderStatus.PAID]
        service = OrderService(order_repository=repo)
        outcome = MagicMock()
        service.transition_status = MagicMock(
            side_effect=[
                StaleTransitionError("o-1", "status", OrderStatus.PENDING, OrderStatus.PAID),
                outcome,
            ]
        )

        assert service.advance_status("o-1", OrderStatus.SHIPPED) is outcome
        assert service.transition_status.call_count == 2
        service.transition_status.assert_called_with(
            "o-1", OrderStatus.PAID, OrderStatus.SHIPPED, ""
        )

    def test_gives_up_after_bounded_retries(self, settings):
        settings.ORDER_TRANSITION_MAX_RETRIES = 3
        repo = MagicMock()
        repo.current_value.return_value = OrderStatus.PENDING
        service = OrderService(order_repository=repo)
        service.transition_status = MagicMock(
            side_effect=StaleTransitionError(
                "o-1", "status", OrderStatus.PENDING, OrderStatus.PAID
            )
        )

        with pytest.raises(StaleTransitionError):
            service.advance_status("o-1", OrderStatus.CANCELLED)
        assert service.transition_status.call_count == 3


class TestCancelOrder:
    def test_cancel_pending(self, order_service, place_order):
        order = place_order()
        cancelled = order_service.cancel_order(order.id, "changed my mind")
        assert cancelled.status == OrderStatus.CANCELLED
        assert cancelled.status_history.last().notes == "changed my mind"

    def test_cancel_paid(self, order_service, place_order):
        order = place_order()
        order_service.transition_status(order.id, OrderStatus.PENDING, OrderStatus.PAID)
        assert order_service.cancel_order(order.id).status == OrderStatus.CANCELLED

    @pytest.mark.parametrize("target", [OrderStatus.SHIPPED, OrderStatus.COMPLETED])
    def test_cannot_cancel_after_shipping(self, order_service, place_order, target):
        order = place_order()
        order_service.advance_status(order.id, OrderStatus.PAID)
        order_service.advance_status(order.id, OrderStatus.SHIPPED)
        if target == OrderStatus.COMPLETED:
            order_service.advance_status(order.id, OrderStatus.COMPLETED)

        with pytest.raises(IllegalStatusTransitionError):
            order_service.cancel_order(order.id)
        assert _status(order) == target

    def test_cancelled_is_terminal(self, order_service, place_order):
        order = place_order()
        order_service.cancel_order(order.id)
        with pytest.raises(IllegalStatusTransitionError):
            order_service.advance_status(order.id, OrderStatus.PAID)
