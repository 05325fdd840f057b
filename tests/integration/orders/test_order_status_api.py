"""Integration tests for order reads, status changes and cancellation."""

from __future__ import annotations

from uuid import uuid4

import pytest

from modules.orders.constants import OrderStatus
from modules.orders.models import Order

pytestmark = pytest.mark.integration


def _status_url(order):
    return f"/api/v1/orders/{order.id}/status/"


class TestRetrieve:
    def test_owner_sees_order_with_history(self, user_client, place_order):
        order = place_order()
        response = user_client.get(f"/api/v1/orders/{order.id}/")

        assert response.status_code == 200
        data = response.json()
        assert data["order_number"] == order.order_number
        assert len(data["items"]) == 2
        assert len(data["status_history"]) == 1

    def test_other_user_is_forbidden(self, api_client, other_user, place_order):
        order = place_order()
        api_client.force_authenticate(user=other_user)
        response = api_client.get(f"/api/v1/orders/{order.id}/")
        assert response.status_code == 403

    def test_unknown_order(self, user_client):
        response = user_client.get(f"/api/v1/orders/{uuid4()}/")
        assert response.status_code == 404


class TestUpdateStatus:
    def test_staff_advances_status(self, staff_client, place_order):
        order = place_order()
        response = staff_client.put(
            _status_url(order), {"status": "paid", "notes": "manual"}, format="json"
        )

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "paid"
        last = data["status_history"][-1]
        assert (last["old_value"], last["new_value"], last["notes"]) == (
            "pending",
            "paid",
            "manual",
        )

    def test_owner_cannot_change_status(self, user_client, place_order):
        order = place_order()
        response = user_client.put(_status_url(order), {"status": "paid"}, format="json")
        assert response.status_code == 403
        assert Order.objects.get(id=order.id).status == OrderStatus.PENDING

    def test_illegal_jump_is_bad_request(self, staff_client, place_order):
        order = place_order()
        response = staff_client.put(_status_url(order), {"status": "completed"}, format="json")
        assert response.status_code == 400
        assert Order.objects.get(id=order.id).status_history.count() == 1

    def test_stale_expected_status_is_conflict(self, staff_client, place_order, order_service):
        order = place_order()
        order_service.advance_status(order.id, OrderStatus.PAID)

        response = staff_client.put(
            _status_url(order),
            {"status": "cancelled", "expected_status": "pending"},
            format="json",
        )

        assert response.status_code == 409
        assert response.json()["current_status"] == "paid"
        assert Order.objects.get(id=order.id).status == OrderStatus.PAID

    def test_matching_expected_status_applies(self, staff_client, place_order):
        order = place_order()
        response = staff_client.put(
            _status_url(order),
            {"status": "cancelled", "expected_status": "pending"},
            format="json",
        )
        assert response.status_code == 200
        assert response.json()["status"] == "cancelled"

    def test_unknown_status_value(self, staff_client, place_order):
        order = place_order()
        response = staff_client.put(_status_url(order), {"status": "lost"}, format="json")
        assert response.status_code == 400

    def test_unknown_order(self, staff_client):
        response = staff_client.put(
            f"/api/v1/orders/{uuid4()}/status/", {"status": "paid"}, format="json"
        )
        assert response.status_code == 404


class TestCancel:
    def test_owner_cancels_pending_order(self, user_client, place_order):
        order = place_order()
        response = user_client.post(
            f"/api/v1/orders/{order.id}/cancel/", {"notes": "changed my mind"}, format="json"
        )

        assert response.status_code == 200
        assert response.json()["status"] == "cancelled"
        assert response.json()["status_history"][-1]["notes"] == "changed my mind"

    def test_default_note(self, user_client, place_order):
        order = place_order()
        response = user_client.post(f"/api/v1/orders/{order.id}/cancel/", {}, format="json")
        assert response.json()["status_history"][-1]["notes"] == "Order cancelled"

    def test_shipped_order_cannot_be_cancelled(self, user_client, place_order, order_service):
        order = place_order()
        order_service.advance_status(order.id, OrderStatus.PAID)
        order_service.advance_status(order.id, OrderStatus.SHIPPED)

        response = user_client.post(f"/api/v1/orders/{order.id}/cancel/", {}, format="json")

        assert response.status_code == 400
        assert response.json()["detail"] == "Cannot cancel order in status shipped."

    def test_cancelling_twice(self, user_client, place_order):
        order = place_order()
        user_client.post(f"/api/v1/orders/{order.id}/cancel/", {}, format="json")
        response = user_client.post(f"/api/v1/orders/{order.id}/cancel/", {}, format="json")
        assert response.status_code == 400

    def test_other_user_cannot_cancel(self, api_client, other_user, place_order):
        order = place_order()
        api_client.force_authenticate(user=other_user)
        response = api_client.post(f"/api/v1/orders/{order.id}/cancel/", {}, format="json")
        assert response.status_code == 403
        assert Order.objects.get(id=order.id).status == OrderStatus.PENDING
