"""Integration tests for GET /api/v1/orders/user/{user_id}/."""

from __future__ import annotations

import pytest

from modules.orders.constants import OrderStatus

pytestmark = pytest.mark.integration


def _url(user):
    return f"/api/v1/orders/user/{user.id}/"


class TestListOrders:
    def test_newest_first(self, user_client, user, place_order):
        first = place_order()
        second = place_order()

        response = user_client.get(_url(user))

        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 2
        assert [row["id"] for row in data["results"]] == [str(second.id), str(first.id)]

    def test_only_own_orders(self, user_client, user, place_order, other_user):
        place_order()
        response = user_client.get(_url(other_user))
        assert response.status_code == 403

    def test_staff_lists_any_user(self, staff_client, user, place_order):
        place_order()
        response = staff_client.get(_url(user))
        assert response.json()["count"] == 1

    def test_filter_by_status(self, user_client, user, place_order, order_service):
        kept = place_order()
        cancelled = place_order()
        order_service.cancel_order(cancelled.id)

        response = user_client.get(_url(user), {"status": "cancelled"})

        ids = [row["id"] for row in response.json()["results"]]
        assert ids == [str(cancelled.id)]
        assert str(kept.id) not in ids

    def test_filter_by_total_range(self, user_client, user, place_order, make_product):
        place_order(lines=[(make_product("5.00"), 1)])
        big = place_order(lines=[(make_product("100.00"), 1)])

        response = user_client.get(_url(user), {"min_total": "50"})

        assert [row["id"] for row in response.json()["results"]] == [str(big.id)]

    def test_ordering_by_total(self, user_client, user, place_order, make_product):
        cheap = place_order(lines=[(make_product("5.00"), 1)])
        dear = place_order(lines=[(make_product("100.00"), 1)])

        response = user_client.get(_url(user), {"ordering": "total_amount"})

        assert [row["id"] for row in response.json()["results"]] == [
            str(cheap.id),
            str(dear.id),
        ]

    def test_pagination(self, user_client, user, place_order):
        for _ in range(3):
            place_order()

        response = user_client.get(_url(user), {"page_size": 2})

        data = response.json()
        assert data["count"] == 3
        assert len(data["results"]) == 2
        assert data["next"] is not None

    def test_list_rows_are_light(self, user_client, user, place_order, order_service):
        order = place_order()
        order_service.advance_status(order.id, OrderStatus.PAID)

        row = user_client.get(_url(user)).json()["results"][0]

        assert row["status"] == "paid"
        assert "items" not in row
