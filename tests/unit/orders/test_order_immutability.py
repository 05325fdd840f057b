"""Orders and their lines are write-once."""

from __future__ import annotations

from decimal import Decimal

import pytest

from modules.orders.constants import OrderStatus
from modules.orders.models import ImmutableRecordError, Order, OrderItem

pytestmark = pytest.mark.unit


def test_order_refuses_save_after_creation(place_order):
    order = place_order()
    order.status = OrderStatus.SHIPPED
    with pytest.raises(ImmutableRecordError):
        order.save()
    assert Order.objects.get(id=order.id).status == OrderStatus.PENDING


def test_order_cannot_be_deleted(place_order):
    order = place_order()
    with pytest.raises(ImmutableRecordError):
        order.delete()
    assert Order.objects.filter(id=order.id).exists()


def test_order_item_refuses_save_after_creation(place_order):
    order = place_order()
    item = order.items.first()
    item.unit_price = Decimal("0.01")
    with pytest.raises(ImmutableRecordError):
        item.save()
    assert OrderItem.objects.get(id=item.id).unit_price != Decimal("0.01")


def test_catalog_changes_do_not_reach_existing_orders(place_order, make_product):
    product = make_product("40.00", name="Lamp")
    order = place_order(lines=[(product, 1)])

    product.price = Decimal("99.00")
    product.name = "Renamed Lamp"
    product.save()
    product.delete()

    item = Order.objects.get(id=order.id).items.get()
    assert item.unit_price == Decimal("40.00")
    assert item.product_name == "Lamp"
    assert Order.objects.get(id=order.id).total_amount == Decimal("40.00")


def test_transitions_leave_lines_and_total_untouched(place_order, order_service):
    order = place_order()
    lines_before = list(order.items.values_list("product_id", "quantity", "unit_price"))

    order_service.advance_status(order.id, OrderStatus.PAID)
    order_service.advance_status(order.id, OrderStatus.SHIPPED)

    stored = Order.objects.get(id=order.id)
    assert list(stored.items.values_list("product_id", "quantity", "unit_price")) == lines_before
    assert stored.total_amount == order.total_amount


def test_order_number_format():
    number = Order.generate_order_number()
    prefix, date, suffix = number.split("-")
    assert prefix == "ORD"
    assert len(date) == 8 and date.isdigit()
    assert len(suffix) == 6
