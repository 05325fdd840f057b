"""Order URL configuration.

Checkout and listing are keyed by the owning user's id, everything else
by the order id.
"""

from __future__ import annotations

from django.urls import path

from modules.orders.views import OrderViewSet

order_checkout = OrderViewSet.as_view({"post": "checkout"})
order_detail = OrderViewSet.as_view({"get": "retrieve"})
order_status = OrderViewSet.as_view({"put": "update_status"})
order_cancel = OrderViewSet.as_view({"post": "cancel"})
user_orders = OrderViewSet.as_view({"get": "list_for_user"})

urlpatterns = [
    path("orders/user/<int:user_id>/", user_orders, name="order-user-list"),
    path("orders/<int:user_id>/", order_checkout, name="order-checkout"),
    path("orders/<uuid:order_id>/", order_detail, name="order-detail"),
    path("orders/<uuid:order_id>/status/", order_status, name="order-status"),
    path("orders/<uuid:order_id>/cancel/", order_cancel, name="order-cancel"),
]
