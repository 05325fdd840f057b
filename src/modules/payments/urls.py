"""Payment URL configuration."""

from __future__ import annotations

from django.urls import path

from modules.payments.views import PaymentViewSet

payment_create = PaymentViewSet.as_view({"post": "create"})
payment_detail = PaymentViewSet.as_view({"get": "retrieve"})
payment_by_order = PaymentViewSet.as_view({"get": "by_order"})
payment_status = PaymentViewSet.as_view({"put": "update_status"})

urlpatterns = [
    path("payments/", payment_create, name="payment-create"),
    path("payments/order/<uuid:order_id>/", payment_by_order, name="payment-by-order"),
    path("payments/<uuid:payment_id>/", payment_detail, name="payment-detail"),
    path("payments/<uuid:payment_id>/status/", payment_status, name="payment-status"),
]
