"""Cart URL configuration."""

from __future__ import annotations

from django.urls import path

from modules.carts.views import CartViewSet

cart_detail = CartViewSet.as_view(
    {
        "get": "retrieve",
        "post": "add_line",
        "put": "set_line",
        "delete": "clear",
    }
)
cart_line = CartViewSet.as_view({"delete": "remove_line"})

urlpatterns = [
    path("cart/<int:user_id>/", cart_detail, name="cart-detail"),
    path("cart/<int:user_id>/<uuid:product_id>/", cart_line, name="cart-line"),
]
