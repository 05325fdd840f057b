"""Cart API views.

Routes are keyed by the owning user's id; a user may only touch their own
cart (staff may touch any).  Domain exceptions are translated here.
"""

from __future__ import annotations

from typing import Any, Callable

from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import ViewSet

from modules.carts.dtos import CartSnapshotDTO
from modules.carts.exceptions import InvalidQuantity
from modules.carts.repositories.django_repository import CartDjangoRepository
from modules.carts.serializers import AddCartLineSerializer, SetCartLineSerializer
from modules.carts.services import CartService
from modules.core.permissions import can_act_for
from modules.products.exceptions import ProductUnavailableError
from modules.products.repositories.django_repository import ProductDjangoRepository
from modules.products.services import CatalogService
from shared.domain.exceptions import NotFoundError, PersistenceError


class CartViewSet(ViewSet):
    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = CartService(
            cart_repository=CartDjangoRepository(),
            catalog=CatalogService(repository=ProductDjangoRepository()),
        )

    def retrieve(self, request: Request, user_id: int) -> Response:
        """GET /api/v1/cart/{user_id}/"""
        return self._run(request, user_id, lambda: self._service.get_cart(user_id))

    def add_line(self, request: Request, user_id: int) -> Response:
        """POST /api/v1/cart/{user_id}/: adds to any existing quantity."""
        serializer = AddCartLineSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        return self._run(
            request,
            user_id,
            lambda: self._service.add_line(user_id, data["product_id"], data["quantity"]),
        )

    def set_line(self, request: Request, user_id: int) -> Response:
        """PUT /api/v1/cart/{user_id}/: replaces the quantity (≤ 0 removes)."""
        serializer = SetCartLineSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        return self._run(
            request,
            user_id,
            lambda: self._service.set_line_quantity(
                user_id, data["product_id"], data["quantity"]
            ),
        )

    def clear(self, request: Request, user_id: int) -> Response:
        """DELETE /api/v1/cart/{user_id}/"""
        return self._run(request, user_id, lambda: self._service.clear(user_id))

    def remove_line(self, request: Request, user_id: int, product_id: str) -> Response:
        """DELETE /api/v1/cart/{user_id}/{product_id}/"""
        return self._run(
            request, user_id, lambda: self._service.remove_line(user_id, product_id)
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _run(
        self,
        request: Request,
        user_id: Any,
        operation: Callable[[], CartSnapshotDTO],
    ) -> Response:
        if not can_act_for(request.user, user_id):
            return Response(
                {"detail": "You may only manage your own cart."},
                status=status.HTTP_403_FORBIDDEN,
            )
        try:
            snapshot = operation()
        except InvalidQuantity as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        except NotFoundError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_404_NOT_FOUND)
        except ProductUnavailableError as exc:
            return Response(
                {"detail": str(exc), "product_ids": exc.product_ids},
                status=status.HTTP_422_UNPROCESSABLE_ENTITY,
            )
        except PersistenceError:
            return Response(
                {"detail": "Cart could not be stored; try again."},
                status=status.HTTP_503_SERVICE_UNAVAILABLE,
            )
        return Response(snapshot.model_dump(mode="json"))
