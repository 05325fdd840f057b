"""Order API views.

Exposes ``CheckoutService`` and ``OrderService`` via HTTP using DRF
ViewSets.  Domain exceptions are caught and translated into appropriate
HTTP status codes; the view never swallows generic exceptions.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import status
from rest_framework.filters import OrderingFilter
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import GenericViewSet

from modules.addresses.repositories.django_repository import AddressDjangoRepository
from modules.addresses.services import AddressBookService
from modules.carts.exceptions import EmptyCartError
from modules.carts.repositories.django_repository import CartDjangoRepository
from modules.carts.services import CartService
from modules.core.pagination import StandardResultsSetPagination
from modules.core.permissions import can_act_for, is_staff
from modules.orders.checkout import CheckoutService
from modules.orders.dtos import CheckoutDTO, StatusChangeDTO
from modules.orders.exceptions import (
    IllegalStatusTransitionError,
    InvalidAddressError,
    OrderNotFound,
    StaleTransitionError,
)
from modules.orders.filters import OrderFilter
from modules.orders.repositories import OrderDjangoRepository
from modules.orders.serializers import (
    CancelOrderSerializer,
    CheckoutSerializer,
    OrderListSerializer,
    OrderSerializer,
    StatusChangeSerializer,
)
from modules.orders.services import OrderService
from modules.products.exceptions import ProductUnavailableError
from modules.products.repositories.django_repository import ProductDjangoRepository
from modules.products.services import CatalogService
from shared.domain.exceptions import PersistenceError

IDEMPOTENCY_KEY_MAX_LENGTH = 200


class OrderViewSet(GenericViewSet):
    """ViewSet for Order operations.

    Does **not** extend ``ModelViewSet``: all ORM access goes through
    the service/repository layer.
    """

    filterset_class = OrderFilter
    ordering_fields = ["created_at", "total_amount", "status"]
    ordering = ["-created_at", "-id"]
    filter_backends = [DjangoFilterBackend, OrderingFilter]
    pagination_class = StandardResultsSetPagination

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        order_repository = OrderDjangoRepository()
        catalog = CatalogService(repository=ProductDjangoRepository())
        self._service = OrderService(order_repository=order_repository)
        self._checkout = CheckoutService(
            cart_service=CartService(
                cart_repository=CartDjangoRepository(),
                catalog=catalog,
            ),
            catalog=catalog,
            address_book=AddressBookService(repository=AddressDjangoRepository()),
            order_repository=order_repository,
        )

    def get_throttles(self) -> list[BaseThrottle]:
        """Only checkout is throttled under its own scope here."""
        self.throttle_scope = "checkout" if self.action == "checkout" else None
        return super().get_throttles()

    # ------------------------------------------------------------------
    # Checkout
    # ------------------------------------------------------------------

    def checkout(self, request: Request, user_id: int) -> Response:
        """POST /api/v1/orders/{user_id}/

        Supports idempotency via the ``Idempotency-Key`` header.
        Returns 200 if the key was already used, 201 for new orders.
        """
        if not can_act_for(request.user, user_id):
            return Response(
                {"detail": "You may only check out your own cart."},
                status=status.HTTP_403_FORBIDDEN,
            )

        serializer = CheckoutSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        idempotency_key = request.headers.get("Idempotency-Key")
        if idempotency_key and len(idempotency_key) > IDEMPOTENCY_KEY_MAX_LENGTH:
            return Response(
                {"detail": "Idempotency-Key is too long."},
                status=status.HTTP_400_BAD_REQUEST,
            )

        dto = CheckoutDTO(
            user_id=user_id,
            shipping_address_id=data["shipping_address_id"],
            payment_method=data["payment_method"],
            idempotency_key=idempotency_key,
        )

        try:
            order, created = self._checkout.checkout(dto)
        except InvalidAddressError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        except EmptyCartError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)
        except ProductUnavailableError as exc:
            return Response(
                {"detail": str(exc), "product_ids": exc.product_ids},
                status=status.HTTP_422_UNPROCESSABLE_ENTITY,
            )
        except PersistenceError:
            return Response(
                {"detail": "Order could not be stored; the cart was left unchanged."},
                status=status.HTTP_503_SERVICE_UNAVAILABLE,
            )

        return Response(
            OrderSerializer(order).data,
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        )

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def list_for_user(self, request: Request, user_id: int) -> Response:
        """GET /api/v1/orders/user/{user_id}/

        Filtering (status, payment status, date range, total range) is
        handled by ``OrderFilter``.  Newest first unless ``ordering`` is
        given.  Results are paginated.
        """
        if not can_act_for(request.user, user_id):
            return Response(
                {"detail": "You may only list your own orders."},
                status=status.HTTP_403_FORBIDDEN,
            )

        queryset = self.filter_queryset(self._service.list_by_user(user_id))
        page = self.paginate_queryset(queryset)
        serializer = OrderListSerializer(page, many=True)
        return self.get_paginated_response(serializer.data)

    def retrieve(self, request: Request, order_id: str) -> Response:
        """GET /api/v1/orders/{order_id}/"""
        try:
            order = self._service.get_order(order_id)
        except OrderNotFound:
            return Response(
                {"detail": "Order not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        if not can_act_for(request.user, order.user_id):
            return Response(
                {"detail": "You may only view your own orders."},
                status=status.HTTP_403_FORBIDDEN,
            )
        return Response(OrderSerializer(order).data)

    # ------------------------------------------------------------------
    # Status Update
    # ------------------------------------------------------------------

    def update_status(self, request: Request, order_id: str) -> Response:
        """PUT /api/v1/orders/{order_id}/status/

        Staff only.  With ``expected_status`` the change only applies if
        the order is still in that status; without it the current status
        is re-read and the change retried a bounded number of times.
        """
        if not is_staff(request.user):
            return Response(
                {"detail": "Only staff may change order status."},
                status=status.HTTP_403_FORBIDDEN,
            )

        serializer = StatusChangeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        dto = StatusChangeDTO(**serializer.validated_data)

        try:
            if dto.expected_status is not None:
                order = self._service.transition_status(
                    order_id, dto.expected_status, dto.status, dto.notes
                )
            else:
                order = self._service.advance_status(order_id, dto.status, dto.notes)
        except OrderNotFound:
            return Response(
                {"detail": "Order not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        except IllegalStatusTransitionError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        except StaleTransitionError as exc:
            return Response(
                {"detail": str(exc), "current_status": exc.current},
                status=status.HTTP_409_CONFLICT,
            )
        except PersistenceError:
            return Response(
                {"detail": "Order status could not be stored."},
                status=status.HTTP_503_SERVICE_UNAVAILABLE,
            )

        return Response(OrderSerializer(order).data)

    # ------------------------------------------------------------------
    # Cancel (dedicated action)
    # ------------------------------------------------------------------

    def cancel(self, request: Request, order_id: str) -> Response:
        """POST /api/v1/orders/{order_id}/cancel/

        Owner or staff.  Only pending and paid orders can be cancelled.
        """
        try:
            order = self._service.get_order(order_id)
        except OrderNotFound:
            return Response(
                {"detail": "Order not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        if not can_act_for(request.user, order.user_id):
            return Response(
                {"detail": "You may only cancel your own orders."},
                status=status.HTTP_403_FORBIDDEN,
            )

        serializer = CancelOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            order = self._service.cancel_order(
                order_id, serializer.validated_data["notes"]
            )
        except IllegalStatusTransitionError as exc:
            return Response(
                {"detail": f"Cannot cancel order in status {exc.from_status}."},
                status=status.HTTP_400_BAD_REQUEST,
            )
        except StaleTransitionError as exc:
            return Response(
                {"detail": str(exc), "current_status": exc.current},
                status=status.HTTP_409_CONFLICT,
            )
        except PersistenceError:
            return Response(
                {"detail": "Order status could not be stored."},
                status=status.HTTP_503_SERVICE_UNAVAILABLE,
            )

        return Response(OrderSerializer(order).data)
