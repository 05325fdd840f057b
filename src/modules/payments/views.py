"""Payment API views.

Creating and reading a payment is open to the order's owner (and staff);
reporting a payment's outcome is a staff/gateway operation.
"""

from __future__ import annotations

from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import ViewSet

from modules.core.permissions import can_act_for, is_staff
from modules.orders.exceptions import OrderNotFound
from modules.orders.repositories import OrderDjangoRepository
from modules.orders.services import OrderService
from modules.payments.dtos import CreatePaymentDTO, PaymentStatusUpdateDTO
from modules.payments.exceptions import (
    DuplicatePaymentError,
    IllegalPaymentTransitionError,
    InvalidPaymentStatusError,
    OrderNotPayable,
    PaymentNotFound,
)
from modules.payments.reconciliation import ReconciliationCoordinator
from modules.payments.repositories.django_repository import PaymentDjangoRepository
from modules.payments.serializers import (
    CreatePaymentSerializer,
    PaymentSerializer,
    PaymentStatusSerializer,
)
from modules.payments.services import PaymentService
from shared.domain.exceptions import PersistenceError


class PaymentViewSet(ViewSet):
    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._orders = OrderService(order_repository=OrderDjangoRepository())
        self._service = PaymentService(
            payment_repository=PaymentDjangoRepository(),
            order_service=self._orders,
            coordinator=ReconciliationCoordinator(order_service=self._orders),
        )

    def get_throttles(self) -> list[BaseThrottle]:
        self.throttle_scope = (
            "payment_callback" if self.action == "update_status" else None
        )
        return super().get_throttles()

    def create(self, request: Request) -> Response:
        """POST /api/v1/payments/"""
        serializer = CreatePaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        dto = CreatePaymentDTO(**serializer.validated_data)

        try:
            order = self._orders.get_order(dto.order_id)
        except OrderNotFound:
            return Response(
                {"detail": "Order not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        if not can_act_for(request.user, order.user_id):
            return Response(
                {"detail": "You may only pay for your own orders."},
                status=status.HTTP_403_FORBIDDEN,
            )

        try:
            payment = self._service.create_payment(
                order_id=dto.order_id,
                payment_method=dto.payment_method,
                transaction_id=dto.transaction_id,
            )
        except OrderNotFound:
            return Response(
                {"detail": "Order not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        except (DuplicatePaymentError, OrderNotPayable) as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)
        except PersistenceError:
            return Response(
                {"detail": "Payment could not be stored."},
                status=status.HTTP_503_SERVICE_UNAVAILABLE,
            )

        return Response(PaymentSerializer(payment).data, status=status.HTTP_201_CREATED)

    def retrieve(self, request: Request, payment_id: str) -> Response:
        """GET /api/v1/payments/{payment_id}/"""
        try:
            payment = self._service.get_payment(payment_id)
        except PaymentNotFound:
            return Response(
                {"detail": "Payment not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        return self._owned_response(request, payment)

    def by_order(self, request: Request, order_id: str) -> Response:
        """GET /api/v1/payments/order/{order_id}/"""
        try:
            payment = self._service.get_by_order(order_id)
        except PaymentNotFound:
            return Response(
                {"detail": "Payment not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        return self._owned_response(request, payment)

    def update_status(self, request: Request, payment_id: str) -> Response:
        """PUT /api/v1/payments/{payment_id}/status/

        Safe to retry: repeating the same outcome returns 200 and only
        re-runs reconciliation.
        """
        if not is_staff(request.user):
            return Response(
                {"detail": "Only staff may report payment outcomes."},
                status=status.HTTP_403_FORBIDDEN,
            )

        serializer = PaymentStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        dto = PaymentStatusUpdateDTO(**serializer.validated_data)

        try:
            payment = self._service.update_payment_status(
                payment_id, dto.status, dto.transaction_id
            )
        except PaymentNotFound:
            return Response(
                {"detail": "Payment not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        except InvalidPaymentStatusError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        except IllegalPaymentTransitionError as exc:
            return Response(
                {"detail": str(exc), "current_status": exc.current},
                status=status.HTTP_409_CONFLICT,
            )
        except PersistenceError:
            return Response(
                {"detail": "Payment status could not be stored."},
                status=status.HTTP_503_SERVICE_UNAVAILABLE,
            )

        return Response(PaymentSerializer(payment).data)

    def _owned_response(self, request: Request, payment) -> Response:
        if not can_act_for(request.user, payment.order.user_id):
            return Response(
                {"detail": "You may only view payments of your own orders."},
                status=status.HTTP_403_FORBIDDEN,
            )
        return Response(PaymentSerializer(payment).data)
