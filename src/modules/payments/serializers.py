"""Payment DRF serializers."""

from __future__ import annotations

from rest_framework import serializers

from modules.orders.constants import PaymentMethod, PaymentStatus
from modules.payments.models import Payment


class CreatePaymentSerializer(serializers.Serializer):
    order_id = serializers.UUIDField()
    payment_method = serializers.ChoiceField(
        choices=PaymentMethod.choices, required=False
    )
    transaction_id = serializers.CharField(
        max_length=255, required=False, allow_blank=True
    )


class PaymentStatusSerializer(serializers.Serializer):
    """Gateway callback payload; only terminal statuses can be reported."""

    status = serializers.ChoiceField(
        choices=[PaymentStatus.COMPLETED, PaymentStatus.FAILED]
    )
    transaction_id = serializers.CharField(
        max_length=255, required=False, allow_blank=True
    )


class PaymentSerializer(serializers.ModelSerializer):
    class Meta:
        model = Payment
        fields = [
            "id",
            "order_id",
            "amount",
            "payment_method",
            "status",
            "transaction_id",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields
