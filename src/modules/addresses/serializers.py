"""Address DRF serializers."""

from __future__ import annotations

from rest_framework import serializers

from modules.addresses.models import Address


class CreateAddressSerializer(serializers.Serializer):
    country = serializers.CharField(max_length=100)
    city = serializers.CharField(max_length=100)
    postal_code = serializers.CharField(max_length=20)
    address_line = serializers.CharField(max_length=255)


class AddressSerializer(serializers.ModelSerializer):
    class Meta:
        model = Address
        fields = [
            "id",
            "user_id",
            "country",
            "city",
            "postal_code",
            "address_line",
            "created_at",
        ]
        read_only_fields = fields
