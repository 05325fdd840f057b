"""Cart DRF serializers (input validation only; output comes from DTOs)."""

from __future__ import annotations

from rest_framework import serializers


class AddCartLineSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1, default=1)


class SetCartLineSerializer(serializers.Serializer):
    """``quantity`` may be zero or negative: that removes the line."""

    product_id = serializers.UUIDField()
    quantity = serializers.IntegerField()
