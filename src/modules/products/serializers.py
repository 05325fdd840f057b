"""Product DRF serializers (read side; writes go through pydantic DTOs)."""

from __future__ import annotations

from rest_framework import serializers

from modules.products.models import Product


class ProductSerializer(serializers.ModelSerializer):
    """``is_sellable`` is what checkout will decide for this product right now."""

    is_sellable = serializers.BooleanField(read_only=True)

    class Meta:
        model = Product
        fields = [
            "id",
            "sku",
            "name",
            "description",
            "price",
            "status",
            "is_sellable",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields
