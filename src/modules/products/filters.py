"""Catalog list filters for GET /api/v1/products/."""

import django_filters

from modules.products.models import Product, ProductStatus


class ProductFilter(django_filters.FilterSet):
    name = django_filters.CharFilter(field_name="name", lookup_expr="icontains")
    sku = django_filters.CharFilter(field_name="sku", lookup_expr="iexact")
    min_price = django_filters.NumberFilter(field_name="price", lookup_expr="gte")
    max_price = django_filters.NumberFilter(field_name="price", lookup_expr="lte")
    status = django_filters.ChoiceFilter(choices=ProductStatus.choices)
    sellable = django_filters.BooleanFilter(method="filter_sellable")

    class Meta:
        model = Product
        fields = ["name", "sku", "min_price", "max_price", "status", "sellable"]

    def filter_sellable(self, queryset, name, value):
        if value is None:
            return queryset
        if value:
            return queryset.filter(status=ProductStatus.ACTIVE)
        return queryset.exclude(status=ProductStatus.ACTIVE)
