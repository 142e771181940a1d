"""Serializers for the catalog app (read-only)."""

from rest_framework import serializers

from .models import Product


class ProductSerializer(serializers.ModelSerializer):
    effective_price = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)
    in_stock = serializers.SerializerMethodField()

    class Meta:
        model = Product
        fields = [
            "id",
            "name",
            "slug",
            "sku",
            "description",
            "price",
            "discount_price",
            "effective_price",
            "stock",
            "in_stock",
            "image",
        ]
        read_only_fields = fields

    def get_in_stock(self, obj: Product) -> bool:
        return obj.stock > 0
