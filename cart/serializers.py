"""Cart serializers for read and write operations."""

from common.money import ZERO
from rest_framework import serializers

from .models import CartItem


class CartItemReadSerializer(serializers.ModelSerializer):
    product_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = CartItem
        fields = [
            "product_id",
            "product_name",
            "product_image",
            "unit_price",
            "quantity",
            "subtotal",
        ]


class CartReadSerializer(serializers.Serializer):
    """Cart summary with its lines. Also renders the empty view for users without a cart."""

    id = serializers.IntegerField(allow_null=True)
    items = CartItemReadSerializer(many=True)
    total_items = serializers.IntegerField()
    subtotal = serializers.DecimalField(max_digits=12, decimal_places=2)
    discount = serializers.IntegerField()
    discount_amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    total_price = serializers.DecimalField(max_digits=12, decimal_places=2)
    is_active = serializers.BooleanField()

    @classmethod
    def from_cart(cls, *, cart):
        if cart is None or not cart.is_active:
            return cls(
                {
                    "id": None,
                    "items": [],
                    "total_items": 0,
                    "subtotal": ZERO,
                    "discount": 0,
                    "discount_amount": ZERO,
                    "total_price": ZERO,
                    "is_active": False,
                }
            )
        return cls(
            {
                "id": cart.id,
                "items": list(cart.items.all()),
                "total_items": cart.total_items,
                "subtotal": cart.subtotal,
                "discount": cart.discount,
                "discount_amount": cart.discount_amount,
                "total_price": cart.total_price,
                "is_active": cart.is_active,
            }
        )


class AddItemSerializer(serializers.Serializer):
    product_id = serializers.IntegerField()
    quantity = serializers.IntegerField(min_value=1, default=1)


class UpdateItemQuantitySerializer(serializers.Serializer):
    quantity = serializers.IntegerField(min_value=1)
