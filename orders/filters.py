from common.choices import OrderStatus, PaymentMethod, PaymentStatus
from django_filters import rest_framework as filters

from .models import Order


class OrderFilter(filters.FilterSet):
    """Admin order list filters."""

    order_status = filters.ChoiceFilter(choices=OrderStatus.choices)
    payment_status = filters.ChoiceFilter(choices=PaymentStatus.choices)
    payment_method = filters.ChoiceFilter(choices=PaymentMethod.choices)
    user = filters.NumberFilter(field_name="user_id")
    order_number = filters.CharFilter(field_name="order_number")
    created_after = filters.IsoDateTimeFilter(field_name="created_at", lookup_expr="gte")
    created_before = filters.IsoDateTimeFilter(field_name="created_at", lookup_expr="lte")

    class Meta:
        model = Order
        fields = ["order_status", "payment_status", "payment_method", "user", "order_number"]
