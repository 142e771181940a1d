"""Orders API endpoints: customer placement, history and cancellation, plus admin management."""

from common.choices import PaymentMethod
from common.exceptions import NotFound
from drf_spectacular.utils import OpenApiExample, OpenApiParameter, extend_schema, inline_serializer
from rest_framework import generics
from rest_framework import serializers as rf_serializers
from rest_framework import status
from rest_framework.pagination import PageNumberPagination
from rest_framework.permissions import IsAdminUser, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from .filters import OrderFilter
from .models import Order
from .serializers import (
    AdminOrderSerializer,
    AdminOrderStatusSerializer,
    OrderCreateSerializer,
    OrderSerializer,
)
from .services import admin_update_status, cancel_order, create_order_from_cart

ORDER_PLACED_MESSAGE = "Order placed successfully"
ORDER_PENDING_PAYMENT_MESSAGE = "Order created, pending payment"


class DefaultPagination(PageNumberPagination):
    page_size = 20
    page_size_query_param = "page_size"
    max_page_size = 100


def _get_owned_order(user, order_id) -> Order:
    order = Order.objects.filter(pk=order_id, user_id=user.id).prefetch_related("items").first()
    if order is None:
        raise NotFound("Order not found")
    return order


def _get_order(order_id) -> Order:
    order = Order.objects.filter(pk=order_id).select_related("user").prefetch_related("items").first()
    if order is None:
        raise NotFound("Order not found")
    return order


class OrderCreateView(APIView):
    """Place an order from the authenticated user's active cart."""

    permission_classes = [IsAuthenticated]
    throttle_scope = "orders_write"

    @extend_schema(
        tags=["Orders"],
        summary="Create order from cart",
        description=(
            "Converts the active cart into an order and reserves stock for every line. "
            "COD orders are placed immediately; ONLINE orders wait for payment verification."
        ),
        request=OrderCreateSerializer,
        responses={
            201: inline_serializer(
                name="OrderCreatedResponse",
                fields={"message": rf_serializers.CharField(), "order": OrderSerializer()},
            ),
        },
        examples=[
            OpenApiExample(
                "Create",
                value={
                    "shipping_address": {
                        "full_name": "Asha Rao",
                        "phone": "9876543210",
                        "address_line1": "12 MG Road",
                        "city": "Bengaluru",
                        "state": "KA",
                        "postal_code": "560001",
                    },
                    "payment_method": "ONLINE",
                },
                request_only=True,
            )
        ],
    )
    def post(self, request):
        serializer = OrderCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = create_order_from_cart(user=request.user, **serializer.validated_data)
        message = ORDER_PLACED_MESSAGE if order.payment_method == PaymentMethod.COD else ORDER_PENDING_PAYMENT_MESSAGE
        return Response(
            {"message": message, "order": OrderSerializer(order).data},
            status=status.HTTP_201_CREATED,
        )


class MyOrderListView(generics.ListAPIView):
    """List the authenticated user's active orders, newest first."""

    permission_classes = [IsAuthenticated]
    serializer_class = OrderSerializer
    pagination_class = DefaultPagination
    throttle_scope = "orders"
    filter_backends = []

    def get_queryset(self):
        return Order.objects.filter(user_id=self.request.user.id, is_active=True).prefetch_related("items")

    @extend_schema(
        tags=["Orders"],
        summary="List my orders",
        parameters=[
            OpenApiParameter(name="page", description="Page number", required=False, type=int),
            OpenApiParameter(name="page_size", description="Items per page", required=False, type=int),
        ],
    )
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)


class OrderDetailView(APIView):
    permission_classes = [IsAuthenticated]
    throttle_scope = "orders"

    @extend_schema(tags=["Orders"], summary="Get my order", responses={200: OrderSerializer})
    def get(self, request, order_id: int):
        order = _get_owned_order(request.user, order_id)
        return Response(OrderSerializer(order).data, status=status.HTTP_200_OK)


class OrderCancelView(APIView):
    """Cancel one of the caller's orders while it is placed or confirmed."""

    permission_classes = [IsAuthenticated]
    throttle_scope = "orders_write"

    @extend_schema(
        tags=["Orders"],
        summary="Cancel my order",
        description="Restores reserved stock. Returns 409 once the order has shipped, been delivered or cancelled.",
        request=None,
        responses={
            200: inline_serializer(
                name="OrderCancelledResponse",
                fields={"order_id": rf_serializers.IntegerField(), "order_status": rf_serializers.CharField()},
            ),
        },
        examples=[OpenApiExample("Cancelled", value={"order_id": 1, "order_status": "cancelled"}, response_only=True)],
    )
    def patch(self, request, order_id: int):
        order = _get_owned_order(request.user, order_id)
        order = cancel_order(order=order, actor=request.user)
        return Response({"order_id": order.id, "order_status": order.order_status}, status=status.HTTP_200_OK)


class AdminOrderListView(generics.ListAPIView):
    """List all orders for staff, filterable by status and user."""

    permission_classes = [IsAdminUser]
    serializer_class = AdminOrderSerializer
    pagination_class = DefaultPagination
    filterset_class = OrderFilter
    ordering_fields = ["created_at", "total_amount"]
    search_fields = ["order_number", "user__email"]
    throttle_scope = "orders"

    def get_queryset(self):
        return Order.objects.select_related("user").prefetch_related("items")

    @extend_schema(tags=["Orders Admin"], summary="List all orders")
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)


class AdminOrderDetailView(APIView):
    """Read or update any order's statuses (staff only)."""

    permission_classes = [IsAdminUser]
    throttle_scope = "orders_write"

    @extend_schema(tags=["Orders Admin"], summary="Get order", responses={200: AdminOrderSerializer})
    def get(self, request, order_id: int):
        return Response(AdminOrderSerializer(_get_order(order_id)).data, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["Orders Admin"],
        summary="Update order status",
        description=(
            "Sets `order_status` and/or `payment_status`. Values are checked against the allowed "
            "enums only, so states may be skipped. Moving to `cancelled` restores stock."
        ),
        request=AdminOrderStatusSerializer,
        responses={200: AdminOrderSerializer},
    )
    def patch(self, request, order_id: int):
        order = _get_order(order_id)
        serializer = AdminOrderStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        admin_update_status(order=order, actor=request.user, **serializer.validated_data)
        return Response(AdminOrderSerializer(_get_order(order_id)).data, status=status.HTTP_200_OK)
