"""DRF views for cart operations."""

from drf_spectacular.utils import OpenApiExample, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from .selectors import get_active_cart_for_user
from .serializers import AddItemSerializer, CartReadSerializer, UpdateItemQuantitySerializer
from .services import add_item, clear_cart, remove_item, update_item

CART_EXAMPLE = {
    "id": 1,
    "items": [
        {
            "product_id": 7,
            "product_name": "Cotton Shirt",
            "product_image": "https://cdn.example.com/shirt.jpg",
            "unit_price": "100.00",
            "quantity": 2,
            "subtotal": "200.00",
        }
    ],
    "total_items": 2,
    "subtotal": "200.00",
    "discount": 10,
    "discount_amount": "20.00",
    "total_price": "180.00",
    "is_active": True,
}


class CartDetailView(APIView):
    """Return the authenticated user's active cart, or an empty view."""

    permission_classes = [IsAuthenticated]
    throttle_scope = "cart"

    @extend_schema(
        tags=["Cart Endpoints"],
        summary="Get active cart",
        description="Returns the active cart with items and totals. Users without one get zero totals.",
        responses={200: CartReadSerializer},
        examples=[OpenApiExample("Cart", value=CART_EXAMPLE)],
    )
    def get(self, request):
        cart = get_active_cart_for_user(user=request.user)
        return Response(CartReadSerializer.from_cart(cart=cart).data, status=status.HTTP_200_OK)


class CartAddItemView(APIView):
    permission_classes = [IsAuthenticated]
    throttle_scope = "cart_write"

    @extend_schema(
        tags=["Cart Endpoints"],
        summary="Add item to cart",
        description="Adds a product, merging with an existing line. Quantity is checked against current stock.",
        request=AddItemSerializer,
        responses={201: CartReadSerializer},
    )
    def post(self, request):
        serializer = AddItemSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        cart = add_item(user=request.user, **serializer.validated_data)
        return Response(CartReadSerializer.from_cart(cart=cart).data, status=status.HTTP_201_CREATED)


class CartItemUpdateView(APIView):
    permission_classes = [IsAuthenticated]
    throttle_scope = "cart_write"

    @extend_schema(
        tags=["Cart Endpoints"],
        summary="Update cart item quantity",
        description="Replaces the quantity of the line for `product_id`.",
        request=UpdateItemQuantitySerializer,
        responses={200: CartReadSerializer},
    )
    def patch(self, request, product_id: int):
        serializer = UpdateItemQuantitySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        cart = update_item(user=request.user, product_id=product_id, quantity=serializer.validated_data["quantity"])
        return Response(CartReadSerializer.from_cart(cart=cart).data, status=status.HTTP_200_OK)


class CartItemDeleteView(APIView):
    permission_classes = [IsAuthenticated]
    throttle_scope = "cart_write"

    @extend_schema(
        tags=["Cart Endpoints"],
        summary="Delete cart item",
        description="Removes the line for `product_id`. Removing the last line deactivates the cart.",
        responses={200: CartReadSerializer},
    )
    def delete(self, request, product_id: int):
        cart = remove_item(user=request.user, product_id=product_id)
        return Response(CartReadSerializer.from_cart(cart=cart).data, status=status.HTTP_200_OK)


class CartClearView(APIView):
    permission_classes = [IsAuthenticated]
    throttle_scope = "cart_write"

    @extend_schema(
        tags=["Cart Endpoints"],
        summary="Clear cart",
        description="Empties and deactivates the active cart.",
        request=None,
        responses={200: CartReadSerializer},
    )
    def post(self, request):
        cart = clear_cart(user=request.user)
        return Response(CartReadSerializer.from_cart(cart=cart).data, status=status.HTTP_200_OK)
