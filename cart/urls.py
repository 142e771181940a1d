"""Cart URL routes (v1)."""

from django.urls import path

from .views import CartAddItemView, CartClearView, CartDetailView, CartItemDeleteView, CartItemUpdateView

app_name = "cart"

urlpatterns = [
    path("", CartDetailView.as_view(), name="cart-detail"),
    path("items/", CartAddItemView.as_view(), name="cart-add-item"),
    path("items/<int:product_id>/", CartItemUpdateView.as_view(), name="cart-update-item"),
    path("items/<int:product_id>/delete/", CartItemDeleteView.as_view(), name="cart-delete-item"),
    path("clear/", CartClearView.as_view(), name="cart-clear"),
]
