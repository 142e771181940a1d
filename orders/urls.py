"""URL routes for the orders app (v1)."""

from django.urls import path

from .views import (
    AdminOrderDetailView,
    AdminOrderListView,
    MyOrderListView,
    OrderCancelView,
    OrderCreateView,
    OrderDetailView,
)

app_name = "orders"

urlpatterns = [
    path("", AdminOrderListView.as_view(), name="admin-order-list"),
    path("create/", OrderCreateView.as_view(), name="order-create"),
    path("my/", MyOrderListView.as_view(), name="my-orders"),
    path("admin/<int:order_id>/", AdminOrderDetailView.as_view(), name="admin-order-detail"),
    path("<int:order_id>/", OrderDetailView.as_view(), name="order-detail"),
    path("<int:order_id>/cancel/", OrderCancelView.as_view(), name="order-cancel"),
]
