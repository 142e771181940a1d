"""URL routes for the payments app (v1)."""

from django.urls import path

from .views import CheckoutView, PaymentResultView, VerifyPaymentView

app_name = "payments"

urlpatterns = [
    path("checkout/<int:order_id>/", CheckoutView.as_view(), name="checkout"),
    path("verify/", VerifyPaymentView.as_view(), name="verify"),
    path("success/", PaymentResultView.as_view(outcome="success"), name="success"),
    path("failed/", PaymentResultView.as_view(outcome="failed"), name="failed"),
    path("cancelled/", PaymentResultView.as_view(outcome="cancelled"), name="cancelled"),
]
