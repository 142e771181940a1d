"""Hosted checkout page, payment verification callback and result pages.

The checkout page is opened in a browser tab outside the SPA, so it
authenticates with a ``?token=`` access token instead of an Authorization
header. Verification is authorized by the gateway signature alone.
"""

from django.conf import settings
from django.views.generic import TemplateView
from drf_spectacular.utils import OpenApiParameter, extend_schema, inline_serializer
from rest_framework import serializers as rf_serializers
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.renderers import JSONRenderer, TemplateHTMLRenderer
from rest_framework.response import Response
from rest_framework.views import APIView
from users.auth import verify_access_token

from .serializers import VerifyPaymentSerializer
from .services import create_checkout, verify_payment


class CheckoutView(APIView):
    authentication_classes = []
    permission_classes = [AllowAny]
    renderer_classes = [JSONRenderer, TemplateHTMLRenderer]
    throttle_scope = "payments"

    @extend_schema(
        tags=["Payments"],
        summary="Open checkout for an ONLINE order",
        description=(
            "Returns gateway checkout parameters as JSON, or the hosted checkout page for browsers. "
            "Reuses the open payment attempt when one exists."
        ),
        parameters=[OpenApiParameter(name="token", description="JWT access token", required=True, type=str)],
        responses={
            200: inline_serializer(
                name="CheckoutSession",
                fields={
                    "key_id": rf_serializers.CharField(),
                    "amount": rf_serializers.IntegerField(help_text="Minor units"),
                    "currency": rf_serializers.CharField(),
                    "gateway_order_id": rf_serializers.CharField(),
                    "payment_id": rf_serializers.IntegerField(),
                    "order_id": rf_serializers.IntegerField(),
                    "order_number": rf_serializers.CharField(),
                },
            )
        },
    )
    def get(self, request, order_id: int):
        user = verify_access_token(request.query_params.get("token"))
        session = create_checkout(order_id=order_id, user=user)
        data = session.as_dict()
        data["verify_url"] = request.build_absolute_uri("/api/v1/payments/verify/")
        data["result_url"] = request.build_absolute_uri("/api/v1/payments/")
        return Response(data, status=status.HTTP_200_OK, template_name="payments/checkout.html")


class VerifyPaymentView(APIView):
    authentication_classes = []
    permission_classes = [AllowAny]
    throttle_scope = "payments"

    @extend_schema(
        tags=["Payments"],
        summary="Verify a gateway payment callback",
        description="Idempotent: replaying a verified payment returns success without changes.",
        request=VerifyPaymentSerializer,
        responses={
            200: inline_serializer(
                name="PaymentVerified",
                fields={
                    "message": rf_serializers.CharField(),
                    "payment_id": rf_serializers.IntegerField(),
                    "order_id": rf_serializers.IntegerField(),
                    "payment_status": rf_serializers.CharField(),
                },
            )
        },
    )
    def post(self, request):
        serializer = VerifyPaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        payment = verify_payment(**serializer.to_service_kwargs())
        return Response(
            {
                "message": "Payment verified successfully",
                "payment_id": payment.id,
                "order_id": payment.order_id,
                "payment_status": payment.status,
            },
            status=status.HTTP_200_OK,
        )


class PaymentResultView(TemplateView):
    template_name = "payments/result.html"
    outcome = "success"

    MESSAGES = {
        "success": ("Payment Successful", "Your payment was completed successfully."),
        "failed": ("Payment Failed", "Something went wrong during payment."),
        "cancelled": ("Payment Cancelled", "You closed the payment window."),
    }

    def get_context_data(self, **kwargs):
        ctx = super().get_context_data(**kwargs)
        title, message = self.MESSAGES[self.outcome]
        ctx.update({"title": title, "message": message, "frontend_url": getattr(settings, "FRONTEND_URL", "")})
        return ctx
