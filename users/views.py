"""JWT authentication endpoints: sign in, refresh and verify."""

import logging

from drf_spectacular.utils import extend_schema
from rest_framework.throttling import ScopedRateThrottle
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView, TokenVerifyView

from .serializers import EmailTokenObtainPairSerializer

logger = logging.getLogger("shopfront.auth")


class SignInView(TokenObtainPairView):
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "signin"
    serializer_class = EmailTokenObtainPairSerializer

    @extend_schema(tags=["Auth Endpoints"], summary="Sign in with email and password")
    def post(self, request, *args, **kwargs):
        resp = super().post(request, *args, **kwargs)
        logger.info(
            "auth.signin",
            extra={"status": "success" if resp.status_code == 200 else "failed", "ip": request.META.get("REMOTE_ADDR")},
        )
        return resp


class RefreshView(TokenRefreshView):
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "token_refresh"

    @extend_schema(tags=["Auth Endpoints"], summary="Refresh access token")
    def post(self, request, *args, **kwargs):
        return super().post(request, *args, **kwargs)


class VerifyView(TokenVerifyView):
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "token_refresh"

    @extend_schema(tags=["Auth Endpoints"], summary="Verify a token")
    def post(self, request, *args, **kwargs):
        return super().post(request, *args, **kwargs)
